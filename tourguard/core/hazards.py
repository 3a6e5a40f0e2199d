"""Hazard state machines — pure transition functions over DwellTracker.

Each step takes the previous track and the current sample and returns
the new track, the state the hazard is in after the sample, and whether
the hazard fired.  Nothing here reads a clock or touches storage; "now"
is always the sample's ``captured_at``.

Immobility:   Moving ⇄ Static → Triggered → Static
    - first sample, or displacement > movement threshold  → Moving
      (movement anchor and timer reset to this sample)
    - otherwise Static; fire when static time > threshold and
      time since last trigger > cooldown

Danger dwell: Outside → Inside → Triggered → Inside
    - entering records the entry time (no firing on the entry sample)
    - while inside, fire when dwell > threshold and
      time since last trigger > cooldown
    - leaving resets the entry time to the "not in zone" sentinel
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from tourguard.core.geometry import haversine_distance
from tourguard.domain.dwell import DangerDwellTrack, ImmobilityTrack
from tourguard.domain.enums import DwellState, ImmobilityState
from tourguard.domain.position import Position


@dataclass(frozen=True)
class HazardConfig:
    """Thresholds and cooldowns for both hazards.

    Demo and production profiles differ only in these values.
    """

    static_threshold: timedelta = timedelta(minutes=5)
    static_cooldown: timedelta = timedelta(minutes=1)
    movement_threshold_meters: float = 100.0
    zone_threshold: timedelta = timedelta(minutes=2)
    zone_cooldown: timedelta = timedelta(minutes=1)

    def __post_init__(self) -> None:
        if self.movement_threshold_meters <= 0:
            raise ValueError("movement_threshold_meters must be positive")
        for name in ("static_threshold", "static_cooldown", "zone_threshold", "zone_cooldown"):
            if getattr(self, name) < timedelta(0):
                raise ValueError(f"{name} must not be negative")


@dataclass(frozen=True)
class ImmobilityStep:
    track: ImmobilityTrack
    state: ImmobilityState
    static_for: timedelta = timedelta(0)

    @property
    def fired(self) -> bool:
        return self.state == ImmobilityState.TRIGGERED


@dataclass(frozen=True)
class DangerDwellStep:
    track: DangerDwellTrack
    state: DwellState
    inside_for: timedelta = timedelta(0)

    @property
    def fired(self) -> bool:
        return self.state == DwellState.TRIGGERED


def _cooled_down(last_trigger: Optional[datetime], now: datetime, cooldown: timedelta) -> bool:
    # A hazard that never fired is always armed.
    if last_trigger is None:
        return True
    return (now - last_trigger) > cooldown


def step_immobility(
    track: ImmobilityTrack,
    position: Position,
    config: HazardConfig,
) -> ImmobilityStep:
    """Advance the immobility hazard by one sample."""
    now = position.captured_at
    here = position.coordinates

    if track.last_movement_position is None or track.last_movement_at is None:
        moved = True
    else:
        moved = haversine_distance(here, track.last_movement_position) > config.movement_threshold_meters

    if moved:
        return ImmobilityStep(
            track=track.model_copy(update={
                "last_movement_position": here,
                "last_movement_at": now,
            }),
            state=ImmobilityState.MOVING,
        )

    static_for = now - track.last_movement_at
    if static_for > config.static_threshold and _cooled_down(
        track.last_static_trigger_at, now, config.static_cooldown
    ):
        return ImmobilityStep(
            track=track.model_copy(update={"last_static_trigger_at": now}),
            state=ImmobilityState.TRIGGERED,
            static_for=static_for,
        )

    return ImmobilityStep(track=track, state=ImmobilityState.STATIC, static_for=static_for)


def step_danger_dwell(
    track: DangerDwellTrack,
    position: Position,
    in_danger_zone: bool,
    config: HazardConfig,
) -> DangerDwellStep:
    """Advance the danger-zone dwell hazard by one sample."""
    now = position.captured_at

    if not in_danger_zone:
        if track.zone_entry_at is None:
            return DangerDwellStep(track=track, state=DwellState.OUTSIDE)
        return DangerDwellStep(
            track=track.model_copy(update={"zone_entry_at": None}),
            state=DwellState.OUTSIDE,
        )

    if track.zone_entry_at is None:
        return DangerDwellStep(
            track=track.model_copy(update={"zone_entry_at": now}),
            state=DwellState.INSIDE,
        )

    inside_for = now - track.zone_entry_at
    if inside_for > config.zone_threshold and _cooled_down(
        track.last_zone_trigger_at, now, config.zone_cooldown
    ):
        return DangerDwellStep(
            track=track.model_copy(update={"last_zone_trigger_at": now}),
            state=DwellState.TRIGGERED,
            inside_for=inside_for,
        )

    return DangerDwellStep(track=track, state=DwellState.INSIDE, inside_for=inside_for)
