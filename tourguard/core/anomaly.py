"""AnomalyController — turns the position stream into automatic SOS events.

Per sample, after the GeofenceEngine has produced a stable containment
result, the controller:

    1. Checks the feature flags.  With the master flag off nothing is
       evaluated and the stored timers are left untouched.
    2. Advances the immobility hazard (``behavioral`` category) and the
       danger-dwell hazard (``context`` category) independently.
    3. Writes the DwellTracker back if either hazard changed it.
    4. Schedules an emission for each hazard that fired.  Emissions run
       as background tasks; the controller does not wait for them.

The cooldown timestamp is recorded when an emission is *requested*, so a
failed persistence is retried naturally by the next qualifying sample
once the cooldown has elapsed.  It is the only guard against duplicate
emissions when samples arrive faster than the sink responds.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any, Callable

from pydantic import BaseModel, Field

from tourguard.core.emitter import EmergencyEventEmitter, device_info
from tourguard.core.geofence import GeofenceResult
from tourguard.core.hazards import HazardConfig, step_danger_dwell, step_immobility
from tourguard.domain.dwell import DwellTracker
from tourguard.domain.emergency import EmergencyEvent, EmissionResult
from tourguard.domain.enums import DwellState, EmergencyKind, HazardCategory, ImmobilityState
from tourguard.domain.flags import FeatureFlags
from tourguard.domain.position import Position
from tourguard.store.dwell_store import DwellStore

logger = logging.getLogger(__name__)

EmissionListener = Callable[[EmissionResult], Any]


class AnomalyReport(BaseModel):
    """What the controller did with one sample."""

    evaluated: bool = False
    immobility: ImmobilityState | None = None
    danger_dwell: DwellState | None = None
    triggered: list[EmergencyEvent] = Field(default_factory=list)

    model_config = {"frozen": True}


def describe_duration(value: timedelta) -> str:
    """Human wording for a threshold: '5 minutes', '1 hour', '90 seconds'."""
    seconds = int(value.total_seconds())
    for unit, size in (("hour", 3600), ("minute", 60)):
        if seconds and seconds % size == 0:
            count = seconds // size
            return f"{count} {unit}" + ("s" if count != 1 else "")
    return f"{seconds} second" + ("s" if seconds != 1 else "")


class AnomalyController:
    """Owns the DwellTracker of one user session and requests emissions."""

    def __init__(
        self,
        user_id: str,
        emitter: EmergencyEventEmitter,
        dwell_store: DwellStore,
        config: HazardConfig | None = None,
        on_emission: EmissionListener | None = None,
    ) -> None:
        self._user_id = user_id
        self._emitter = emitter
        self._store = dwell_store
        self._config = config or HazardConfig()
        self._on_emission = on_emission
        self._tracker: DwellTracker | None = None
        self._pending: set[asyncio.Task[EmissionResult]] = set()

    # ── State ────────────────────────────────────────────────────────────

    def load(self) -> DwellTracker:
        """Read the persisted tracker.  Called once at session start."""
        self._tracker = self._store.load()
        return self._tracker

    @property
    def tracker(self) -> DwellTracker:
        if self._tracker is None:
            return self.load()
        return self._tracker

    @property
    def config(self) -> HazardConfig:
        return self._config

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # ── Evaluation ───────────────────────────────────────────────────────

    def process(
        self,
        position: Position,
        geofence: GeofenceResult,
        flags: FeatureFlags,
    ) -> AnomalyReport:
        """Advance both hazards for one sample.

        Must be called from a running event loop; emissions are scheduled
        on it and not awaited.
        """
        if not flags.ai_enabled:
            return AnomalyReport()
        if geofence.skipped or not position.is_usable:
            logger.debug("No hazard evaluation for unusable sample at %s", position.captured_at)
            return AnomalyReport()

        current = self.tracker
        immobility_track = current.immobility
        dwell_track = current.danger_dwell
        immobility_state: ImmobilityState | None = None
        dwell_state: DwellState | None = None
        triggered: list[EmergencyEvent] = []

        if flags.allows(HazardCategory.BEHAVIORAL):
            step = step_immobility(immobility_track, position, self._config)
            immobility_track, immobility_state = step.track, step.state
            if step.fired:
                logger.warning(
                    "User %s static for %ss; triggering SOS",
                    self._user_id,
                    int(step.static_for.total_seconds()),
                )
                triggered.append(self._immobility_event(position))

        if flags.allows(HazardCategory.CONTEXT):
            dstep = step_danger_dwell(dwell_track, position, geofence.in_danger_zone, self._config)
            dwell_track, dwell_state = dstep.track, dstep.state
            if dstep.fired:
                logger.warning(
                    "User %s in danger zone for %ss; triggering SOS",
                    self._user_id,
                    int(dstep.inside_for.total_seconds()),
                )
                triggered.append(self._redzone_event(position, geofence))

        updated = DwellTracker(immobility=immobility_track, danger_dwell=dwell_track)
        if updated != current:
            self._tracker = updated
            self._persist(updated)

        for event in triggered:
            self._schedule(event)

        return AnomalyReport(
            evaluated=True,
            immobility=immobility_state,
            danger_dwell=dwell_state,
            triggered=triggered,
        )

    async def drain(self) -> list[EmissionResult]:
        """Wait for every in-flight emission and return their results."""
        if not self._pending:
            return []
        return list(await asyncio.gather(*list(self._pending)))

    # ── Internals ────────────────────────────────────────────────────────

    def _immobility_event(self, position: Position) -> EmergencyEvent:
        threshold = describe_duration(self._config.static_threshold)
        return EmergencyEvent(
            user_id=self._user_id,
            kind=EmergencyKind.AUTO_IMMOBILITY,
            description=f"User location unchanged for {threshold}. Potential stuck/injured.",
            position=position.coordinates,
            triggered_at=position.captured_at,
            device_info=device_info("AI_LOCATION_TRACKER"),
        )

    def _redzone_event(self, position: Position, geofence: GeofenceResult) -> EmergencyEvent:
        threshold = describe_duration(self._config.zone_threshold)
        zones = geofence.contained_danger
        return EmergencyEvent(
            user_id=self._user_id,
            kind=EmergencyKind.AUTO_REDZONE,
            description=f"User in high-risk zone for over {threshold}.",
            position=position.coordinates,
            triggered_at=position.captured_at,
            device_info=device_info(
                "AI_LOCATION_TRACKER",
                zone_ids=[z.id for z in zones],
            ),
        )

    def _persist(self, tracker: DwellTracker) -> None:
        try:
            self._store.save(tracker)
        except OSError as exc:
            logger.warning("Could not persist dwell state: %s", exc)

    def _schedule(self, event: EmergencyEvent) -> None:
        task = asyncio.create_task(self._emit(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _emit(self, event: EmergencyEvent) -> EmissionResult:
        result = await self._emitter.emit(event)
        if self._on_emission is not None:
            try:
                self._on_emission(result)
            except Exception as exc:
                logger.warning("Emission listener failed: %s", exc)
        return result
