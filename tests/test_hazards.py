"""Tests for the immobility and danger-dwell state machines."""

from datetime import timedelta

import pytest

from tourguard.core.geometry import offset
from tourguard.core.hazards import HazardConfig, step_danger_dwell, step_immobility
from tourguard.domain.dwell import DangerDwellTrack, ImmobilityTrack
from tourguard.domain.enums import DwellState, ImmobilityState

from tests.test_domain import _BASE, _CENTER, _position_at


# ── Helpers ──────────────────────────────────────────────────────────────────

_CONFIG = HazardConfig(
    static_threshold=timedelta(seconds=300),
    static_cooldown=timedelta(seconds=60),
    movement_threshold_meters=100.0,
    zone_threshold=timedelta(seconds=120),
    zone_cooldown=timedelta(seconds=60),
)


def _run_immobility(seconds: list[float], coords=_CENTER, track: ImmobilityTrack | None = None):
    track = track or ImmobilityTrack()
    states = []
    for s in seconds:
        step = step_immobility(track, _position_at(coords, s), _CONFIG)
        track = step.track
        states.append(step.state)
    return track, states


def _run_dwell(samples: list[tuple[float, bool]], track: DangerDwellTrack | None = None):
    track = track or DangerDwellTrack()
    states = []
    for s, inside in samples:
        step = step_danger_dwell(track, _position_at(_CENTER, s), inside, _CONFIG)
        track = step.track
        states.append(step.state)
    return track, states


# ── Config ───────────────────────────────────────────────────────────────────


class TestHazardConfig:
    def test_negative_threshold_rejected(self) -> None:
        with pytest.raises(ValueError):
            HazardConfig(static_threshold=timedelta(seconds=-1))

    def test_zero_movement_threshold_rejected(self) -> None:
        with pytest.raises(ValueError):
            HazardConfig(movement_threshold_meters=0)


# ── Immobility ───────────────────────────────────────────────────────────────


class TestImmobility:
    def test_first_sample_is_moving(self) -> None:
        track, states = _run_immobility([0])
        assert states == [ImmobilityState.MOVING]
        assert track.last_movement_at == _BASE
        assert track.last_movement_position == _CENTER

    def test_threshold_is_exclusive(self) -> None:
        _, states = _run_immobility([0, 300])
        assert states[-1] == ImmobilityState.STATIC

    def test_fires_once_after_threshold(self) -> None:
        _, states = _run_immobility(list(range(0, 311)))
        assert states.count(ImmobilityState.TRIGGERED) == 1
        assert states[301] == ImmobilityState.TRIGGERED

    def test_no_second_trigger_within_cooldown(self) -> None:
        _, states = _run_immobility([0, 301, 305, 361])
        assert states == [
            ImmobilityState.MOVING,
            ImmobilityState.TRIGGERED,
            ImmobilityState.STATIC,
            ImmobilityState.STATIC,
        ]

    def test_rearms_after_cooldown(self) -> None:
        _, states = _run_immobility([0, 301, 362])
        assert states[-1] == ImmobilityState.TRIGGERED

    def test_small_drift_is_still_static(self) -> None:
        track, _ = _run_immobility([0])
        step = step_immobility(track, _position_at(offset(_CENTER, north_meters=99), 400), _CONFIG)
        assert step.state == ImmobilityState.TRIGGERED

    def test_movement_resets_timer(self) -> None:
        track, _ = _run_immobility([0, 200, 290])
        moved = offset(_CENTER, north_meters=150)
        step = step_immobility(track, _position_at(moved, 1000), _CONFIG)
        assert step.state == ImmobilityState.MOVING
        assert step.track.last_movement_at == _BASE + timedelta(seconds=1000)

        after = step_immobility(step.track, _position_at(moved, 1010), _CONFIG)
        assert after.state == ImmobilityState.STATIC
        assert after.static_for == timedelta(seconds=10)

    def test_static_duration_measured_from_last_movement(self) -> None:
        track, _ = _run_immobility([0])
        step = step_immobility(track, _position_at(_CENTER, 120), _CONFIG)
        assert step.static_for == timedelta(seconds=120)


# ── Danger dwell ─────────────────────────────────────────────────────────────


class TestDangerDwell:
    def test_entry_records_time_without_firing(self) -> None:
        track, states = _run_dwell([(0, True)])
        assert states == [DwellState.INSIDE]
        assert track.zone_entry_at == _BASE

    def test_fires_once_after_threshold(self) -> None:
        _, states = _run_dwell([(s, True) for s in range(0, 122)])
        assert states.count(DwellState.TRIGGERED) == 1
        assert states[121] == DwellState.TRIGGERED

    def test_cooldown_while_still_inside(self) -> None:
        _, states = _run_dwell([(0, True), (121, True), (150, True), (182, True)])
        assert states == [DwellState.INSIDE, DwellState.TRIGGERED, DwellState.INSIDE, DwellState.TRIGGERED]

    def test_exit_resets_entry(self) -> None:
        track, states = _run_dwell([(0, True), (60, False)])
        assert states[-1] == DwellState.OUTSIDE
        assert track.zone_entry_at is None

    def test_reentry_restarts_timer(self) -> None:
        _, states = _run_dwell([(0, True), (100, False), (110, True), (200, True), (231, True)])
        assert states[3] == DwellState.INSIDE
        assert states[4] == DwellState.TRIGGERED

    def test_outside_stays_outside(self) -> None:
        track, states = _run_dwell([(0, False), (500, False)])
        assert states == [DwellState.OUTSIDE, DwellState.OUTSIDE]
        assert track == DangerDwellTrack()
