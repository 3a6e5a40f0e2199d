"""Tests for the domain models: Position, Zone, EmergencyEvent, DwellTracker."""

from datetime import datetime, timedelta, timezone

import pytest

from tourguard.domain.dwell import DwellTracker, ImmobilityTrack
from tourguard.domain.emergency import EmergencyEvent
from tourguard.domain.enums import AlertLevel, EmergencyKind, EmergencyType, HazardCategory, ZoneKind
from tourguard.domain.flags import FeatureFlags
from tourguard.domain.position import Coordinates, Position
from tourguard.domain.zone import Zone, ZoneAlert


# ── Helpers ──────────────────────────────────────────────────────────────────

_BASE = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
_CENTER = Coordinates(latitude=10.0, longitude=76.0)


def _position(
    latitude: float = 10.0,
    longitude: float = 76.0,
    at: datetime = _BASE,
    accuracy: float | None = 5.0,
) -> Position:
    return Position(latitude=latitude, longitude=longitude, captured_at=at, accuracy_meters=accuracy)


def _position_at(coords: Coordinates, seconds: float = 0.0) -> Position:
    """A usable sample at *coords*, *seconds* after the base time."""
    return _position(coords.latitude, coords.longitude, at=_BASE + timedelta(seconds=seconds))


def _valid_zone(**overrides) -> dict:
    """Return a valid zone dict, with optional overrides."""
    base = {
        "id": "zone-1",
        "name": "Old Market",
        "center": {"latitude": 10.0, "longitude": 76.0},
        "radius_meters": 500.0,
        "kind": "danger",
        "active": True,
    }
    base.update(overrides)
    return base


def _zone(**overrides) -> Zone:
    return Zone.model_validate(_valid_zone(**overrides))


# ── Position ─────────────────────────────────────────────────────────────────


class TestPosition:
    def test_usable_with_accuracy(self) -> None:
        assert _position().is_usable

    def test_missing_accuracy_is_unusable(self) -> None:
        assert not _position(accuracy=None).is_usable

    def test_nan_accuracy_is_unusable(self) -> None:
        assert not _position(accuracy=float("nan")).is_usable

    def test_out_of_range_latitude_is_unusable(self) -> None:
        assert not _position(latitude=91.0).is_usable

    def test_naive_timestamp_gets_utc(self) -> None:
        pos = Position(latitude=1.0, longitude=2.0, captured_at=datetime(2026, 1, 1, 12))
        assert pos.captured_at.tzinfo is not None

    def test_position_is_immutable(self) -> None:
        pos = _position()
        with pytest.raises(Exception):
            pos.latitude = 0.0


# ── Zone ─────────────────────────────────────────────────────────────────────


class TestZone:
    def test_valid_zone_parses(self) -> None:
        zone = _zone()
        assert zone.kind == ZoneKind.DANGER
        assert zone.is_well_formed

    def test_non_positive_radius_is_representable_but_malformed(self) -> None:
        zone = _zone(radius_meters=0.0)
        assert not zone.is_well_formed

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(Exception):
            _zone(kind="volcano")

    def test_alert_levels(self) -> None:
        assert _zone(kind="danger").alert_level == AlertLevel.DANGER
        assert _zone(kind="medium").alert_level == AlertLevel.WARNING
        assert not _zone(kind="safe").is_disruptive
        assert not _zone(kind="public").is_disruptive

    def test_danger_alert_message(self) -> None:
        alert = ZoneAlert.for_zone(_zone(name="Harbour"))
        assert alert.message == "You have entered Harbour. Do not enter!"

    def test_medium_alert_message(self) -> None:
        alert = ZoneAlert.for_zone(_zone(name="Night Bazaar", kind="medium"))
        assert alert.message == "You are in an Orange Zone (Night Bazaar). Be careful."
        assert alert.level == AlertLevel.WARNING


# ── EmergencyEvent ───────────────────────────────────────────────────────────


class TestEmergencyEvent:
    def _event(self, **kw) -> EmergencyEvent:
        base = {
            "user_id": "user-1",
            "kind": EmergencyKind.AUTO_IMMOBILITY,
            "description": "static",
            "position": _CENTER,
            "triggered_at": _BASE,
        }
        base.update(kw)
        return EmergencyEvent(**base)

    def test_defaults(self) -> None:
        event = self._event()
        assert event.status.value == "triggered"
        assert event.emergency_type == EmergencyType.OTHER
        assert event.is_automatic

    def test_row_layout(self) -> None:
        row = self._event().to_row()
        assert row["latitude"] == 10.0
        assert row["status"] == "triggered"
        assert row["emergency_type"] == "other"
        assert row["device_info"]["trigger_kind"] == "auto-immobility"

    def test_notification_summary(self) -> None:
        summary = self._event().notification_summary("evt-9")
        assert summary == {"sos_event_id": "evt-9", "emergency_type": "other", "description": "static"}

    def test_empty_user_rejected(self) -> None:
        with pytest.raises(Exception):
            self._event(user_id="")


# ── DwellTracker / FeatureFlags ──────────────────────────────────────────────


class TestDwellTracker:
    def test_fresh_tracker_has_sentinels(self) -> None:
        tracker = DwellTracker()
        assert tracker.immobility.last_movement_position is None
        assert not tracker.danger_dwell.inside

    def test_json_round_trip_preserves_timestamps(self) -> None:
        tracker = DwellTracker(
            immobility=ImmobilityTrack(last_movement_position=_CENTER, last_movement_at=_BASE)
        )
        restored = DwellTracker.model_validate_json(tracker.model_dump_json())
        assert restored == tracker


class TestFeatureFlags:
    def test_master_off_blocks_every_category(self) -> None:
        flags = FeatureFlags(ai_enabled=False)
        assert not flags.allows(HazardCategory.BEHAVIORAL)

    def test_missing_category_counts_as_enabled(self) -> None:
        flags = FeatureFlags(ai_enabled=True, categories={})
        assert flags.allows(HazardCategory.CONTEXT)

    def test_disabled_category(self) -> None:
        flags = FeatureFlags(ai_enabled=True, categories={HazardCategory.CONTEXT: False})
        assert not flags.allows(HazardCategory.CONTEXT)
        assert flags.allows(HazardCategory.BEHAVIORAL)
