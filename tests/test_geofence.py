"""Tests for the GeofenceEngine: containment, de-duplication, re-entry."""

import logging

import pytest

from tourguard.core.geofence import GeofenceEngine, contains, distance_to_zone
from tourguard.core.geometry import haversine_distance, offset
from tourguard.domain.enums import AlertLevel

from tests.test_domain import _CENTER, _position, _position_at, _zone


@pytest.fixture
def engine() -> GeofenceEngine:
    return GeofenceEngine()


class TestContainment:
    def test_center_is_contained_at_zero_distance(self) -> None:
        zone = _zone()
        pos = _position(10.0, 76.0)
        assert distance_to_zone(pos, zone) == 0.0
        assert contains(pos, zone)

    def test_six_hundred_meters_away_is_outside(self) -> None:
        zone = _zone(radius_meters=500.0)
        far = offset(_CENTER, north_meters=600)
        assert not contains(_position_at(far), zone)

    def test_boundary_is_inclusive(self) -> None:
        edge = offset(_CENTER, east_meters=300)
        radius = haversine_distance(edge, _CENTER)
        zone = _zone(radius_meters=radius)
        assert contains(_position_at(edge), zone)

    def test_containment_matches_distance_predicate(self) -> None:
        zone = _zone(radius_meters=250.0)
        for north in (0, 100, 249, 251, 400):
            pos = _position_at(offset(_CENTER, north_meters=north))
            assert contains(pos, zone) == (distance_to_zone(pos, zone) <= 250.0)


class TestTransitions:
    def test_first_entry_emits_entered(self, engine: GeofenceEngine) -> None:
        result = engine.evaluate(_position(), [_zone()])
        assert [z.id for z in result.entered] == ["zone-1"]
        assert result.alert_state == frozenset({"zone-1"})
        assert result.in_danger_zone

    def test_repeated_samples_inside_enter_once(self, engine: GeofenceEngine) -> None:
        zones = [_zone()]
        state = frozenset()
        entered = 0
        for i in range(10):
            result = engine.evaluate(_position_at(offset(_CENTER, north_meters=i * 10), i), zones, state)
            state = result.alert_state
            entered += len(result.entered)
        assert entered == 1

    def test_exit_then_reentry(self, engine: GeofenceEngine) -> None:
        zones = [_zone()]
        far = offset(_CENTER, north_meters=900)

        r1 = engine.evaluate(_position_at(_CENTER, 0), zones)
        r2 = engine.evaluate(_position_at(far, 10), zones, r1.alert_state)
        r3 = engine.evaluate(_position_at(_CENTER, 20), zones, r2.alert_state)

        assert [z.id for z in r2.exited] == ["zone-1"]
        assert r2.alert_state == frozenset()
        assert [z.id for z in r3.entered] == ["zone-1"]

    def test_no_transition_while_outside(self, engine: GeofenceEngine) -> None:
        far = offset(_CENTER, north_meters=900)
        result = engine.evaluate(_position_at(far), [_zone()])
        assert result.entered == [] and result.exited == []
        assert not result.in_danger_zone

    def test_inactive_zone_ignored(self, engine: GeofenceEngine) -> None:
        result = engine.evaluate(_position(), [_zone(active=False)])
        assert result.entered == []
        assert result.contained == []

    def test_vanished_zone_dropped_from_state_without_exit(self, engine: GeofenceEngine) -> None:
        result = engine.evaluate(_position(), [], frozenset({"zone-1"}))
        assert result.exited == []
        assert result.alert_state == frozenset()


class TestAlerts:
    def test_danger_entry_raises_danger_alert(self, engine: GeofenceEngine) -> None:
        result = engine.evaluate(_position(), [_zone()])
        assert len(result.alerts) == 1
        assert result.alerts[0].level == AlertLevel.DANGER
        assert [z.id for z in result.entered_danger] == ["zone-1"]

    def test_medium_entry_raises_warning(self, engine: GeofenceEngine) -> None:
        result = engine.evaluate(_position(), [_zone(kind="medium")])
        assert result.alerts[0].level == AlertLevel.WARNING
        assert not result.in_danger_zone

    def test_safe_and_public_zones_are_informational(self, engine: GeofenceEngine) -> None:
        zones = [_zone(id="s", kind="safe"), _zone(id="p", kind="public")]
        result = engine.evaluate(_position(), zones)
        assert {z.id for z in result.entered} == {"s", "p"}
        assert result.alerts == []

    def test_no_alert_on_repeated_containment(self, engine: GeofenceEngine) -> None:
        zones = [_zone()]
        first = engine.evaluate(_position(), zones)
        second = engine.evaluate(_position(), zones, first.alert_state)
        assert second.alerts == []


class TestFailureSemantics:
    def test_malformed_zone_skipped_others_evaluated(
        self, engine: GeofenceEngine, caplog: pytest.LogCaptureFixture
    ) -> None:
        zones = [_zone(id="bad", radius_meters=-5.0), _zone(id="good")]
        with caplog.at_level(logging.WARNING):
            result = engine.evaluate(_position(), zones)
        assert [z.id for z in result.entered] == ["good"]
        assert "bad" in caplog.text

    def test_unusable_position_skips_everything(self, engine: GeofenceEngine) -> None:
        state = frozenset({"zone-1"})
        result = engine.evaluate(_position(accuracy=None), [_zone()], state)
        assert result.skipped
        assert result.entered == [] and result.exited == []
        assert result.alert_state == state

    def test_duplicate_zone_ids_evaluated_once(self, engine: GeofenceEngine) -> None:
        result = engine.evaluate(_position(), [_zone(), _zone()])
        assert len(result.entered) == 1


class TestDescribe:
    def test_describe_sorts_by_distance(self, engine: GeofenceEngine) -> None:
        near = _zone(id="near", center={"latitude": 10.0, "longitude": 76.0})
        far_center = offset(_CENTER, north_meters=2000)
        far = _zone(id="far", center=far_center.model_dump())
        statuses = engine.describe(_position(), [far, near])
        assert [s.zone.id for s in statuses] == ["near", "far"]
        assert statuses[0].contained
        assert not statuses[1].contained

    def test_describe_agrees_with_evaluate(self, engine: GeofenceEngine) -> None:
        zones = [_zone(id=str(i), center=offset(_CENTER, east_meters=i * 200).model_dump()) for i in range(5)]
        pos = _position()
        described = {s.zone.id for s in engine.describe(pos, zones) if s.contained}
        evaluated = {z.id for z in engine.evaluate(pos, zones).contained}
        assert described == evaluated
