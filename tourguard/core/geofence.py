"""GeofenceEngine — containment and de-duplicated enter/exit transitions.

Design principles:
    1. Pure: accepts a position, a zone list and the previous alert state,
       returns a GeofenceResult.  No I/O, no clock, no hidden state.
    2. The alert state is a set of zone ids the user is inside *and* has
       already been told about.  It is owned by the caller and threaded
       through successive calls.
    3. Bad input degrades, never raises: a malformed zone is skipped with
       a warning, an unusable position skips the whole sample.

Transition rule (per active, well-formed zone):
    contained  and id not in state  → ENTERED, id added
    !contained and id in state      → EXITED,  id removed
    otherwise                       → no transition

Ids of zones that disappeared or were deactivated are dropped from the
state silently so a later re-activation alerts again.
"""

from __future__ import annotations

import logging
from typing import Iterable

from pydantic import BaseModel, Field

from tourguard.core.geometry import haversine_distance
from tourguard.domain.enums import ZoneKind
from tourguard.domain.position import Position
from tourguard.domain.zone import Zone, ZoneAlert

logger = logging.getLogger(__name__)

ZoneAlertState = frozenset[str]


class GeofenceResult(BaseModel):
    """Immutable outcome of one containment evaluation."""

    entered: list[Zone] = Field(default_factory=list)
    exited: list[Zone] = Field(default_factory=list)
    contained: list[Zone] = Field(default_factory=list, description="Every zone containing the position")
    alerts: list[ZoneAlert] = Field(default_factory=list, description="Disruptive alerts for entered zones")
    alert_state: ZoneAlertState = frozenset()
    skipped: bool = Field(False, description="True if the sample was unusable and nothing was evaluated")

    model_config = {"frozen": True}

    @property
    def in_danger_zone(self) -> bool:
        """True if at least one active danger zone contains the position."""
        return any(z.kind == ZoneKind.DANGER for z in self.contained)

    @property
    def contained_danger(self) -> list[Zone]:
        return [z for z in self.contained if z.kind == ZoneKind.DANGER]

    @property
    def entered_danger(self) -> list[Zone]:
        return [z for z in self.entered if z.kind == ZoneKind.DANGER]


class ZoneStatus(BaseModel):
    """Per-zone view used by the map: distance and containment, no transitions."""

    zone: Zone
    distance_meters: float
    contained: bool

    model_config = {"frozen": True}


def distance_to_zone(position: Position, zone: Zone) -> float:
    """Meters between *position* and the zone's center."""
    return haversine_distance(position.coordinates, zone.center)


def contains(position: Position, zone: Zone) -> bool:
    """Inclusive containment: a point exactly on the boundary is inside."""
    return distance_to_zone(position, zone) <= zone.radius_meters


class GeofenceEngine:
    """Stateless containment evaluator shared by the tracker and the map view."""

    # ── Public API ───────────────────────────────────────────────────────

    def evaluate(
        self,
        position: Position,
        zones: Iterable[Zone],
        alert_state: ZoneAlertState = frozenset(),
    ) -> GeofenceResult:
        """Evaluate *position* against *zones* and return the transitions.

        The returned ``alert_state`` must be passed back in on the next
        call for de-duplication to work.
        """
        if not position.is_usable:
            logger.debug("Skipping geofence evaluation for unusable position %s", position)
            return GeofenceResult(alert_state=frozenset(alert_state), skipped=True)

        state = set(alert_state)
        evaluated: set[str] = set()
        entered: list[Zone] = []
        exited: list[Zone] = []
        contained: list[Zone] = []
        alerts: list[ZoneAlert] = []

        for zone in zones:
            if not zone.active:
                continue
            if not zone.is_well_formed:
                logger.warning(
                    "Skipping malformed zone %s (radius=%s, center=%s)",
                    zone.id,
                    zone.radius_meters,
                    zone.center,
                )
                continue
            if zone.id in evaluated:
                logger.warning("Skipping duplicate zone id %s", zone.id)
                continue
            evaluated.add(zone.id)

            if contains(position, zone):
                contained.append(zone)
                if zone.id not in state:
                    state.add(zone.id)
                    entered.append(zone)
                    if zone.is_disruptive:
                        alerts.append(ZoneAlert.for_zone(zone))
                    logger.info("Entered zone %s", zone)
            elif zone.id in state:
                state.discard(zone.id)
                exited.append(zone)
                logger.info("Exited zone %s", zone)

        stale = state - evaluated
        if stale:
            logger.debug("Dropping alert state for vanished zones: %s", sorted(stale))
            state -= stale

        return GeofenceResult(
            entered=entered,
            exited=exited,
            contained=contained,
            alerts=alerts,
            alert_state=frozenset(state),
        )

    def describe(self, position: Position, zones: Iterable[Zone]) -> list[ZoneStatus]:
        """Distance and containment for every active, well-formed zone.

        Used by the map view.  Same math as ``evaluate``, no alert state,
        nearest zone first.  Returns an empty list for invalid coordinates.
        """
        if not position.coordinates.is_valid:
            return []
        statuses = [
            ZoneStatus(
                zone=zone,
                distance_meters=distance_to_zone(position, zone),
                contained=contains(position, zone),
            )
            for zone in zones
            if zone.active and zone.is_well_formed
        ]
        statuses.sort(key=lambda s: s.distance_meters)
        return statuses
