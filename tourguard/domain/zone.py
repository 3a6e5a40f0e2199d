"""Zone — a named circular region tagged with a risk kind.

Zones are owned by the backend and edited through the zone-management
screens.  The core only reads them.  A zone with a non-positive radius is
representable so that it can be skipped with a warning instead of
failing the whole zone list at parse time.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from tourguard.domain.enums import AlertLevel, ZoneKind
from tourguard.domain.position import Coordinates

_ALERT_LEVELS: dict[ZoneKind, AlertLevel] = {
    ZoneKind.DANGER: AlertLevel.DANGER,
    ZoneKind.MEDIUM: AlertLevel.WARNING,
    ZoneKind.SAFE: AlertLevel.INFO,
    ZoneKind.PUBLIC: AlertLevel.INFO,
}


class Zone(BaseModel):
    """Immutable view of one zone row."""

    id: str = Field(..., min_length=1)
    name: str = ""
    center: Coordinates
    radius_meters: float
    kind: ZoneKind = ZoneKind.SAFE
    active: bool = True

    model_config = {"frozen": True}

    @property
    def is_well_formed(self) -> bool:
        return self.radius_meters > 0 and self.center.is_valid

    @property
    def alert_level(self) -> AlertLevel:
        return _ALERT_LEVELS[self.kind]

    @property
    def is_disruptive(self) -> bool:
        """Danger and medium zones interrupt the user on entry."""
        return self.alert_level != AlertLevel.INFO

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.name or self.id}"


class ZoneAlert(BaseModel):
    """A user-facing alert raised when a disruptive zone is entered."""

    zone_id: str
    zone_name: str
    level: AlertLevel
    message: str

    model_config = {"frozen": True}

    @classmethod
    def for_zone(cls, zone: Zone) -> "ZoneAlert":
        name = zone.name or zone.id
        if zone.kind == ZoneKind.DANGER:
            message = f"You have entered {name}. Do not enter!"
        elif zone.kind == ZoneKind.MEDIUM:
            message = f"You are in an Orange Zone ({name}). Be careful."
        else:
            message = f"You are in {name}."
        return cls(zone_id=zone.id, zone_name=name, level=zone.alert_level, message=message)
