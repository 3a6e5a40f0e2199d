"""Wire messages for the location feed and the SOS endpoint."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tourguard.adapters.base import LocationErrorCode
from tourguard.core.tracker import CycleReport
from tourguard.domain.enums import EmergencyKind, EmergencyType
from tourguard.domain.position import Coordinates, Position
from tourguard.domain.zone import ZoneAlert
from tourguard.foundation.clock import utc_now


class PositionMessage(BaseModel):
    """One sample pushed by the client over /ws/location."""

    latitude: float
    longitude: float
    accuracy_meters: Optional[float] = None
    captured_at: Optional[datetime] = None

    def to_position(self) -> Position:
        return Position(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy_meters=self.accuracy_meters,
            captured_at=self.captured_at or utc_now(),
        )


class LocationErrorMessage(BaseModel):
    """A failed position request reported by the client."""

    error: LocationErrorCode
    message: str = ""


class CycleAck(BaseModel):
    status: str = "accepted"
    skipped: bool = False
    entered: list[str] = Field(default_factory=list)
    exited: list[str] = Field(default_factory=list)
    alerts: list[ZoneAlert] = Field(default_factory=list)
    triggered: list[EmergencyKind] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: CycleReport) -> "CycleAck":
        return cls(
            skipped=report.skipped,
            entered=[z.id for z in report.geofence.entered],
            exited=[z.id for z in report.geofence.exited],
            alerts=list(report.geofence.alerts),
            triggered=[e.kind for e in report.anomaly.triggered],
        )


class SOSRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    emergency_type: EmergencyType = EmergencyType.OTHER
    description: str = Field(default="", max_length=2000)
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)

    def coordinates(self) -> Coordinates | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


class SOSResponse(BaseModel):
    status: str
    event_id: str
    notified: bool


class ZoneStatusOut(BaseModel):
    id: str
    name: str
    kind: str
    radius_meters: float
    distance_meters: float
    contained: bool
