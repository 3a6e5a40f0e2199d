"""EmergencyEvent — the record written once per SOS, manual or automatic.

After creation the record belongs to the responder workflow; the core
never updates it.  ``to_row`` produces the column layout of the
``sos_events`` table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from tourguard.domain.enums import EmergencyKind, EmergencyType, EventStatus
from tourguard.domain.position import Coordinates
from tourguard.foundation.clock import ensure_utc, utc_now


class EmergencyEvent(BaseModel):
    """An emergency trigger ready to be persisted."""

    user_id: str = Field(..., min_length=1)
    kind: EmergencyKind
    emergency_type: EmergencyType = EmergencyType.OTHER
    description: str = ""
    position: Coordinates
    status: EventStatus = EventStatus.TRIGGERED
    triggered_at: datetime = Field(default_factory=utc_now)
    device_info: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator("triggered_at")
    @classmethod
    def triggered_at_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def is_automatic(self) -> bool:
        return self.kind != EmergencyKind.MANUAL

    def to_row(self) -> dict[str, Any]:
        device_info = dict(self.device_info)
        device_info.setdefault("trigger_kind", self.kind.value)
        return {
            "user_id": self.user_id,
            "emergency_type": self.emergency_type.value,
            "description": self.description,
            "latitude": self.position.latitude,
            "longitude": self.position.longitude,
            "status": self.status.value,
            "triggered_at": self.triggered_at.isoformat(),
            "device_info": device_info,
        }

    def notification_summary(self, event_id: str) -> dict[str, Any]:
        """Body expected by the outbound email function."""
        return {
            "sos_event_id": event_id,
            "emergency_type": self.emergency_type.value,
            "description": self.description,
        }


class EmissionResult(BaseModel):
    """Outcome of the two-phase persist → notify protocol.

    ``persisted`` and ``notified`` are reported independently: a failed
    notification never invalidates a persisted event.
    """

    event: EmergencyEvent
    persisted: bool = False
    event_id: str | None = None
    notified: bool = False
    error: str | None = None

    model_config = {"frozen": True}

    @property
    def succeeded(self) -> bool:
        return self.persisted
