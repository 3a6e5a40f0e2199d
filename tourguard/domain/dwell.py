"""DwellTracker — the serialisable hazard-timer state of one device.

Both hazards keep their timers here so the whole thing can be loaded once
at session start and written back as a single value after each mutation.
``None`` is the "never happened" sentinel for every timestamp.  Timestamps
stored without a timezone are read as UTC.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from tourguard.domain.position import Coordinates
from tourguard.foundation.clock import ensure_utc


def _utc_or_none(value: Optional[datetime]) -> Optional[datetime]:
    return None if value is None else ensure_utc(value)


class ImmobilityTrack(BaseModel):
    last_movement_position: Optional[Coordinates] = None
    last_movement_at: Optional[datetime] = None
    last_static_trigger_at: Optional[datetime] = None

    model_config = {"frozen": True}

    @field_validator("last_movement_at", "last_static_trigger_at")
    @classmethod
    def timestamps_must_be_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _utc_or_none(v)


class DangerDwellTrack(BaseModel):
    zone_entry_at: Optional[datetime] = None
    last_zone_trigger_at: Optional[datetime] = None

    model_config = {"frozen": True}

    @field_validator("zone_entry_at", "last_zone_trigger_at")
    @classmethod
    def timestamps_must_be_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _utc_or_none(v)

    @property
    def inside(self) -> bool:
        return self.zone_entry_at is not None


class DwellTracker(BaseModel):
    """Immutable snapshot of both hazard timers."""

    immobility: ImmobilityTrack = ImmobilityTrack()
    danger_dwell: DangerDwellTrack = DangerDwellTrack()

    model_config = {"frozen": True}
