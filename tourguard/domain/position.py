"""Position samples produced by the device location stream.

A Position is ephemeral: the core reads it once per evaluation cycle and
never persists it.  Validation is deliberately lenient at construction
time because a bad sample must be *skipped*, not rejected with an
exception that would tear down the location subscription.  Use
``Position.is_usable`` to decide whether a sample may be evaluated.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tourguard.foundation.clock import ensure_utc, utc_now


# ── Coordinates ──────────────────────────────────────────────────────────────

class Coordinates(BaseModel):
    """A bare latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    model_config = {"frozen": True}

    @property
    def is_valid(self) -> bool:
        return (
            math.isfinite(self.latitude)
            and math.isfinite(self.longitude)
            and -90.0 <= self.latitude <= 90.0
            and -180.0 <= self.longitude <= 180.0
        )

    def __str__(self) -> str:
        return f"({self.latitude:.6f}, {self.longitude:.6f})"


# ── Position ─────────────────────────────────────────────────────────────────

class Position(BaseModel):
    """One sample from the device location provider."""

    latitude: float
    longitude: float
    captured_at: datetime = Field(default_factory=utc_now)
    accuracy_meters: Optional[float] = Field(
        default=None,
        description="Reported horizontal accuracy; None when the platform did not supply one",
    )

    model_config = {"frozen": True}

    @field_validator("captured_at")
    @classmethod
    def captured_at_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(latitude=self.latitude, longitude=self.longitude)

    @property
    def is_usable(self) -> bool:
        """True if the sample can drive an evaluation cycle.

        A missing or non-finite accuracy means the platform could not
        qualify the fix, so the whole sample is skipped.
        """
        if self.accuracy_meters is None:
            return False
        if not math.isfinite(self.accuracy_meters) or self.accuracy_meters < 0:
            return False
        return self.coordinates.is_valid
