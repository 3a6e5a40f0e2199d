"""Controlled enumerations for the tourguard domain.

Every categorical field in the domain MUST reference an enum defined here.
Free-form strings are not acceptable for classification fields.
"""

from __future__ import annotations

from enum import Enum


class ZoneKind(str, Enum):
    """Risk classification of a user-defined circular zone."""

    DANGER = "danger"
    MEDIUM = "medium"
    SAFE = "safe"
    PUBLIC = "public"


class AlertLevel(str, Enum):
    """How disruptive a zone-entry alert should be."""

    DANGER = "danger"
    WARNING = "warning"
    INFO = "info"


class EmergencyKind(str, Enum):
    """What produced an EmergencyEvent."""

    MANUAL = "manual"
    AUTO_IMMOBILITY = "auto-immobility"
    AUTO_REDZONE = "auto-redzone"


class EmergencyType(str, Enum):
    """Emergency category as chosen on the SOS form."""

    MEDICAL = "medical"
    CRIME = "crime"
    LOST = "lost"
    ACCIDENT = "accident"
    OTHER = "other"


class EventStatus(str, Enum):
    """Responder workflow status.  The core only ever writes TRIGGERED."""

    TRIGGERED = "triggered"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


class HazardCategory(str, Enum):
    """Feature-flag categories exposed on the alerts settings screen."""

    BEHAVIORAL = "behavioral"
    VOICE = "voice"
    CROWD = "crowd"
    CONTEXT = "context"
    PREDICTIVE = "predictive"


class ImmobilityState(str, Enum):
    MOVING = "moving"
    STATIC = "static"
    TRIGGERED = "triggered"


class DwellState(str, Enum):
    OUTSIDE = "outside"
    INSIDE = "inside"
    TRIGGERED = "triggered"
