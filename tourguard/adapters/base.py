"""Collaborator contracts consumed by the tourguard core.

The core owns no storage, transport or notification channel.  Everything
it reads from or writes to the outside world goes through one of the
abstract classes below, so the engines can run against in-memory fakes,
a local JSON file or the hosted backend without modification.

Architectural rules:
    1. Adapters raise the CollaboratorError subclass matching their role;
       the core catches exactly those (plus anything unexpected) at the
       emission boundary and logs them.
    2. Adapters must not call back into the tracker.
    3. The key-value store is synchronous, like browser local storage.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from tourguard.domain.emergency import EmergencyEvent
from tourguard.domain.position import Position
from tourguard.domain.zone import Zone


# ── Errors ───────────────────────────────────────────────────────────────────

class CollaboratorError(Exception):
    """Base class for failures reported by an external collaborator."""


class PersistenceError(CollaboratorError):
    """The Emergency Event Sink could not store an event."""


class NotificationError(CollaboratorError):
    """The Notification Dispatcher could not deliver a notification."""


class ZoneStoreError(CollaboratorError):
    """The Zone Store could not list zones."""


class LocationErrorCode(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"


class LocationError(CollaboratorError):
    """A position request failed.  No sample is delivered for that tick."""

    def __init__(self, code: LocationErrorCode, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code.value}: {message}" if message else code.value)


# ── Location Provider ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LocationOptions:
    """Options forwarded to the platform location API."""

    high_accuracy: bool = True
    timeout_ms: int = 10_000
    max_age_ms: int = 0


PositionCallback = Callable[[Position], Awaitable[Any]]
ErrorCallback = Callable[[LocationError], Any]


class LocationProvider(ABC):
    """A continuous stream of device positions."""

    @abstractmethod
    def subscribe(
        self,
        on_position: PositionCallback,
        on_error: ErrorCallback,
        options: LocationOptions,
    ) -> str:
        """Start delivering samples to *on_position*; return a subscription handle."""
        ...

    @abstractmethod
    def unsubscribe(self, handle: str) -> None:
        """Stop delivering samples for *handle*.  Unknown handles are ignored."""
        ...


# ── Backend collaborators ────────────────────────────────────────────────────

class ZoneStore(ABC):
    """Read-only zone listing."""

    @abstractmethod
    async def list_zones(self, user_scope: str) -> list[Zone]:
        """Return the zones visible to *user_scope*.

        Raises:
            ZoneStoreError: If the zones could not be fetched.
        """
        ...


class EmergencyEventSink(ABC):
    """Append-only store for EmergencyEvents.  Every call creates a new record."""

    @abstractmethod
    async def create(self, event: EmergencyEvent) -> str:
        """Persist *event* and return its id.

        Raises:
            PersistenceError: If the record was not created.
        """
        ...


class NotificationDispatcher(ABC):
    """Best-effort outbound notification of emergency contacts."""

    @abstractmethod
    async def notify(self, event_id: str, summary: dict[str, Any]) -> None:
        """Notify contacts about *event_id*.

        Raises:
            NotificationError: If delivery failed.
        """
        ...


class PositionRecorder(ABC):
    """Persists the latest position against the user record."""

    @abstractmethod
    async def record(self, user_id: str, position: Position) -> None:
        ...


# ── Local storage ────────────────────────────────────────────────────────────

class KeyValueStore(ABC):
    """Durable, device-local string storage."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...
