"""In-memory collaborators for local runs and tests."""

from __future__ import annotations

import logging
from typing import Any

from tourguard.adapters.base import (
    EmergencyEventSink,
    KeyValueStore,
    NotificationDispatcher,
    NotificationError,
    PersistenceError,
    PositionRecorder,
    ZoneStore,
    ZoneStoreError,
)
from tourguard.domain.emergency import EmergencyEvent
from tourguard.domain.position import Position
from tourguard.domain.zone import Zone
from tourguard.foundation.identifiers import new_id

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class InMemoryZoneStore(ZoneStore):
    """Zones keyed by user scope.  Zones under ``"*"`` are visible to everyone."""

    def __init__(self, zones: dict[str, list[Zone]] | None = None) -> None:
        self._zones: dict[str, list[Zone]] = {k: list(v) for k, v in (zones or {}).items()}
        self.fail = False

    def put(self, user_scope: str, zone: Zone) -> None:
        self._zones.setdefault(user_scope, []).append(zone)

    def replace(self, user_scope: str, zones: list[Zone]) -> None:
        self._zones[user_scope] = list(zones)

    async def list_zones(self, user_scope: str) -> list[Zone]:
        if self.fail:
            raise ZoneStoreError("zone store unavailable")
        return list(self._zones.get("*", [])) + list(self._zones.get(user_scope, []))


class InMemoryEventSink(EmergencyEventSink):
    """Keeps every created event.  Set ``fail`` to simulate backend outages."""

    def __init__(self) -> None:
        self.events: dict[str, EmergencyEvent] = {}
        self.fail = False

    async def create(self, event: EmergencyEvent) -> str:
        if self.fail:
            raise PersistenceError("event sink unavailable")
        event_id = new_id()
        self.events[event_id] = event
        logger.debug("Stored %s event %s", event.kind.value, event_id)
        return event_id


class RecordingNotifier(NotificationDispatcher):
    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.fail = False

    async def notify(self, event_id: str, summary: dict[str, Any]) -> None:
        if self.fail:
            raise NotificationError("notification service unavailable")
        self.sent.append((event_id, summary))


class InMemoryPositionRecorder(PositionRecorder):
    def __init__(self) -> None:
        self.latest: dict[str, Position] = {}

    async def record(self, user_id: str, position: Position) -> None:
        self.latest[user_id] = position
