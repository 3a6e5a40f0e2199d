"""Keeps one running LocationTracker per connected user.

Several connections for the same user share a tracker; it is stopped when
the last one goes away.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from tourguard.adapters.push import PushLocationProvider
from tourguard.core.tracker import LocationTracker

logger = logging.getLogger(__name__)

TrackerFactory = Callable[[str, PushLocationProvider], LocationTracker]


@dataclass
class TrackingSession:
    user_id: str
    provider: PushLocationProvider
    tracker: LocationTracker
    connections: int = 0


class TrackerRegistry:
    def __init__(self, factory: TrackerFactory) -> None:
        self._factory = factory
        self._lock = asyncio.Lock()
        self._sessions: dict[str, TrackingSession] = {}

    async def open(self, user_id: str) -> TrackingSession:
        """Return the user's session, starting a tracker if none is running."""
        async with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                provider = PushLocationProvider()
                tracker = self._factory(user_id, provider)
                await tracker.start()
                session = TrackingSession(user_id=user_id, provider=provider, tracker=tracker)
                self._sessions[user_id] = session
            session.connections += 1
            return session

    async def close(self, user_id: str) -> None:
        """Release one connection; stop the tracker after the last one."""
        async with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                return
            session.connections -= 1
            if session.connections > 0:
                return
            del self._sessions[user_id]
        await session.tracker.stop()

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.tracker.stop()
        if sessions:
            logger.info("Stopped %d tracker(s)", len(sessions))

    def get(self, user_id: str) -> TrackingSession | None:
        return self._sessions.get(user_id)

    @property
    def active_count(self) -> int:
        return len(self._sessions)
