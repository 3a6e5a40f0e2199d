"""PushLocationProvider — a location stream fed by the caller.

Used wherever samples arrive from outside the process (the WebSocket
feed, replayed tracks, tests).  ``publish`` awaits every subscriber, so a
sample is fully evaluated before ``publish`` returns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tourguard.adapters.base import (
    ErrorCallback,
    LocationError,
    LocationOptions,
    LocationProvider,
    PositionCallback,
)
from tourguard.domain.position import Position
from tourguard.foundation.identifiers import new_id

logger = logging.getLogger(__name__)


@dataclass
class _Subscription:
    on_position: PositionCallback
    on_error: ErrorCallback
    options: LocationOptions


class PushLocationProvider(LocationProvider):
    def __init__(self) -> None:
        self._subscriptions: dict[str, _Subscription] = {}

    def subscribe(
        self,
        on_position: PositionCallback,
        on_error: ErrorCallback,
        options: LocationOptions,
    ) -> str:
        handle = new_id()
        self._subscriptions[handle] = _Subscription(on_position, on_error, options)
        logger.debug("Location subscription %s opened", handle)
        return handle

    def unsubscribe(self, handle: str) -> None:
        if self._subscriptions.pop(handle, None) is not None:
            logger.debug("Location subscription %s closed", handle)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def publish(self, position: Position) -> None:
        """Deliver *position* to every current subscriber."""
        for sub in list(self._subscriptions.values()):
            await sub.on_position(position)

    def fail(self, error: LocationError) -> None:
        """Report a failed position request to every current subscriber."""
        for sub in list(self._subscriptions.values()):
            sub.on_error(error)
