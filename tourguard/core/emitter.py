"""EmergencyEventEmitter — the two-phase persist → notify protocol.

Phase 1 persists the event through the EmergencyEventSink.  If it fails
the emission has failed: the error is logged and reported, never retried
here.  Phase 2 notifies contacts through the NotificationDispatcher; its
failure is logged and reported but never undoes phase 1.

Manual SOS and automatic hazard triggers both go through ``emit``.
"""

from __future__ import annotations

import logging
import platform
from typing import Any

from tourguard.adapters.base import EmergencyEventSink, NotificationDispatcher
from tourguard.domain.emergency import EmergencyEvent, EmissionResult
from tourguard.domain.enums import EmergencyKind, EmergencyType
from tourguard.domain.position import Coordinates
from tourguard.foundation.clock import utc_now

logger = logging.getLogger(__name__)

# Coordinates recorded for a manual SOS raised without a position fix.
UNKNOWN_POSITION = Coordinates(latitude=0.0, longitude=0.0)


def device_info(source: str, **extra: Any) -> dict[str, Any]:
    """Describe the emitting device for the ``device_info`` column."""
    info: dict[str, Any] = {
        "platform": platform.platform(),
        "runtime": f"python/{platform.python_version()}",
        "source": source,
    }
    info.update(extra)
    return info


class EmergencyEventEmitter:
    def __init__(
        self,
        sink: EmergencyEventSink,
        notifier: NotificationDispatcher | None = None,
    ) -> None:
        self._sink = sink
        self._notifier = notifier

    async def emit(self, event: EmergencyEvent) -> EmissionResult:
        """Persist then notify.  Never raises."""
        # ── Phase 1: persist ─────────────────────────────────────────────
        try:
            event_id = await self._sink.create(event)
        except Exception as exc:
            logger.error(
                "Failed to persist %s emergency for user %s: %s",
                event.kind.value,
                event.user_id,
                exc,
            )
            return EmissionResult(event=event, persisted=False, error=str(exc))

        logger.info("Emergency %s persisted (%s, user %s)", event_id, event.kind.value, event.user_id)

        # ── Phase 2: notify (best effort) ────────────────────────────────
        if self._notifier is None:
            return EmissionResult(event=event, persisted=True, event_id=event_id)

        try:
            await self._notifier.notify(event_id, event.notification_summary(event_id))
        except Exception as exc:
            logger.warning("Notification for emergency %s failed: %s", event_id, exc)
            return EmissionResult(event=event, persisted=True, event_id=event_id, error=str(exc))

        return EmissionResult(event=event, persisted=True, event_id=event_id, notified=True)

    async def trigger_manual(
        self,
        user_id: str,
        position: Coordinates | None,
        emergency_type: EmergencyType = EmergencyType.OTHER,
        description: str = "",
    ) -> EmissionResult:
        """Raise an SOS on the user's explicit request."""
        if position is None:
            logger.warning("Manual SOS for user %s has no position fix", user_id)
        event = EmergencyEvent(
            user_id=user_id,
            kind=EmergencyKind.MANUAL,
            emergency_type=emergency_type,
            description=description,
            position=position or UNKNOWN_POSITION,
            triggered_at=utc_now(),
            device_info=device_info("SOS_BUTTON"),
        )
        return await self.emit(event)
