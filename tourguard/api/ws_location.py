"""WebSocket endpoint for the live location feed.

Path: /ws/location/{user_id}

Each JSON frame is either a position sample or a location error report.
A sample is run through the user's tracker before the acknowledgement is
sent, so the ack carries that sample's zone transitions.  The tracker is
started on the first connection and stopped when the last one closes.
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from tourguard.adapters.base import LocationError
from tourguard.models.messages import CycleAck, LocationErrorMessage, PositionMessage
from tourguard.services.tracker_registry import TrackerRegistry

logger = logging.getLogger(__name__)


def create_location_router(registry: TrackerRegistry) -> APIRouter:
    """Factory that wires the location feed to a TrackerRegistry."""
    router = APIRouter()

    @router.websocket("/ws/location/{user_id}")
    async def location_feed(websocket: WebSocket, user_id: str) -> None:
        await websocket.accept()
        session = await registry.open(user_id)
        logger.info("Location feed connected for %s", user_id)

        try:
            while True:
                text = await websocket.receive_text()
                try:
                    raw = json.loads(text)
                except ValueError as exc:
                    await websocket.send_json({"status": "error", "detail": f"Invalid JSON: {exc}"})
                    continue

                # ── Location failure reported by the device ──────────────
                if isinstance(raw, dict) and "error" in raw:
                    try:
                        err = LocationErrorMessage.model_validate(raw)
                    except ValidationError as exc:
                        await websocket.send_json({"status": "error", "detail": exc.errors()[0]["msg"]})
                        continue
                    session.provider.fail(LocationError(err.error, err.message))
                    await websocket.send_json({"status": "location_error", "code": err.error.value})
                    continue

                # ── Position sample ──────────────────────────────────────
                try:
                    msg = PositionMessage.model_validate(raw)
                except ValidationError as exc:
                    await websocket.send_json({"status": "error", "detail": exc.errors()[0]["msg"]})
                    continue

                await session.provider.publish(msg.to_position())
                report = session.tracker.last_report
                ack = CycleAck.from_report(report) if report is not None else CycleAck(skipped=True)
                await websocket.send_json(ack.model_dump(mode="json"))

        except WebSocketDisconnect:
            logger.info("Location feed disconnected for %s", user_id)
        finally:
            await registry.close(user_id)

    return router
