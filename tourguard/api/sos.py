"""HTTP endpoint for the manual SOS button.

Path: POST /sos
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from tourguard.core.emitter import EmergencyEventEmitter
from tourguard.models.messages import SOSRequest, SOSResponse


def create_sos_router(emitter: EmergencyEventEmitter) -> APIRouter:
    router = APIRouter()

    @router.post("/sos", response_model=SOSResponse, status_code=201)
    async def trigger_sos(request: SOSRequest) -> SOSResponse:
        result = await emitter.trigger_manual(
            user_id=request.user_id,
            position=request.coordinates(),
            emergency_type=request.emergency_type,
            description=request.description,
        )
        if not result.persisted or result.event_id is None:
            raise HTTPException(status_code=502, detail=f"Failed to record SOS: {result.error}")
        return SOSResponse(status="triggered", event_id=result.event_id, notified=result.notified)

    return router
