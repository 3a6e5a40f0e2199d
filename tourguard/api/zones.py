"""HTTP endpoint backing the safety map's zone overlay.

Path: GET /zones/{user_id}/status?latitude=..&longitude=..

Uses the same GeofenceEngine as the background tracker so the map and
the tracker always agree on containment.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from tourguard.adapters.base import ZoneStore, ZoneStoreError
from tourguard.core.geofence import GeofenceEngine
from tourguard.domain.position import Position
from tourguard.models.messages import ZoneStatusOut


def create_zones_router(zone_store: ZoneStore, engine: GeofenceEngine) -> APIRouter:
    router = APIRouter()

    @router.get("/zones/{user_id}/status", response_model=list[ZoneStatusOut])
    async def zone_status(
        user_id: str,
        latitude: float = Query(..., ge=-90.0, le=90.0),
        longitude: float = Query(..., ge=-180.0, le=180.0),
    ) -> list[ZoneStatusOut]:
        try:
            zones = await zone_store.list_zones(user_id)
        except ZoneStoreError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

        position = Position(latitude=latitude, longitude=longitude)
        return [
            ZoneStatusOut(
                id=s.zone.id,
                name=s.zone.name,
                kind=s.zone.kind.value,
                radius_meters=s.zone.radius_meters,
                distance_meters=round(s.distance_meters, 1),
                contained=s.contained,
            )
            for s in engine.describe(position, zones)
        ]

    return router
