"""tourguard — geofencing and anomaly-triggered SOS service.

This is the application entry point.  It builds the collaborators
(Supabase when configured, in-memory otherwise), the per-user tracker
factory, and the HTTP / WebSocket routes.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI

from tourguard.adapters.base import (
    EmergencyEventSink,
    KeyValueStore,
    LocationOptions,
    NotificationDispatcher,
    PositionRecorder,
    ZoneStore,
)
from tourguard.adapters.local_storage import JsonFileKeyValueStore, ScopedKeyValueStore
from tourguard.adapters.memory import InMemoryEventSink, InMemoryZoneStore, RecordingNotifier
from tourguard.adapters.push import PushLocationProvider
from tourguard.adapters.supabase import (
    SupabaseClient,
    SupabaseEventSink,
    SupabaseIncidentZoneStore,
    SupabaseNotifier,
    SupabasePositionRecorder,
    SupabaseZoneStore,
)
from tourguard.adapters.zones import ChainedZoneStore
from tourguard.api.flags import create_flags_router
from tourguard.api.sos import create_sos_router
from tourguard.api.ws_location import create_location_router
from tourguard.api.zones import create_zones_router
from tourguard.config import Settings, settings
from tourguard.core.anomaly import AnomalyController
from tourguard.core.emitter import EmergencyEventEmitter
from tourguard.core.geofence import GeofenceEngine
from tourguard.core.hazards import HazardConfig
from tourguard.core.tracker import LocationTracker, on_emission_logger
from tourguard.services.tracker_registry import TrackerRegistry
from tourguard.store.dwell_store import DwellStore
from tourguard.store.flag_source import FeatureFlagSource

logger = logging.getLogger(__name__)


# ── Collaborators ────────────────────────────────────────────────────────────

@dataclass
class Collaborators:
    zone_store: ZoneStore
    sink: EmergencyEventSink
    kv: KeyValueStore
    notifier: NotificationDispatcher | None = None
    position_recorder: PositionRecorder | None = None
    client: SupabaseClient | None = None


def build_collaborators(cfg: Settings) -> Collaborators:
    kv = JsonFileKeyValueStore(Path(cfg.state_dir) / "local_storage.json")

    if not (cfg.supabase_url and cfg.supabase_key):
        logger.warning("Supabase not configured; events and zones are kept in memory")
        return Collaborators(
            zone_store=InMemoryZoneStore(),
            sink=InMemoryEventSink(),
            kv=kv,
            notifier=RecordingNotifier(),
        )

    client = SupabaseClient(cfg.supabase_url, cfg.supabase_key, cfg.http_timeout_seconds)
    return Collaborators(
        zone_store=ChainedZoneStore(
            SupabaseZoneStore(client),
            SupabaseIncidentZoneStore(
                client,
                radius_meters=cfg.incident_zone_radius_meters,
                window=timedelta(hours=cfg.incident_zone_window_hours),
            ),
        ),
        sink=SupabaseEventSink(client),
        kv=kv,
        notifier=SupabaseNotifier(client),
        position_recorder=SupabasePositionRecorder(client),
        client=client,
    )


def hazard_config(cfg: Settings) -> HazardConfig:
    return HazardConfig(
        static_threshold=timedelta(seconds=cfg.static_threshold_seconds),
        static_cooldown=timedelta(seconds=cfg.static_cooldown_seconds),
        movement_threshold_meters=cfg.movement_threshold_meters,
        zone_threshold=timedelta(seconds=cfg.zone_threshold_seconds),
        zone_cooldown=timedelta(seconds=cfg.zone_cooldown_seconds),
    )


def location_options(cfg: Settings) -> LocationOptions:
    return LocationOptions(
        high_accuracy=cfg.location_high_accuracy,
        timeout_ms=cfg.location_timeout_ms,
        max_age_ms=cfg.location_max_age_ms,
    )


# ── App ──────────────────────────────────────────────────────────────────────

def create_app(collab: Collaborators, cfg: Settings = settings) -> FastAPI:
    engine = GeofenceEngine()
    emitter = EmergencyEventEmitter(collab.sink, collab.notifier)
    config = hazard_config(cfg)
    options = location_options(cfg)

    def storage_for(user_id: str) -> KeyValueStore:
        return ScopedKeyValueStore(collab.kv, f"{user_id}:")

    def flag_source_for(user_id: str) -> FeatureFlagSource:
        return FeatureFlagSource(storage_for(user_id), default_enabled=cfg.ai_sos_default_enabled)

    def make_tracker(user_id: str, provider: PushLocationProvider) -> LocationTracker:
        controller = AnomalyController(
            user_id,
            emitter,
            DwellStore(storage_for(user_id)),
            config,
            on_emission=on_emission_logger(user_id),
        )
        return LocationTracker(
            user_id,
            provider,
            collab.zone_store,
            controller,
            flag_source_for(user_id),
            options=options,
            engine=engine,
            position_recorder=collab.position_recorder,
        )

    registry = TrackerRegistry(make_tracker)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        await registry.close_all()
        if collab.client is not None:
            await collab.client.close()

    app = FastAPI(
        title=cfg.app_name,
        description="Geofencing and anomaly-triggered SOS",
        version="0.3.0",
        lifespan=lifespan,
    )
    app.state.registry = registry

    app.include_router(create_location_router(registry))
    app.include_router(create_sos_router(emitter))
    app.include_router(create_zones_router(collab.zone_store, engine))
    app.include_router(create_flags_router(flag_source_for))

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "active_trackers": registry.active_count,
            "backend": "supabase" if collab.client is not None else "memory",
        }

    return app


# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

app = create_app(build_collaborators(settings))
