"""LocationTracker — one user's evaluation cycle over the location stream.

Each sample runs, in this order:

    1. usability check (unusable samples end the cycle)
    2. GeofenceEngine.evaluate        → enter/exit transitions, alerts
    3. AnomalyController.process      → hazard timers, scheduled emissions
    4. listener callbacks (alerts, danger cue), best effort
    5. latest-position sync, scheduled and not awaited

The zone-alert state lives here and only in memory: restarting the
session re-arms every zone alert.  ``stop`` tears the subscription down
and waits for in-flight emissions; a tracker must be stopped when its
consumer goes away so stale state stops mutating shared storage.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from pydantic import BaseModel, Field

from tourguard.adapters.base import (
    LocationError,
    LocationOptions,
    LocationProvider,
    PositionRecorder,
    ZoneStore,
    ZoneStoreError,
)
from tourguard.core.anomaly import AnomalyController, AnomalyReport
from tourguard.core.geofence import GeofenceEngine, GeofenceResult, ZoneAlertState
from tourguard.domain.emergency import EmissionResult
from tourguard.domain.position import Position
from tourguard.domain.zone import Zone, ZoneAlert
from tourguard.store.flag_source import FeatureFlagSource

logger = logging.getLogger(__name__)


class CycleReport(BaseModel):
    """Everything one sample produced."""

    position: Position
    geofence: GeofenceResult
    anomaly: AnomalyReport = Field(default_factory=AnomalyReport)

    model_config = {"frozen": True}

    @property
    def skipped(self) -> bool:
        return self.geofence.skipped


class LocationTracker:
    """Wires a location stream to the geofence engine and anomaly controller.

    Args:
        user_id: Owner of the zones and of any emitted events.
        provider: Source of position samples.
        zone_store: Read-only zone listing, queried at start and on refresh.
        controller: Anomaly controller for this user.
        flag_source: Feature flags, read once per cycle.
        options: Forwarded to the provider on subscribe.
        engine: Shared containment evaluator.
        position_recorder: Optional latest-position sync.
        on_zone_alert: Called for each disruptive zone entry.
        on_danger_cue: Called on danger-zone entry (haptic/audio cue).
        on_location_error: Called when the provider reports a failure.
    """

    def __init__(
        self,
        user_id: str,
        provider: LocationProvider,
        zone_store: ZoneStore,
        controller: AnomalyController,
        flag_source: FeatureFlagSource,
        options: LocationOptions | None = None,
        engine: GeofenceEngine | None = None,
        position_recorder: PositionRecorder | None = None,
        on_zone_alert: Callable[[ZoneAlert], Any] | None = None,
        on_danger_cue: Callable[[Zone], Any] | None = None,
        on_location_error: Callable[[LocationError], Any] | None = None,
    ) -> None:
        self._user_id = user_id
        self._provider = provider
        self._zone_store = zone_store
        self._controller = controller
        self._flags = flag_source
        self._options = options or LocationOptions()
        self._engine = engine or GeofenceEngine()
        self._recorder = position_recorder
        self._on_zone_alert = on_zone_alert
        self._on_danger_cue = on_danger_cue
        self._on_location_error = on_location_error

        self._zones: list[Zone] = []
        self._alert_state: ZoneAlertState = frozenset()
        self._handle: str | None = None
        self._last_report: CycleReport | None = None
        self._last_error: LocationError | None = None
        self._sync_tasks: set[asyncio.Task[None]] = set()

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Load zones and hazard state, then subscribe to the location stream."""
        if self._handle is not None:
            return
        await self.refresh_zones()
        self._controller.load()
        self._handle = self._provider.subscribe(
            self.handle_position, self.handle_error, self._options
        )
        logger.info("Tracking user %s (%d zones)", self._user_id, len(self._zones))

    async def stop(self) -> None:
        """Unsubscribe and wait for in-flight emissions and syncs."""
        if self._handle is not None:
            self._provider.unsubscribe(self._handle)
            self._handle = None
            logger.info("Stopped tracking user %s", self._user_id)
        await self._controller.drain()
        if self._sync_tasks:
            await asyncio.gather(*list(self._sync_tasks))

    async def __aenter__(self) -> "LocationTracker":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    @property
    def running(self) -> bool:
        return self._handle is not None

    # ── Zones ────────────────────────────────────────────────────────────

    async def refresh_zones(self) -> list[Zone]:
        """Re-read zones.  On failure the previous list is kept."""
        try:
            self._zones = await self._zone_store.list_zones(self._user_id)
        except ZoneStoreError as exc:
            logger.warning("Keeping %d cached zones for %s: %s", len(self._zones), self._user_id, exc)
        return list(self._zones)

    @property
    def zones(self) -> list[Zone]:
        return list(self._zones)

    @property
    def alert_state(self) -> ZoneAlertState:
        return self._alert_state

    # ── Stream callbacks ─────────────────────────────────────────────────

    async def handle_position(self, position: Position) -> CycleReport:
        """Run one evaluation cycle for *position*."""
        self._last_error = None
        geofence = self._engine.evaluate(position, self._zones, self._alert_state)
        if geofence.skipped:
            report = CycleReport(position=position, geofence=geofence)
            self._last_report = report
            return report

        self._alert_state = geofence.alert_state
        anomaly = self._controller.process(position, geofence, self._flags.load())
        report = CycleReport(position=position, geofence=geofence, anomaly=anomaly)
        self._last_report = report

        for alert in geofence.alerts:
            self._notify(self._on_zone_alert, alert)
        for zone in geofence.entered_danger:
            self._notify(self._on_danger_cue, zone)

        if self._recorder is not None:
            task = asyncio.create_task(self._record(self._recorder, position))
            self._sync_tasks.add(task)
            task.add_done_callback(self._sync_tasks.discard)

        return report

    def handle_error(self, error: LocationError) -> None:
        """No sample this tick: nothing is evaluated, nothing can trigger."""
        self._last_error = error
        logger.warning("Location unavailable for %s: %s", self._user_id, error)
        self._notify(self._on_location_error, error)

    @property
    def last_report(self) -> CycleReport | None:
        return self._last_report

    @property
    def last_error(self) -> LocationError | None:
        return self._last_error

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _notify(callback: Callable[[Any], Any] | None, payload: Any) -> None:
        if callback is None:
            return
        try:
            callback(payload)
        except Exception as exc:
            logger.warning("Tracker listener failed: %s", exc)

    async def _record(self, recorder: PositionRecorder, position: Position) -> None:
        try:
            await recorder.record(self._user_id, position)
        except Exception as exc:
            logger.warning("Failed to sync position for %s: %s", self._user_id, exc)


def on_emission_logger(user_id: str) -> Callable[[EmissionResult], None]:
    """Default emission listener: one log line per outcome."""

    def _log(result: EmissionResult) -> None:
        if result.persisted:
            logger.info(
                "AI safety trigger for %s: %s (event %s, notified=%s)",
                user_id,
                result.event.description,
                result.event_id,
                result.notified,
            )

    return _log
