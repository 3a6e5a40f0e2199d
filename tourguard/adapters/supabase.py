"""Supabase collaborators over the PostgREST and Edge Functions HTTP APIs.

Tables used:
    sos_events       : EmergencyEventSink (insert, return=representation)
    trusted_zones    : ZoneStore (per-user zones)
    incident_reports : ZoneStore (danger zones around recent critical incidents)
    users            : PositionRecorder (latest position columns)

Edge function:
    send-sos-email   : NotificationDispatcher

One aiohttp session is shared by all adapters built from the same
SupabaseClient and is created lazily on the first request.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import timedelta
from typing import Any

import aiohttp

from tourguard.adapters.base import (
    CollaboratorError,
    EmergencyEventSink,
    NotificationDispatcher,
    NotificationError,
    PersistenceError,
    PositionRecorder,
    ZoneStore,
    ZoneStoreError,
)
from tourguard.domain.emergency import EmergencyEvent
from tourguard.domain.enums import ZoneKind
from tourguard.domain.position import Coordinates, Position
from tourguard.domain.zone import Zone
from tourguard.foundation.clock import utc_now

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ValueError)


class SupabaseRequestError(CollaboratorError):
    """Non-2xx response from Supabase."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status}: {body[:200]}")


# ── Client ───────────────────────────────────────────────────────────────────

class SupabaseClient:
    """Thin authenticated HTTP client for one Supabase project."""

    def __init__(self, url: str, key: str, timeout_seconds: float = 10.0) -> None:
        if not url or not key:
            raise ValueError("Supabase url and key are required")
        self._url = url.rstrip("/")
        self._key = key
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    @property
    def headers(self) -> dict[str, str]:
        return {
            "apikey": self._key,
            "Authorization": f"Bearer {self._key}",
            "Content-Type": "application/json",
        }

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self.headers, timeout=self._timeout)
        return self._session

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        payload: Any = None,
        prefer: str | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None if empty).

        Raises:
            SupabaseRequestError: On a non-2xx response.
        """
        headers = {"Prefer": prefer} if prefer else None
        session = self._get_session()
        async with session.request(
            method,
            f"{self._url}{path}",
            params=params,
            json=payload,
            headers=headers,
        ) as response:
            text = await response.text()
            if response.status >= 400:
                raise SupabaseRequestError(response.status, text)
            if not text:
                return None
            return json.loads(text)

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()


# ── Row mapping ──────────────────────────────────────────────────────────────

def zone_from_row(row: dict[str, Any]) -> Zone | None:
    """Map a ``trusted_zones`` row to a Zone, or None if it is unusable."""
    lat, lon = row.get("latitude"), row.get("longitude")
    if lat is None or lon is None or row.get("id") is None:
        logger.warning("Ignoring zone row without id or center: %s", row.get("id"))
        return None
    try:
        kind = ZoneKind(row.get("zone_type") or ZoneKind.SAFE.value)
    except (ValueError, TypeError):
        logger.warning("Zone %s has unknown type %r; treating as safe", row["id"], row.get("zone_type"))
        kind = ZoneKind.SAFE
    try:
        return Zone(
            id=str(row["id"]),
            name=row.get("zone_name") or "",
            center=Coordinates(latitude=float(lat), longitude=float(lon)),
            radius_meters=float(row.get("radius_meters") or 0.0),
            kind=kind,
            active=bool(row.get("is_active", True)),
        )
    except (ValueError, TypeError) as exc:
        logger.warning("Ignoring malformed zone row %s: %s", row["id"], exc)
        return None


def incident_zone_from_row(row: dict[str, Any], radius_meters: float) -> Zone | None:
    """Map a critical ``incident_reports`` row to a synthetic danger zone."""
    lat, lon = row.get("location_latitude"), row.get("location_longitude")
    if lat is None or lon is None or row.get("id") is None:
        return None
    incident_id = str(row["id"])
    try:
        return Zone(
            id=f"incident:{incident_id}",
            name=f"Critical incident {incident_id[:8]}",
            center=Coordinates(latitude=float(lat), longitude=float(lon)),
            radius_meters=radius_meters,
            kind=ZoneKind.DANGER,
        )
    except (ValueError, TypeError) as exc:
        logger.warning("Ignoring malformed incident row %s: %s", incident_id, exc)
        return None


# ── Adapters ─────────────────────────────────────────────────────────────────

class SupabaseEventSink(EmergencyEventSink):
    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def create(self, event: EmergencyEvent) -> str:
        try:
            rows = await self._client.request(
                "POST",
                "/rest/v1/sos_events",
                payload=event.to_row(),
                prefer="return=representation",
            )
        except (SupabaseRequestError, *_TRANSPORT_ERRORS) as exc:
            raise PersistenceError(f"sos_events insert failed: {exc}") from exc

        if not rows or "id" not in rows[0]:
            raise PersistenceError("sos_events insert returned no id")
        return str(rows[0]["id"])


class SupabaseNotifier(NotificationDispatcher):
    def __init__(self, client: SupabaseClient, function_name: str = "send-sos-email") -> None:
        self._client = client
        self._function_name = function_name

    async def notify(self, event_id: str, summary: dict[str, Any]) -> None:
        try:
            await self._client.request(
                "POST",
                f"/functions/v1/{self._function_name}",
                payload=summary,
            )
        except (SupabaseRequestError, *_TRANSPORT_ERRORS) as exc:
            raise NotificationError(f"{self._function_name} failed for {event_id}: {exc}") from exc


class SupabaseZoneStore(ZoneStore):
    """The user's own zones from ``trusted_zones``."""

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def list_zones(self, user_scope: str) -> list[Zone]:
        try:
            rows = await self._client.request(
                "GET",
                "/rest/v1/trusted_zones",
                params={"select": "*", "user_id": f"eq.{user_scope}"},
            )
        except (SupabaseRequestError, *_TRANSPORT_ERRORS) as exc:
            raise ZoneStoreError(f"trusted_zones query failed: {exc}") from exc
        zones = [zone_from_row(row) for row in rows or []]
        return [z for z in zones if z is not None]


class SupabaseIncidentZoneStore(ZoneStore):
    """Danger zones centred on critical incidents reported recently.

    Visible to every user; *user_scope* is ignored.
    """

    def __init__(
        self,
        client: SupabaseClient,
        radius_meters: float = 500.0,
        window: timedelta = timedelta(hours=24),
    ) -> None:
        self._client = client
        self._radius_meters = radius_meters
        self._window = window

    async def list_zones(self, user_scope: str) -> list[Zone]:
        since = (utc_now() - self._window).isoformat()
        try:
            rows = await self._client.request(
                "GET",
                "/rest/v1/incident_reports",
                params={
                    "select": "id,location_latitude,location_longitude",
                    "severity": "eq.critical",
                    "created_at": f"gt.{since}",
                },
            )
        except (SupabaseRequestError, *_TRANSPORT_ERRORS) as exc:
            raise ZoneStoreError(f"incident_reports query failed: {exc}") from exc
        zones = [incident_zone_from_row(row, self._radius_meters) for row in rows or []]
        return [z for z in zones if z is not None]


class SupabasePositionRecorder(PositionRecorder):
    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def record(self, user_id: str, position: Position) -> None:
        try:
            await self._client.request(
                "PATCH",
                "/rest/v1/users",
                params={"id": f"eq.{user_id}"},
                payload={
                    "current_latitude": position.latitude,
                    "current_longitude": position.longitude,
                    "last_location_update": position.captured_at.isoformat(),
                },
            )
        except (SupabaseRequestError, *_TRANSPORT_ERRORS) as exc:
            raise PersistenceError(f"users position update failed: {exc}") from exc
