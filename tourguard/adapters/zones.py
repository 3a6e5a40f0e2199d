"""ChainedZoneStore — merges zones from several stores.

A store that fails is skipped with a warning so that, for example, an
outage of the incident feed does not hide the user's own zones.  Only if
every store fails is ZoneStoreError raised.
"""

from __future__ import annotations

import logging

from tourguard.adapters.base import ZoneStore, ZoneStoreError
from tourguard.domain.zone import Zone

logger = logging.getLogger(__name__)


class ChainedZoneStore(ZoneStore):
    def __init__(self, *stores: ZoneStore) -> None:
        if not stores:
            raise ValueError("ChainedZoneStore needs at least one store")
        self._stores = stores

    async def list_zones(self, user_scope: str) -> list[Zone]:
        zones: list[Zone] = []
        failures = 0
        for store in self._stores:
            try:
                zones.extend(await store.list_zones(user_scope))
            except ZoneStoreError as exc:
                failures += 1
                logger.warning("Zone store %s failed: %s", type(store).__name__, exc)
        if failures == len(self._stores):
            raise ZoneStoreError("all zone stores failed")
        return zones
