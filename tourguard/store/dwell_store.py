"""DwellStore — persists the DwellTracker as one JSON value.

Design notes:
    - The tracker is read once at session start and written back after
      every mutation; there are no per-field keys.
    - Read-modify-write with no locking.  Two sessions on the same device
      storage will overwrite each other; that is accepted.
    - A corrupt stored value is logged and replaced by a fresh tracker,
      which at worst re-arms both hazards.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from tourguard.adapters.base import KeyValueStore
from tourguard.domain.dwell import DwellTracker

logger = logging.getLogger(__name__)

DEFAULT_KEY = "tourguard.dwell_tracker"


class DwellStore:
    def __init__(self, kv: KeyValueStore, key: str = DEFAULT_KEY) -> None:
        self._kv = kv
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> DwellTracker:
        raw = self._kv.get(self._key)
        if not raw:
            return DwellTracker()
        try:
            return DwellTracker.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding corrupt dwell state under %s: %s", self._key, exc)
            return DwellTracker()

    def save(self, tracker: DwellTracker) -> None:
        self._kv.set(self._key, tracker.model_dump_json())
