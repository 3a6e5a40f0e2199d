"""JsonFileKeyValueStore — durable device-local storage in one JSON file.

The file maps keys to string values.  It is read lazily on first access
and rewritten atomically (temp file + rename) on every ``set``.  There is
no cross-process locking: two processes sharing a file will overwrite
each other's writes.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from tourguard.adapters.base import KeyValueStore

logger = logging.getLogger(__name__)


class JsonFileKeyValueStore(KeyValueStore):
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._data: dict[str, str] | None = None

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._flush(data)

    # ── Internals ────────────────────────────────────────────────────────

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raw = {}
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable key-value file %s: %s", self._path, exc)
            raw = {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring key-value file %s: top level is not an object", self._path)
            raw = {}
        self._data = {str(k): str(v) for k, v in raw.items()}
        return self._data

    def _flush(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=self._path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, sort_keys=True)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


class ScopedKeyValueStore(KeyValueStore):
    """Namespaces every key with *prefix*, giving each user its own storage."""

    def __init__(self, inner: KeyValueStore, prefix: str) -> None:
        self._inner = inner
        self._prefix = prefix

    def get(self, key: str) -> str | None:
        return self._inner.get(self._prefix + key)

    def set(self, key: str, value: str) -> None:
        self._inner.set(self._prefix + key, value)
