"""FeatureFlagSource — reads the AI safety switches from local storage.

Keys:
    ai_sos_enabled      "true" turns hazard evaluation on; anything else
                        (including absence) falls back to the default
    ai_features_config  JSON object of category → bool; unknown keys are
                        ignored, missing categories are enabled
"""

from __future__ import annotations

import json
import logging

from tourguard.adapters.base import KeyValueStore
from tourguard.domain.enums import HazardCategory
from tourguard.domain.flags import FeatureFlags

logger = logging.getLogger(__name__)

MASTER_KEY = "ai_sos_enabled"
CATEGORIES_KEY = "ai_features_config"


class FeatureFlagSource:
    def __init__(self, kv: KeyValueStore, default_enabled: bool = False) -> None:
        self._kv = kv
        self._default_enabled = default_enabled

    def load(self) -> FeatureFlags:
        """Read the flags.  Called once per evaluation cycle."""
        master = self._kv.get(MASTER_KEY)
        ai_enabled = self._default_enabled if master is None else master == "true"

        categories = {category: True for category in HazardCategory}
        raw = self._kv.get(CATEGORIES_KEY)
        if raw:
            try:
                parsed = json.loads(raw)
            except ValueError as exc:
                logger.warning("Ignoring unreadable %s: %s", CATEGORIES_KEY, exc)
                parsed = {}
            if isinstance(parsed, dict):
                for category in HazardCategory:
                    if category.value in parsed:
                        categories[category] = bool(parsed[category.value])

        return FeatureFlags(ai_enabled=ai_enabled, categories=categories)

    def set_enabled(self, enabled: bool) -> None:
        self._kv.set(MASTER_KEY, "true" if enabled else "false")

    def set_category(self, category: HazardCategory, enabled: bool) -> None:
        current = dict(self.load().categories)
        current[category] = enabled
        self._kv.set(CATEGORIES_KEY, json.dumps({c.value: v for c, v in current.items()}))
