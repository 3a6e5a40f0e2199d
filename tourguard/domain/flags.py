"""Feature flags gating automatic hazard evaluation."""

from __future__ import annotations

from pydantic import BaseModel, Field

from tourguard.domain.enums import HazardCategory


def _all_enabled() -> dict[HazardCategory, bool]:
    return {category: True for category in HazardCategory}


class FeatureFlags(BaseModel):
    """Master switch plus per-category switches.

    Categories missing from ``categories`` are treated as enabled.
    """

    ai_enabled: bool = False
    categories: dict[HazardCategory, bool] = Field(default_factory=_all_enabled)

    model_config = {"frozen": True}

    def allows(self, category: HazardCategory) -> bool:
        return self.ai_enabled and self.categories.get(category, True)
