"""HTTP endpoints for the AI safety switches of one user.

Paths: GET /flags/{user_id}, PUT /flags/{user_id}
"""

from __future__ import annotations

from typing import Callable, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from tourguard.domain.enums import HazardCategory
from tourguard.domain.flags import FeatureFlags
from tourguard.store.flag_source import FeatureFlagSource


class FlagUpdate(BaseModel):
    ai_enabled: Optional[bool] = None
    categories: dict[HazardCategory, bool] = Field(default_factory=dict)


def create_flags_router(flag_source_for: Callable[[str], FeatureFlagSource]) -> APIRouter:
    router = APIRouter()

    @router.get("/flags/{user_id}", response_model=FeatureFlags)
    async def read_flags(user_id: str) -> FeatureFlags:
        return flag_source_for(user_id).load()

    @router.put("/flags/{user_id}", response_model=FeatureFlags)
    async def update_flags(user_id: str, update: FlagUpdate) -> FeatureFlags:
        source = flag_source_for(user_id)
        if update.ai_enabled is not None:
            source.set_enabled(update.ai_enabled)
        for category, enabled in update.categories.items():
            source.set_category(category, enabled)
        return source.load()

    return router
