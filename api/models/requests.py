# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for dashboard endpoints.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

MAX_TREND_WINDOW_MONTHS = 24


class TrendWindowQuery(BaseModel):
    """Query parameters accepted by the trend endpoints."""

    months: Optional[int] = Field(
        None, ge=1, le=MAX_TREND_WINDOW_MONTHS,
        description="Number of months in the series, newest month last"
    )


class CacheInvalidationRequest(BaseModel):
    """Body of the cache invalidation hook called after registry writes."""

    model_config = ConfigDict(populate_by_name=True)

    zone_ids: List[str] = Field(default_factory=list, description="Puroks whose records changed")
    invalidate_all: bool = Field(False, alias="all", description="Drop every cached report")

    @field_validator('zone_ids')
    @classmethod
    def validate_zone_ids(cls, v):
        """Strip blanks and duplicates while keeping order."""
        cleaned = []
        for zone_id in v:
            zone_id = zone_id.strip()
            if not zone_id:
                raise ValueError('Zone IDs cannot be empty')
            if zone_id not in cleaned:
                cleaned.append(zone_id)
        return cleaned

    @model_validator(mode='after')
    def validate_target(self):
        """Exactly one of zone_ids or all must be given."""
        if self.invalidate_all and self.zone_ids:
            raise ValueError('Use either zone_ids or all, not both')
        if not self.invalidate_all and not self.zone_ids:
            raise ValueError('Either zone_ids or all must be provided')
        return self
