# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Report value objects produced by the analytics core.

All models are plain, serializable values with no behaviour beyond simple
read-only helpers. They are recomputed on demand and safe to cache.
"""

from datetime import datetime
from typing import List, Optional, Dict
from pydantic import Field, model_validator
from .base import ValueObject


class VulnerableCounts(ValueObject):
    """Vulnerable-population tallies."""

    seniors: int = Field(default=0, ge=0, description="Residents aged 60 and over")
    pwd: int = Field(default=0, ge=0, description="Persons with disability")
    pregnant_proxy: int = Field(
        default=0, ge=0,
        description="Placeholder heuristic: female residents with occupation status 'other'"
    )
    infants: int = Field(default=0, ge=0, description="Residents younger than one year")


class CohortCounts(ValueObject):
    """Residents per age cohort; the four counts always sum to the resident total."""

    infant: int = Field(default=0, ge=0)
    child: int = Field(default=0, ge=0)
    adult: int = Field(default=0, ge=0)
    senior: int = Field(default=0, ge=0)


class ZoneBreakdown(ValueObject):
    """Household and resident counts for one purok."""

    zone_id: str = Field(..., description="Purok identifier")
    name: str = Field(..., description="Purok name")
    code: Optional[str] = Field(None, description="Purok code")
    households: int = Field(default=0, ge=0)
    residents: int = Field(default=0, ge=0)


class SummaryReport(ValueObject):
    """Point-in-time counts and breakdowns for one scope."""

    reference_instant: datetime = Field(..., description="Instant ages were computed against")
    zone_id: Optional[str] = Field(None, description="Restricted purok, or None for all puroks")
    total_households: int = Field(default=0, ge=0)
    total_residents: int = Field(default=0, ge=0)
    vulnerable_counts: VulnerableCounts = Field(default_factory=VulnerableCounts)
    cohort_counts: CohortCounts = Field(default_factory=CohortCounts)
    zone_count: int = Field(default=0, ge=0, description="Number of visible puroks")
    per_zone_breakdown: List[ZoneBreakdown] = Field(default_factory=list)

    def is_empty(self) -> bool:
        """True only when the visible registry holds no households and no residents."""
        return self.total_households == 0 and self.total_residents == 0


class TrendPoint(ValueObject):
    """Counts for a single calendar month."""

    month_label: str = Field(..., description="ISO year-month, e.g. 2025-03")
    counts_by_category: Dict[str, int] = Field(default_factory=dict)


class TrendSeries(ValueObject):
    """Fixed-length monthly series, oldest month first."""

    anchor_instant: datetime = Field(..., description="Instant inside the newest month")
    zone_id: Optional[str] = Field(None, description="Restricted purok, or None for all puroks")
    window_months: int = Field(..., ge=1)
    categories: List[str] = Field(default_factory=list)
    points: List[TrendPoint] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_length(self):
        """A series always carries exactly one point per month of its window."""
        if len(self.points) != self.window_months:
            raise ValueError(
                f'Trend series must contain {self.window_months} points, got {len(self.points)}'
            )
        return self

    def totals(self) -> Dict[str, int]:
        """Sum of each category across the whole window."""
        return {
            category: sum(point.counts_by_category.get(category, 0) for point in self.points)
            for category in self.categories
        }


class AgeGroupCounts(ValueObject):
    """Coarse age groups shown on the analytics dashboard."""

    children: int = Field(default=0, ge=0, description="Younger than 18, infants included")
    adults: int = Field(default=0, ge=0, description="18 to 59")
    seniors: int = Field(default=0, ge=0, description="60 and over")


class AnalyticsReport(ValueObject):
    """Composite dashboard analytics for one scope."""

    reference_instant: datetime
    zone_id: Optional[str] = None
    total_households: int = Field(default=0, ge=0)
    total_residents: int = Field(default=0, ge=0)
    households_by_zone: List[ZoneBreakdown] = Field(default_factory=list)
    residents_by_age_group: AgeGroupCounts = Field(default_factory=AgeGroupCounts)
    monthly_registrations: TrendSeries
    vulnerable_trends: TrendSeries

    def is_empty(self) -> bool:
        """True when no visible household or resident exists."""
        return self.total_households == 0 and self.total_residents == 0


class AgeBracketCount(ValueObject):
    """Residents in one labelled age bracket."""

    age_group: str = Field(..., description="Bracket key, e.g. 18-25")
    label: str = Field(..., description="Display label, e.g. Young Adult")
    count: int = Field(default=0, ge=0)


class AgeDistributionReport(ValueObject):
    """Detailed age-bracket distribution for one scope."""

    reference_instant: datetime
    zone_id: Optional[str] = None
    total_residents: int = Field(default=0, ge=0)
    brackets: List[AgeBracketCount] = Field(default_factory=list)

    def is_empty(self) -> bool:
        """True when no visible resident exists."""
        return self.total_residents == 0
