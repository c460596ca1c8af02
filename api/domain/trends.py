# SPDX-License-Identifier: Apache-2.0

"""
Monthly trend series generation.

A series is built from a generated month grid, never from months found in
the data, so it always holds exactly window_months contiguous points with
zero-filled months kept in place.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Sequence, Iterable, Tuple

from models.base import to_naive_utc
from models.enums import TrendCategory
from models.reports import TrendSeries, TrendPoint
from .aggregation import load_visible_households, load_visible_residents, tally_registrations
from .ports import RegistryReader
from .query import RegistryQuery
from .scope import Scope

REGISTRATION_CATEGORIES: Tuple[TrendCategory, ...] = (
    TrendCategory.HOUSEHOLDS,
    TrendCategory.RESIDENTS,
)

VULNERABLE_CATEGORIES: Tuple[TrendCategory, ...] = (
    TrendCategory.SENIORS,
    TrendCategory.PWD,
    TrendCategory.PREGNANT_PROXY,
    TrendCategory.INFANTS,
)


@dataclass(frozen=True)
class MonthWindow:
    """Registration window [start, end) for one calendar month."""
    label: str
    start: datetime
    end: datetime
    reference_instant: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_label(year: int, month: int) -> str:
    """Sortable ISO year-month label."""
    return f"{year:04d}-{month:02d}"


def month_windows(anchor_instant: datetime, window_months: int) -> List[MonthWindow]:
    """
    Month grid ending with the month containing anchor_instant, oldest first.

    Past months are classified at their last instant; the anchor month at
    the anchor instant itself.
    """
    if window_months < 1:
        raise ValueError("window_months must be a positive integer")

    anchor_instant = to_naive_utc(anchor_instant)
    windows = []
    for offset in range(window_months - 1, -1, -1):
        year, month = _shift_month(anchor_instant.year, anchor_instant.month, -offset)
        next_year, next_month = _shift_month(year, month, 1)
        start = datetime(year, month, 1)
        end = datetime(next_year, next_month, 1)
        reference = anchor_instant if offset == 0 else end - timedelta(microseconds=1)
        windows.append(MonthWindow(
            label=month_label(year, month),
            start=start,
            end=end,
            reference_instant=reference
        ))
    return windows


def normalize_categories(categories: Iterable) -> List[TrendCategory]:
    """Coerce category names to TrendCategory, dropping duplicates but keeping order."""
    normalized: List[TrendCategory] = []
    for category in categories:
        value = TrendCategory(category)
        if value not in normalized:
            normalized.append(value)
    if not normalized:
        raise ValueError("At least one trend category is required")
    return normalized


def generate_trend(registry: RegistryReader, scope: Scope,
                   categories: Sequence, window_months: int,
                   anchor_instant: datetime) -> TrendSeries:
    """
    Build a monthly registration trend for a scope.

    Args:
        registry: Read-only registry access
        scope: Visibility scope of the caller
        categories: TrendCategory members (or their values) to count
        window_months: Number of months, newest last
        anchor_instant: Instant inside the newest month

    Returns:
        TrendSeries with exactly window_months points

    Raises:
        ValueError: Non-positive window or empty category set
        RegistryUnavailable: The registry could not be read
    """
    wanted = normalize_categories(categories)
    windows = month_windows(anchor_instant, window_months)
    anchor_instant = to_naive_utc(anchor_instant)

    households = load_visible_households(registry, scope)
    count_residents = any(category != TrendCategory.HOUSEHOLDS for category in wanted)
    base = RegistryQuery.for_scope(scope)

    points = []
    for window in windows:
        registered_households = [h for h in households if window.contains(h.created_at)]

        registered_residents = []
        if count_residents:
            query = base.with_created_range(window.start, window.end)
            registered_residents = [
                r for r in load_visible_residents(registry, scope, households, query)
                if window.contains(r.created_at)
            ]

        points.append(TrendPoint(
            month_label=window.label,
            counts_by_category=tally_registrations(
                registered_households, registered_residents, wanted, window.reference_instant
            )
        ))

    return TrendSeries(
        anchor_instant=anchor_instant,
        zone_id=scope.zone_id,
        window_months=window_months,
        categories=[category.value for category in wanted],
        points=points
    )
