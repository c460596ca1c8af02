# SPDX-License-Identifier: Apache-2.0

"""
Composite dashboard analytics built from the summary and trend pipelines.
"""

from datetime import datetime

from models.base import to_naive_utc
from models.enums import TrendCategory
from models.reports import AnalyticsReport
from .aggregation import load_snapshot, build_summary, build_age_groups
from .ports import RegistryReader
from .scope import Scope
from .trends import generate_trend

ANALYTICS_WINDOW_MONTHS = 6

ANALYTICS_VULNERABLE_CATEGORIES = (
    TrendCategory.SENIORS,
    TrendCategory.PWD,
    TrendCategory.INFANTS,
)


def build_analytics(registry: RegistryReader, scope: Scope,
                    reference_instant: datetime,
                    window_months: int = ANALYTICS_WINDOW_MONTHS) -> AnalyticsReport:
    """Households per zone, age groups and two short registration trends."""
    reference_instant = to_naive_utc(reference_instant)
    summary = build_summary(load_snapshot(registry, scope), reference_instant)

    return AnalyticsReport(
        reference_instant=reference_instant,
        zone_id=scope.zone_id,
        total_households=summary.total_households,
        total_residents=summary.total_residents,
        households_by_zone=summary.per_zone_breakdown,
        residents_by_age_group=build_age_groups(summary),
        monthly_registrations=generate_trend(
            registry, scope, [TrendCategory.RESIDENTS], window_months, reference_instant
        ),
        vulnerable_trends=generate_trend(
            registry, scope, ANALYTICS_VULNERABLE_CATEGORIES, window_months, reference_instant
        )
    )
