# SPDX-License-Identifier: Apache-2.0

"""
Reporting service: the entry point routes and tooling use for every report.

Each method resolves the caller's scope, builds the typed cache key and runs
the pure domain pipeline through the report cache inside a tracing span.
"""

import os
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Iterable, Dict, Any

from opentelemetry import trace

from domain.aggregation import summarize, age_distribution
from domain.analytics import build_analytics
from domain.ports import RegistryReader
from domain.scope import resolve_scope, Scope
from domain.trends import generate_trend, REGISTRATION_CATEGORIES, VULNERABLE_CATEGORIES
from models.base import utcnow, to_naive_utc
from models.entities import UserContext
from models.enums import ReportKind
from models.reports import SummaryReport, AnalyticsReport, TrendSeries, AgeDistributionReport
from .cache import ReportCache, ReportCacheKey

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DEFAULT_TREND_WINDOW_MONTHS = 12


@dataclass(frozen=True)
class ReportTTLs:
    """Cache lifetimes in seconds per report kind."""
    summary: int = 300
    analytics: int = 600
    trends: int = 1800
    age_distribution: int = 300
    age_distribution_large: int = 600
    large_population_threshold: int = 5000

    @classmethod
    def from_env(cls) -> "ReportTTLs":
        return cls(
            summary=int(os.getenv("REPORT_TTL_SUMMARY", "300")),
            analytics=int(os.getenv("REPORT_TTL_ANALYTICS", "600")),
            trends=int(os.getenv("REPORT_TTL_TRENDS", "1800")),
            age_distribution=int(os.getenv("REPORT_TTL_AGE_DISTRIBUTION", "300")),
            age_distribution_large=int(os.getenv("REPORT_TTL_AGE_DISTRIBUTION_LARGE", "600")),
            large_population_threshold=int(os.getenv("REPORT_LARGE_POPULATION_THRESHOLD", "5000"))
        )

    def for_age_distribution(self, report: AgeDistributionReport) -> int:
        """Large populations change slowly relative to their size, so they cache longer."""
        if report.total_residents > self.large_population_threshold:
            return self.age_distribution_large
        return self.age_distribution


class ReportingService:
    """Scoped, cached access to every dashboard report."""

    def __init__(self, registry: RegistryReader, cache: ReportCache,
                 ttl: Optional[ReportTTLs] = None):
        self.registry = registry
        self.cache = cache
        self.ttl = ttl or ReportTTLs()

    def resolve_scope(self, user_context: UserContext) -> Scope:
        """Scope for the caller; raises InvalidScopeConfiguration when none applies."""
        return resolve_scope(user_context.role, user_context.assigned_purok_id)

    @staticmethod
    def _instant(reference_instant: Optional[datetime]) -> datetime:
        return to_naive_utc(reference_instant) if reference_instant else utcnow()

    def _run(self, kind: ReportKind, user_context: UserContext, compute, ttl,
             variant: Optional[str] = None, cached: bool = True):
        scope = self.resolve_scope(user_context)
        key = ReportCacheKey.for_scope(kind, user_context.role, scope, variant=variant)

        with tracer.start_as_current_span(f"reporting.{kind.value}") as span:
            span.set_attributes({
                "report.kind": kind.value,
                "scope.zone_id": scope.zone_id or "all",
                "user.role": user_context.role
            })
            if cached:
                report = self.cache.get_or_compute(key, lambda: compute(scope), ttl)
            else:
                # Keys carry no instant, so pinned reports skip the cache
                span.set_attribute("cache.result", "bypass")
                report = compute(scope)

        logger.info(
            f"Served {kind.value} report",
            extra={
                "report_kind": kind.value,
                "user_id": user_context.user_id,
                "scope": scope.describe()
            }
        )
        return report

    def summary(self, user_context: UserContext,
                reference_instant: Optional[datetime] = None) -> SummaryReport:
        """Dashboard summary counts for the caller's scope."""
        instant = self._instant(reference_instant)
        return self._run(
            ReportKind.SUMMARY, user_context,
            lambda scope: summarize(self.registry, scope, instant),
            self.ttl.summary,
            cached=reference_instant is None
        )

    def analytics(self, user_context: UserContext,
                  reference_instant: Optional[datetime] = None) -> AnalyticsReport:
        """Composite analytics with six-month trends."""
        instant = self._instant(reference_instant)
        return self._run(
            ReportKind.ANALYTICS, user_context,
            lambda scope: build_analytics(self.registry, scope, instant),
            self.ttl.analytics,
            cached=reference_instant is None
        )

    def monthly_registrations(self, user_context: UserContext,
                              months: int = DEFAULT_TREND_WINDOW_MONTHS,
                              reference_instant: Optional[datetime] = None) -> TrendSeries:
        """Households and residents registered per month."""
        instant = self._instant(reference_instant)
        return self._run(
            ReportKind.MONTHLY_REGISTRATIONS, user_context,
            lambda scope: generate_trend(self.registry, scope, REGISTRATION_CATEGORIES, months, instant),
            self.ttl.trends,
            variant=f"{months}m",
            cached=reference_instant is None
        )

    def vulnerable_trends(self, user_context: UserContext,
                          months: int = DEFAULT_TREND_WINDOW_MONTHS,
                          reference_instant: Optional[datetime] = None) -> TrendSeries:
        """Vulnerable residents registered per month."""
        instant = self._instant(reference_instant)
        return self._run(
            ReportKind.VULNERABLE_TRENDS, user_context,
            lambda scope: generate_trend(self.registry, scope, VULNERABLE_CATEGORIES, months, instant),
            self.ttl.trends,
            variant=f"{months}m",
            cached=reference_instant is None
        )

    def age_distribution(self, user_context: UserContext,
                         reference_instant: Optional[datetime] = None) -> AgeDistributionReport:
        """Residents per detailed age bracket."""
        instant = self._instant(reference_instant)
        return self._run(
            ReportKind.AGE_DISTRIBUTION, user_context,
            lambda scope: age_distribution(self.registry, scope, instant),
            self.ttl.for_age_distribution,
            cached=reference_instant is None
        )

    def notify_registry_change(self, zone_ids: Iterable[str]) -> int:
        """Invalidate reports affected by household or resident writes in the given puroks."""
        removed = 0
        for zone_id in zone_ids:
            removed += self.cache.invalidate_zone(zone_id)
        return removed

    def clear_all(self) -> int:
        """Drop every cached report."""
        return self.cache.invalidate_all()

    def health_check(self) -> Dict[str, Any]:
        """Registry and cache status; the cache alone being down only degrades service."""
        registry_health = self.registry.health_check()
        cache_health = self.cache.health_check()

        if registry_health.get("status") != "healthy":
            status = "unhealthy"
        elif cache_health.get("status") != "healthy":
            status = "degraded"
        else:
            status = "healthy"

        return {
            "status": status,
            "checks": {
                "registry": registry_health,
                "cache": cache_health
            }
        }
