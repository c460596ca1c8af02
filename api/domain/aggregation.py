# SPDX-License-Identifier: Apache-2.0

"""
Aggregation pipeline for point-in-time registry reports.

The pipeline applies a Scope to the registry, classifies every visible
resident exactly once and accumulates all tallies in a single pass. Registry
reads are the only side effect; the same registry state, scope and reference
instant always produce the same report.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Optional, Iterable, Sequence

from models.base import to_naive_utc
from models.entities import Purok, Household, Resident
from models.enums import Cohort, TrendCategory
from models.reports import (
    SummaryReport, VulnerableCounts, CohortCounts, ZoneBreakdown,
    AgeDistributionReport, AgeBracketCount, AgeGroupCounts
)
from .classification import classify, age_in_years, age_bracket, AGE_BRACKETS
from .ports import RegistryReader
from .query import RegistryQuery
from .scope import Scope, RestrictedToZone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrySnapshot:
    """Records visible to one scope, read once per report."""
    scope: Scope
    zones: List[Purok] = field(default_factory=list)
    households: List[Household] = field(default_factory=list)
    residents: List[Resident] = field(default_factory=list)

    def zone_by_household(self) -> Dict[str, Optional[str]]:
        return {household.id: household.purok_id for household in self.households}


def load_visible_households(registry: RegistryReader, scope: Scope,
                            query: Optional[RegistryQuery] = None) -> List[Household]:
    """Households the scope may see. The scope is re-applied to whatever the store returns."""
    query = query or RegistryQuery.for_scope(scope)
    return [h for h in registry.list_households(query) if scope.permits(h.purok_id)]


def load_visible_residents(registry: RegistryReader, scope: Scope,
                           households: Sequence[Household],
                           query: Optional[RegistryQuery] = None) -> List[Resident]:
    """
    Residents belonging to the given visible households.

    Restricted scopes push the household set down to the store; unrestricted
    scopes read everything and filter in memory to avoid an unbounded IN list.
    """
    household_ids = {household.id for household in households}
    if not household_ids:
        return []

    query = query or RegistryQuery.for_scope(scope)
    if isinstance(scope, RestrictedToZone):
        query = query.with_households(household_ids)

    return [r for r in registry.list_residents(query) if r.household_id in household_ids]


def load_snapshot(registry: RegistryReader, scope: Scope) -> RegistrySnapshot:
    """Filter zones, households and residents by scope."""
    base = RegistryQuery.for_scope(scope)

    zones = [zone for zone in registry.list_zones(base) if scope.permits(zone.id)]
    households = load_visible_households(registry, scope, base)
    residents = load_visible_residents(registry, scope, households, base)

    logger.debug(
        f"Registry snapshot for {scope.describe()}: "
        f"{len(zones)} zones, {len(households)} households, {len(residents)} residents"
    )

    return RegistrySnapshot(scope=scope, zones=zones, households=households, residents=residents)


def build_zone_breakdown(scope: Scope, zones: Iterable[Purok],
                         households_per_zone: Counter,
                         residents_per_zone: Counter) -> List[ZoneBreakdown]:
    """
    Per-zone counts ordered by zone name.

    Unrestricted breakdowns list every zone, including zones with no
    households. Restricted breakdowns always hold exactly one entry.
    """
    zones_by_id = {zone.id: zone for zone in zones}

    if isinstance(scope, RestrictedToZone):
        zone = zones_by_id.get(scope.zone_id)
        return [ZoneBreakdown(
            zone_id=scope.zone_id,
            name=zone.name if zone else scope.zone_id,
            code=zone.code if zone else None,
            households=households_per_zone.get(scope.zone_id, 0),
            residents=residents_per_zone.get(scope.zone_id, 0)
        )]

    ordered = sorted(zones_by_id.values(), key=lambda z: (z.name.lower(), z.id))
    return [
        ZoneBreakdown(
            zone_id=zone.id,
            name=zone.name,
            code=zone.code,
            households=households_per_zone.get(zone.id, 0),
            residents=residents_per_zone.get(zone.id, 0)
        )
        for zone in ordered
    ]


def build_summary(snapshot: RegistrySnapshot, reference_instant: datetime) -> SummaryReport:
    """Single pass over the snapshot producing the summary report."""
    reference_instant = to_naive_utc(reference_instant)
    zone_of = snapshot.zone_by_household()

    cohorts: Counter = Counter()
    vulnerable: Counter = Counter()
    residents_per_zone: Counter = Counter()
    households_per_zone: Counter = Counter(
        h.purok_id for h in snapshot.households if h.purok_id is not None
    )

    for resident in snapshot.residents:
        result = classify(resident, reference_instant)
        cohorts[result.cohort] += 1
        flags = result.flags
        vulnerable["seniors"] += flags.is_senior
        vulnerable["pwd"] += flags.is_pwd
        vulnerable["pregnant_proxy"] += flags.is_pregnant_proxy
        vulnerable["infants"] += flags.is_infant

        zone_id = zone_of.get(resident.household_id)
        if zone_id is not None:
            residents_per_zone[zone_id] += 1

    breakdown = build_zone_breakdown(
        snapshot.scope, snapshot.zones, households_per_zone, residents_per_zone
    )

    return SummaryReport(
        reference_instant=reference_instant,
        zone_id=snapshot.scope.zone_id,
        total_households=len(snapshot.households),
        total_residents=len(snapshot.residents),
        vulnerable_counts=VulnerableCounts(
            seniors=vulnerable["seniors"],
            pwd=vulnerable["pwd"],
            pregnant_proxy=vulnerable["pregnant_proxy"],
            infants=vulnerable["infants"]
        ),
        cohort_counts=CohortCounts(
            infant=cohorts[Cohort.INFANT],
            child=cohorts[Cohort.CHILD],
            adult=cohorts[Cohort.ADULT],
            senior=cohorts[Cohort.SENIOR]
        ),
        zone_count=len(breakdown),
        per_zone_breakdown=breakdown
    )


def summarize(registry: RegistryReader, scope: Scope, reference_instant: datetime) -> SummaryReport:
    """
    Point-in-time summary for a scope.

    Args:
        registry: Read-only registry access
        scope: Visibility scope of the caller
        reference_instant: Instant ages are computed against

    Returns:
        SummaryReport; all counts are zero for an empty registry

    Raises:
        RegistryUnavailable: The registry could not be read
    """
    return build_summary(load_snapshot(registry, scope), reference_instant)


def build_age_groups(summary: SummaryReport) -> AgeGroupCounts:
    """Coarse age groups derived from cohort counts; children include infants."""
    cohorts = summary.cohort_counts
    return AgeGroupCounts(
        children=cohorts.infant + cohorts.child,
        adults=cohorts.adult,
        seniors=cohorts.senior
    )


def build_age_distribution(snapshot: RegistrySnapshot,
                           reference_instant: datetime) -> AgeDistributionReport:
    """Residents per detailed age bracket, every bracket present."""
    reference_instant = to_naive_utc(reference_instant)
    counts: Counter = Counter(
        age_bracket(age_in_years(resident.birthdate, reference_instant))
        for resident in snapshot.residents
    )

    return AgeDistributionReport(
        reference_instant=reference_instant,
        zone_id=snapshot.scope.zone_id,
        total_residents=len(snapshot.residents),
        brackets=[
            AgeBracketCount(age_group=key, label=label, count=counts.get(key, 0))
            for key, label, _lowest, _highest in AGE_BRACKETS
        ]
    )


def age_distribution(registry: RegistryReader, scope: Scope,
                     reference_instant: datetime) -> AgeDistributionReport:
    """Detailed age distribution for a scope."""
    return build_age_distribution(load_snapshot(registry, scope), reference_instant)


def tally_registrations(households: Iterable[Household], residents: Iterable[Resident],
                        categories: Sequence[TrendCategory],
                        reference_instant: datetime) -> Dict[str, int]:
    """
    Counting variant of the pipeline used for trend windows.

    The caller has already restricted households and residents to the
    registration window; residents are classified at reference_instant.
    """
    counts: Dict[str, int] = {category.value: 0 for category in categories}

    if TrendCategory.HOUSEHOLDS in categories:
        counts[TrendCategory.HOUSEHOLDS.value] = sum(1 for _ in households)

    resident_categories = [c for c in categories if c != TrendCategory.HOUSEHOLDS]
    if not resident_categories:
        return counts

    for resident in residents:
        flags = classify(resident, reference_instant).flags
        matched = {
            TrendCategory.RESIDENTS: True,
            TrendCategory.SENIORS: flags.is_senior,
            TrendCategory.PWD: flags.is_pwd,
            TrendCategory.PREGNANT_PROXY: flags.is_pregnant_proxy,
            TrendCategory.INFANTS: flags.is_infant,
        }
        for category in resident_categories:
            if matched[category]:
                counts[category.value] += 1

    return counts
