# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and value objects for the registry analytics API.
"""

# Base models
from .base import RegistryEntity, ValueObject, utcnow, to_naive_utc

# Enumerations
from .enums import (
    Sex,
    OccupationStatus,
    UserRole,
    Cohort,
    ReportKind,
    TrendCategory
)

# Registry entities
from .entities import (
    Purok,
    Household,
    Resident,
    UserContext
)

# Report value objects
from .reports import (
    VulnerableCounts,
    CohortCounts,
    ZoneBreakdown,
    SummaryReport,
    TrendPoint,
    TrendSeries,
    AgeGroupCounts,
    AnalyticsReport,
    AgeBracketCount,
    AgeDistributionReport
)

# Request models
from .requests import TrendWindowQuery, CacheInvalidationRequest

# Response models
from .responses import HalLink, ProblemResponse

__all__ = [
    # Base models
    "RegistryEntity",
    "ValueObject",
    "utcnow",
    "to_naive_utc",

    # Enumerations
    "Sex",
    "OccupationStatus",
    "UserRole",
    "Cohort",
    "ReportKind",
    "TrendCategory",

    # Registry entities
    "Purok",
    "Household",
    "Resident",
    "UserContext",

    # Report value objects
    "VulnerableCounts",
    "CohortCounts",
    "ZoneBreakdown",
    "SummaryReport",
    "TrendPoint",
    "TrendSeries",
    "AgeGroupCounts",
    "AnalyticsReport",
    "AgeBracketCount",
    "AgeDistributionReport",

    # Request models
    "TrendWindowQuery",
    "CacheInvalidationRequest",

    # Response models
    "HalLink",
    "ProblemResponse"
]
