# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the barangay registry analytics API.
"""

from enum import Enum


class Sex(str, Enum):
    """Resident sex as recorded in the registry."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class OccupationStatus(str, Enum):
    """Resident occupation status enumeration."""
    EMPLOYED = "employed"
    UNEMPLOYED = "unemployed"
    STUDENT = "student"
    RETIRED = "retired"
    OTHER = "other"


class UserRole(str, Enum):
    """Caller roles handed over by the identity provider."""
    ADMIN = "admin"
    CAPTAIN = "captain"
    STAFF = "staff"
    VIEWER = "viewer"
    PUROK_LEADER = "purok_leader"


class Cohort(str, Enum):
    """Age-derived classification bucket."""
    INFANT = "infant"
    CHILD = "child"
    ADULT = "adult"
    SENIOR = "senior"


class ReportKind(str, Enum):
    """Report shapes served by the dashboard."""
    SUMMARY = "summary"
    ANALYTICS = "analytics"
    MONTHLY_REGISTRATIONS = "monthly_registrations"
    VULNERABLE_TRENDS = "vulnerable_trends"
    AGE_DISTRIBUTION = "age_distribution"


class TrendCategory(str, Enum):
    """Per-month registration counters available to trend series."""
    HOUSEHOLDS = "households"
    RESIDENTS = "residents"
    SENIORS = "seniors"
    PWD = "pwd"
    PREGNANT_PROXY = "pregnant_proxy"
    INFANTS = "infants"
