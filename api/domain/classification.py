# SPDX-License-Identifier: Apache-2.0

"""
Resident classification rules.

Pure functions mapping a resident and a reference instant to an age cohort
and vulnerability flags. No I/O and no shared mutable state, so they are safe
to run concurrently and in bulk.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Union, List, Tuple, Optional

from models.entities import Resident
from models.enums import Cohort, Sex, OccupationStatus

INFANT_MAX_AGE = 1
ADULT_MIN_AGE = 18
SENIOR_MIN_AGE = 60

# (key, label, lowest age, highest age) with inclusive bounds; None means open-ended
AGE_BRACKETS: List[Tuple[str, str, int, Optional[int]]] = [
    ("0-1", "Infant", 0, 0),
    ("1-3", "Toddler", 1, 3),
    ("4-5", "Preschooler", 4, 5),
    ("6-11", "Grade Schooler", 6, 11),
    ("12-17", "Teenager", 12, 17),
    ("18-25", "Young Adult", 18, 25),
    ("26-39", "Adult", 26, 39),
    ("40-59", "Middle-Aged Adult", 40, 59),
    ("60+", "Senior", 60, None),
]


@dataclass(frozen=True)
class VulnerabilityFlags:
    """Per-resident vulnerability flags; derived, never persisted."""
    is_senior: bool
    is_pwd: bool
    is_pregnant_proxy: bool
    is_infant: bool


@dataclass(frozen=True)
class Classification:
    """Result of classifying one resident at one instant."""
    age: int
    cohort: Cohort
    flags: VulnerabilityFlags


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def age_in_years(birthdate: date, reference_instant: Union[date, datetime]) -> int:
    """
    Whole years elapsed from birthdate to the reference date.

    A birthday counts from the day itself, so someone born exactly 60 years
    before the reference date is 60. Birthdates after the reference date
    yield 0.
    """
    reference = _as_date(reference_instant)
    years = reference.year - birthdate.year
    if (reference.month, reference.day) < (birthdate.month, birthdate.day):
        years -= 1
    return max(years, 0)


def cohort_for_age(age: int) -> Cohort:
    """Map an age in whole years to exactly one cohort."""
    if age < INFANT_MAX_AGE:
        return Cohort.INFANT
    if age < ADULT_MIN_AGE:
        return Cohort.CHILD
    if age < SENIOR_MIN_AGE:
        return Cohort.ADULT
    return Cohort.SENIOR


def is_pregnant_proxy(resident: Resident) -> bool:
    """
    PLACEHOLDER RULE, not a pregnancy indicator.

    The registry has no usable pregnancy field for reporting, so the
    dashboard counts female residents whose occupation status is 'other'.
    This knowingly overlaps with unrelated residents (infant girls included)
    and must be replaced once a real data field exists.
    """
    return (
        resident.sex == Sex.FEMALE.value
        and resident.occupation_status == OccupationStatus.OTHER.value
    )


def classify(resident: Resident, reference_instant: Union[date, datetime]) -> Classification:
    """
    Classify a resident at a reference instant.

    Args:
        resident: Registry resident record
        reference_instant: Instant ages are computed against

    Returns:
        Classification with age, cohort and vulnerability flags
    """
    age = age_in_years(resident.birthdate, reference_instant)
    cohort = cohort_for_age(age)

    flags = VulnerabilityFlags(
        is_senior=cohort == Cohort.SENIOR,
        is_pwd=bool(resident.is_pwd),
        is_pregnant_proxy=is_pregnant_proxy(resident),
        is_infant=cohort == Cohort.INFANT,
    )

    return Classification(age=age, cohort=cohort, flags=flags)


def age_bracket(age: int) -> str:
    """Key of the detailed age bracket containing age."""
    for key, _label, lowest, highest in AGE_BRACKETS:
        if age >= lowest and (highest is None or age <= highest):
            return key
    # Only reachable for negative ages, which age_in_years never returns
    return AGE_BRACKETS[0][0]
