# SPDX-License-Identifier: Apache-2.0

"""
Immutable registry query values.

Each aggregation step derives the query it needs from a base query
with the with_* methods; the base is never modified, so filters cannot leak
from one metric into the next.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, FrozenSet, Iterable

from .scope import Scope


@dataclass(frozen=True)
class RegistryQuery:
    """Read-only query handed to a RegistryStore."""

    zone_id: Optional[str] = None
    household_ids: Optional[FrozenSet[str]] = None
    created_from: Optional[datetime] = None
    created_before: Optional[datetime] = None

    @classmethod
    def for_scope(cls, scope: Scope) -> "RegistryQuery":
        """Base query matching every record the scope may see."""
        return cls(zone_id=scope.zone_id)

    def with_households(self, household_ids: Iterable[str]) -> "RegistryQuery":
        return replace(self, household_ids=frozenset(household_ids))

    def with_created_range(self, created_from: Optional[datetime],
                           created_before: Optional[datetime]) -> "RegistryQuery":
        if created_from and created_before and created_from >= created_before:
            raise ValueError("created_from must be earlier than created_before")
        return replace(self, created_from=created_from, created_before=created_before)

    def matches_created(self, created_at: datetime) -> bool:
        """Half-open [created_from, created_before) test used by in-memory filtering."""
        if self.created_from is not None and created_at < self.created_from:
            return False
        if self.created_before is not None and created_at >= self.created_before:
            return False
        return True
