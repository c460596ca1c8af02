# SPDX-License-Identifier: Apache-2.0

"""
Ports the reporting core needs from the outside world.

Only read access to the registry is required. Adapters must raise
RegistryUnavailable when the store cannot be queried and must never return
partial or guessed results in that case.
"""

from typing import Protocol, List, Dict, Any, runtime_checkable

from models.entities import Purok, Household, Resident
from .query import RegistryQuery


@runtime_checkable
class RegistryReader(Protocol):
    """
    Read-only registry access.

    Rules:
      - Each call returns a snapshot consistent at the instant of the call;
        no consistency across calls is assumed.
      - Soft-deleted records are never returned.
      - zone_id, household_ids and the created range of the query are
        applied where they make sense for the record type.
      - Failures raise RegistryUnavailable.
    """

    def list_zones(self, query: RegistryQuery) -> List[Purok]: ...

    def list_households(self, query: RegistryQuery) -> List[Household]: ...

    def list_residents(self, query: RegistryQuery) -> List[Resident]: ...

    def health_check(self) -> Dict[str, Any]: ...


__all__ = ["RegistryReader"]
