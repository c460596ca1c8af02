# SPDX-License-Identifier: Apache-2.0

"""
Visibility scope resolution.

This module turns a caller's (role, assigned purok) pair into a Scope value
that every report operation consumes the same way. Scopes are immutable and
built once per request.
"""

from dataclasses import dataclass
from typing import Optional, Union, FrozenSet

from models.enums import UserRole
from .errors import InvalidScopeConfiguration


UNRESTRICTED_ROLES: FrozenSet[str] = frozenset({
    UserRole.ADMIN.value,
    UserRole.CAPTAIN.value,
    UserRole.STAFF.value,
    UserRole.VIEWER.value,
})

ZONE_RESTRICTED_ROLES: FrozenSet[str] = frozenset({
    UserRole.PUROK_LEADER.value,
})


@dataclass(frozen=True)
class Unrestricted:
    """Scope that sees every purok."""

    @property
    def zone_id(self) -> Optional[str]:
        return None

    def permits(self, zone_id: Optional[str]) -> bool:
        return True

    def describe(self) -> str:
        return "all"


@dataclass(frozen=True)
class RestrictedToZone:
    """Scope limited to a single purok."""

    zone_id: str

    def __post_init__(self):
        if not self.zone_id:
            raise InvalidScopeConfiguration("Restricted scope requires a purok ID")

    def permits(self, zone_id: Optional[str]) -> bool:
        return zone_id is not None and zone_id == self.zone_id

    def describe(self) -> str:
        return f"purok:{self.zone_id}"


Scope = Union[Unrestricted, RestrictedToZone]

UNRESTRICTED = Unrestricted()


def resolve_scope(role: Optional[str], assigned_zone_id: Optional[str] = None) -> Scope:
    """
    Resolve the visibility scope for a caller.

    Args:
        role: Caller role from the identity provider
        assigned_zone_id: Purok assigned to the caller, if any

    Returns:
        Unrestricted for administrative roles, RestrictedToZone for purok leaders

    Raises:
        InvalidScopeConfiguration: Unknown role, or purok leader without a purok
    """
    normalized = (role or "").strip().lower()

    if normalized in UNRESTRICTED_ROLES:
        return UNRESTRICTED

    if normalized in ZONE_RESTRICTED_ROLES:
        zone_id = str(assigned_zone_id).strip() if assigned_zone_id is not None else ""
        if not zone_id:
            raise InvalidScopeConfiguration(
                "Purok leader must have an assigned purok",
                role=normalized
            )
        return RestrictedToZone(zone_id)

    raise InvalidScopeConfiguration(
        f"Role '{role}' has no reporting scope",
        role=normalized or None
    )
