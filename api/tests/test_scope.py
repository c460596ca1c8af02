# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for visibility scope resolution and query specifications.
"""

import pytest
from datetime import datetime

from domain.errors import InvalidScopeConfiguration
from domain.query import RegistryQuery
from domain.scope import resolve_scope, Unrestricted, RestrictedToZone, UNRESTRICTED


class TestResolveScope:
    """Test role to scope mapping."""

    @pytest.mark.parametrize("role", ["admin", "captain", "staff", "viewer", " ADMIN "])
    def test_administrative_roles_are_unrestricted(self, role):
        scope = resolve_scope(role)

        assert isinstance(scope, Unrestricted)
        assert scope.zone_id is None
        assert scope.permits("anything") is True
        assert scope.permits(None) is True

    def test_administrative_role_ignores_assigned_purok(self):
        assert resolve_scope("admin", "P1") == UNRESTRICTED

    def test_purok_leader_is_restricted(self):
        scope = resolve_scope("purok_leader", "P1")

        assert scope == RestrictedToZone("P1")
        assert scope.permits("P1") is True
        assert scope.permits("P2") is False
        assert scope.permits(None) is False
        assert scope.describe() == "purok:P1"

    @pytest.mark.parametrize("assigned", [None, "", "   "])
    def test_purok_leader_without_purok_fails(self, assigned):
        """A leader without a purok is never widened to unrestricted."""
        with pytest.raises(InvalidScopeConfiguration) as exc_info:
            resolve_scope("purok_leader", assigned)

        assert "must have an assigned purok" in str(exc_info.value)
        assert exc_info.value.role == "purok_leader"

    @pytest.mark.parametrize("role", ["resident", "", None])
    def test_unknown_role_fails(self, role):
        with pytest.raises(InvalidScopeConfiguration):
            resolve_scope(role, "P1")

    def test_restricted_scope_requires_zone(self):
        with pytest.raises(InvalidScopeConfiguration):
            RestrictedToZone("")


class TestRegistryQuery:
    """Test immutable query derivation."""

    def test_for_scope(self):
        assert RegistryQuery.for_scope(UNRESTRICTED).zone_id is None
        assert RegistryQuery.for_scope(RestrictedToZone("P1")).zone_id == "P1"

    def test_derivation_leaves_base_untouched(self):
        base = RegistryQuery.for_scope(RestrictedToZone("P1"))
        derived = base.with_households(["H1", "H2"]).with_created_range(
            datetime(2025, 1, 1), datetime(2025, 2, 1)
        )

        assert base.household_ids is None
        assert base.created_from is None
        assert derived.zone_id == "P1"
        assert derived.household_ids == frozenset({"H1", "H2"})

    def test_created_range_is_half_open(self):
        query = RegistryQuery().with_created_range(datetime(2025, 1, 1), datetime(2025, 2, 1))

        assert query.matches_created(datetime(2025, 1, 1)) is True
        assert query.matches_created(datetime(2025, 1, 31, 23, 59, 59)) is True
        assert query.matches_created(datetime(2025, 2, 1)) is False
        assert query.matches_created(datetime(2024, 12, 31)) is False

    def test_inverted_range_rejected(self):
        with pytest.raises(ValueError):
            RegistryQuery().with_created_range(datetime(2025, 2, 1), datetime(2025, 1, 1))
