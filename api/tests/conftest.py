# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest
from datetime import datetime, date
from typing import Dict, Optional
from unittest.mock import MagicMock

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'
os.environ['REPORT_CACHE_BACKEND'] = 'memory'
os.environ.pop('REDIS_URL', None)

from models.entities import Purok, Household
from fakes import InMemoryRegistry, FailingRegistry, make_resident


@pytest.fixture
def reference_instant():
    """Fixed reference instant for deterministic reports."""
    return datetime(2025, 6, 15, 12, 0, 0)


@pytest.fixture
def example_registry():
    """
    One purok P1 with two households.

    H1: a 65 year old man and a 6 month old girl with occupation 'other'.
    H2: a 40 year old man with a disability.
    """
    return InMemoryRegistry(
        zones=[Purok(id="P1", name="Purok 1", code="P-1", created_at=datetime(2024, 1, 1))],
        households=[
            Household(id="H1", purok_id="P1", created_at=datetime(2025, 1, 10, 9, 0)),
            Household(id="H2", purok_id="P1", created_at=datetime(2025, 4, 5, 14, 30)),
        ],
        residents=[
            make_resident("R1", "H1", date(1960, 3, 1), sex="male", occupation_status="retired",
                          created_at=datetime(2025, 1, 10, 9, 0)),
            make_resident("R2", "H1", date(2024, 12, 15), sex="female", occupation_status="other",
                          created_at=datetime(2025, 1, 10, 9, 5)),
            make_resident("R3", "H2", date(1985, 1, 10), sex="male", is_pwd=True,
                          created_at=datetime(2025, 4, 5, 14, 30)),
        ]
    )


@pytest.fixture
def two_zone_registry(example_registry):
    """The example registry plus purok P2 with one household and an empty purok P3."""
    example_registry.zones.extend([
        Purok(id="P2", name="Purok 2", code="P-2", created_at=datetime(2024, 1, 1)),
        Purok(id="P3", name="Purok 3", code="P-3", created_at=datetime(2024, 1, 1)),
    ])
    example_registry.households.append(
        Household(id="H3", purok_id="P2", created_at=datetime(2025, 5, 20, 8, 0))
    )
    example_registry.residents.extend([
        make_resident("R4", "H3", date(1950, 7, 1), sex="female", occupation_status="retired",
                      created_at=datetime(2025, 5, 20, 8, 0)),
        make_resident("R5", "H3", date(2010, 2, 2), sex="male", occupation_status="student",
                      created_at=datetime(2025, 5, 20, 8, 0)),
    ])
    return example_registry


@pytest.fixture
def empty_registry():
    """Registry with no records at all."""
    return InMemoryRegistry()


@pytest.fixture
def failing_registry():
    """Registry that cannot be read."""
    return FailingRegistry()


@pytest.fixture
def auth_service():
    """Token validator stub; tests set the payload through login()."""
    service = MagicMock()
    service.validate_token.return_value = {"sub": "user-1", "role": "admin"}
    return service


@pytest.fixture
def report_cache():
    """Fresh in-memory report cache."""
    from services.cache import ReportCache, InMemoryCacheBackend
    return ReportCache(InMemoryCacheBackend())


@pytest.fixture
def make_app(auth_service, report_cache):
    """Factory building the Flask app around a given registry."""
    from app import create_app

    def _make(registry, cache=None):
        application = create_app(
            registry=registry,
            report_cache=cache or report_cache,
            auth_service=auth_service
        )
        application.config['TESTING'] = True
        return application

    return _make


@pytest.fixture
def app(make_app, two_zone_registry):
    """Flask app over the two-purok registry."""
    return make_app(two_zone_registry)


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def login(auth_service):
    """Make the next requests authenticate as the given caller; returns request headers."""
    def _login(role: str, purok_id: Optional[str] = None, user_id: str = "user-1") -> Dict[str, str]:
        payload = {"sub": user_id, "role": role, "type": "access"}
        if purok_id is not None:
            payload["purok_id"] = purok_id
        auth_service.validate_token.return_value = payload
        return {"Authorization": "Bearer test-token"}

    return _login
