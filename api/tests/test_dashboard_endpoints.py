# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the dashboard report endpoints.
"""

import pytest

from services.auth import TokenValidationError


REPORT_ENDPOINTS = [
    "/api/dashboard/summary",
    "/api/dashboard/analytics",
    "/api/dashboard/monthly-registrations",
    "/api/dashboard/vulnerable-trends",
    "/api/dashboard/age-distribution",
]


class TestAuthentication:
    """Every report requires a valid bearer token."""

    @pytest.mark.parametrize("path", REPORT_ENDPOINTS)
    def test_missing_token(self, client, path):
        response = client.get(path)

        assert response.status_code == 401
        assert response.get_json()["type"].endswith("/authentication-required")

    def test_invalid_token(self, client, auth_service):
        auth_service.validate_token.side_effect = TokenValidationError("Token has expired")

        response = client.get("/api/dashboard/summary", headers={"Authorization": "Bearer stale"})

        assert response.status_code == 401
        assert response.get_json()["detail"] == "Token has expired"


class TestSummaryEndpoint:
    """Test GET /api/dashboard/summary."""

    def test_admin_sees_every_purok(self, client, login):
        response = client.get("/api/dashboard/summary", headers=login("admin"))
        data = response.get_json()

        assert response.status_code == 200
        assert data["status"] == "ok"
        assert data["report"] == "summary"
        assert data["data"]["total_households"] == 3
        assert data["data"]["total_residents"] == 5
        assert [z["zone_id"] for z in data["data"]["per_zone_breakdown"]] == ["P1", "P2", "P3"]
        assert data["_links"]["self"]["href"].endswith("/api/dashboard/summary")
        assert "age_distribution" in data["_links"]

    def test_leader_sees_only_assigned_purok(self, client, login):
        response = client.get("/api/dashboard/summary", headers=login("purok_leader", "P2"))
        data = response.get_json()["data"]

        assert response.status_code == 200
        assert data["zone_id"] == "P2"
        assert data["total_households"] == 1
        assert data["total_residents"] == 2
        assert [z["zone_id"] for z in data["per_zone_breakdown"]] == ["P2"]

    def test_leader_without_purok_forbidden(self, client, login):
        response = client.get("/api/dashboard/summary", headers=login("purok_leader"))
        data = response.get_json()

        assert response.status_code == 403
        assert data["type"].endswith("/invalid-scope-configuration")

    def test_unknown_role_forbidden(self, client, login):
        response = client.get("/api/dashboard/summary", headers=login("treasurer"))

        assert response.status_code == 403

    def test_empty_registry_reports_empty(self, make_app, empty_registry, login):
        client = make_app(empty_registry).test_client()

        response = client.get("/api/dashboard/summary", headers=login("admin"))
        data = response.get_json()

        assert response.status_code == 200
        assert data["status"] == "empty"
        assert data["data"]["total_residents"] == 0

    def test_registry_failure_is_retryable_error(self, make_app, failing_registry, login):
        client = make_app(failing_registry).test_client()

        response = client.get("/api/dashboard/summary", headers=login("admin"))
        data = response.get_json()

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "30"
        assert data["type"].endswith("/registry-unavailable")
        assert data["retryable"] is True
        assert "data" not in data

    def test_second_request_served_from_cache(self, client, login, two_zone_registry):
        headers = login("admin")
        client.get("/api/dashboard/summary", headers=headers)
        reads = len(two_zone_registry.calls)

        response = client.get("/api/dashboard/summary", headers=headers)

        assert response.status_code == 200
        assert len(two_zone_registry.calls) == reads


class TestTrendEndpoints:
    """Test the monthly trend endpoints."""

    @pytest.mark.parametrize("path, categories", [
        ("/api/dashboard/monthly-registrations", ["households", "residents"]),
        ("/api/dashboard/vulnerable-trends", ["seniors", "pwd", "pregnant_proxy", "infants"]),
    ])
    def test_default_window(self, client, login, path, categories):
        response = client.get(path, headers=login("admin"))
        data = response.get_json()["data"]

        assert response.status_code == 200
        assert data["window_months"] == 12
        assert len(data["points"]) == 12
        assert data["categories"] == categories

    def test_months_parameter(self, client, login):
        response = client.get("/api/dashboard/monthly-registrations?months=3", headers=login("admin"))
        data = response.get_json()

        assert response.status_code == 200
        assert len(data["data"]["points"]) == 3
        assert data["_links"]["self"]["href"].endswith("/api/dashboard/monthly-registrations?months=3")

    @pytest.mark.parametrize("months", ["0", "25", "abc"])
    def test_invalid_months(self, client, login, months):
        response = client.get(
            f"/api/dashboard/vulnerable-trends?months={months}", headers=login("admin")
        )
        data = response.get_json()

        assert response.status_code == 400
        assert data["type"].endswith("/validation-error")
        assert data["errors"][0]["field"] == "months"

    def test_leader_trend_scoped(self, client, login):
        response = client.get("/api/dashboard/monthly-registrations", headers=login("purok_leader", "P3"))
        data = response.get_json()

        assert response.status_code == 200
        assert data["data"]["zone_id"] == "P3"
        assert all(
            point["counts_by_category"] == {"households": 0, "residents": 0}
            for point in data["data"]["points"]
        )


class TestOtherReports:
    """Test analytics and age distribution."""

    def test_analytics(self, client, login):
        response = client.get("/api/dashboard/analytics", headers=login("staff"))
        data = response.get_json()["data"]

        assert response.status_code == 200
        assert data["total_residents"] == 5
        assert len(data["monthly_registrations"]["points"]) == 6
        assert len(data["vulnerable_trends"]["points"]) == 6

    def test_age_distribution(self, client, login):
        response = client.get("/api/dashboard/age-distribution", headers=login("purok_leader", "P1"))
        data = response.get_json()["data"]

        assert response.status_code == 200
        assert len(data["brackets"]) == 9
        assert sum(b["count"] for b in data["brackets"]) == data["total_residents"] == 3


class TestCacheInvalidation:
    """Test POST /api/dashboard/cache/invalidate."""

    def test_invalidate_zones(self, client, login, two_zone_registry):
        client.get("/api/dashboard/summary", headers=login("purok_leader", "P2"))
        headers = login("admin")

        response = client.post(
            "/api/dashboard/cache/invalidate", json={"zone_ids": ["P2"]}, headers=headers
        )
        data = response.get_json()

        assert response.status_code == 200
        assert data == {"status": "ok", "removed": 1, "zone_ids": ["P2"], "all": False}

    def test_invalidate_all(self, client, login):
        headers = login("admin")
        client.get("/api/dashboard/summary", headers=headers)
        client.get("/api/dashboard/age-distribution", headers=headers)

        response = client.post("/api/dashboard/cache/invalidate", json={"all": True}, headers=headers)

        assert response.status_code == 200
        assert response.get_json()["removed"] == 2

    def test_requires_admin(self, client, login):
        response = client.post(
            "/api/dashboard/cache/invalidate", json={"all": True}, headers=login("viewer")
        )

        assert response.status_code == 403
        assert response.get_json()["type"].endswith("/insufficient-permissions")

    @pytest.mark.parametrize("body", [
        {},
        {"zone_ids": ["P1"], "all": True},
        {"zone_ids": ["  "]},
        ["P1"],
    ])
    def test_invalid_body(self, client, login, body):
        response = client.post("/api/dashboard/cache/invalidate", json=body, headers=login("admin"))

        assert response.status_code == 400
        assert response.get_json()["type"].endswith("/validation-error")


class TestHealthEndpoint:
    """Test GET /api/healthz."""

    def test_healthy(self, client):
        response = client.get("/api/healthz")
        data = response.get_json()

        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert data["service"] == "barangay-analytics-api"
        assert data["checks"]["cache"]["backend"] == "memory"

    def test_registry_down(self, make_app, failing_registry):
        response = make_app(failing_registry).test_client().get("/api/healthz")

        assert response.status_code == 503
        assert response.get_json()["status"] == "unhealthy"


class TestOpenAPIDocument:
    """The generated OpenAPI document describes the dashboard."""

    def test_app_builds_with_route_tags(self, app):
        rules = {rule.rule for rule in app.url_map.iter_rules()}

        assert "/api/dashboard/summary" in rules
        assert "/api/healthz" in rules
        assert app.api_doc["paths"]["/api/healthz"]["get"]["tags"] == ["Health"]

    def test_paths_documented(self, app):
        paths = app.api_doc["paths"]

        for path in REPORT_ENDPOINTS:
            assert path in paths
        assert "/api/dashboard/cache/invalidate" in paths
        assert "503" in paths["/api/dashboard/summary"]["get"]["responses"]
