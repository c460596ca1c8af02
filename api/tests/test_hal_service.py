# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for HAL response formatting utilities.
"""

from datetime import datetime

from services.hal import HalLinkBuilder, HalFormatter, PROBLEM_BASE, REPORT_PATHS
from models.responses import HalLink
from models.reports import SummaryReport, TrendSeries, TrendPoint


class TestHalLinkBuilder:
    """Test HAL link builder functionality."""

    def test_build_basic_link(self):
        """Test building a basic HAL link."""
        builder = HalLinkBuilder("https://api.example.com")

        link = builder.build_link("/api/dashboard/summary")

        assert isinstance(link, HalLink)
        assert link.href == "https://api.example.com/api/dashboard/summary"
        assert link.method == "GET"
        assert link.type is None
        assert "templated" not in link.model_dump(exclude_none=True)

    def test_templated_flag_only_when_set(self):
        builder = HalLinkBuilder("https://api.example.com")

        link = builder.build_link("/api/dashboard/monthly-registrations{?months}", templated=True)

        assert link.model_dump(exclude_none=True)["templated"] is True

    def test_build_self_link_keeps_query(self):
        builder = HalLinkBuilder("https://api.example.com/")

        link = builder.build_self_link("/api/dashboard/vulnerable-trends?months=6")

        assert link.href == "https://api.example.com/api/dashboard/vulnerable-trends?months=6"
        assert link.title == "Self"


class TestHalFormatter:
    """Test report and problem formatting."""

    def setup_method(self):
        self.formatter = HalFormatter("https://api.example.com")

    def test_format_report(self):
        report = SummaryReport(reference_instant=datetime(2025, 6, 15, 12), total_households=2)

        body = self.formatter.format_report(report, "summary", "/api/dashboard/summary")

        assert body["status"] == "ok"
        assert body["report"] == "summary"
        assert body["data"]["reference_instant"] == "2025-06-15T12:00:00"
        assert set(body["_links"]) == {"self"} | (set(REPORT_PATHS) - {"summary"})
        assert body["_links"]["monthly_registrations"]["templated"] is True
        assert body["_links"]["monthly_registrations"]["href"].endswith("{?months}")
        assert "templated" not in body["_links"]["analytics"]

    def test_empty_report_flagged(self):
        report = SummaryReport(reference_instant=datetime(2025, 6, 15, 12))

        body = self.formatter.format_report(report, "summary", "/api/dashboard/summary")

        assert body["status"] == "empty"

    def test_trend_series_is_never_empty(self):
        """Trend series carry zero-count months rather than an empty status."""
        series = TrendSeries(
            anchor_instant=datetime(2025, 6, 15, 12),
            window_months=1,
            categories=["residents"],
            points=[TrendPoint(month_label="2025-06", counts_by_category={"residents": 0})]
        )

        body = self.formatter.format_report(series, "monthly_registrations", "/api/dashboard/monthly-registrations")

        assert body["status"] == "ok"

    def test_registry_unavailable_problem(self):
        problem = self.formatter.format_registry_unavailable("retry later", "/api/dashboard/summary")

        assert problem["type"] == f"{PROBLEM_BASE}/registry-unavailable"
        assert problem["status"] == 503
        assert problem["retryable"] is True
        assert problem["_links"]["health"]["href"] == "https://api.example.com/api/healthz"

    def test_validation_problem(self):
        errors = [{"field": "months", "message": "too large", "type": "less_than_equal"}]

        problem = self.formatter.format_validation_error("Request validation failed", "/x", errors)

        assert problem["status"] == 400
        assert problem["errors"] == errors
        assert "schema" in problem["_links"]

    def test_scope_problem(self):
        problem = self.formatter.format_scope_error("no purok", "/api/dashboard/summary")

        assert problem["status"] == 403
        assert problem["type"].endswith("/invalid-scope-configuration")
        assert "retryable" not in problem
