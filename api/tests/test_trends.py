# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for monthly trend series and composite analytics.
"""

import pytest
from datetime import datetime, date, timezone, timedelta

from domain.analytics import build_analytics
from domain.errors import RegistryUnavailable
from domain.scope import UNRESTRICTED, RestrictedToZone
from domain.trends import (
    month_windows, generate_trend, REGISTRATION_CATEGORIES, VULNERABLE_CATEGORIES
)
from models.entities import Household
from fakes import make_resident


def counts(series, category):
    return [point.counts_by_category[category] for point in series.points]


class TestMonthWindows:
    """Test month grid generation."""

    def test_labels_oldest_first(self, reference_instant):
        windows = month_windows(reference_instant, 6)

        assert [w.label for w in windows] == [
            "2025-01", "2025-02", "2025-03", "2025-04", "2025-05", "2025-06"
        ]

    def test_year_rollover(self):
        windows = month_windows(datetime(2025, 2, 10), 4)

        assert [w.label for w in windows] == ["2024-11", "2024-12", "2025-01", "2025-02"]
        assert windows[1].start == datetime(2024, 12, 1)
        assert windows[1].end == datetime(2025, 1, 1)

    def test_windows_are_contiguous(self, reference_instant):
        windows = month_windows(reference_instant, 24)

        assert len({w.label for w in windows}) == 24
        for previous, current in zip(windows, windows[1:]):
            assert previous.end == current.start

    def test_reference_instants(self, reference_instant):
        windows = month_windows(reference_instant, 2)

        assert windows[0].reference_instant == datetime(2025, 5, 31, 23, 59, 59, 999999)
        assert windows[1].reference_instant == reference_instant

    def test_aware_anchor_normalized_to_utc(self):
        anchor = datetime(2025, 7, 1, 2, 0, tzinfo=timezone(timedelta(hours=8)))

        assert month_windows(anchor, 1)[0].label == "2025-06"

    @pytest.mark.parametrize("window", [0, -3])
    def test_non_positive_window_rejected(self, reference_instant, window):
        with pytest.raises(ValueError):
            month_windows(reference_instant, window)


class TestGenerateTrend:
    """Test registration trend series."""

    def test_six_points_with_zero_months_present(self, example_registry, reference_instant):
        series = generate_trend(example_registry, UNRESTRICTED, REGISTRATION_CATEGORIES, 6, reference_instant)

        assert series.window_months == 6
        assert len(series.points) == 6
        assert [p.month_label for p in series.points][0] == "2025-01"
        assert counts(series, "households") == [1, 0, 0, 1, 0, 0]
        assert counts(series, "residents") == [2, 0, 0, 1, 0, 0]

    def test_vulnerable_categories(self, example_registry, reference_instant):
        series = generate_trend(example_registry, UNRESTRICTED, VULNERABLE_CATEGORIES, 6, reference_instant)

        assert series.categories == ["seniors", "pwd", "pregnant_proxy", "infants"]
        assert counts(series, "seniors") == [1, 0, 0, 0, 0, 0]
        assert counts(series, "infants") == [1, 0, 0, 0, 0, 0]
        assert counts(series, "pregnant_proxy") == [1, 0, 0, 0, 0, 0]
        assert counts(series, "pwd") == [0, 0, 0, 1, 0, 0]

    def test_restricted_trend_isolated(self, two_zone_registry, reference_instant):
        series = generate_trend(
            two_zone_registry, RestrictedToZone("P2"), REGISTRATION_CATEGORIES, 6, reference_instant
        )

        assert series.zone_id == "P2"
        assert counts(series, "households") == [0, 0, 0, 0, 1, 0]
        assert counts(series, "residents") == [0, 0, 0, 0, 2, 0]

    def test_month_boundaries_half_open(self, example_registry, reference_instant):
        example_registry.residents.extend([
            make_resident("RB1", "H2", date(1990, 1, 1), created_at=datetime(2025, 5, 31, 23, 59, 59)),
            make_resident("RB2", "H2", date(1990, 1, 1), created_at=datetime(2025, 6, 1, 0, 0, 0)),
        ])

        series = generate_trend(example_registry, UNRESTRICTED, ["residents"], 2, reference_instant)

        assert counts(series, "residents") == [1, 1]

    def test_households_only_skips_resident_reads(self, example_registry, reference_instant):
        generate_trend(example_registry, UNRESTRICTED, ["households"], 3, reference_instant)

        assert all(kind == "households" for kind, _ in example_registry.calls)

    def test_single_month_window(self, example_registry, reference_instant):
        series = generate_trend(example_registry, UNRESTRICTED, ["residents"], 1, reference_instant)

        assert [p.month_label for p in series.points] == ["2025-06"]

    def test_duplicate_categories_collapsed(self, example_registry, reference_instant):
        series = generate_trend(
            example_registry, UNRESTRICTED, ["pwd", "pwd", "seniors"], 2, reference_instant
        )

        assert series.categories == ["pwd", "seniors"]

    def test_invalid_arguments(self, example_registry, reference_instant):
        with pytest.raises(ValueError):
            generate_trend(example_registry, UNRESTRICTED, [], 6, reference_instant)
        with pytest.raises(ValueError):
            generate_trend(example_registry, UNRESTRICTED, ["residents"], 0, reference_instant)
        with pytest.raises(ValueError):
            generate_trend(example_registry, UNRESTRICTED, ["votes"], 6, reference_instant)

    def test_deterministic(self, two_zone_registry, reference_instant):
        first = generate_trend(two_zone_registry, UNRESTRICTED, VULNERABLE_CATEGORIES, 12, reference_instant)
        second = generate_trend(two_zone_registry, UNRESTRICTED, VULNERABLE_CATEGORIES, 12, reference_instant)

        assert first == second

    def test_registry_failure_propagates(self, failing_registry, reference_instant):
        with pytest.raises(RegistryUnavailable):
            generate_trend(failing_registry, UNRESTRICTED, REGISTRATION_CATEGORIES, 6, reference_instant)

    def test_empty_registry_all_zero(self, empty_registry, reference_instant):
        series = generate_trend(empty_registry, UNRESTRICTED, REGISTRATION_CATEGORIES, 12, reference_instant)

        assert len(series.points) == 12
        assert series.totals() == {"households": 0, "residents": 0}

    def test_unzoned_household_registrations_counted_unrestricted(self, example_registry, reference_instant):
        example_registry.households.append(
            Household(id="H9", purok_id=None, created_at=datetime(2025, 6, 2))
        )

        unrestricted = generate_trend(example_registry, UNRESTRICTED, ["households"], 1, reference_instant)
        restricted = generate_trend(example_registry, RestrictedToZone("P1"), ["households"], 1, reference_instant)

        assert counts(unrestricted, "households") == [1]
        assert counts(restricted, "households") == [0]


class TestBuildAnalytics:
    """Test the composite analytics report."""

    def test_analytics(self, two_zone_registry, reference_instant):
        report = build_analytics(two_zone_registry, UNRESTRICTED, reference_instant)

        assert report.total_households == 3
        assert report.total_residents == 5
        assert [z.zone_id for z in report.households_by_zone] == ["P1", "P2", "P3"]
        assert report.residents_by_age_group.seniors == 2
        assert report.monthly_registrations.categories == ["residents"]
        assert len(report.monthly_registrations.points) == 6
        assert report.vulnerable_trends.categories == ["seniors", "pwd", "infants"]
        assert report.monthly_registrations.totals() == {"residents": 5}

    def test_analytics_restricted(self, two_zone_registry, reference_instant):
        report = build_analytics(two_zone_registry, RestrictedToZone("P1"), reference_instant)

        assert report.zone_id == "P1"
        assert report.total_residents == 3
        assert report.monthly_registrations.totals() == {"residents": 3}
        assert report.vulnerable_trends.totals() == {"seniors": 1, "pwd": 1, "infants": 1}
