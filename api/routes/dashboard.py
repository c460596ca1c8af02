# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Dashboard report endpoints.

Every endpoint is scoped to the caller: purok leaders only ever see their
assigned purok, administrative roles see the whole barangay.
"""

from flask import request, jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from models.entities import UserContext
from models.enums import ReportKind, UserRole
from models.requests import TrendWindowQuery, CacheInvalidationRequest
from models.responses import ProblemResponse
from services.reporting import DEFAULT_TREND_WINDOW_MONTHS
from middleware.auth import require_auth, require_role
from middleware.error_handler import ValidationException

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

dashboard_tag = Tag(name="Dashboard", description="Population reports and trends")
dashboard_bp = APIBlueprint(
    'dashboard',
    __name__,
    url_prefix='/api/dashboard',
    abp_tags=[dashboard_tag],
    abp_responses={401: ProblemResponse, 403: ProblemResponse, 503: ProblemResponse}
)

INVALID_REQUEST = {400: ProblemResponse}


def _report_response(report, kind: ReportKind):
    hal_formatter = current_app.hal_formatter
    return jsonify(hal_formatter.format_report(report, kind.value, request.full_path.rstrip('?'))), 200


def _trend_window() -> int:
    """Parse the months query parameter; pydantic errors become 400 responses."""
    params = TrendWindowQuery(**request.args.to_dict())
    return params.months or DEFAULT_TREND_WINDOW_MONTHS


@dashboard_bp.get('/summary')
@require_auth()
def get_summary(user_context: UserContext):
    """
    Dashboard summary.

    Households, residents, vulnerable groups, age cohorts and per-purok
    breakdown for the caller's scope.
    """
    report = current_app.reporting_service.summary(user_context)
    return _report_response(report, ReportKind.SUMMARY)


@dashboard_bp.get('/analytics')
@require_auth()
def get_analytics(user_context: UserContext):
    """
    Dashboard analytics.

    Households per purok, age groups and six-month registration trends.
    """
    report = current_app.reporting_service.analytics(user_context)
    return _report_response(report, ReportKind.ANALYTICS)


@dashboard_bp.get('/monthly-registrations', responses=INVALID_REQUEST)
@require_auth()
def get_monthly_registrations(user_context: UserContext):
    """
    Monthly registrations.

    Households and residents registered per month; months defaults to 12.
    """
    months = _trend_window()
    report = current_app.reporting_service.monthly_registrations(user_context, months=months)
    return _report_response(report, ReportKind.MONTHLY_REGISTRATIONS)


@dashboard_bp.get('/vulnerable-trends', responses=INVALID_REQUEST)
@require_auth()
def get_vulnerable_trends(user_context: UserContext):
    """
    Vulnerable population trends.

    Seniors, persons with disability, pregnancy proxy and infants registered
    per month; months defaults to 12.
    """
    months = _trend_window()
    report = current_app.reporting_service.vulnerable_trends(user_context, months=months)
    return _report_response(report, ReportKind.VULNERABLE_TRENDS)


@dashboard_bp.get('/age-distribution')
@require_auth()
def get_age_distribution(user_context: UserContext):
    """Residents per detailed age bracket."""
    report = current_app.reporting_service.age_distribution(user_context)
    return _report_response(report, ReportKind.AGE_DISTRIBUTION)


@dashboard_bp.post('/cache/invalidate', responses=INVALID_REQUEST)
@require_role(UserRole.ADMIN.value)
def invalidate_cache(user_context: UserContext):
    """
    Invalidate cached reports.

    Called by the registry after household or resident writes with the
    affected purok IDs, or with all=true to drop every cached report.
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationException("Request body must be a JSON object")

    invalidation = CacheInvalidationRequest.model_validate(body)
    reporting_service = current_app.reporting_service

    with tracer.start_as_current_span("dashboard.invalidate_cache") as span:
        if invalidation.invalidate_all:
            removed = reporting_service.clear_all()
        else:
            removed = reporting_service.notify_registry_change(invalidation.zone_ids)
        span.set_attributes({
            "cache.invalidate_all": invalidation.invalidate_all,
            "cache.removed": removed
        })

    logger.info(
        "Report cache invalidated",
        extra={
            "user_id": user_context.user_id,
            "zone_ids": invalidation.zone_ids,
            "invalidate_all": invalidation.invalidate_all,
            "removed": removed
        }
    )

    return jsonify({
        "status": "ok",
        "removed": removed,
        "zone_ids": invalidation.zone_ids,
        "all": invalidation.invalidate_all
    }), 200
