# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Wraps report value objects and RFC 7807 problems with navigation links.
"""

from typing import Dict, List, Any, Optional
from urllib.parse import urljoin

from pydantic import BaseModel

from models.enums import ReportKind
from models.responses import HalLink

PROBLEM_BASE = "https://api.barangay-registry.local/problems"

REPORT_PATHS: Dict[str, str] = {
    ReportKind.SUMMARY.value: "/api/dashboard/summary",
    ReportKind.ANALYTICS.value: "/api/dashboard/analytics",
    ReportKind.MONTHLY_REGISTRATIONS.value: "/api/dashboard/monthly-registrations",
    ReportKind.VULNERABLE_TRENDS.value: "/api/dashboard/vulnerable-trends",
    ReportKind.AGE_DISTRIBUTION.value: "/api/dashboard/age-distribution",
}

STATUS_OK = "ok"
STATUS_EMPTY = "empty"


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        href = urljoin(self.base_url + '/', path.lstrip('/'))

        return HalLink(
            href=href,
            method=method,
            type=content_type,
            title=title,
            templated=templated or None
        )

    def build_self_link(self, resource_path: str) -> HalLink:
        """Build self link for a resource."""
        return self.build_link(resource_path, title="Self")


class HalResponseBuilder:
    """HAL response builder for reports and problems."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
        self.link_builder = HalLinkBuilder(base_url)

    def build_report_links(self, kind: str, self_path: str) -> Dict[str, HalLink]:
        """Self link plus links to every sibling dashboard report."""
        links = {'self': self.link_builder.build_self_link(self_path)}
        for other_kind, path in REPORT_PATHS.items():
            if other_kind == kind:
                continue
            templated = other_kind in (
                ReportKind.MONTHLY_REGISTRATIONS.value,
                ReportKind.VULNERABLE_TRENDS.value
            )
            links[other_kind] = self.link_builder.build_link(
                f"{path}{{?months}}" if templated else path,
                title=other_kind.replace('_', ' ').title(),
                templated=templated
            )
        return links

    def build_report_response(
        self,
        report: BaseModel,
        kind: str,
        self_path: str,
        is_empty: bool
    ) -> Dict[str, Any]:
        """
        Wrap a report value object.

        The status field separates a genuinely empty registry from a
        populated one; failures never reach this builder.
        """
        links = self.build_report_links(kind, self_path)
        return {
            'status': STATUS_EMPTY if is_empty else STATUS_OK,
            'report': kind,
            'data': report.model_dump(mode='json'),
            '_links': {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
        }

    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None,
        retryable: Optional[bool] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"{PROBLEM_BASE}/{error_type}",
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }

        if validation_errors:
            error_response['errors'] = validation_errors

        if retryable is not None:
            error_response['retryable'] = retryable

        links = {
            'help': self.link_builder.build_link(
                f"/docs/errors#{error_type}",
                title="Error documentation"
            )
        }

        if error_type == "validation-error":
            links['schema'] = self.link_builder.build_link(
                "/openapi/openapi.json",
                title="API schema"
            )
        elif error_type == "registry-unavailable":
            links['health'] = self.link_builder.build_link(
                "/api/healthz",
                title="Service health"
            )

        error_response['_links'] = {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
        return error_response


class HalFormatter:
    """High-level HAL formatter with convenience methods."""

    def __init__(self, base_url: str):
        self.builder = HalResponseBuilder(base_url)

    def format_report(self, report: BaseModel, kind: str, self_path: str) -> Dict[str, Any]:
        """Format a report; reports without is_empty are never considered empty."""
        is_empty = report.is_empty() if hasattr(report, 'is_empty') else False
        return self.builder.build_report_response(report, kind, self_path, is_empty)

    def format_validation_error(
        self,
        detail: str,
        instance: str,
        validation_errors: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Format a validation error response."""
        return self.builder.build_error_response(
            "validation-error",
            "Validation Error",
            400,
            detail,
            instance,
            validation_errors
        )

    def format_authentication_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format an authentication error response."""
        return self.builder.build_error_response(
            "authentication-required",
            "Authentication Required",
            401,
            detail,
            instance
        )

    def format_authorization_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format an authorization error response."""
        return self.builder.build_error_response(
            "insufficient-permissions",
            "Insufficient Permissions",
            403,
            detail,
            instance
        )

    def format_scope_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format an invalid scope configuration response."""
        return self.builder.build_error_response(
            "invalid-scope-configuration",
            "Invalid Scope Configuration",
            403,
            detail,
            instance
        )

    def format_registry_unavailable(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a retryable registry failure; distinct from an empty report."""
        return self.builder.build_error_response(
            "registry-unavailable",
            "Registry Unavailable",
            503,
            detail,
            instance,
            retryable=True
        )

    def format_not_found_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a not found error response."""
        return self.builder.build_error_response(
            "resource-not-found",
            "Resource Not Found",
            404,
            detail,
            instance
        )

    def format_server_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a server error response."""
        return self.builder.build_error_response(
            "internal-server-error",
            "Internal Server Error",
            500,
            detail,
            instance
        )
