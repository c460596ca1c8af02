# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with structured HAL responses.
Provides centralized error handling and formatting for Flask applications.
"""

from flask import Flask, request
from werkzeug.exceptions import HTTPException
from pydantic import ValidationError
from typing import Dict, Any, Tuple, List
from opentelemetry import trace
import logging

from domain.errors import InvalidScopeConfiguration, RegistryUnavailable
from services.hal import HalFormatter

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 30

CLIENT_ERRORS = {
    400: ("bad-request", "Bad Request"),
    401: ("authentication-required", "Authentication Required"),
    403: ("insufficient-permissions", "Insufficient Permissions"),
    404: ("resource-not-found", "Resource Not Found"),
    405: ("method-not-allowed", "Method Not Allowed"),
    415: ("unsupported-media-type", "Unsupported Media Type"),
}

SERVER_ERRORS = {
    500: ("internal-server-error", "Internal Server Error"),
    503: ("service-unavailable", "Service Unavailable"),
}


def format_validation_errors(error: ValidationError) -> List[Dict[str, Any]]:
    """Flatten pydantic errors into field/message pairs."""
    return [
        {
            "field": ".".join(str(part) for part in item.get("loc", ())) or None,
            "message": item.get("msg"),
            "type": item.get("type")
        }
        for item in error.errors()
    ]


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with HAL response formatting."""

    def __init__(self, app: Flask, base_url: str):
        self.app = app
        self.hal_formatter = HalFormatter(base_url)
        self.retry_after = int(app.config.get('REGISTRY_RETRY_AFTER_SECONDS', DEFAULT_RETRY_AFTER_SECONDS))
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(InvalidScopeConfiguration)
        def handle_invalid_scope(error):
            return self.handle_scope_error(error)

        @self.app.errorhandler(RegistryUnavailable)
        def handle_registry_unavailable(error):
            return self.handle_registry_error(error)

        @self.app.errorhandler(ValidationError)
        def handle_validation_error(error):
            return self.handle_request_validation_error(error)

        @self.app.errorhandler(CustomException)
        def handle_custom_exception(error):
            return self.handle_custom_error(error)

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error):
            if error.code in SERVER_ERRORS:
                error_type, title = SERVER_ERRORS[error.code]
                return self.handle_server_error(error, error_type, title)
            error_type, title = CLIENT_ERRORS.get(
                error.code, ("http-error", error.name or "HTTP Error")
            )
            return self.handle_client_error(error, error_type, title)

        # Handle generic exceptions
        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            return self.handle_unexpected_error(error)

    def handle_scope_error(self, error: InvalidScopeConfiguration) -> Tuple[Dict[str, Any], int]:
        """A caller whose role cannot be scoped gets no report at all."""
        with tracer.start_as_current_span("error_handler.scope_error") as span:
            span.set_attributes({
                "error.type": "invalid-scope-configuration",
                "error.status": 403,
                "http.path": request.path
            })

            logger.warning(
                f"Invalid scope configuration: {error}",
                extra={
                    "error_type": "invalid-scope-configuration",
                    "role": error.role,
                    "path": request.path,
                    "method": request.method
                }
            )

            return self.hal_formatter.format_scope_error(str(error), request.path), 403

    def handle_registry_error(self, error: RegistryUnavailable):
        """Registry failures are retryable and never masked as empty reports."""
        with tracer.start_as_current_span("error_handler.registry_unavailable") as span:
            span.set_attributes({
                "error.type": "registry-unavailable",
                "error.status": 503,
                "http.path": request.path
            })

            logger.error(
                f"Registry unavailable: {error}",
                extra={
                    "error_type": "registry-unavailable",
                    "operation": error.operation,
                    "path": request.path,
                    "method": request.method
                }
            )

            detail = "The population registry could not be read. Retry shortly."
            return (
                self.hal_formatter.format_registry_unavailable(detail, request.path),
                503,
                {"Retry-After": str(self.retry_after)}
            )

    def handle_request_validation_error(self, error: ValidationError) -> Tuple[Dict[str, Any], int]:
        """Invalid query parameters or request bodies."""
        errors = format_validation_errors(error)

        logger.warning(
            "Request validation failed",
            extra={
                "error_type": "validation-error",
                "errors": errors,
                "path": request.path,
                "method": request.method
            }
        )

        return self.hal_formatter.format_validation_error(
            "Request validation failed", request.path, errors
        ), 400

    def handle_custom_error(self, error: "CustomException") -> Tuple[Dict[str, Any], int]:
        """Application exceptions raised by route handlers."""
        with tracer.start_as_current_span("error_handler.custom_exception") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            logger.warning(
                f"Custom exception: {error.error_type}",
                extra={
                    "error_type": error.error_type,
                    "status_code": error.status_code,
                    "error_message": error.message,
                    "path": request.path,
                    "method": request.method
                }
            )

            if isinstance(error, ValidationException):
                error_response = self.hal_formatter.format_validation_error(
                    error.message,
                    request.path,
                    error.validation_errors
                )
            else:
                error_response = self.hal_formatter.format_server_error(error.message, request.path)

            return error_response, error.status_code

    def handle_client_error(
        self,
        error: HTTPException,
        error_type: str,
        title: str
    ) -> Tuple[Dict[str, Any], int]:
        """
        Handle client errors (4xx status codes).

        Args:
            error: HTTP exception
            error_type: Error type identifier
            title: Error title

        Returns:
            Tuple of (error response dict, status code)
        """
        with tracer.start_as_current_span("error_handler.client_error") as span:
            span.set_attributes({
                "error.type": error_type,
                "error.status": error.code,
                "http.method": request.method,
                "http.path": request.path
            })

            detail = str(error.description) if error.description else title

            logger.warning(
                f"Client error: {title}",
                extra={
                    "error_type": error_type,
                    "status_code": error.code,
                    "detail": detail,
                    "path": request.path,
                    "method": request.method,
                    "user_agent": request.headers.get('User-Agent'),
                    "ip_address": request.remote_addr
                }
            )

            if error_type == "authentication-required":
                error_response = self.hal_formatter.format_authentication_error(detail, request.path)
            elif error_type == "insufficient-permissions":
                error_response = self.hal_formatter.format_authorization_error(detail, request.path)
            elif error_type == "resource-not-found":
                error_response = self.hal_formatter.format_not_found_error(detail, request.path)
            else:
                error_response = self.hal_formatter.builder.build_error_response(
                    error_type,
                    title,
                    error.code,
                    detail,
                    request.path
                )

            return error_response, error.code

    def handle_server_error(
        self,
        error: HTTPException,
        error_type: str,
        title: str
    ) -> Tuple[Dict[str, Any], int]:
        """Handle server errors (5xx status codes)."""
        with tracer.start_as_current_span("error_handler.server_error") as span:
            span.set_attributes({
                "error.type": error_type,
                "error.status": error.code,
                "http.method": request.method,
                "http.path": request.path
            })

            detail = str(error.description) if error.description else title

            logger.error(
                f"Server error: {title}",
                extra={
                    "error_type": error_type,
                    "status_code": error.code,
                    "detail": detail,
                    "path": request.path,
                    "method": request.method
                },
                exc_info=True
            )

            # Don't expose internal error details in production
            if self.app.config.get('ENV') == 'production':
                detail = "An internal server error occurred"

            error_response = self.hal_formatter.builder.build_error_response(
                error_type, title, error.code, detail, request.path
            )

            return error_response, error.code

    def handle_unexpected_error(self, error: Exception) -> Tuple[Dict[str, Any], int]:
        """
        Handle unexpected exceptions not caught by specific handlers.

        Args:
            error: Unexpected exception

        Returns:
            Tuple of (error response dict, status code)
        """
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })

            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "error_type": "unexpected-error",
                    "error_class": error.__class__.__name__,
                    "error_message": str(error),
                    "path": request.path,
                    "method": request.method
                },
                exc_info=True
            )

            # Don't expose internal error details
            detail = "An unexpected error occurred"
            if self.app.config.get('ENV') != 'production':
                detail = f"{error.__class__.__name__}: {str(error)}"

            error_response = self.hal_formatter.format_server_error(detail, request.path)

            return error_response, 500


class CustomException(Exception):
    """Base class for custom application exceptions."""

    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type


class ValidationException(CustomException):
    """Exception for validation errors."""

    def __init__(self, message: str, validation_errors: list = None):
        super().__init__(message, 400, "validation-error")
        self.validation_errors = validation_errors or []
