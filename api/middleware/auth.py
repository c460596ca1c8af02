# SPDX-License-Identifier: Apache-2.0

"""
Authentication middleware for JWT token validation and user context extraction.

This module provides Flask decorators that validate the bearer token, build
the caller's UserContext (role and assigned purok) and enforce role checks
for protected endpoints.
"""

from functools import wraps
from flask import request, jsonify, g, current_app
from typing import Optional, Dict, Any, Callable
from opentelemetry import trace
import logging

from models.entities import UserContext

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

PROBLEM_BASE = "https://api.barangay-registry.local/problems"


def _problem(slug: str, title: str, status: int, detail: str):
    return jsonify({
        "type": f"{PROBLEM_BASE}/{slug}",
        "title": title,
        "status": status,
        "detail": detail,
        "instance": request.path
    }), status


class AuthMiddleware:
    """
    JWT authentication middleware for Flask applications.

    Handles token extraction, validation and user context building for
    protected endpoints.
    """

    def __init__(self, auth_service):
        """
        Initialize the authentication middleware.

        Args:
            auth_service: JWT authentication service
        """
        self.auth_service = auth_service

    def extract_token_from_request(self) -> Optional[str]:
        """
        Extract JWT token from request headers.

        Returns:
            JWT token string or None if not found
        """
        auth_header = request.headers.get('Authorization', '').strip()

        if not auth_header:
            return None

        # Handle "Bearer <token>" format
        if auth_header.lower().startswith('bearer '):
            return auth_header[7:].strip() or None

        return auth_header

    def build_user_context(self, token_payload: Dict[str, Any],
                           request_info: Dict[str, Any]) -> UserContext:
        """
        Build user context from validated token payload and request information.

        Args:
            token_payload: Decoded JWT payload
            request_info: Request metadata (IP, user agent)

        Returns:
            UserContext object for request processing
        """
        assigned_purok = token_payload.get("purok_id")

        return UserContext(
            user_id=str(token_payload["sub"]),
            role=str(token_payload["role"]),
            assigned_purok_id=str(assigned_purok) if assigned_purok else None,
            name=token_payload.get("name"),
            token_payload=token_payload,
            ip_address=request_info.get("ip_address"),
            user_agent=request_info.get("user_agent")
        )

    def get_request_info(self) -> Dict[str, Any]:
        """Extract request metadata for user context."""
        return {
            "ip_address": request.remote_addr,
            "user_agent": request.headers.get('User-Agent', ''),
            "request_id": request.headers.get('X-Request-ID')
        }


def require_auth(auth_middleware: Optional[AuthMiddleware] = None) -> Callable:
    """
    Decorator to require JWT authentication for Flask routes.

    The decorated view receives the UserContext as its first argument.

    Args:
        auth_middleware: AuthMiddleware instance; defaults to current_app.auth_middleware

    Returns:
        Decorator function
    """
    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def decorated_function(*args, **kwargs):
            from services.auth import TokenValidationError

            middleware = auth_middleware or current_app.auth_middleware

            with tracer.start_as_current_span("auth.middleware.validate_request") as span:
                span.set_attribute("auth.operation", "validate_request")

                token = middleware.extract_token_from_request()
                if not token:
                    span.set_attribute("auth.result", "missing_token")
                    logger.warning("Authentication failed: missing token")
                    return _problem(
                        "authentication-required", "Authentication Required", 401,
                        "Missing authorization token"
                    )

                try:
                    token_payload = middleware.auth_service.validate_token(token, "access")
                except TokenValidationError as e:
                    span.set_attribute("auth.result", "invalid_token")
                    logger.warning(f"Authentication failed: {str(e)}")
                    return _problem("invalid-token", "Invalid Token", 401, str(e))

                user_context = middleware.build_user_context(
                    token_payload, middleware.get_request_info()
                )
                g.user_context = user_context

                span.set_attributes({
                    "auth.result": "success",
                    "user.id": user_context.user_id,
                    "user.role": user_context.role
                })

                logger.debug(
                    "Authentication successful",
                    extra={
                        "user_id": user_context.user_id,
                        "role": user_context.role,
                        "ip_address": user_context.ip_address
                    }
                )

            return f(user_context, *args, **kwargs)

        return decorated_function
    return decorator


def require_role(*roles: str, auth_middleware: Optional[AuthMiddleware] = None) -> Callable:
    """
    Decorator to require one of the given roles for Flask routes.

    Args:
        roles: Accepted role names
        auth_middleware: AuthMiddleware instance; defaults to current_app.auth_middleware

    Returns:
        Decorator function
    """
    allowed = {role.strip().lower() for role in roles}

    def decorator(f: Callable) -> Callable:
        @wraps(f)
        @require_auth(auth_middleware)
        def decorated_function(user_context: UserContext, *args, **kwargs):
            with tracer.start_as_current_span("auth.middleware.check_role") as span:
                span.set_attributes({
                    "auth.operation": "check_role",
                    "auth.required_roles": ",".join(sorted(allowed)),
                    "user.id": user_context.user_id
                })

                if user_context.role not in allowed:
                    span.set_attribute("auth.role_result", "denied")
                    logger.warning(
                        f"Authorization failed: role '{user_context.role}' not allowed",
                        extra={
                            "user_id": user_context.user_id,
                            "role": user_context.role,
                            "required_roles": sorted(allowed)
                        }
                    )
                    return _problem(
                        "insufficient-permissions", "Insufficient Permissions", 403,
                        f"Requires one of roles: {', '.join(sorted(allowed))}"
                    )

                span.set_attribute("auth.role_result", "granted")

            return f(user_context, *args, **kwargs)

        return decorated_function
    return decorator
