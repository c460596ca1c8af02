# SPDX-License-Identifier: Apache-2.0

"""
Authentication service for JWT access token validation.

Tokens are issued by the registry's identity provider; this service only
verifies their RS256 signature and expiry and hands back the payload carrying
the caller's role and assigned purok.
"""

import os
import jwt
from typing import Optional, Dict, Any
from opentelemetry import trace
import logging

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ("sub", "role")


class TokenValidationError(Exception):
    """Raised when token validation fails."""
    pass


class AuthService:
    """JWT validation service with RS256 verification."""

    def __init__(self, public_key: Optional[str] = None, algorithm: Optional[str] = None):
        """
        Initialize the authentication service.

        Args:
            public_key: Public key for token verification (PEM format)
            algorithm: Signing algorithm, RS256 unless configured otherwise
        """
        self.public_key = public_key or os.getenv("JWT_PUBLIC_KEY")
        self.algorithm = algorithm or os.getenv("JWT_ALGORITHM", "RS256")

        if not self.public_key:
            logger.warning("No JWT_PUBLIC_KEY configured, every token will be rejected")

    def validate_token(self, token: str, token_type: str = "access") -> Dict[str, Any]:
        """
        Validate and decode a JWT token.

        Args:
            token: JWT token string to validate
            token_type: Expected token type when the token carries one

        Returns:
            Decoded token payload

        Raises:
            TokenValidationError: If token is invalid, expired or incomplete
        """
        with tracer.start_as_current_span("auth.validate_token") as span:
            span.set_attributes({
                "auth.operation": "validate_token",
                "auth.token_type": token_type
            })

            if not self.public_key:
                span.set_attribute("auth.validation_result", "unconfigured")
                raise TokenValidationError("Token verification key is not configured")

            try:
                payload = jwt.decode(
                    token,
                    self.public_key,
                    algorithms=[self.algorithm],
                    options={"verify_exp": True, "require": ["exp", "sub"]}
                )
            except jwt.ExpiredSignatureError:
                span.set_attribute("auth.validation_result", "expired")
                logger.warning("Token validation failed: token expired")
                raise TokenValidationError("Token has expired")
            except jwt.InvalidTokenError as e:
                span.set_attribute("auth.validation_result", "invalid")
                logger.warning(f"Token validation failed: {str(e)}")
                raise TokenValidationError(f"Invalid token: {str(e)}")

            if payload.get("type", token_type) != token_type:
                span.set_attribute("auth.validation_result", "wrong_type")
                raise TokenValidationError(f"Invalid token type. Expected {token_type}")

            missing = [claim for claim in REQUIRED_CLAIMS if not payload.get(claim)]
            if missing:
                span.set_attribute("auth.validation_result", "missing_claims")
                raise TokenValidationError(f"Token is missing claims: {', '.join(missing)}")

            span.set_attributes({
                "auth.validation_result": "success",
                "user.id": str(payload.get("sub")),
                "user.role": str(payload.get("role"))
            })

            logger.debug(
                "Token validated successfully",
                extra={
                    "user_id": payload.get("sub"),
                    "role": payload.get("role"),
                    "token_type": token_type
                }
            )

            return payload
