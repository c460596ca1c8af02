# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for JWT access token validation.
"""

import pytest
import jwt
from datetime import datetime, timedelta, timezone
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from services.auth import AuthService, TokenValidationError


def generate_key_pair():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    ).decode()
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    ).decode()
    return private_pem, public_pem


@pytest.fixture(scope="module")
def key_pair():
    return generate_key_pair()


@pytest.fixture
def auth(key_pair):
    return AuthService(public_key=key_pair[1])


def issue(private_pem, expires_in=timedelta(minutes=15), **claims):
    payload = {
        "sub": "user-1",
        "role": "purok_leader",
        "purok_id": "P1",
        "type": "access",
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    payload.update(claims)
    return jwt.encode({k: v for k, v in payload.items() if v is not None}, private_pem, algorithm="RS256")


class TestAuthService:
    """Test access token validation."""

    def test_valid_token(self, auth, key_pair):
        payload = auth.validate_token(issue(key_pair[0]))

        assert payload["sub"] == "user-1"
        assert payload["role"] == "purok_leader"
        assert payload["purok_id"] == "P1"

    def test_expired_token(self, auth, key_pair):
        with pytest.raises(TokenValidationError, match="expired"):
            auth.validate_token(issue(key_pair[0], expires_in=timedelta(minutes=-1)))

    def test_foreign_signature(self, auth):
        other_private, _ = generate_key_pair()

        with pytest.raises(TokenValidationError, match="Invalid token"):
            auth.validate_token(issue(other_private))

    def test_wrong_token_type(self, auth, key_pair):
        with pytest.raises(TokenValidationError, match="type"):
            auth.validate_token(issue(key_pair[0], type="refresh"))

    def test_token_without_type_accepted(self, auth, key_pair):
        assert auth.validate_token(issue(key_pair[0], type=None))["sub"] == "user-1"

    def test_missing_role(self, auth, key_pair):
        with pytest.raises(TokenValidationError, match="role"):
            auth.validate_token(issue(key_pair[0], role=None))

    def test_unconfigured_key_rejects_everything(self, key_pair, monkeypatch):
        monkeypatch.delenv("JWT_PUBLIC_KEY", raising=False)

        with pytest.raises(TokenValidationError):
            AuthService().validate_token(issue(key_pair[0]))
