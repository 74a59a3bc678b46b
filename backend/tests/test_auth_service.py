"""
Wishlist Backend — Auth Service Tests
=====================================

Staff sign-in and bearer token verification.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from wishlist.exceptions import AuthenticationError
from wishlist.services.auth_service import AuthService

STAFF_LOGIN = "staff"
STAFF_PASSWORD = "test-password"


class TestSignIn:
    def test_valid_credentials_return_token_for_staff(self, auth_service):
        token = auth_service.sign_in(STAFF_LOGIN, STAFF_PASSWORD)

        claims = auth_service.verify_token(token)
        assert claims["sub"] == STAFF_LOGIN
        assert claims["exp"] > claims["iat"]

    def test_wrong_password_rejected(self, auth_service):
        with pytest.raises(AuthenticationError, match="Invalid login or password"):
            auth_service.sign_in(STAFF_LOGIN, "nope")

    def test_wrong_login_rejected(self, auth_service):
        with pytest.raises(AuthenticationError):
            auth_service.sign_in("admin", STAFF_PASSWORD)

    def test_sign_in_disabled_without_password(self):
        service = AuthService(login="staff", password="", secret_key="k")

        assert service.enabled is False
        with pytest.raises(AuthenticationError, match="not configured"):
            service.sign_in("staff", "")


class TestVerifyToken:
    def test_missing_token(self, auth_service):
        with pytest.raises(AuthenticationError, match="Authentication required"):
            auth_service.verify_token(None)

    def test_garbage_token(self, auth_service):
        with pytest.raises(AuthenticationError, match="Could not validate"):
            auth_service.verify_token("not-a-jwt")

    def test_token_signed_with_other_key(self, auth_service):
        forged = jwt.encode(
            {"sub": STAFF_LOGIN, "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "another-key",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            auth_service.verify_token(forged)

    def test_expired_token(self, auth_service):
        expired = jwt.encode(
            {"sub": STAFF_LOGIN, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
            auth_service.secret_key,
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            auth_service.verify_token(expired)

    def test_token_for_other_subject(self, auth_service):
        token = jwt.encode(
            {"sub": "someone-else", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            auth_service.secret_key,
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            auth_service.verify_token(token)
