"""
Wishlist Backend — Staff Authentication
=======================================

What:  Issues and verifies the bearer tokens that gate staff-only operations
       (approveLocation, rejectLocation, submittedLocations).
How:   A single staff account configured through STAFF_LOGIN/STAFF_PASSWORD.
       Successful sign-in returns an HS256 JWT signed with JWT_SECRET_KEY
       (python-jose); routes verify it through the require_staff dependency.
"""

import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from wishlist.config import Settings, settings as default_settings
from wishlist.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        login: str,
        password: str,
        secret_key: str,
        algorithm: str = "HS256",
        expiry_minutes: int = 720,
    ):
        self.login = login
        self.password = password
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expiry_minutes = expiry_minutes

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "AuthService":
        config = config or default_settings
        return cls(
            login=config.staff_login,
            password=config.staff_password,
            secret_key=config.jwt_secret_key,
            algorithm=config.jwt_algorithm,
            expiry_minutes=config.jwt_expiry_minutes,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.password and self.secret_key)

    def sign_in(self, login: Optional[str], password: Optional[str]) -> str:
        """
        Exchange staff credentials for an access token.

        Raises:
            AuthenticationError: wrong login or password, or sign-in is not
                configured (no password or secret key set).
        """
        if not self.enabled:
            logger.warning("Sign-in attempted but staff credentials are not configured")
            raise AuthenticationError(message="Staff sign-in is not configured")

        # compare_digest on both fields, no early exit on the login
        login_ok = hmac.compare_digest((login or "").encode(), self.login.encode())
        password_ok = hmac.compare_digest((password or "").encode(), self.password.encode())
        if not (login_ok and password_ok):
            logger.warning("Failed sign-in for login %r", login)
            raise AuthenticationError(message="Invalid login or password")

        now = datetime.now(timezone.utc)
        claims = {
            "sub": self.login,
            "iat": now,
            "exp": now + timedelta(minutes=self.expiry_minutes),
        }
        logger.info("Staff %r signed in", self.login)
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: Optional[str]) -> Dict[str, Any]:
        """Decoded claims of a valid token; AuthenticationError otherwise."""
        if not token:
            raise AuthenticationError(message="Authentication required")
        if not self.secret_key:
            raise AuthenticationError(message="Staff sign-in is not configured")

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise AuthenticationError(
                message="Could not validate credentials",
                context={"error_type": type(e).__name__},
            ) from e

        if payload.get("sub") != self.login:
            raise AuthenticationError(message="Could not validate credentials")
        return payload
