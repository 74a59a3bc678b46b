"""
Wishlist Backend — Route Dependencies
=====================================

What:  FastAPI dependencies that hand the services built at startup to the
       route handlers, plus the staff bearer-token guard.
How:   The lifespan stores each service on app.state; these functions read
       them back from the request. Tests swap services with
       app.dependency_overrides.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from wishlist.services.auth_service import AuthService
from wishlist.services.location_service import LocationService
from wishlist.services.object_store import ObjectStore

# auto_error=False: a missing header reaches require_staff, which raises
# AuthenticationError so the response uses the common error body
bearer_scheme = HTTPBearer(auto_error=False)


def get_location_service(request: Request) -> LocationService:
    return request.app.state.location_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store


def require_staff(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Claims of the signed-in staff member; 401 without a valid token."""
    token = credentials.credentials if credentials else None
    return auth_service.verify_token(token)
