"""
Wishlist Backend — Staff Sign-in Route
======================================

POST /api/auth/sign-in  [signIn]

Exchanges the staff login/password for a bearer token used on the
staff-only location routes.
"""

from fastapi import APIRouter, Depends

from wishlist.dependencies import get_auth_service
from wishlist.schemas.location import ErrorResponse, SignInRequest, TokenResponse
from wishlist.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/sign-in",
    response_model=TokenResponse,
    operation_id="signIn",
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Staff sign-in",
)
async def sign_in(
    body: SignInRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    token = auth_service.sign_in(body.login, body.password)
    return TokenResponse(token=token)
