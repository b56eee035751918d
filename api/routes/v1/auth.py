"""
api/routes/v1/auth.py -- Login and current-identity REST endpoints.

Routes:
  POST /api/v1/auth/login   -- email/password login; returns a signed JWT
  POST /api/v1/auth/logout  -- clears the access_token cookie; 200
  GET  /api/v1/auth/me      -- current user info (requires auth)

Security:
  AuthenticationFlow raises the same UnauthorizedError for an unknown email
  and for a wrong password; this route returns one "bad_credentials" body
  for both.
  Cache-Control: no-store on login responses.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, LoginRequest, TokenResponse, UserResponse
from auth.authentication import AuthenticationFlow
from auth.dependencies import get_current_user
from auth.models import User
from core.config import Settings
from core.errors import UnauthorizedError

router = APIRouter()


def _set_auth_cookie(response: JSONResponse, token: str, settings: Settings) -> None:
    """Write the JWT as an httpOnly cookie whose max_age matches the token expiry.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation for most cases.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    """
    response.set_cookie(
        "access_token",
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.token_expire_seconds,
    )


@router.post("/auth/login", response_model=TokenResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password.

    The token is always returned in the body. When the configured strategy is
    "cookie" it is also set as the access_token cookie.
    """
    settings: Settings = request.app.state.settings
    authenticator: AuthenticationFlow = request.app.state.authenticator
    try:
        token = authenticator.authenticate(body.email, body.password)
    except UnauthorizedError as exc:
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(error=ErrorDetail(code="bad_credentials", message=str(exc))).model_dump(),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(
        status_code=200,
        content=TokenResponse(
            token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=settings.token_expire_seconds,
        ).model_dump(),
    )
    if settings.auth_default_strategy == "cookie":
        _set_auth_cookie(resp, token, settings)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout")
async def logout() -> JSONResponse:
    """Clear the JWT cookie. Bearer tokens stay valid until they expire."""
    resp = JSONResponse(content={"message": "Logged out."})
    resp.delete_cookie("access_token")
    return resp


@router.get("/auth/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the currently authenticated user."""
    return UserResponse.from_user(current_user)
