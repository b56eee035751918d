"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The credential a request must carry is chosen by
Settings.auth_default_strategy:
  "jwt"    -- Authorization: Bearer <token> header (API clients).
  "cookie" -- "access_token" httpOnly cookie set by POST /auth/login.

Both converge on a User object: the token is verified, then the embedded user
id is re-read from the store so a deleted account stops authenticating even
while its token has not expired.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.

auth/dependencies.py may import from fastapi (for HTTPException/Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import User


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:] or None
    return None


def _cookie_token(request: Request) -> str | None:
    return request.cookies.get("access_token") or None


_TOKEN_EXTRACTORS = {
    "jwt": _bearer_token,
    "cookie": _cookie_token,
}


def try_get_current_user(request: Request) -> User | None:
    """Attempt to authenticate the request with the configured strategy.

    Returns the authenticated User on success, None on any failure.
    Never raises -- callers that need a hard 401 should use get_current_user().
    """
    state = request.app.state
    token = _TOKEN_EXTRACTORS[state.settings.auth_default_strategy](request)
    if not token:
        return None
    payload = state.token_issuer.decode(token)
    if payload is None:
        return None
    return state.user_store.get_by_id(payload["user"]["id"])


def get_current_user(request: Request) -> User:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user
