"""
auth/authentication.py -- Email/password login that hands back a signed token.

Failure policy: an unknown email and a wrong password raise the same
UnauthorizedError with the same message, so the response never tells a caller
whether an email is registered.

Timing equalization: bcrypt runs on every attempt. For an unknown email it
runs against a dummy hash computed once at construction, so response time
does not reveal whether the email exists either.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from auth.models import User
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.errors import UnauthorizedError

logger = logging.getLogger("identity.auth")

_BAD_CREDENTIALS = "Invalid email or password."


def user_claims(user: User) -> dict[str, Any]:
    """Return a JSON-safe dict of the user's public fields (never the hash)."""
    return {
        "id": user.id,
        "name": user.name,
        "document": user.document,
        "email": user.email,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "updated_at": user.updated_at.isoformat() if user.updated_at else None,
    }


class AuthenticationFlow:
    """Composes the email lookup, password check and token issuance."""

    def __init__(self, store: UserStore, hasher: PasswordHasher, issuer: TokenIssuer) -> None:
        self._store = store
        self._hasher = hasher
        self._issuer = issuer
        self._dummy_hash = hasher.hash("identity_timing_dummy")

    def authenticate(self, email: str, password: str) -> str:
        """Return a signed token for valid credentials, else raise UnauthorizedError.

        The token's claims envelope is {"user": {...}} holding the user's
        public fields.
        """
        user = self._store.get_by_email(email, with_password=True)
        if user is None:
            # Equalize timing -- do NOT return early before running bcrypt.
            self._hasher.verify(password, self._dummy_hash)
            logger.info("Login rejected")
            raise UnauthorizedError(_BAD_CREDENTIALS)
        if not self._hasher.verify(password, user.password_hash):
            logger.info("Login rejected")
            raise UnauthorizedError(_BAD_CREDENTIALS)

        user = replace(user, password_hash=None)
        logger.info("Login: %s", user.id)
        return self._issuer.issue({"user": user_claims(user)})
