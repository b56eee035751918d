"""
auth/tokens.py -- JWT issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with Settings.secret_key and
       carry the caller's claims plus iat/exp. The expiry is fixed when the
       issuer is built; there is no per-call override, no refresh and no
       revocation.

  decode() returns None on any failure -- the dependency layer turns that
       into a 401.

  Settings are passed in explicitly rather than read at import time, so the
  module can be imported (and the issuer built) with test settings.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from core.config import Settings

ALGORITHM = "HS256"


class TokenIssuer:
    """Signs claims envelopes into time-bound JWTs."""

    def __init__(self, settings: Settings) -> None:
        self._secret_key = settings.secret_key
        self.expire_seconds = settings.token_expire_seconds

    def issue(self, claims: dict[str, Any]) -> str:
        """Encode claims into a signed JWT that expires after expire_seconds.

        claims must be JSON-serializable; iat and exp are added here and
        override any caller-supplied values.
        """
        now = datetime.now(timezone.utc)
        payload = dict(claims)
        payload["iat"] = now
        payload["exp"] = now + timedelta(seconds=self.expire_seconds)
        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)

    def decode(self, token: str) -> dict[str, Any] | None:
        """Decode and verify a JWT. Returns the payload dict or None on any failure."""
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[ALGORITHM])
        except JWTError:
            return None
        if not isinstance(payload.get("user"), dict) or "id" not in payload["user"]:
            return None
        return payload
