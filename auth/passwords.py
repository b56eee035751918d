"""
auth/passwords.py -- Password hashing (bcrypt -- direct usage, no passlib wrapper).

Bcrypt is the right choice for low-entropy secrets because its cost factor
makes brute-force expensive. Every hash carries its own random salt, so
hashing the same password twice yields two different digests that both verify.

bcrypt only reads the first 72 bytes of its input (and bcrypt 5 refuses
anything longer). The limit is in UTF-8 bytes, not characters: hash() rejects
an oversized password with InvalidFormatError and verify() treats one as a
mismatch, so two passwords sharing a 72-byte prefix never verify against each
other. The API models enforce the same limit before a request gets here.
"""

from __future__ import annotations

import bcrypt

from core.errors import InvalidFormatError

DEFAULT_ROUNDS = 12
MAX_PASSWORD_BYTES = 72


def password_too_long(plain: str) -> bool:
    """True when plain exceeds bcrypt's input limit once encoded as UTF-8."""
    return len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES


class PasswordHasher:
    """One-way hashing and constant-time comparison of user passwords.

    Usage:
        hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
        digest = hasher.hash("s3cret")
        hasher.verify("s3cret", digest)  # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        """Return a salted bcrypt hash of the given plaintext password."""
        if password_too_long(plain):
            raise InvalidFormatError(f"The password must be at most {MAX_PASSWORD_BYTES} bytes long.")
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str | None) -> bool:
        """Return True if the plaintext matches the hash. Never raises on a bad digest."""
        if not hashed or password_too_long(plain):
            return False
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False
