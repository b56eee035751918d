"""
core/errors.py -- Domain error taxonomy for the identity service.

Raised by the document validator, the user directory and the authentication
flow. They carry no HTTP knowledge: api/main.py maps each class to a status
code and an error code in a single exception handler.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

from __future__ import annotations


class IdentityError(Exception):
    """Base class for every expected, user-facing failure."""


class InvalidFormatError(IdentityError):
    """A tax identifier (CPF/CNPJ) is malformed or fails its checksum."""


class ConflictError(IdentityError):
    """A uniqueness rule (document or email) would be violated.

    field names the offending column so callers can point at it.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(IdentityError):
    """No user exists for the given id."""


class UnauthorizedError(IdentityError):
    """Login rejected. Never says whether the email or the password was wrong."""
