"""
auth/models.py -- Domain dataclasses for the user directory.

Pattern: Data class (pure data container, zero logic). The store maps rows to
these objects; the directory and the authentication flow do the work.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class User:
    """An identity record.

    document holds digits only -- punctuation is stripped before the record
    is written, so uniqueness is checked on the canonical form.

    password_hash is None on every read except the login lookup. The store
    excludes the column from default selects and callers must never echo it.
    """

    name: str
    document: str
    email: str
    id: str | None = None  # uuid4 string, assigned once at creation
    password_hash: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class UserPage:
    """One page of users plus the total number of matching records."""

    users: list[User] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 0
