"""
auth/directory.py -- User directory: lookups and validated writes.

Write path invariants, checked in this order on create and update:
  1. document not used by another user          -> ConflictError
  2. document passes the CPF/CNPJ checksum       -> InvalidFormatError
  3. email not used by another user              -> ConflictError
  4. password hashed by PasswordHasher before it reaches the store

The checks are plain reads followed by a separate write. Nothing locks the
table in between, so two concurrent writers can both pass the checks; the
UNIQUE constraints in auth/store.py reject the loser and the IntegrityError is
translated here into the same ConflictError the pre-check would have raised.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError

from auth.models import User, UserPage
from auth.passwords import PasswordHasher
from auth.store import UserStore
from core.documents import clean_document, validate_document
from core.errors import ConflictError, InvalidFormatError, NotFoundError

logger = logging.getLogger("identity.directory")

_DOCUMENT_IN_USE = "The CPF/CNPJ provided is already used by another user."
_EMAIL_IN_USE = "The email provided is already used by another user."

_UPDATABLE_FIELDS = frozenset({"name", "document", "email", "password"})


# How a UNIQUE violation names the column. PostgreSQL and others report the
# constraint ("uq_users_document") and echo the offending value; SQLite reports
# only the column ("users.document"). Constraint names are tried first so a
# value like "users.document@x.com" cannot be mistaken for a column.
_CONFLICT_MARKERS = (
    ("uq_users_document", "document", _DOCUMENT_IN_USE),
    ("uq_users_email", "email", _EMAIL_IN_USE),
    ("users.document", "document", _DOCUMENT_IN_USE),
    ("users.email", "email", _EMAIL_IN_USE),
)


def _conflict_from_integrity(exc: IntegrityError) -> ConflictError:
    """Map a store UNIQUE violation to the matching ConflictError."""
    message = str(exc.orig).lower()
    for marker, field, text in _CONFLICT_MARKERS:
        if marker in message:
            return ConflictError(text, field=field)
    return ConflictError("The user conflicts with an existing record.")


class UserDirectory:
    """CRUD over users with uniqueness and document validation on every write."""

    def __init__(self, store: UserStore, hasher: PasswordHasher) -> None:
        self._store = store
        self._hasher = hasher

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find(
        self,
        page: int | None = None,
        limit: int | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[User] | UserPage:
        """Return users matching filters.

        With both page and limit: a UserPage holding at most limit users after
        skipping (page - 1) * limit, plus the total number of matches.
        Otherwise: a plain list of every match. A document filter is compared
        in its cleaned, digits-only form.
        """
        if filters and filters.get("document") is not None:
            filters = {**filters, "document": clean_document(filters["document"])}
        if page is None or limit is None:
            return self._store.find(filters)
        if page < 1 or limit < 1:
            raise ValueError("page and limit must both be >= 1")
        users, total = self._store.find_and_count(filters, skip=(page - 1) * limit, take=limit)
        return UserPage(users=users, total=total, page=page, limit=limit)

    def find_one(self, user_id: str) -> User:
        user = self._store.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, name: str, document: str, email: str, password: str) -> User:
        """Validate, hash and persist a new user. Returns the stored record (no hash)."""
        document = clean_document(document)

        if self._store.find({"document": document}):
            raise ConflictError(_DOCUMENT_IN_USE, field="document")
        if not validate_document(document):
            raise InvalidFormatError("The CPF/CNPJ provided is invalid.")
        if self._store.find({"email": email}):
            raise ConflictError(_EMAIL_IN_USE, field="email")

        user = User(name=name, document=document, email=email, password_hash=self._hasher.hash(password))
        try:
            user_id = self._store.create_user(user)
        except IntegrityError as exc:
            raise _conflict_from_integrity(exc) from exc

        logger.info("Created user %s", user_id)
        return self.find_one(user_id)

    def update(self, user_id: str, **changes) -> User:
        """Apply changes (name, document, email, password) to an existing user.

        Only supplied fields are validated. A document or email that already
        belongs to this same user is not a conflict. The password is re-hashed
        only when a non-empty new one is given.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")

        self.find_one(user_id)

        fields: dict[str, Any] = {}
        if changes.get("name") is not None:
            fields["name"] = changes["name"]

        if changes.get("document") is not None:
            document = clean_document(changes["document"])
            matches = self._store.find({"document": document})
            if any(u.id != user_id for u in matches):
                raise ConflictError(_DOCUMENT_IN_USE, field="document")
            if not validate_document(document):
                raise InvalidFormatError("The CPF/CNPJ provided is invalid.")
            fields["document"] = document

        if changes.get("email") is not None:
            matches = self._store.find({"email": changes["email"]})
            if any(u.id != user_id for u in matches):
                raise ConflictError(_EMAIL_IN_USE, field="email")
            fields["email"] = changes["email"]

        if changes.get("password"):
            fields["password_hash"] = self._hasher.hash(changes["password"])

        try:
            updated = self._store.update_user(user_id, **fields)
        except IntegrityError as exc:
            raise _conflict_from_integrity(exc) from exc
        if not updated:
            # Deleted between the existence check and the write.
            raise NotFoundError("User not found.")

        logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(fields)) or "timestamps only")
        return self.find_one(user_id)

    def destroy(self, user_id: str) -> User:
        """Hard-delete a user and return the record as it was just before deletion."""
        user = self.find_one(user_id)
        if not self._store.delete_user(user_id):
            # Deleted by someone else after the lookup.
            raise NotFoundError("User not found.")
        logger.info("Deleted user %s", user_id)
        return user
