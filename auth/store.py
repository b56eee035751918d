"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper. Directory and route
code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  The password column is left out of every select unless the caller asks for
  it explicitly (with_password=True) -- only the login lookup does.

Uniqueness:
  document and email carry named UNIQUE constraints. The directory checks
  both before writing, but two concurrent writers can pass the check at the
  same time; the constraint rejects the second insert with IntegrityError,
  which the directory translates into ConflictError.

Timeouts:
  SQLite: the driver's busy timeout. Other backends: the pool checkout timeout.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    and_,
    create_engine,
    event,
    func,
    select,
    text,
)
from sqlalchemy.engine import Engine

from auth.models import User
from core.config import DEFAULT_DATABASE_URL

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(150)),
    Column("document", String(20), nullable=False),
    Column("email", String(150), nullable=False),
    Column("password", String(150), nullable=False),  # bcrypt hash, never plaintext
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint("document", name="uq_users_document"),
    UniqueConstraint("email", name="uq_users_email"),
)

# Columns returned by default reads -- everything but the password hash.
_PUBLIC_COLUMNS = [c for c in _users.c if c.name != "password"]

# Columns a filter may reference. Checked before any SQL is built.
FILTERABLE_FIELDS = frozenset({"id", "name", "document", "email", "created_at", "updated_at"})

# Columns update_user() may write. id and created_at are immutable.
_MUTABLE_FIELDS = frozenset({"name", "document", "email", "password_hash"})


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _filter_clause(filters: dict[str, Any] | None):
    """Build an AND of exact-match predicates. Unknown keys raise ValueError."""
    if not filters:
        return None
    unknown = set(filters) - FILTERABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown user filter fields: {sorted(unknown)!r}")
    return and_(*(_users.c[name] == value for name, value in filters.items()))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        user_id = store.create_user(User(name="Ana", document="52998224725",
                                         email="ana@example.com", password_hash=digest))
        user = store.get_by_id(user_id)
        store.close()
    """

    def __init__(self, db_url: str = DEFAULT_DATABASE_URL, timeout: float = 30.0) -> None:
        connect_args: dict = {}
        engine_kwargs: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            connect_args["timeout"] = timeout
        else:
            engine_kwargs["pool_timeout"] = timeout
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find(self, filters: dict[str, Any] | None = None) -> list[User]:
        """Return every user matching the exact-match filters, oldest first."""
        stmt = select(*_PUBLIC_COLUMNS).order_by(_users.c.created_at, _users.c.id)
        clause = _filter_clause(filters)
        if clause is not None:
            stmt = stmt.where(clause)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_user(r) for r in rows]

    def find_and_count(self, filters: dict[str, Any] | None, skip: int, take: int) -> tuple[list[User], int]:
        """Return (one window of matching users, total matching count)."""
        clause = _filter_clause(filters)
        stmt = select(*_PUBLIC_COLUMNS).order_by(_users.c.created_at, _users.c.id).offset(skip).limit(take)
        count_stmt = select(func.count()).select_from(_users)
        if clause is not None:
            stmt = stmt.where(clause)
            count_stmt = count_stmt.where(clause)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
            total = conn.execute(count_stmt).scalar()
        return [_row_to_user(r) for r in rows], total or 0

    def get_by_id(self, user_id: str, with_password: bool = False) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        columns = list(_users.c) if with_password else _PUBLIC_COLUMNS
        with self.engine.connect() as conn:
            row = conn.execute(select(*columns).where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str, with_password: bool = False) -> User | None:
        """Look up the single user with this exact email. Returns None if not found."""
        columns = list(_users.c) if with_password else _PUBLIC_COLUMNS
        with self.engine.connect() as conn:
            row = conn.execute(select(*columns).where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> str:
        """Insert a new user and return its generated id.

        Raises sqlalchemy.exc.IntegrityError if the document or email already
        exists, or if password_hash is missing.
        """
        user_id = str(uuid.uuid4())
        now = _utcnow()
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    name=user.name,
                    document=user.document,
                    email=user.email,
                    password=user.password_hash,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return user_id

    def update_user(self, user_id: str, **fields) -> bool:
        """Update mutable fields on an existing user and refresh updated_at.

        Accepted fields: name, document, email, password_hash.
        Returns True if a row was updated, False if user_id was not found.
        Raises IntegrityError on a uniqueness violation.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
        values = {("password" if k == "password_hash" else k): v for k, v in fields.items()}
        values["updated_at"] = _utcnow()
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: str) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    # password is only present when the select asked for it.
    mapping = row._mapping
    return User(
        id=row.id,
        name=row.name,
        document=row.document,
        email=row.email,
        password_hash=mapping.get("password"),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
