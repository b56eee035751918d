"""
API request and response models for the identity service REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Separation of concerns: auth/ models = domain truth; api/ models = API contract.
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from auth.models import User
from auth.passwords import MAX_PASSWORD_BYTES, password_too_long

# Deliberately loose -- deliverability is not checked, only the shape.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _check_password_bytes(value: str) -> str:
    if password_too_long(value):
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes in UTF-8")
    return value


# max_length counts characters; bcrypt counts UTF-8 bytes, so both limits apply.
_Password = Annotated[str, AfterValidator(_check_password_bytes)]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: str = Field(min_length=3, max_length=150)
    password: _Password = Field(min_length=1, max_length=64)


class TokenResponse(BaseModel):
    """Response for a successful login."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Request body for POST /api/v1/users.

    document accepts punctuation ("529.982.247-25"); the directory strips it
    before the uniqueness and checksum checks.
    """

    name: str = Field(min_length=1, max_length=150)
    document: str = Field(min_length=1, max_length=20)
    email: str = Field(min_length=3, max_length=150, pattern=EMAIL_PATTERN)
    password: _Password = Field(min_length=6, max_length=64)


class UserUpdate(BaseModel):
    """Request body for PUT /api/v1/users/{id}. Omitted fields are left untouched."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    document: Optional[str] = Field(default=None, min_length=1, max_length=20)
    email: Optional[str] = Field(default=None, min_length=3, max_length=150, pattern=EMAIL_PATTERN)
    password: Optional[_Password] = Field(default=None, min_length=6, max_length=64)


class UserResponse(BaseModel):
    """Public view of a user. There is no password field by construction."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str]
    document: str
    email: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Build a UserResponse from a domain User (Factory Method)."""
        return cls(
            id=user.id,
            name=user.name,
            document=user.document,
            email=user.email,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserListResponse(BaseModel):
    """Response for GET /api/v1/users.

    page and limit are null when the request was not paginated; total is then
    simply the number of users returned.
    """

    model_config = ConfigDict(frozen=True)

    users: list[UserResponse]
    total: int
    page: Optional[int] = None
    limit: Optional[int] = None


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
