"""
api/routes/v1/users.py -- User directory REST endpoints.

Routes:
  GET    /api/v1/users        -- list users; optional page/limit and exact filters
  GET    /api/v1/users/{id}   -- one user
  POST   /api/v1/users        -- register a user (public)
  PUT    /api/v1/users/{id}   -- update name/document/email/password
  DELETE /api/v1/users/{id}   -- hard delete; returns the deleted record

Domain errors raised by UserDirectory (InvalidFormatError, ConflictError,
NotFoundError) are not caught here -- the exception handler in api/main.py
maps them to 400/409/404 with the shared error envelope.

Handlers are plain `def` so FastAPI runs the blocking store and bcrypt calls
in its threadpool.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import UserCreate, UserListResponse, UserResponse, UserUpdate
from auth.dependencies import get_current_user
from auth.directory import UserDirectory
from auth.models import User, UserPage

# Auth policy:
# - POST   /api/v1/users:        public -- self registration
# - GET    /api/v1/users:        requires auth (get_current_user)
# - GET    /api/v1/users/{id}:   requires auth (get_current_user)
# - PUT    /api/v1/users/{id}:   requires auth (get_current_user)
# - DELETE /api/v1/users/{id}:   requires auth (get_current_user)
router = APIRouter()


def _directory(request: Request) -> UserDirectory:
    return request.app.state.directory


@router.get("/users", response_model=UserListResponse)
def list_users(
    request: Request,
    page: Optional[int] = Query(default=None, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    name: Optional[str] = Query(default=None, max_length=150),
    document: Optional[str] = Query(default=None, max_length=20),
    email: Optional[str] = Query(default=None, max_length=150),
    current_user: User = Depends(get_current_user),
) -> UserListResponse:
    """List users. Pagination applies only when both page and limit are given."""
    filters: dict = {}
    if name is not None:
        filters["name"] = name
    if document is not None:
        filters["document"] = document
    if email is not None:
        filters["email"] = email

    result = _directory(request).find(page=page, limit=limit, filters=filters)
    if isinstance(result, UserPage):
        return UserListResponse(
            users=[UserResponse.from_user(u) for u in result.users],
            total=result.total,
            page=result.page,
            limit=result.limit,
        )
    return UserListResponse(users=[UserResponse.from_user(u) for u in result], total=len(result))


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    request: Request,
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    return UserResponse.from_user(_directory(request).find_one(user_id))


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request: Request, body: UserCreate) -> UserResponse:
    """Register a new user. The password is hashed before it is stored and never returned."""
    user = _directory(request).create(
        name=body.name,
        document=body.document,
        email=body.email,
        password=body.password,
    )
    return UserResponse.from_user(user)


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    request: Request,
    user_id: str,
    body: UserUpdate,
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Update the supplied fields only. Changing the password re-hashes it."""
    changes = body.model_dump(exclude_none=True)
    return UserResponse.from_user(_directory(request).update(user_id, **changes))


@router.delete("/users/{user_id}", response_model=UserResponse)
def delete_user(
    request: Request,
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Delete a user and return the record as it was before deletion."""
    return UserResponse.from_user(_directory(request).destroy(user_id))
