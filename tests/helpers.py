"""
tests/helpers.py -- Constants and builders shared by several test modules.

Kept out of conftest.py so test modules can import them directly.
"""

from __future__ import annotations

from auth.models import User
from auth.store import UserStore
from core.config import Settings

TEST_SECRET = "test-secret-key-" + "x" * 32

# Known-good identifiers used across the suite.
VALID_CPF = "52998224725"
VALID_CPF_2 = "58032508058"
VALID_CPF_3 = "23277728005"
VALID_CNPJ = "11222333000181"


def make_settings(**overrides) -> Settings:
    values = {"secret_key": TEST_SECRET, "bcrypt_rounds": 4, "debug": False}
    values.update(overrides)
    return Settings(**values)


def make_user(store: UserStore, index: int, password_hash: str = "not-a-real-hash") -> str:
    """Insert a user directly through the store and return its id.

    The store does not validate documents, so synthetic unique values are fine
    for tests that only care about reads.
    """
    return store.create_user(
        User(
            name=f"User {index:03d}",
            document=f"{index:011d}",
            email=f"user{index:03d}@example.com",
            password_hash=password_hash,
        )
    )
