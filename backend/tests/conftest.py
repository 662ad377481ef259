"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules:
an in-memory user store, a token service with test secrets, and an app
wired to both through dependency overrides.
"""

import pytest
from datetime import datetime, timezone, timedelta
from typing import Any, Optional
from uuid import uuid4

import jwt  # PyJWT
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import get_auth_service, get_token_service, reset_container
from modules.auth.models import UserRecord
from modules.auth.passwords import hash_password
from modules.auth.repository import UserRepository
from modules.auth.service import AuthService
from modules.auth.tokens import TokenConfig, TokenService
from shared.models import UserRole


# Test secrets (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"
TEST_REFRESH_SECRET = "test-refresh-secret-for-testing-only"
TEST_ADMIN_SECRET = "test-admin-secret-for-testing-only"
TEST_PASSWORD = "correct-horse"


class InMemoryUserRepository(UserRepository):
    """UserRepository backed by a dict instead of Supabase."""

    def __init__(self) -> None:
        super().__init__(db=None)
        self.rows: dict[str, dict[str, Any]] = {}
        self.fail_with: Optional[Exception] = None

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        self._check()
        row = self.rows.get(user_id)
        return self._map_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        self._check()
        email = email.strip().lower()
        for row in self.rows.values():
            if row["email"] == email:
                return self._map_to_user(row)
        return None

    def has_role(self, role: str) -> bool:
        self._check()
        return any(row.get("role", "member") == role for row in self.rows.values())

    def create(self, data: dict[str, Any]) -> UserRecord:
        self._check()
        now = datetime.now(timezone.utc).isoformat()
        row = {
            "role": "member",
            "is_active": True,
            **data,
            "id": uuid4().hex,
            "email": data["email"].strip().lower(),
            "created_at": now,
            "updated_at": now,
        }
        self.rows[row["id"]] = row
        return self._map_to_user(row)

    def update(self, user_id: str, data: dict[str, Any]) -> Optional[UserRecord]:
        self._check()
        row = self.rows.get(user_id)
        if row is None:
            return None
        row.update(data, updated_at=datetime.now(timezone.utc).isoformat())
        return self._map_to_user(row)

    def touch_last_seen(self, user_id: str) -> Optional[UserRecord]:
        return self.update(user_id, {"last_seen": datetime.now(timezone.utc).isoformat()})


def create_test_token(
    user_id: str = "test-user-123",
    secret: str = TEST_JWT_SECRET,
    expired: bool = False,
    **claims: Any,
) -> str:
    """
    Create a signed token directly with PyJWT.

    Args:
        user_id: Value of the userId claim
        secret: Signing secret
        expired: If True, creates a token that expired an hour ago
        claims: Extra claims to include
    """
    now = datetime.now(timezone.utc)
    issued = now - timedelta(hours=2) if expired else now
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)
    payload = {
        "userId": user_id,
        "iat": int(issued.timestamp()),
        "exp": int(exp.timestamp()),
        "kind": "access",
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture(autouse=True)
def reset_services():
    """Reset the service container before and after each test."""
    reset_container()
    yield
    reset_container()


@pytest.fixture
def token_config() -> TokenConfig:
    return TokenConfig(
        access_secret=TEST_JWT_SECRET,
        access_ttl=timedelta(days=7),
        refresh_secret=TEST_REFRESH_SECRET,
        refresh_ttl=timedelta(days=30),
        admin_secret=TEST_ADMIN_SECRET,
        admin_ttl=timedelta(hours=24),
    )


@pytest.fixture
def token_service(token_config: TokenConfig) -> TokenService:
    return TokenService(token_config)


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def make_user(user_repo: InMemoryUserRepository):
    """Factory fixture that stores a user and returns its record."""

    def _make_user(
        email: str = "member@example.com",
        name: str = "Test Member",
        role: UserRole = UserRole.MEMBER,
        is_active: bool = True,
        password: str = TEST_PASSWORD,
        **fields: Any,
    ) -> UserRecord:
        return user_repo.create(
            {
                "name": name,
                "email": email,
                "password_hash": hash_password(password),
                "role": role.value,
                "is_active": is_active,
                **fields,
            }
        )

    return _make_user


@pytest.fixture
def auth_service(token_service: TokenService, user_repo: InMemoryUserRepository) -> AuthService:
    return AuthService(tokens=token_service, users=user_repo, min_password_length=6)


@pytest.fixture
def app(auth_service: AuthService, token_service: TokenService):
    """Create a fresh app wired to the in-memory user store."""
    application = create_app()
    application.dependency_overrides[get_auth_service] = lambda: auth_service
    application.dependency_overrides[get_token_service] = lambda: token_service
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_token():
    """Expose create_test_token to test modules."""
    return create_test_token


@pytest.fixture
def bearer():
    """Build an Authorization header for a token."""

    def _bearer(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _bearer
