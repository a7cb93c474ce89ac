"""Shared pytest fixtures for the accounts tests."""
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Add project root to path
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)

# ---------------------------------------------------------------------------
# Deterministic test environment - set BEFORE any project module imports.
# A low PBKDF2 iteration count keeps registration/login fast under test.
# ---------------------------------------------------------------------------
os.environ.setdefault('TESTING', 'true')
os.environ.setdefault('JWT_SECRET', 'test-jwt-secret-for-pytest-32chars!')
os.environ.setdefault('PASSWORD_HASH_METHOD', 'pbkdf2:sha256:1000')
os.environ.setdefault('LOG_FORMAT', 'text')

from accounts import (  # noqa: E402
    AuthService,
    InMemoryUserRepository,
    PasswordHasher,
    Role,
    RoleService,
    TokenService,
    User,
)

TEST_SECRET = "unit-test-signing-secret-0123456789abcdef"
FAST_HASH_METHOD = "pbkdf2:sha256:1000"


class FakeClock:
    """Settable clock for TokenService."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def _reset_settings():
    """Reset the settings singleton between tests for isolation."""
    yield
    from config.settings import get_settings
    get_settings.cache_clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repo():
    return InMemoryUserRepository()


@pytest.fixture
def hasher():
    return PasswordHasher(method=FAST_HASH_METHOD)


@pytest.fixture
def tokens(clock):
    return TokenService(TEST_SECRET, clock=clock)


@pytest.fixture
def auth_service(repo, hasher, tokens):
    return AuthService(repo, hasher, tokens)


@pytest.fixture
def role_service(repo):
    return RoleService(repo)


@pytest.fixture
def make_user(repo, hasher):
    """Seed a user directly into the repository.

    Usage: make_user("alice", Role.ADMIN, password="Secret123!", is_active=False)
    """
    def _make(username, role=Role.USER, password=None, is_active=True):
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hasher.hash(password) if password else "",
            role=role,
            is_active=is_active,
        )
        return repo.add_user(user)
    return _make
