"""
Accounts: credentials, tokens and role-based authorization.

Public API:
- Services: AuthService, RoleService, TokenService, PasswordHasher
- Types: User, TokenClaims, Role
- Storage: UserRepository, InMemoryUserRepository, SQLiteUserRepository
- Wiring: create_services

Import Rules:
- External callers: Use `from accounts import X` (this facade)
- Internal accounts modules: Use `from .submodule import X` (direct imports)
"""

from .roles import Role
from .types import TokenClaims, User, is_valid_email

from .passwords import PasswordHasher
from .tokens import TokenService

from .repository import InMemoryUserRepository, UserRepository
from .database import SQLiteUserRepository

from .identity import AuthService
from .permissions import RoleService

from .factory import Services, create_services

__all__ = [
    "Role",
    "User",
    "TokenClaims",
    "is_valid_email",
    "PasswordHasher",
    "TokenService",
    "UserRepository",
    "InMemoryUserRepository",
    "SQLiteUserRepository",
    "AuthService",
    "RoleService",
    "Services",
    "create_services",
]
