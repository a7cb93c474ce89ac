"""
Wiring: build the account services from settings.

The signing secret is read here and handed to TokenService; no other
module holds it.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta

from config.settings import AppSettings, get_settings

from .database import SQLiteUserRepository
from .identity import AuthService
from .passwords import PasswordHasher
from .permissions import RoleService
from .repository import InMemoryUserRepository, UserRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """The account services sharing one repository."""
    repository: UserRepository
    hasher: PasswordHasher
    tokens: TokenService
    auth: AuthService
    roles: RoleService


def create_repository(settings: AppSettings) -> UserRepository:
    kind = settings.database.user_repository.lower()
    if kind == "memory":
        return InMemoryUserRepository()
    if kind == "sqlite":
        return SQLiteUserRepository(settings.database.auth_db_path)
    raise ValueError(f"unknown user repository: {settings.database.user_repository!r}")


def create_services(settings: AppSettings | None = None, repository: UserRepository | None = None) -> Services:
    """Build AuthService/RoleService and their collaborators.

    Args:
        settings: Defaults to get_settings()
        repository: Use this repository instead of the configured one
    """
    settings = settings or get_settings()
    auth_cfg = settings.auth

    if repository is None:
        repository = create_repository(settings)

    hasher = PasswordHasher(
        method=auth_cfg.password_hash_method,
        salt_length=auth_cfg.password_salt_length,
    )
    tokens = TokenService(
        secret=auth_cfg.jwt_secret.get_secret_value(),
        algorithm=auth_cfg.jwt_algorithm,
        lifetime=timedelta(hours=auth_cfg.jwt_expiration_hours),
    )
    auth = AuthService(
        repository,
        hasher,
        tokens,
        password_min_length=auth_cfg.password_min_length,
        username_min_length=auth_cfg.username_min_length,
        username_max_length=auth_cfg.username_max_length,
    )
    logger.debug("Account services created with %s", type(repository).__name__)
    return Services(
        repository=repository,
        hasher=hasher,
        tokens=tokens,
        auth=auth,
        roles=RoleService(repository),
    )
