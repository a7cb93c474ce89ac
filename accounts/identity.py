"""
User identity: registration and authentication.

Handles:
- Registration (validation, uniqueness, hashing, persistence)
- Login (lookup, active check, password verification, token issuance)
- Lookup by id for callers holding validated claims

AuthService keeps no state beyond its collaborators and is safe to share
between threads as long as its repository is.
"""
import logging

from core import timestamps
from core.errors import (
    AccountDisabledError,
    AlreadyExistsError,
    APIError,
    InternalError,
    InvalidCredentialsError,
    RepositoryError,
    ValidationError,
)

from .config import PASSWORD_MIN_LENGTH, USERNAME_MAX_LENGTH, USERNAME_MIN_LENGTH
from .passwords import PasswordHasher
from .repository import UserRepository
from .roles import Role
from .tokens import TokenService
from .types import User

logger = logging.getLogger(__name__)


def _require(value: str | None, message: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(message)
    return value


class AuthService:
    """Registers users and logs them in.

    Args:
        repository: UserRepository implementation
        hasher: PasswordHasher
        tokens: TokenService used for login tokens
        password_min_length: Minimum password length in characters
        username_min_length / username_max_length: Username bounds
    """

    def __init__(
        self,
        repository: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenService,
        password_min_length: int = PASSWORD_MIN_LENGTH,
        username_min_length: int = USERNAME_MIN_LENGTH,
        username_max_length: int = USERNAME_MAX_LENGTH,
    ):
        if repository is None:
            raise ValueError("user repository is required")
        self.repository = repository
        self.hasher = hasher
        self.tokens = tokens
        self.password_min_length = password_min_length
        self.username_min_length = username_min_length
        self.username_max_length = username_max_length

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, username: str, email: str, password: str) -> User:
        """Create a new active user with role "user".

        Checks run in a fixed order and the first failure wins:
        username, email and password present; password length; username
        and email format; username free; email free.

        Returns:
            The persisted User. It carries the password hash, which callers
            must never serialize outward (use User.to_public_dict()).

        Raises:
            ValidationError: missing or malformed input
            AlreadyExistsError: username or email held by an active user
            RepositoryError / InternalError: storage or hashing failure
        """
        _require(username, "username is required")
        _require(email, "email is required")
        _require(password, "password is required")

        if len(password) < self.password_min_length:
            raise ValidationError(f"password must be at least {self.password_min_length} characters long")

        user = User(
            username=username.strip(),
            email=email.strip(),
            role=Role.USER,
            is_active=True,
        )
        user.validate(self.username_min_length, self.username_max_length)

        # Fast path for a clear error; create_user re-checks atomically.
        # Inactive holders do not block reuse.
        existing = self._lookup(self.repository.get_user_by_username, user.username)
        if existing is not None and existing.is_active:
            raise AlreadyExistsError("username already exists")
        existing = self._lookup(self.repository.get_user_by_email, user.email)
        if existing is not None and existing.is_active:
            raise AlreadyExistsError("email already exists")

        user.password_hash = self.hasher.hash(password)
        now = timestamps.now()
        user.created_at = now
        user.updated_at = now

        try:
            user = self.repository.create_user(user)
        except APIError:
            raise
        except InternalError:
            raise
        except Exception as e:
            raise RepositoryError("failed to create user") from e

        logger.info("User registered: %s (id=%s)", user.username, user.id)
        return user

    # =========================================================================
    # Authentication
    # =========================================================================

    def login(self, username: str, password: str) -> tuple[User, str]:
        """Authenticate and issue a token.

        Unknown username and wrong password raise the same
        InvalidCredentialsError. A disabled account gets its own error.

        Returns:
            (user, token) tuple
        """
        _require(username, "username is required")
        _require(password, "password is required")

        username = username.strip()
        user = self._lookup(self.repository.get_user_by_username, username)
        if user is None:
            logger.info("Login failed: %s", username)
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.warning("Login refused for disabled account: %s", username)
            raise AccountDisabledError()

        if not self.hasher.verify(password, user.password_hash):
            logger.info("Login failed: %s", username)
            raise InvalidCredentialsError()

        token = self.tokens.issue(user)
        logger.info("Login successful: %s", username)
        return user, token

    # =========================================================================
    # Lookup
    # =========================================================================

    def get_user(self, user_id: int) -> User | None:
        """Fetch a user by id (active or not); None if absent."""
        return self._lookup(self.repository.get_user_by_id, user_id)

    @staticmethod
    def _lookup(getter, key):
        try:
            return getter(key)
        except APIError:
            raise
        except InternalError:
            raise
        except Exception as e:
            raise RepositoryError("user lookup failed") from e
