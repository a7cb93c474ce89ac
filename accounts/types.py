"""
Auth domain types - depend only on roles/config, never on services.

NOTE: Keep this minimal. Only add types here if they are shared by the
services, the repositories and the HTTP adapter.
"""
import re
from dataclasses import dataclass, field, replace
from datetime import datetime

from core.errors import ValidationError

from .config import EMAIL_MAX_LENGTH, USERNAME_MAX_LENGTH, USERNAME_MIN_LENGTH
from .roles import Role

# Dot-separated atoms on both sides; no leading, trailing or doubled dots,
# a TLD of at least two letters. Good enough for "RFC-5322-ish".
_EMAIL_RE = re.compile(
    r"[A-Za-z0-9_%+\-]+(?:\.[A-Za-z0-9_%+\-]+)*"
    r"@"
    r"(?:[A-Za-z0-9](?:[A-Za-z0-9\-]*[A-Za-z0-9])?\.)+[A-Za-z]{2,}"
)


def is_valid_email(email: str) -> bool:
    if not email or len(email) > EMAIL_MAX_LENGTH:
        return False
    return _EMAIL_RE.fullmatch(email) is not None


@dataclass
class User:
    """User record as stored by a UserRepository.

    password_hash is excluded from repr and from to_public_dict(); callers
    must never serialize it outward.
    """
    username: str
    email: str
    password_hash: str = field(default="", repr=False)
    role: Role = Role.USER
    is_active: bool = True
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def validate(
        self,
        min_username_length: int = USERNAME_MIN_LENGTH,
        max_username_length: int = USERNAME_MAX_LENGTH,
    ) -> None:
        """Structural checks on username and email.

        Raises:
            ValidationError: first failing rule
        """
        if not self.username or not self.username.strip():
            raise ValidationError("username is required")
        if len(self.username) < min_username_length:
            raise ValidationError(f"username must be at least {min_username_length} characters")
        if len(self.username) > max_username_length:
            raise ValidationError(f"username must be at most {max_username_length} characters")

        if not self.email or not self.email.strip():
            raise ValidationError("email is required")
        if not is_valid_email(self.email):
            raise ValidationError("invalid email format")

    def copy(self, **changes) -> "User":
        return replace(self, **changes)

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role.value,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class TokenClaims:
    """Identity facts recovered from a validated token (immutable)."""
    user_id: int
    username: str
    email: str
    issued_at: datetime
    expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "email": self.email,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
        }
