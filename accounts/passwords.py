"""
Password hashing and verification.

Handles:
- Salted one-way hashing (werkzeug, PBKDF2-SHA256 by default)
- Constant-time verification

The hash string is self-contained ("method$salt$hash"), so changing the
work factor only affects new hashes; old ones keep verifying.
"""
import logging

from werkzeug.security import check_password_hash, generate_password_hash

from core.errors import EmptyInputError, InternalError

from .config import PASSWORD_HASH_METHOD, PASSWORD_SALT_LENGTH

logger = logging.getLogger(__name__)

__all__ = ["PasswordHasher"]


class PasswordHasher:
    """One-way salted password hashing.

    Args:
        method: werkzeug method string, e.g. "pbkdf2:sha256:600000" or
            "scrypt:32768:8:1". The numeric parts are the work factor.
        salt_length: Random salt length in characters
    """

    def __init__(self, method: str = PASSWORD_HASH_METHOD, salt_length: int = PASSWORD_SALT_LENGTH):
        self.method = method
        self.salt_length = salt_length

    def hash(self, password: str) -> str:
        """Hash a password with a fresh random salt.

        Raises:
            EmptyInputError: password is blank after trimming
            InternalError: the configured method is unusable
        """
        if password is None or not password.strip():
            raise EmptyInputError("password is required")

        try:
            return generate_password_hash(password, method=self.method, salt_length=self.salt_length)
        except (ValueError, TypeError) as e:
            # Only the method name goes into the message, never the input
            logger.error("Password hashing failed with method %s", self.method)
            raise InternalError("failed to hash password") from e

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash.

        Never raises. Blank input, an unparseable hash and a mismatch all
        return False. werkzeug compares digests with hmac.compare_digest.
        """
        if not password or not password.strip():
            return False
        if not password_hash or not password_hash.strip():
            return False

        try:
            return check_password_hash(password_hash, password)
        except (ValueError, TypeError):
            return False
