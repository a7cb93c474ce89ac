"""
Auth policy defaults - no dependencies on other accounts modules.

These are the values the services fall back to when constructed directly
(tests, scripts). accounts.factory overrides them from config.settings.
The signing secret is deliberately absent: it is always a constructor
argument of TokenService.
"""
from datetime import timedelta

# =============================================================================
# Identity Policy
# =============================================================================

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 254
PASSWORD_MIN_LENGTH = 8

# =============================================================================
# Token Policy
# =============================================================================

JWT_ALGORITHM = "HS256"
JWT_EXPIRATION = timedelta(hours=24)

# =============================================================================
# Password Hashing
# =============================================================================

# werkzeug method string; the trailing number is the iteration count
PASSWORD_HASH_METHOD = "pbkdf2:sha256:600000"
PASSWORD_SALT_LENGTH = 16
