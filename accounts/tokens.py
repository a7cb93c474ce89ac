"""
JWT token creation and validation.

Handles:
- Access token issuance for a User (HS256, fixed 24h window)
- Validation back into TokenClaims

The signing secret is a constructor argument; there is no module-level
secret, so independent TokenService instances never share keys.

There is no blacklist. Expiry is the only way a token stops being valid,
and claims are trusted as issued (a demoted or disabled user keeps a valid
token until it expires).
"""
import logging
from datetime import datetime, timedelta
from typing import Callable

import jwt

from core import timestamps
from core.errors import EmptyTokenError, ExpiredTokenError, MalformedTokenError, MissingUserError

from .config import JWT_ALGORITHM, JWT_EXPIRATION
from .types import TokenClaims, User

logger = logging.getLogger(__name__)

_REQUIRED_CLAIMS = ("user_id", "username", "email", "iat", "exp")


class TokenService:
    """Issues and validates signed, time-limited access tokens.

    Args:
        secret: Symmetric signing key (str or bytes, must not be empty)
        algorithm: HMAC algorithm accepted for both signing and decoding
        lifetime: Time between iat and exp
        clock: Returns the current aware UTC datetime; injectable for tests
    """

    def __init__(
        self,
        secret: str | bytes,
        algorithm: str = JWT_ALGORITHM,
        lifetime: timedelta = JWT_EXPIRATION,
        clock: Callable[[], datetime] = timestamps.now,
    ):
        if not secret:
            raise ValueError("signing secret is required")
        if lifetime <= timedelta(0):
            raise ValueError("token lifetime must be positive")
        self._secret = secret
        self.algorithm = algorithm
        self.lifetime = lifetime
        self._clock = clock

    def __repr__(self) -> str:
        return f"TokenService(algorithm={self.algorithm!r}, lifetime={self.lifetime!r})"

    # =========================================================================
    # Token Creation
    # =========================================================================

    def issue(self, user: User | None) -> str:
        """Create a signed access token for a persisted user.

        Raises:
            MissingUserError: user is None
        """
        if user is None:
            raise MissingUserError("user is required")

        now = self._clock()
        iat = int(now.timestamp())
        payload = {
            "user_id": user.id,
            "username": user.username,
            "email": user.email,
            "iat": iat,
            "exp": iat + int(self.lifetime.total_seconds()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    # =========================================================================
    # Token Validation
    # =========================================================================

    def validate(self, token: str | None) -> TokenClaims:
        """Decode and validate an access token.

        The caller strips any "Bearer " prefix first.

        Raises:
            EmptyTokenError: blank token
            MalformedTokenError: unparseable, bad signature, wrong algorithm
                or missing/mistyped claims
            ExpiredTokenError: now >= exp
        """
        if token is None or not token.strip():
            raise EmptyTokenError()

        try:
            # Expiry is checked below against our own clock
            payload = jwt.decode(
                token.strip(),
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False, "verify_nbf": False},
            )
        except jwt.InvalidTokenError as exc:
            logger.debug("Token validation failed: %s", type(exc).__name__)
            raise MalformedTokenError() from None

        claims = self._parse_claims(payload)

        if self._clock() >= claims.expires_at:
            logger.debug("Token validation failed: expired (user_id=%s)", claims.user_id)
            raise ExpiredTokenError()

        return claims

    @staticmethod
    def _parse_claims(payload: dict) -> TokenClaims:
        for name in _REQUIRED_CLAIMS:
            if name not in payload:
                raise MalformedTokenError()

        user_id = payload["user_id"]
        username = payload["username"]
        email = payload["email"]
        iat = payload["iat"]
        exp = payload["exp"]

        # bool is an int subclass; reject it explicitly
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise MalformedTokenError()
        if not isinstance(username, str) or not isinstance(email, str):
            raise MalformedTokenError()
        for stamp in (iat, exp):
            if not isinstance(stamp, (int, float)) or isinstance(stamp, bool):
                raise MalformedTokenError()
        if exp <= iat:
            raise MalformedTokenError()

        return TokenClaims(
            user_id=user_id,
            username=username,
            email=email,
            issued_at=timestamps.from_epoch(int(iat)),
            expires_at=timestamps.from_epoch(int(exp)),
        )
