"""
Request authentication decorators for Flask routes.

jwt_required validates the bearer token and stores the claims in g.claims.
Claims are trusted as issued; routes that act on the caller's current role
load the user with current_user().
"""
import logging
from functools import wraps

from flask import current_app, g, jsonify, request

from core.errors import AccountDisabledError, AuthenticationError, TokenError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def get_services():
    """The accounts Services bundle registered on the current app."""
    return current_app.extensions["accounts"]


def get_token_from_request() -> str | None:
    """Extract the raw token from the Authorization header.

    Returns:
        Token string with the "Bearer " prefix removed, or None if absent
    """
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith(BEARER_PREFIX):
        return auth_header[len(BEARER_PREFIX):]
    return None


def jwt_required(f):
    """Decorator to require a valid access token for an endpoint.

    Sets g.claims (TokenClaims) on success.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        token = get_token_from_request()
        if not token:
            return jsonify({"error": "Missing authorization token"}), 401

        try:
            g.claims = get_services().tokens.validate(token)
        except TokenError as e:
            logger.info("Rejected token on %s: %s", request.path, e)
            return jsonify({"error": str(e)}), e.status_code

        return f(*args, **kwargs)
    return decorated


def current_user():
    """Load the caller's stored record from g.claims.

    Raises:
        AuthenticationError: the user behind the token no longer exists
        AccountDisabledError: the user has been disabled
    """
    user = get_services().auth.get_user(g.claims.user_id)
    if user is None:
        raise AuthenticationError("user no longer exists")
    if not user.is_active:
        raise AccountDisabledError()
    return user
