"""
Centralized error handling for the accounts core.

Error Hierarchy:
- APIError (4xx): Expected errors with messages safe to expose to clients
- InternalError (5xx): Unexpected errors - never expose internal details

Every guard in accounts/ raises exactly one APIError subclass. The HTTP
adapter maps them to responses via register_error_handlers(); other callers
can rely on the class or on status_code.

Usage:
    from core.errors import safe_error_response, UserNotFoundError

    # For expected errors (4xx) - raise with safe message
    raise UserNotFoundError(f"User {user_id} not found")

    # For unexpected errors (5xx) - use safe_error_response
    except Exception as e:
        body, status = safe_error_response(e, "change role")

Messages must never contain a password, password hash or signing secret.
"""

import logging
import uuid
from typing import Tuple

logger = logging.getLogger(__name__)


# =============================================================================
# Exception Classes (4xx - Expected Errors)
# =============================================================================

class APIError(Exception):
    """
    Base class for expected API errors (4xx status codes).
    Messages are safe to expose to clients.
    """
    status_code = 400

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class ValidationError(APIError):
    """Missing, malformed, too short or too long input (400)."""
    status_code = 400


class EmptyInputError(ValidationError):
    """Blank value handed to a component that needs one (400)."""


class InvalidRoleError(ValidationError):
    """Role value outside the known enumeration (400)."""


class AuthenticationError(APIError):
    """Authentication failed (401)."""
    status_code = 401


class InvalidCredentialsError(AuthenticationError):
    """Unknown username or wrong password - deliberately indistinguishable."""

    def __init__(self, message: str = "invalid credentials"):
        super().__init__(message)


class TokenError(AuthenticationError):
    """Token could not be accepted (401)."""


class EmptyTokenError(TokenError):
    def __init__(self, message: str = "token is required"):
        super().__init__(message)


class MalformedTokenError(TokenError):
    """Unparseable token, bad signature or wrong algorithm - one outward error."""

    def __init__(self, message: str = "invalid token"):
        super().__init__(message)


class ExpiredTokenError(TokenError):
    def __init__(self, message: str = "token expired"):
        super().__init__(message)


class PermissionDeniedError(APIError):
    """Permission denied (403)."""
    status_code = 403

    def __init__(self, message: str = "permission denied"):
        super().__init__(message)


class AccountDisabledError(APIError):
    """Account exists but was deactivated by an administrator (403)."""
    status_code = 403

    def __init__(self, message: str = "account is disabled"):
        super().__init__(message)


class CannotModifySelfError(APIError):
    """Actor tried to change their own role (403)."""
    status_code = 403

    def __init__(self, message: str = "cannot modify your own role"):
        super().__init__(message)


class NotFoundError(APIError):
    """Resource not found (404)."""
    status_code = 404


class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "user not found"):
        super().__init__(message)


class ConflictError(APIError):
    """Resource conflict (409)."""
    status_code = 409


class AlreadyExistsError(ConflictError):
    """Username or email already taken by an active user."""


class LastSuperAdminError(ConflictError):
    """Change would leave the system without an active super_admin."""

    def __init__(self, message: str = "cannot demote the last super_admin"):
        super().__init__(message)


# =============================================================================
# Internal Error (5xx - Never Expose)
# =============================================================================

class InternalError(Exception):
    """
    Unexpected internal errors (5xx status codes).
    Message should NEVER be exposed to clients.
    """
    pass


class MissingUserError(InternalError):
    """Token issuance was asked to sign for no user (programming error)."""


class RepositoryError(InternalError):
    """Storage adapter failure, surfaced without retry."""


# =============================================================================
# Safe Error Response Helper
# =============================================================================

def safe_error_response(
    e: Exception,
    operation: str,
    include_error_id: bool = True
) -> Tuple[dict, int]:
    """
    Create a safe error body and status code.

    For APIError subclasses (expected errors):
        - Returns the error message (safe to expose)
        - Uses the exception's status_code
        - Logs at WARNING level

    For all other exceptions (unexpected errors):
        - Returns generic message (never exposes internal details)
        - Returns 500 status code
        - Logs full exception at ERROR level

    Args:
        e: The exception that was caught
        operation: Human-readable description of what failed (e.g., "login")
        include_error_id: Whether to include error_id for support reference

    Returns:
        Tuple of (body_dict, status_code)
    """
    error_id = str(uuid.uuid4())[:8] if include_error_id else None
    log_extra = {'error_id': error_id} if error_id else {}

    if isinstance(e, APIError):
        logger.warning(f"{operation}: {e}", extra=log_extra)
        body = {"error": str(e)}
        status = e.status_code
    else:
        logger.exception(f"{operation} failed", extra=log_extra)
        body = {"error": f"{operation} failed"}
        status = 500

    if error_id:
        body["error_id"] = error_id
    return body, status


def register_error_handlers(app):
    """
    Register Flask error handlers for APIError exceptions.

    Call this in your Flask app factory:
        from core.errors import register_error_handlers
        register_error_handlers(app)
    """
    from flask import jsonify

    @app.errorhandler(APIError)
    def handle_api_error(e):
        """Handle all APIError subclasses."""
        body, status = safe_error_response(e, "request")
        return jsonify(body), status

    @app.errorhandler(InternalError)
    def handle_internal_error(e):
        body, status = safe_error_response(e, "request")
        return jsonify(body), status

    @app.errorhandler(500)
    def handle_server_error(e):
        """Handle unexpected 500 errors."""
        error_id = str(uuid.uuid4())[:8]
        logger.exception("Internal server error", extra={'error_id': error_id})
        return jsonify({
            "error": "Internal server error",
            "error_id": error_id
        }), 500
