"""
Authentication endpoints: register, login, profile and token check.

Service errors propagate to the handlers installed by
core.errors.register_error_handlers, which map them to status codes.
"""

from flask import Blueprint, g, jsonify, request

from api.decorators import current_user, get_services, jwt_required

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def _json_strings(*fields):
    """Pull string fields from the JSON body.

    Returns:
        (values, error_response) - error_response is None when the body is usable
    """
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return None, (jsonify({"error": "Request body must be a JSON object"}), 400)

    values = []
    for field in fields:
        value = data.get(field)
        # Type validation - prevent type confusion attacks
        if value is not None and not isinstance(value, str):
            return None, (jsonify({"error": f"{field} must be a string"}), 400)
        values.append(value)
    return values, None


@auth_bp.route('/register', methods=['POST'])
def register():
    """Create an account with role "user"."""
    values, error = _json_strings("username", "email", "password")
    if error:
        return error
    username, email, password = values

    user = get_services().auth.register(username, email, password)
    return jsonify({"user": user.to_public_dict()}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Authenticate and return an access token."""
    values, error = _json_strings("username", "password")
    if error:
        return error
    username, password = values

    services = get_services()
    user, token = services.auth.login(username, password)
    return jsonify({
        "user": user.to_public_dict(),
        "token": token,
        "expires_in": int(services.tokens.lifetime.total_seconds()),
    })


@auth_bp.route('/profile', methods=['GET'])
@jwt_required
def profile():
    return jsonify({"user": current_user().to_public_dict()})


@auth_bp.route('/validate', methods=['GET'])
@jwt_required
def validate():
    """Report the claims carried by the presented token."""
    return jsonify({"valid": True, "claims": g.claims.to_dict()})
