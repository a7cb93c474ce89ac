"""
Role administration endpoints.

The acting user is loaded fresh from the repository so role checks use the
caller's current role rather than whatever it was when the token was issued.
"""

from flask import Blueprint, jsonify, request

from api.decorators import current_user, get_services, jwt_required

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@admin_bp.route('/users/<int:user_id>/role', methods=['PUT'])
@jwt_required
def change_role(user_id):
    """Change a user's role. Body: {"role": "<role>"}"""
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    role = data.get("role")
    if not isinstance(role, str):
        return jsonify({"error": "role must be a string"}), 400

    user = get_services().roles.change_role(current_user(), user_id, role)
    return jsonify({"user": user.to_public_dict()})


@admin_bp.route('/moderators', methods=['GET'])
@jwt_required
def list_moderators():
    users = get_services().roles.list_moderators(current_user())
    return jsonify({"users": [u.to_public_dict() for u in users], "count": len(users)})


@admin_bp.route('/admins', methods=['GET'])
@jwt_required
def list_admins():
    users = get_services().roles.list_admins(current_user())
    return jsonify({"users": [u.to_public_dict() for u in users], "count": len(users)})
