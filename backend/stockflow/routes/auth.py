# Overview: Flask API routes for login, logout and session introspection.

"""
Authentication API routes

Employees are created by an administrator (POST /api/employees or
`flask employees create`); there is no self-registration.

SECURITY FEATURES:
- Passwords checked with bcrypt
- Bearer tokens stored hashed, with absolute and idle expiry
- Logout revokes the token server-side
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import permission_service
from ..decorators import require_auth
from .errors import json_error


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate an employee and create a session token.

    The token must be sent as `Authorization: Bearer <token>` on every
    protected route.
    """
    try:
        data = request.get_json(silent=True) or {}
        username = data.get("username")
        password = data.get("password")

        if not all([username, password]):
            return jsonify({"error": "username and password required"}), 400

        employee = auth_service.authenticate(username, password)
        if not employee:
            current_app.logger.info("Failed login for username=%s from %s", username, request.remote_addr)
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            employee.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        permissions = sorted(permission_service.get_employee_permissions(employee))

        return jsonify({
            "employee": employee.to_dict(),
            "permissions": permissions,
            "token": token,
            "session": session.to_dict(),
            "store_id": session.store_id,
            "message": "Login successful"
        }), 200

    except Exception as e:
        return json_error(e)


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the presented session token."""
    try:
        session_service.revoke_session(g.session_token, reason="Employee logout")
        return jsonify({"message": "Logout successful"}), 200
    except Exception as e:
        return json_error(e)


@auth_bp.get("/me")
@require_auth
def me_route():
    """
    Current employee with permissions and home store.

    The frontend uses this to decide which screens and store pickers to show.
    """
    context = g.session_context
    return jsonify({
        "employee": context.employee.to_dict(),
        "role": context.role,
        "permissions": sorted(context.permissions),
        "store_id": context.store_id,
        "all_stores": permission_service.is_elevated(context.employee),
        "session": context.session.to_dict(),
    }), 200
