# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service, permission_service
from .services.permission_service import PermissionDeniedError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_employee') and hasattr(g, 'session_context')


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a live bearer session.

    Sets the following Flask g attributes:
    - g.current_employee: the authenticated Employee
    - g.store_id: the employee's home store captured at login (may be None)
    - g.session_context: the full SessionContext passed into services

    Returns 401 if the header is missing, the token is unknown, revoked,
    expired or idle, or the employee was deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_employee = context.employee
        g.store_id = context.store_id
        g.session_context = context
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a specific permission. Must be stacked under @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_permission(
                    g.current_employee,
                    permission_code,
                    resource=request.path,
                )
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": str(e)
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_permission(*permission_codes):
    """Require at least one of the given permissions."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            held = permission_service.get_employee_permissions(g.current_employee)
            if not any(code in held for code in permission_codes):
                return jsonify({
                    "error": "Permission denied",
                    "required_permissions": list(permission_codes),
                    "message": f"Requires any of: {', '.join(permission_codes)}"
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
