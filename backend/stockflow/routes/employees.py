# Overview: Flask API routes for employee administration.

"""
Employee administration routes (MANAGE_EMPLOYEES).

Passwords are accepted on create and update and are never returned.
Deactivation revokes every open session of the employee.
"""

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..permissions import (
    ROLES,
    PermissionCategory,
    get_permission_definition,
    get_permissions_by_category,
    get_role_permissions,
)
from ..services import auth_service
from ..validation import ValidationError
from .errors import bool_arg, json_error, require_json


employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")

CATEGORY_ORDER = (
    PermissionCategory.INVENTORY,
    PermissionCategory.SALES,
    PermissionCategory.TRANSFERS,
    PermissionCategory.CATALOG,
    PermissionCategory.PURCHASING,
    PermissionCategory.EMPLOYEES,
    PermissionCategory.REPORTS,
)


@employees_bp.get("")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def list_employees():
    employees = auth_service.list_employees(include_inactive=bool_arg("include_inactive", True))
    return jsonify([e.to_dict() for e in employees]), 200


@employees_bp.get("/positions")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def list_positions():
    """Each position with the permissions it grants, plus the permission catalog by category."""
    return jsonify({
        "positions": {role: sorted(get_role_permissions(role)) for role in ROLES},
        "categories": [
            {
                "category": category,
                "permissions": [get_permission_definition(perm[0]) for perm in get_permissions_by_category(category)],
            }
            for category in CATEGORY_ORDER
        ],
    }), 200


@employees_bp.post("")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def create_employee():
    """
    Request body:
    {
        "first_name": str, "last_name": str, "username": str, "password": str,
        "position": "ADMIN" | "SALES", "store_id": int (required for SALES),
        "phone": str (optional), "ci": int (optional)
    }
    """
    try:
        employee = auth_service.create_employee(require_json())
        return jsonify(employee.to_dict()), 201
    except Exception as e:
        return json_error(e)


@employees_bp.get("/<int:employee_id>")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def get_employee(employee_id: int):
    try:
        return jsonify(auth_service.get_employee(employee_id).to_dict()), 200
    except Exception as e:
        return json_error(e)


@employees_bp.patch("/<int:employee_id>")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def update_employee(employee_id: int):
    try:
        employee = auth_service.update_employee(employee_id, require_json())
        return jsonify(employee.to_dict()), 200
    except Exception as e:
        return json_error(e)


@employees_bp.post("/<int:employee_id>/deactivate")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def deactivate_employee(employee_id: int):
    try:
        if employee_id == g.current_employee.id:
            raise ValidationError("You cannot deactivate your own account")
        employee = auth_service.deactivate_employee(employee_id)
        return jsonify(employee.to_dict()), 200
    except Exception as e:
        return json_error(e)


@employees_bp.post("/<int:employee_id>/activate")
@require_auth
@require_permission("MANAGE_EMPLOYEES")
def activate_employee(employee_id: int):
    try:
        employee = auth_service.set_employee_active(employee_id, True)
        return jsonify(employee.to_dict()), 200
    except Exception as e:
        return json_error(e)
