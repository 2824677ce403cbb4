from __future__ import annotations

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..services import permission_service, settings_service
from .errors import json_error, require_json


settings_bp = Blueprint("settings", __name__, url_prefix="/api")


@settings_bp.get("/stores/<int:store_id>/receipt-settings")
@require_auth
@require_permission("VIEW_SALES")
def get_receipt_settings(store_id: int):
    """Stored settings, or defaults built from the store's name and address."""
    try:
        permission_service.require_store_access(g.current_employee, store_id)
        return jsonify(settings_service.get_settings(store_id)), 200
    except Exception as exc:
        return json_error(exc)


@settings_bp.put("/stores/<int:store_id>/receipt-settings")
@require_auth
@require_permission("MANAGE_STORES")
def update_receipt_settings(store_id: int):
    try:
        settings = settings_service.update_settings(
            store_id,
            require_json(),
            employee_id=g.current_employee.id,
        )
        return jsonify(settings), 200
    except Exception as exc:
        return json_error(exc)
