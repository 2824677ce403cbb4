# Overview: Flask API routes for stores operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, g

from ..decorators import require_any_permission, require_auth, require_permission
from ..services import catalog_service, permission_service, stock_service
from .errors import json_error, require_json


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("")
@require_auth
@require_any_permission("VIEW_INVENTORY", "MANAGE_STORES")
def list_stores():
    """Every store; transfer destinations are picked from this list."""
    stores = catalog_service.list_stores()
    return jsonify([store.to_dict() for store in stores]), 200


@stores_bp.get("/summaries")
@require_auth
@require_permission("VIEW_INVENTORY")
def store_summaries():
    """Per-store product and available-unit counts; restricted employees get their home store only."""
    rows = stock_service.store_summaries()
    if not permission_service.is_elevated(g.current_employee):
        rows = [row for row in rows if row["id"] == g.current_employee.store_id]
    return jsonify(rows), 200


@stores_bp.post("")
@require_auth
@require_permission("MANAGE_STORES")
def create_store():
    try:
        store = catalog_service.create_store(require_json())
        return jsonify(store.to_dict()), 201
    except Exception as exc:
        return json_error(exc)


@stores_bp.get("/<int:store_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_store(store_id: int):
    try:
        store = catalog_service.get_store(store_id)
        return jsonify(store.to_dict()), 200
    except Exception as exc:
        return json_error(exc)


@stores_bp.patch("/<int:store_id>")
@require_auth
@require_permission("MANAGE_STORES")
def update_store(store_id: int):
    try:
        store = catalog_service.update_store(store_id, require_json())
        return jsonify(store.to_dict()), 200
    except Exception as exc:
        return json_error(exc)


@stores_bp.delete("/<int:store_id>")
@require_auth
@require_permission("MANAGE_STORES")
def delete_store(store_id: int):
    """409 with blocking counts when the store has history or staff."""
    try:
        result = catalog_service.delete_store(store_id)
        return jsonify(result), 200
    except Exception as exc:
        return json_error(exc)
