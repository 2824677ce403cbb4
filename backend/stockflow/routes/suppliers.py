# Overview: Flask API routes for suppliers operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..services import catalog_service
from .errors import json_error, require_json


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def list_suppliers():
    return jsonify([s.to_dict() for s in catalog_service.list_suppliers()]), 200


@suppliers_bp.post("")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def create_supplier():
    try:
        supplier = catalog_service.create_supplier(require_json(), employee_id=g.current_employee.id)
        return jsonify(supplier.to_dict()), 201
    except Exception as e:
        return json_error(e)


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def get_supplier(supplier_id: int):
    try:
        return jsonify(catalog_service.get_supplier(supplier_id).to_dict()), 200
    except Exception as e:
        return json_error(e)


@suppliers_bp.patch("/<int:supplier_id>")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def update_supplier(supplier_id: int):
    try:
        supplier = catalog_service.update_supplier(supplier_id, require_json())
        return jsonify(supplier.to_dict()), 200
    except Exception as e:
        return json_error(e)


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def delete_supplier(supplier_id: int):
    """409 when the supplier still has purchase orders."""
    try:
        catalog_service.delete_supplier(supplier_id)
        return jsonify({"deleted_supplier_id": supplier_id}), 200
    except Exception as e:
        return json_error(e)
