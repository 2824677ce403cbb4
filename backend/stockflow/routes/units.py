# Overview: Flask API routes for the unit ledger; parses input and returns JSON responses.

"""
Unit ledger routes.

A Unit is one physical item identified by a globally unique scan code.
Assigning registers it at a store; de-assigning removes unsold Units that no
sale or transfer references.
"""
from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..services import permission_service, unit_ledger_service
from ..validation import NotFoundError, ValidationError
from .errors import bool_arg, int_arg, json_error, require_json


units_bp = Blueprint("units", __name__, url_prefix="/api/units")


@units_bp.post("")
@require_auth
@require_permission("MANAGE_UNITS")
def assign_unit():
    """
    Register a scan code as a new Unit.

    Request body:
    {
        "product_id": int,
        "store_id": int,
        "scan_code": str
    }

    Returns:
        201: Unit created
        404: Product or store not found
        409: Scan code already registered (details.scan_code)
    """
    try:
        data = require_json()
        for key in ("product_id", "store_id"):
            if not isinstance(data.get(key), int) or isinstance(data.get(key), bool):
                raise ValidationError(f"{key} must be an integer")
        permission_service.require_store_access(g.current_employee, data["store_id"])
        unit = unit_ledger_service.assign_unit(
            product_id=data["product_id"],
            store_id=data["store_id"],
            scan_code=data.get("scan_code"),
            employee_id=g.current_employee.id,
        )
        return jsonify(unit.to_dict()), 201
    except Exception as e:
        return json_error(e)


@units_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_units():
    """
    Query params:
    - product_id: int (optional)
    - store_id: int (optional; restricted employees always get their home store)
    - available: bool (optional) - only unsold Units
    """
    try:
        store_id = permission_service.resolve_store_scope(g.current_employee, int_arg("store_id"))
        sold = False if bool_arg("available") else None
        units = unit_ledger_service.query_units(
            product_id=int_arg("product_id"),
            store_id=store_id,
            sold=sold,
        )
        return jsonify({"items": [u.to_dict() for u in units], "count": len(units)}), 200
    except Exception as e:
        return json_error(e)


@units_bp.get("/<int:unit_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_unit(unit_id: int):
    try:
        unit = unit_ledger_service.get_unit(unit_id)
        if not unit:
            raise NotFoundError(f"Unit {unit_id} not found")
        permission_service.require_store_access(g.current_employee, unit.store_id)
        return jsonify(unit.to_dict()), 200
    except Exception as e:
        return json_error(e)


@units_bp.get("/by-code/<path:scan_code>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_unit_by_scan_code(scan_code: str):
    """Resolve a scanned code to its Unit (used by the sale and transfer screens)."""
    try:
        unit = unit_ledger_service.get_unit_by_scan_code(scan_code)
        if not unit:
            raise NotFoundError(f"No unit with scan code '{scan_code.strip()}'")
        body = unit.to_dict()
        body["product_name"] = unit.product.name if unit.product else None
        return jsonify(body), 200
    except Exception as e:
        return json_error(e)


@units_bp.post("/deassign")
@require_auth
@require_permission("MANAGE_UNITS")
def deassign_all():
    """
    Remove every unreferenced Unit of a product at a store.

    Request body: {"store_id": int, "product_id": int}

    Units already on a sale or transfer are kept and listed in kept_unit_ids.
    """
    try:
        data = require_json()
        for key in ("product_id", "store_id"):
            if not isinstance(data.get(key), int) or isinstance(data.get(key), bool):
                raise ValidationError(f"{key} must be an integer")
        permission_service.require_store_access(g.current_employee, data["store_id"])
        result = unit_ledger_service.deassign_all(store_id=data["store_id"], product_id=data["product_id"])
        return jsonify(result.to_dict()), 200
    except Exception as e:
        return json_error(e)


@units_bp.delete("/<int:unit_id>")
@require_auth
@require_permission("MANAGE_UNITS")
def delete_unit(unit_id: int):
    try:
        unit_ledger_service.delete_unit(unit_id)
        return jsonify({"deleted_unit_id": unit_id}), 200
    except Exception as e:
        return json_error(e)
