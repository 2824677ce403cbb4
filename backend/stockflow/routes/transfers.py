# backend/stockflow/routes/transfers.py
"""
Inter-store transfer API routes.

A transfer is executed in one call: every listed Unit moves from the origin
store to the destination store, or none does. Employees without
TRANSFER_ANY_STORE may only send Units out of their home store.
"""
from flask import Blueprint, request, jsonify, g
from stockflow.decorators import require_auth, require_permission
from stockflow.services import permission_service, transfer_service
from stockflow.services.permission_service import PermissionDeniedError
from stockflow.services.unit_ledger_service import UnitRef
from stockflow.validation import ValidationError, require_int_id
from stockflow.routes.errors import int_arg, json_error, require_json


transfers_bp = Blueprint("transfers", __name__, url_prefix="/api/transfers")


def _check_origin(origin_store_id: int) -> None:
    employee = g.current_employee
    if permission_service.has_permission(employee, "TRANSFER_ANY_STORE"):
        return
    if origin_store_id != employee.store_id:
        raise PermissionDeniedError("You can only transfer units out of your home store")


@transfers_bp.route("", methods=["POST"])
@require_auth
@require_permission("CREATE_TRANSFER")
def create_transfer():
    """
    Execute a transfer.

    Request body:
    {
        "origin_store_id": int (optional, defaults to the caller's home store),
        "destination_store_id": int,
        "units": [unit_id | scan_code | {"unit_id", "scan_code", "version_id"}],
        "note": str (optional)
    }

    Returns:
        201: Transfer committed (with lines)
        400: Invalid request (same store, empty batch, duplicate unit)
        403: Origin outside the caller's home store
        404: Store not found
        409: Some units are sold, elsewhere or changed (details.units)
    """
    try:
        data = require_json()
        origin_store_id = require_int_id("origin_store_id", data.get("origin_store_id", g.store_id))
        raw_units = data.get("units")
        if not isinstance(raw_units, list):
            raise ValidationError("units must be a list")

        _check_origin(origin_store_id)
        transfer = transfer_service.execute_transfer(
            origin_store_id=origin_store_id,
            destination_store_id=data.get("destination_store_id"),
            unit_refs=[UnitRef.from_payload(raw) for raw in raw_units],
            employee_id=g.current_employee.id,
            note=data.get("note"),
        )

        return jsonify(transfer_service.get_transfer_summary(transfer.id)), 201

    except Exception as e:
        return json_error(e)


@transfers_bp.route("", methods=["GET"])
@require_auth
@require_permission("VIEW_TRANSFERS")
def list_transfers():
    """
    Query params:
    - store_id: int (optional; restricted employees always get their home store)
    - limit, offset: int (optional)
    """
    try:
        store_id = permission_service.resolve_store_scope(g.current_employee, int_arg("store_id"))
        limit = min(int_arg("limit") or 50, 500)
        offset = int_arg("offset") or 0
        transfers = transfer_service.list_transfers(store_id=store_id, limit=limit, offset=offset)
        return jsonify({"items": [t.to_dict() for t in transfers], "count": len(transfers)}), 200
    except Exception as e:
        return json_error(e)


@transfers_bp.route("/<int:transfer_id>", methods=["GET"])
@require_auth
@require_permission("VIEW_TRANSFERS")
def get_transfer(transfer_id: int):
    try:
        summary = transfer_service.get_transfer_summary(transfer_id)
        if not permission_service.is_elevated(g.current_employee):
            home = g.current_employee.store_id
            if home not in (summary["origin_store_id"], summary["destination_store_id"]):
                raise PermissionDeniedError("Transfer does not involve your home store")
        return jsonify(summary), 200
    except Exception as e:
        return json_error(e)
