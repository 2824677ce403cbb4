# Overview: Flask API route for the unified sale/transfer movement history.

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_permission
from ..services import movement_service, permission_service
from ..time_utils import parse_iso_date
from ..validation import ValidationError
from .errors import int_arg, json_error


movements_bp = Blueprint("movements", __name__, url_prefix="/api/movements")


@movements_bp.get("")
@require_auth
@require_permission("VIEW_MOVEMENTS")
def list_movements():
    """
    Query params:
    - product_id: int (optional)
    - date: YYYY-MM-DD (optional, UTC calendar day)
    - store_id: int (optional)
    - type: SALE | TRANSFER (optional)
    - limit: int (optional, default 200)
    """
    try:
        try:
            day = parse_iso_date(request.args.get("date"))
        except ValueError:
            raise ValidationError("date must be YYYY-MM-DD")
        movement_type = request.args.get("type")
        rows = movement_service.list_movements(
            product_id=int_arg("product_id"),
            day=day,
            store_id=permission_service.resolve_store_scope(g.current_employee, int_arg("store_id")),
            movement_type=movement_type.upper() if movement_type else None,
            limit=min(int_arg("limit") or 200, 1000),
        )
        return jsonify({"items": rows, "count": len(rows)}), 200
    except Exception as e:
        return json_error(e)
