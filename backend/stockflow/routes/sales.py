# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales API routes.

POST /api/sales records a whole sale in one call: every scanned Unit with its
device codes, the payment method and optionally an operator-entered total.
Restricted employees sell at their home store only. Corrections (removing a
line, editing the header) need CORRECT_SALES.
"""
from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..services import permission_service, sales_service
from ..services.sales_service import SaleItem
from ..validation import ValidationError, require_int_id
from .errors import int_arg, json_error, require_json


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _sale_body(sale) -> dict:
    body = sale.to_dict()
    body["lines"] = [line.to_dict() for line in sale.lines]
    return body


def _check_sale_visible(sale) -> None:
    permission_service.require_store_access(g.current_employee, sale.store_id)


@sales_bp.post("")
@require_auth
@require_permission("CREATE_SALE")
def create_sale():
    """
    Record a sale.

    Request body:
    {
        "store_id": int (optional, defaults to the caller's home store),
        "items": [{"unit": unit_id | scan_code | {...}, "device_codes": [str]}],
        "payment_method": "CASH" | "CARD" | "QR" | "BANK_TRANSFER",
        "total_cents": int (optional override),
        "customer_name": str (optional),
        "customer_phone": str (optional)
    }

    Returns:
        201: Sale committed with its lines
        400: Invalid request, or no exchange rate and no total override
        403: Store outside the caller's home store
        409: Some units are sold, elsewhere or changed (details.units)
    """
    try:
        data = require_json()
        store_id = require_int_id("store_id", data.get("store_id", g.store_id))
        raw_items = data.get("items")
        if not isinstance(raw_items, list):
            raise ValidationError("items must be a list")

        permission_service.require_store_access(g.current_employee, store_id)
        sale = sales_service.record_sale(
            store_id=store_id,
            items=[SaleItem.from_payload(raw) for raw in raw_items],
            employee_id=g.current_employee.id,
            payment_method=data.get("payment_method"),
            customer_name=data.get("customer_name"),
            customer_phone=data.get("customer_phone"),
            total_cents=data.get("total_cents"),
        )
        return jsonify(_sale_body(sale)), 201
    except Exception as e:
        return json_error(e)


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales():
    try:
        store_id = permission_service.resolve_store_scope(g.current_employee, int_arg("store_id"))
        limit = min(int_arg("limit") or 50, 500)
        offset = int_arg("offset") or 0
        sales = sales_service.list_sales(store_id=store_id, limit=limit, offset=offset)
        return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200
    except Exception as e:
        return json_error(e)


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission("VIEW_SALES")
def get_sale(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
        _check_sale_visible(sale)
        return jsonify(_sale_body(sale)), 200
    except Exception as e:
        return json_error(e)


@sales_bp.get("/<int:sale_id>/document")
@require_auth
@require_permission("VIEW_SALES")
def get_sale_document(sale_id: int):
    """Denormalized receipt/warranty data for an external renderer."""
    try:
        _check_sale_visible(sales_service.get_sale(sale_id))
        return jsonify(sales_service.get_sale_document(sale_id)), 200
    except Exception as e:
        return json_error(e)


@sales_bp.delete("/<int:sale_id>/lines/<int:line_id>")
@require_auth
@require_permission("CORRECT_SALES")
def remove_sale_line(sale_id: int, line_id: int):
    """Take one Unit off a sale and return it to available stock."""
    try:
        sale = sales_service.remove_sale_line(sale_id, line_id, employee_id=g.current_employee.id)
        return jsonify(_sale_body(sale)), 200
    except Exception as e:
        return json_error(e)


@sales_bp.patch("/<int:sale_id>")
@require_auth
@require_permission("CORRECT_SALES")
def update_sale(sale_id: int):
    """Edit payment method, total or customer fields of a recorded sale."""
    try:
        data = require_json()
        sale = sales_service.update_sale(
            sale_id,
            payment_method=data.get("payment_method"),
            total_cents=data.get("total_cents"),
            customer_name=data.get("customer_name"),
            customer_phone=data.get("customer_phone"),
        )
        return jsonify(_sale_body(sale)), 200
    except Exception as e:
        return json_error(e)
