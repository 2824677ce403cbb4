# Overview: Flask API routes for purchase orders and supplier payments.

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_permission
from ..models.purchasing import PO_STATUSES
from ..services import purchase_order_service
from ..services.purchase_order_service import OrderItemInput
from ..validation import ValidationError
from .errors import int_arg, json_error, require_json


purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")


def _parse_items(data: dict) -> list[OrderItemInput]:
    raw_items = data.get("items")
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")
    return [OrderItemInput.from_payload(raw) for raw in raw_items]


@purchase_orders_bp.get("")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def list_orders():
    """Query params: supplier_id (optional), status (optional: PENDING, PARTIALLY_PAID, COMPLETED)."""
    try:
        status = request.args.get("status")
        if status is not None and status.upper() not in PO_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(PO_STATUSES)}")
        orders = purchase_order_service.list_orders(supplier_id=int_arg("supplier_id"), status=status)
        return jsonify({"items": [o.to_dict() for o in orders], "count": len(orders)}), 200
    except Exception as e:
        return json_error(e)


@purchase_orders_bp.post("")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def create_order():
    """
    Request body:
    {
        "supplier_id": int,
        "items": [{"product_id": int, "quantity": int, "total_price_cents": int}]
    }
    """
    try:
        data = require_json()
        supplier_id = data.get("supplier_id")
        if not isinstance(supplier_id, int) or isinstance(supplier_id, bool):
            raise ValidationError("supplier_id must be an integer")
        order = purchase_order_service.create_order(
            supplier_id=supplier_id,
            items=_parse_items(data),
            employee_id=g.current_employee.id,
        )
        return jsonify(order.to_dict()), 201
    except Exception as e:
        return json_error(e)


@purchase_orders_bp.get("/<int:order_id>")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def get_order(order_id: int):
    try:
        return jsonify(purchase_order_service.get_order(order_id).to_dict()), 200
    except Exception as e:
        return json_error(e)


@purchase_orders_bp.put("/<int:order_id>/items")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def replace_items(order_id: int):
    """Replace every item (and optionally the supplier); totals and status are recomputed."""
    try:
        data = require_json()
        order = purchase_order_service.replace_items(
            order_id,
            _parse_items(data),
            supplier_id=data.get("supplier_id"),
        )
        return jsonify(order.to_dict()), 200
    except Exception as e:
        return json_error(e)


@purchase_orders_bp.delete("/<int:order_id>")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def delete_order(order_id: int):
    try:
        purchase_order_service.delete_order(order_id)
        return jsonify({"deleted_order_id": order_id}), 200
    except Exception as e:
        return json_error(e)


@purchase_orders_bp.get("/<int:order_id>/payments")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def list_payments(order_id: int):
    try:
        payments = purchase_order_service.list_payments(order_id)
        return jsonify([p.to_dict() for p in payments]), 200
    except Exception as e:
        return json_error(e)


@purchase_orders_bp.post("/<int:order_id>/payments")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def record_payment(order_id: int):
    """
    Request body: {"amount_cents": int, "payment_method": str (optional)}

    Returns the order with its recomputed paid amount, balance and status.
    """
    try:
        data = require_json()
        order = purchase_order_service.record_payment(
            order_id,
            amount_cents=data.get("amount_cents"),
            payment_method=data.get("payment_method") or "OTHER",
            employee_id=g.current_employee.id,
        )
        return jsonify(order.to_dict()), 201
    except Exception as e:
        return json_error(e)
