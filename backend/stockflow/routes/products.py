# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product catalog routes.

Listings carry live availability (counted from unsold Units) and the price
derived from the current exchange rate. Restricted employees see
availability at their home store only.

SECURITY: All routes require authentication.
- Read operations require VIEW_INVENTORY permission
- Write operations require MANAGE_PRODUCTS permission
"""
from flask import Blueprint, request, jsonify, g

from ..services import catalog_service, permission_service, pricing_service, stock_service
from ..decorators import require_auth, require_permission
from .errors import bool_arg, int_arg, json_error, require_json

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_products():
    """
    List products with available_count and final_price_cents.

    Query params:
    - store_id: int (optional) - count availability at one store
    - include_inactive: bool (optional, elevated only)
    """
    try:
        store_id = permission_service.resolve_store_scope(g.current_employee, int_arg("store_id"))
        include_inactive = bool_arg("include_inactive") and permission_service.is_elevated(g.current_employee)
        items = stock_service.product_listing(store_id=store_id, include_inactive=include_inactive)
        return jsonify({"items": items, "count": len(items), "store_id": store_id}), 200
    except Exception as e:
        return json_error(e)


@products_bp.get("/inactive-count")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def inactive_count():
    return jsonify({"inactive": catalog_service.count_inactive_products()}), 200


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product():
    try:
        product = catalog_service.create_product(require_json(), employee_id=g.current_employee.id)
        return jsonify(product.to_dict()), 201
    except Exception as e:
        return json_error(e)


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_product(product_id: int):
    try:
        product = catalog_service.get_product(product_id)
        store_id = permission_service.resolve_store_scope(g.current_employee, int_arg("store_id"))
        body = product.to_dict()
        body["available_count"] = stock_service.available_count(product.id, store_id)
        body["final_price_cents"] = pricing_service.final_price_cents(product, pricing_service.current_rate())
        return jsonify(body), 200
    except Exception as e:
        return json_error(e)


@products_bp.patch("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product(product_id: int):
    try:
        product = catalog_service.update_product(product_id, require_json())
        return jsonify(product.to_dict()), 200
    except Exception as e:
        return json_error(e)


@products_bp.post("/<int:product_id>/deactivate")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def deactivate_product(product_id: int):
    try:
        product = catalog_service.set_product_active(product_id, False)
        return jsonify(product.to_dict()), 200
    except Exception as e:
        return json_error(e)


@products_bp.post("/<int:product_id>/activate")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def activate_product(product_id: int):
    try:
        product = catalog_service.set_product_active(product_id, True)
        return jsonify(product.to_dict()), 200
    except Exception as e:
        return json_error(e)
