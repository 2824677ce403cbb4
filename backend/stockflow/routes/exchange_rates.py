# Overview: Flask API routes for exchange rates.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..services import pricing_service
from .errors import int_arg, json_error, require_json


exchange_rates_bp = Blueprint("exchange_rates", __name__, url_prefix="/api/exchange-rates")


@exchange_rates_bp.get("/current")
@require_auth
@require_permission("VIEW_INVENTORY")
def current_rate():
    """Newest rate, or {"rate": null} when none has been recorded yet."""
    row = pricing_service.current_rate_row()
    if row is None:
        return jsonify({"rate": None}), 200
    return jsonify(row.to_dict()), 200


@exchange_rates_bp.get("")
@require_auth
@require_permission("MANAGE_EXCHANGE_RATES")
def list_rates():
    try:
        limit = min(int_arg("limit") or 50, 500)
        rows = pricing_service.list_rates(limit=limit, offset=int_arg("offset") or 0)
        return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows)}), 200
    except Exception as e:
        return json_error(e)


@exchange_rates_bp.post("")
@require_auth
@require_permission("MANAGE_EXCHANGE_RATES")
def record_rate():
    """
    Request body: {"rate": "6.96"}

    Strings are preferred so the value is not rounded through a float.
    """
    try:
        data = require_json()
        row = pricing_service.record_rate(data.get("rate"), employee_id=g.current_employee.id)
        return jsonify(row.to_dict()), 201
    except Exception as e:
        return json_error(e)
