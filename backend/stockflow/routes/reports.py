# Overview: Flask API routes for dashboards and headline counts.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..services import dashboard_service, permission_service
from ..time_utils import utcnow
from .errors import int_arg, json_error


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_auth
@require_permission("VIEW_DASHBOARD")
def annual_dashboard():
    """
    Monthly sales and income for one year.

    Query params:
    - year: int (optional, defaults to the current year)
    - store_id: int (optional; restricted employees always get their home store)
    """
    try:
        year = int_arg("year")
        if year is None:
            year = utcnow().year
        store_id = permission_service.resolve_store_scope(g.current_employee, int_arg("store_id"))
        return jsonify(dashboard_service.annual_dashboard(year, store_id=store_id)), 200
    except Exception as e:
        return json_error(e)


@reports_bp.get("/counts")
@require_auth
@require_permission("VIEW_DASHBOARD")
def counts():
    try:
        store_id = permission_service.resolve_store_scope(g.current_employee, int_arg("store_id"))
        return jsonify(dashboard_service.counts(store_id=store_id)), 200
    except Exception as e:
        return json_error(e)
