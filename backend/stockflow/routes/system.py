# backend/stockflow/routes/system.py
"""
System health endpoint.

Reports database connectivity and whether an exchange rate has been
recorded yet (prices and sale totals cannot be derived without one).
"""

import time
from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Employee, Product, Store
from ..services import pricing_service
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Run a few cheap counts and time them."""
    start_time = time.time()
    try:
        store_count = db.session.query(Store).count()
        product_count = db.session.query(Product).count()
        employee_count = db.session.query(Employee).count()
        rate = pricing_service.current_rate()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "stores": store_count,
                "products": product_count,
                "employees": employee_count,
                "exchange_rate": str(rate) if rate is not None else None,
            }
        }
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    body = {
        "status": "ok" if healthy else "degraded",
        "checked_at": to_utc_z(utcnow()),
        "database": database,
    }
    return jsonify(body), 200 if healthy else 503
