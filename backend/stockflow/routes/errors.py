# Overview: Maps service-layer exceptions to JSON error responses.

from flask import current_app, jsonify, request

from ..extensions import db
from ..services.concurrency import TransientError
from ..services.permission_service import PermissionDeniedError
from ..validation import ConflictError, NotFoundError, ValidationError


def json_error(exc: Exception):
    """
    Roll back and translate an exception raised by a service call.

    ValidationError -> 400, PermissionDeniedError -> 403, NotFoundError -> 404,
    ConflictError/DuplicateError -> 409 (with details), TransientError -> 503.
    Anything else is logged with its traceback and answered 500.
    """
    db.session.rollback()

    if isinstance(exc, ValidationError):
        return jsonify({"error": str(exc)}), 400
    if isinstance(exc, PermissionDeniedError):
        return jsonify({"error": "Permission denied", "message": str(exc)}), 403
    if isinstance(exc, NotFoundError):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, ConflictError):
        body = {"error": str(exc)}
        if exc.details:
            body["details"] = exc.details
        return jsonify(body), 409
    if isinstance(exc, TransientError):
        return jsonify({"error": str(exc), "retryable": True}), 503

    current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
    return jsonify({"error": "Internal server error"}), 500


def require_json() -> dict:
    """Request body as a dict; anything else is a ValidationError."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def int_arg(name: str) -> int | None:
    """Optional integer query parameter; non-integers are a ValidationError."""
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def bool_arg(name: str, default: bool = False) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}
