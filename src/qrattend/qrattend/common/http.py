from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, request

from ..core.exceptions import DomainError, NotFound, StoreUnavailable, ValidationError, VersionConflict

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFound, 404),
    (VersionConflict, 409),
    (StoreUnavailable, 503),
)


def error_response(message: str, status_code: int):
    return jsonify({"success": False, "message": message}), status_code


def register_error_handlers(app: Flask) -> None:
    """Map the domain exception hierarchy onto JSON error responses."""

    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        for error_type, status_code in _STATUS_BY_ERROR:
            if isinstance(e, error_type):
                if status_code >= 500:
                    logger.error("%s on %s %s: %s", type(e).__name__, request.method, request.path, e)
                return error_response(str(e), status_code)
        logger.error("Unhandled domain error on %s %s: %s", request.method, request.path, e)
        return error_response(str(e) or "Server error", 500)

    @app.errorhandler(404)
    def handle_not_found(_e):
        return error_response("Not found", 404)

    @app.errorhandler(405)
    def handle_method_not_allowed(_e):
        return error_response("Method not allowed", 405)

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.exception("Server error on %s %s", request.method, request.path)
        return error_response("Server error", 500)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_bool(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def parse_int(value, field_name: str, *, default: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
