from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from ..core import exceptions as exc
from .serialization import to_json

logger = logging.getLogger(__name__)

# Most specific classes first; the first isinstance match wins.
ERROR_STATUS: list[tuple[type[exc.DomainError], int]] = [
    (exc.CodeExpiredError, 410),
    (exc.AlreadySubmittedError, 409),
    (exc.LeaveAlreadyProcessedError, 409),
    (exc.SessionLockedError, 403),
    (exc.AuthorizationError, 403),
    (exc.NotFoundError, 404),
    (exc.ConflictError, 409),
    (exc.ValidationError, 400),
]


def status_for(error: exc.DomainError) -> int:
    for error_cls, status in ERROR_STATUS:
        if isinstance(error, error_cls):
            return status
    return 400


def send_response(message: str, data: Any = None, status: int = 200):
    return jsonify({"success": True, "message": message, "data": to_json(data)}), status


def send_error(status: int, message: str):
    return jsonify({"success": False, "message": message}), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(exc.DomainError)
    def handle_domain_error(error: exc.DomainError):
        return send_error(status_for(error), str(error))

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return send_error(error.code or 500, error.description or error.name)

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception("Unhandled error: %s", error)
        if bool(app.config.get("DEBUG", False)):
            return send_error(500, f"Internal server error: {error}")
        return send_error(500, "Internal server error")
