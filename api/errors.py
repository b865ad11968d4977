from datetime import datetime

from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
import logging

logger = logging.getLogger(__name__)


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # 400 Bad Request (generic)
    @app.errorhandler(400)
    def bad_request(e):
        message = getattr(e, "description", "Bad request")
        return error_response("BAD_REQUEST", message, 400)

    # 401 Unauthorized: credential failures all share one generic message per route
    @app.errorhandler(401)
    def unauthorized(e):
        message = getattr(e, "description", "Unauthorized")
        return error_response("UNAUTHORIZED", message, 401)

    # 404 Not Found
    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", 404)

    # 409 Conflict
    @app.errorhandler(409)
    def conflict(e):
        message = getattr(e, "description", "Conflict")
        return error_response("CONFLICT", message, 409)

    # 429 Too Many Requests, with a Retry-After hint when the limiter gave one
    @app.errorhandler(429)
    def too_many_requests(e):
        message = getattr(e, "description", "Too many requests")
        response, status = error_response("RATE_LIMITED", message, 429)
        retry_after = getattr(e, "retry_after", None)
        if isinstance(retry_after, datetime):
            response.headers["Retry-After"] = retry_after.strftime("%a, %d %b %Y %H:%M:%S GMT")
        elif retry_after:
            response.headers["Retry-After"] = str(int(retry_after))
        return response, status

    # Marshmallow validation errors: malformed request bodies
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response("BAD_REQUEST", "Invalid request body", 400, details=err.messages)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        error = (err.name or "Bad Request").upper().replace(" ", "_")
        return error_response(error, err.description, err.code or 400)

    # 500 Internal Error (catch-all); store and signing failures end up here
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
