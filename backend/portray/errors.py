# Overview: Domain error taxonomy and the JSON error handlers that render it.

"""
Error taxonomy shared by services and routes.

Services raise these; routes never build error JSON for them by hand.
register_error_handlers() maps each class to its HTTP status:

    ValidationError  -> 400  (malformed input, optional field name)
    ConflictError    -> 400  (duplicate email, short code, ...)
    AuthError        -> 401  (missing / invalid / expired credentials)
    ForbiddenError   -> 403  (role check failed)
    NotFoundError    -> 404

Each error carries a machine-readable `code` so clients can branch on
e.g. "InvalidOrExpiredToken" vs "AlreadyVerified" without parsing text.
"""

from __future__ import annotations

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException


class PortRayError(Exception):
    status_code = 500
    default_code = "Error"

    def __init__(self, message: str, *, code: str | None = None, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.field = field

    def to_dict(self) -> dict:
        payload = {"error": self.message, "code": self.code}
        if self.field:
            payload["field"] = self.field
        return payload


class ValidationError(PortRayError, ValueError):
    """400-level input problem."""
    status_code = 400
    default_code = "ValidationError"


class ConflictError(PortRayError, ValueError):
    """Business rule conflict (e.g., duplicate contact email)."""
    status_code = 400
    default_code = "Conflict"


class AuthError(PortRayError):
    status_code = 401
    default_code = "Unauthorized"


class ForbiddenError(PortRayError):
    status_code = 403
    default_code = "Forbidden"


class NotFoundError(PortRayError):
    status_code = 404
    default_code = "NotFound"


def register_error_handlers(app) -> None:
    """Render domain errors as JSON; log anything unexpected."""

    @app.errorhandler(PortRayError)
    def handle_domain_error(error: PortRayError):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"error": error.description, "code": error.name.replace(" ", "")}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500
