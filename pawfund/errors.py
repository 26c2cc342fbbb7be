"""
Error taxonomy shared by services and routes.

Services raise these; ``register_error_handlers`` renders them as
``{"error": message}`` with the matching status code.
"""

import logging

from flask import jsonify

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ApiError):
    """Referenced record does not exist."""

    status_code = 404


class ForbiddenError(ApiError):
    """Actor does not own the record being mutated."""

    status_code = 403


class ValidationError(ApiError):
    """Missing or malformed input, including underpayment."""

    status_code = 400


class ConflictError(ApiError):
    """Transition not allowed from the record's current state."""

    status_code = 409


class UpstreamError(ApiError):
    """Price feed, storage or other outbound dependency failed."""

    status_code = 502


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e: ApiError):
        if e.status_code >= 500:
            logger.error("upstream failure: %s", e.message)
        return jsonify({"error": e.message}), e.status_code

    @app.errorhandler(413)
    def handle_too_large(e):
        return jsonify({"error": "upload too large"}), 413
