"""
Error types for the journaling service and their JSON renderings.

Request-level problems (ValidationError, NotFoundError) are raised by the
routes and turned into `{"error": "..."}` bodies by the handlers registered
in `register_error_handlers`. EnrichmentUnavailable never leaves the
reflection components: it travels inside an EnrichmentResult and is answered
with a local fallback.
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class NeuralNoteError(Exception):
    """Base class for service errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(NeuralNoteError):
    """Missing or malformed request input (e.g. empty entry content)."""

    status_code = 400


class NotFoundError(NeuralNoteError):
    status_code = 404


class ComputationError(NeuralNoteError):
    """Stored data could not be turned into a result (e.g. malformed rows)."""


class ConfigurationError(NeuralNoteError):
    pass


class EnrichmentUnavailable(NeuralNoteError):
    """The external text model failed, timed out or returned junk."""

    def __init__(self, task: str, reason: str):
        super().__init__(f"{task}: {reason}")
        self.task = task
        self.reason = reason


def register_error_handlers(app):
    """Attach JSON error handlers to a Flask app."""

    @app.errorhandler(NeuralNoteError)
    def handle_service_error(exc):
        if exc.status_code >= 500:
            logger.error("Request failed: %s", exc.message)
        return jsonify({"error": exc.message}), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        if exc.code == 404:
            return jsonify({"error": "Not found"}), 404
        return jsonify({"error": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        logger.exception("Server error")
        return jsonify({"error": "Internal server error"}), 500
