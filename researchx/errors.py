# researchx/errors.py
import logging
import traceback

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for errors that map onto a JSON error envelope."""

    status_code = 500

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        return {"success": False, "error": self.message, **(self.payload or {})}


class ValidationError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class ProviderError(AppError):
    """A provider answered with a non-2xx status."""

    def __init__(self, message, status_code=502, provider=None, response_data=None, provider_message=None):
        super().__init__(message, status_code=status_code)
        self.provider = provider
        self.response_data = response_data or {}
        # The provider's own wording, when it sent one.
        self.provider_message = provider_message


class ProviderUnavailable(AppError):
    """The request was sent but no response came back (network error, timeout)."""

    status_code = 500

    def __init__(self, message, provider=None):
        super().__init__(message)
        self.provider = provider


class ServiceNotConfigured(AppError):
    status_code = 500


def error_response(message, status_code, **extra):
    return jsonify({"success": False, "error": message, **extra}), status_code


def register_error_handlers(app):
    """Register all error handlers for the application"""

    def _is_production():
        return app.config.get("ENVIRONMENT") == "production"

    @app.errorhandler(AppError)
    def handle_app_error(error):
        logger.warning(f"{error.__class__.__name__}: {error.message} - Path: {request.path}")
        response = jsonify(error.to_dict())
        response.status_code = error.status_code
        return response

    @app.errorhandler(404)
    def not_found(e):
        logger.info(f"Not found: {request.path}")
        return error_response("Not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        logger.warning(f"Method not allowed: {request.method} {request.path}")
        return error_response("Method not allowed", 405)

    @app.errorhandler(429)
    def too_many_requests(e):
        logger.warning(f"Too many requests: {str(e)} - Path: {request.path}")
        return error_response("Too many requests, please try again later", 429)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return error_response(e.description or e.name, e.code)

    @app.errorhandler(Exception)
    def handle_exception(e):
        """
        Handles all unexpected server errors.
        Stack traces are only surfaced outside production.
        """
        logger.error(f"Unhandled exception on {request.method} {request.path}", exc_info=True)

        if _is_production():
            return error_response("Something went wrong", 500)

        return error_response(
            str(e) or "Something went wrong",
            500,
            details=repr(e),
            stack=traceback.format_exc(),
        )
