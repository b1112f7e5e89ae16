import logging
import traceback

from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException

from models import db

logger = logging.getLogger(__name__)


class CourtBookError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None, errors=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.errors = errors

    def to_dict(self):
        body = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(CourtBookError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(CourtBookError):
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(CourtBookError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(CourtBookError):
    status_code = 404
    default_message = "Not found"


class ConflictError(CourtBookError):
    status_code = 409
    default_message = "Conflict"


class InternalError(CourtBookError):
    status_code = 500


def _is_production() -> bool:
    if current_app.debug or current_app.testing:
        return False
    return current_app.config.get("APP_ENV", "production") == "production"


def register_error_handlers(app):
    @app.errorhandler(CourtBookError)
    def _domain_error(exc: CourtBookError):
        db.session.rollback()
        if exc.status_code >= 500:
            logger.error("Internal error: %s", exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return jsonify(message=exc.description or exc.name), exc.code

    @app.errorhandler(Exception)
    def _unhandled(exc: Exception):
        db.session.rollback()
        logger.exception("Unhandled error")
        body = {"message": "Internal server error"}
        if not _is_production():
            body["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return jsonify(body), 500
