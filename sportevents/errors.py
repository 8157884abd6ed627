"""Error codes, domain errors and JSON error handlers."""

from dataclasses import dataclass
from enum import Enum

from flask import jsonify
from flask_wtf.csrf import CSRFError

from sportevents import db


class ErrorCode(Enum):
    """Error codes carried by failed action results."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EMAIL_TAKEN = "EMAIL_TAKEN"
    OPERATION_FAILED = "OPERATION_FAILED"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"

    @property
    def http_status(self) -> int:
        return HTTP_STATUS.get(self, 500)


HTTP_STATUS = {
    ErrorCode.VALIDATION_FAILED: 400,
    ErrorCode.AUTHENTICATION_REQUIRED: 401,
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.EVENT_NOT_FOUND: 404,
    ErrorCode.EMAIL_TAKEN: 409,
    ErrorCode.OPERATION_FAILED: 500,
    ErrorCode.UNEXPECTED_ERROR: 500,
}


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class EventNotFoundError(DomainError):
    """Raised when an event does not exist."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_NOT_FOUND,
            message="Event not found",
        )
        self.event_id = event_id


class PermissionDeniedError(DomainError):
    """Raised when a user acts on an event they do not own."""

    def __init__(self, message: str = "You do not have permission to modify this event") -> None:
        super().__init__(code=ErrorCode.PERMISSION_DENIED, message=message)


class OperationFailedError(DomainError):
    """Raised when a storage operation fails. The detail stays in the server log."""

    def __init__(self, message: str = "The operation could not be completed") -> None:
        super().__init__(code=ErrorCode.OPERATION_FAILED, message=message)


class InvalidCredentialsError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_CREDENTIALS,
            message="Invalid email or password",
        )


class EmailTakenError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.EMAIL_TAKEN,
            message="Please use a different email address.",
        )


def error_response(message, code, status=None):
    """Build a JSON error response in the action result shape."""
    from sportevents.actions import Err

    result = Err(error=message, code=code)
    return jsonify(result.to_dict()), status or code.http_status


def register_error_handlers(app):
    """Register error handlers with the Flask application"""

    @app.errorhandler(400)
    def bad_request_error(error):
        return error_response('Bad request', ErrorCode.VALIDATION_FAILED, 400)

    @app.errorhandler(CSRFError)
    def csrf_error(error):
        return error_response(error.description, ErrorCode.VALIDATION_FAILED, 400)

    @app.errorhandler(401)
    def unauthorized_error(error):
        return error_response('Authentication required. Please log in.',
                              ErrorCode.AUTHENTICATION_REQUIRED, 401)

    @app.errorhandler(403)
    def forbidden_error(error):
        return error_response('Access denied', ErrorCode.PERMISSION_DENIED, 403)

    @app.errorhandler(404)
    def not_found_error(error):
        return error_response('Not found', ErrorCode.EVENT_NOT_FOUND, 404)

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return error_response('Method not allowed', ErrorCode.VALIDATION_FAILED, 405)

    @app.errorhandler(429)
    def rate_limit_error(error):
        return error_response('Too many requests. Please slow down.',
                              ErrorCode.OPERATION_FAILED, 429)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return error_response('An unexpected error occurred. Please try again.',
                              ErrorCode.UNEXPECTED_ERROR, 500)
