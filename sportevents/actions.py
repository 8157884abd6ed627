"""
Action pipeline.

An action wraps a handler with a uniform request/response contract:

    1. validate the payload against the action's schema (if any)
    2. resolve the caller's identity (if authentication is required)
    3. run the handler with the validated input and identity
    4. normalize whatever happened into ``Ok`` or ``Err``

Validation runs before the authentication gate, so a malformed request
gets the same answer whether or not the caller is logged in.

Calling an action never raises. Domain errors become ``Err`` with their
user-safe message; storage faults and anything unexpected are logged with
a traceback and reported with a generic message. Actions run inside
an application context and log through ``current_app.logger``.

Usage:
    @create_action(schema=CreateEventForm, success_message='Event created successfully')
    def create_event(data, identity, service):
        return service.create_event(identity.id, data)

    result = create_event(request.get_json(), service=get_event_service())
"""

from dataclasses import dataclass
from functools import update_wrapper
from typing import Any, Callable, Dict, List, Optional, Union

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from sportevents.errors import DomainError, ErrorCode
from sportevents.forms import validate_payload


AUTH_REQUIRED_MESSAGE = 'Authentication required. Please log in.'
VALIDATION_FAILED_MESSAGE = 'Validation failed'
OPERATION_FAILED_MESSAGE = 'The operation could not be completed. Please try again.'
UNEXPECTED_ERROR_MESSAGE = 'An unexpected error occurred. Please try again.'


@dataclass(frozen=True)
class ActionResult:
    """Explicit handler return value carrying a per-call success message."""

    data: Any = None
    message: Optional[str] = None


@dataclass(frozen=True)
class Ok:
    data: Any = None
    message: Optional[str] = None

    success = True

    def to_dict(self) -> Dict[str, Any]:
        response = {'success': True, 'data': self.data}
        if self.message:
            response['message'] = self.message
        return response


@dataclass(frozen=True)
class Err:
    error: str
    field_errors: Optional[Dict[str, List[str]]] = None
    code: ErrorCode = ErrorCode.UNEXPECTED_ERROR

    success = False

    @property
    def http_status(self) -> int:
        return self.code.http_status

    def to_dict(self) -> Dict[str, Any]:
        response = {'success': False, 'error': self.error}
        if self.field_errors:
            response['fieldErrors'] = self.field_errors
        return response


ActionResponse = Union[Ok, Err]


def default_identity_resolver():
    from sportevents.auth.utils import current_identity
    return current_identity()


class Action:
    """A handler wrapped with validation, authentication and error normalization."""

    def __init__(self, handler: Callable, schema=None, require_auth: bool = True,
                 success_message: Optional[str] = None):
        self.handler = handler
        self.schema = schema
        self.require_auth = require_auth
        self.success_message = success_message
        update_wrapper(self, handler)

    def __call__(self, payload=None, *, identity_resolver: Optional[Callable] = None,
                 **dependencies) -> ActionResponse:
        try:
            return self._run(payload, identity_resolver or default_identity_resolver, dependencies)
        except DomainError as e:
            current_app.logger.info(f"{self.__name__} rejected: {e}")
            return Err(error=e.message, code=e.code)
        except SQLAlchemyError:
            current_app.logger.exception(f"Storage error in action {self.__name__}")
            return Err(error=OPERATION_FAILED_MESSAGE, code=ErrorCode.OPERATION_FAILED)
        except Exception:
            current_app.logger.exception(f"Unexpected error in action {self.__name__}")
            return Err(error=UNEXPECTED_ERROR_MESSAGE, code=ErrorCode.UNEXPECTED_ERROR)

    def _run(self, payload, identity_resolver, dependencies) -> ActionResponse:
        value = payload
        if self.schema is not None:
            value, field_errors = validate_payload(self.schema, payload)
            if field_errors is not None:
                return Err(
                    error=VALIDATION_FAILED_MESSAGE,
                    field_errors=field_errors,
                    code=ErrorCode.VALIDATION_FAILED,
                )

        identity = None
        if self.require_auth:
            identity = identity_resolver()
            if identity is None:
                return Err(error=AUTH_REQUIRED_MESSAGE, code=ErrorCode.AUTHENTICATION_REQUIRED)

        result = self.handler(value, identity, **dependencies)

        if isinstance(result, ActionResult):
            return Ok(data=result.data, message=result.message or self.success_message)
        return Ok(data=result, message=self.success_message)

    def __repr__(self):
        return f"<Action {self.__name__} require_auth={self.require_auth}>"


def create_action(schema=None, require_auth: bool = True, success_message: Optional[str] = None):
    """
    Decorator turning a handler into an Action.

    Args:
        schema: ActionForm subclass validating the payload, or None
        require_auth: whether an authenticated identity is needed (default True)
        success_message: static message for successful results

    The handler is called as ``handler(value, identity, **dependencies)``.
    ``identity`` is None for actions that do not require authentication.
    """
    def decorator(handler):
        return Action(handler, schema=schema, require_auth=require_auth,
                      success_message=success_message)
    return decorator
