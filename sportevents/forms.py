"""
Validation layer shared by all actions.

Each action declares its input schema as a WTForms form class. Payloads
arrive either as JSON objects (dicts, possibly nested) or as form posts
(MultiDicts). JSON payloads are flattened into the WTForms field naming
scheme (``venues-0-name``) so that nested ``FieldList(FormField(...))``
schemas, datetime parsing and ``Optional`` behave exactly as they do for
HTML form posts.

Validation is pure: no database access happens inside a schema.
"""

# Standard library imports
from datetime import timezone
from typing import Any, Dict, List, Optional, Tuple

# Third-party imports
from werkzeug.datastructures import MultiDict
from wtforms import Form

# Accepted date/time input formats, most specific last
DATETIME_FORMATS = [
    '%Y-%m-%dT%H:%M',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%dT%H:%M:%S.%f',
    '%Y-%m-%dT%H:%M%z',
    '%Y-%m-%dT%H:%M:%S%z',
    '%Y-%m-%dT%H:%M:%S.%f%z',
    '%Y-%m-%d %H:%M',
    '%Y-%m-%d %H:%M:%S',
]


def strip_or_none(value):
    """Filter: trim strings and turn blank strings into None."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def to_naive_utc(value):
    """Filter: convert offset-aware datetimes to naive UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class ActionForm(Form):
    """Base class for action input schemas."""

    def to_input(self):
        """Return the normalized, typed input for the action handler."""
        return dict(self.data)


def to_formdata(payload) -> MultiDict:
    """
    Convert an action payload into WTForms formdata.

    Args:
        payload: dict (JSON object), MultiDict (form post) or None

    Returns:
        MultiDict keyed with WTForms field names
    """
    if payload is None:
        return MultiDict()
    if hasattr(payload, 'getlist'):
        return payload
    if not isinstance(payload, dict):
        raise TypeError(f"Payload must be an object, got {type(payload).__name__}")

    formdata = MultiDict()
    _flatten(payload, '', formdata)
    return formdata


def _flatten(value: Any, key: str, out: MultiDict) -> None:
    if isinstance(value, dict):
        for name, item in value.items():
            _flatten(item, f'{key}-{name}' if key else str(name), out)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten(item, f'{key}-{index}', out)
    elif value is None:
        return
    elif isinstance(value, bool):
        # BooleanField treats any non-false value as checked
        out.add(key, 'y' if value else 'false')
    else:
        out.add(key, str(value))


def _iter_messages(errors):
    if isinstance(errors, dict):
        for nested in errors.values():
            yield from _iter_messages(nested)
    elif isinstance(errors, (list, tuple)):
        for nested in errors:
            yield from _iter_messages(nested)
    elif errors:
        yield str(errors)


def collect_field_errors(form: Form) -> Dict[str, List[str]]:
    """
    Flatten form errors to ``{top_level_field: [messages]}``.

    Errors from nested forms (e.g. one venue's name) are reported on the
    parent field, in order and without duplicates.
    """
    field_errors = {}
    for name, errors in form.errors.items():
        messages = []
        for message in _iter_messages(errors):
            if message not in messages:
                messages.append(message)
        if messages:
            field_errors[name] = messages
    return field_errors


def validate_payload(schema, payload) -> Tuple[Optional[Any], Optional[Dict[str, List[str]]]]:
    """
    Validate a payload against an action schema.

    Returns:
        (value, None) on success, where value is ``form.to_input()``
        (None, field_errors) on failure, including payloads that are not
        objects, which are reported under ``payload``
    """
    try:
        formdata = to_formdata(payload)
    except TypeError as e:
        return None, {'payload': [str(e)]}

    form = schema(formdata)
    if form.validate():
        return form.to_input(), None
    return None, collect_field_errors(form)
