"""
Audit Logging for Database Operations

Every event and venue change (create, update, delete), every authentication
attempt and every denied permission is written to instance/logs/audit.log
with timestamp, user and operation details.

Usage:
    from sportevents.audit import audit_log_create, audit_log_update, audit_log_delete

    # For new records
    audit_log_create('Event', event.id, f'Created event: {event.name}', user_id=owner_id)

    # For updates
    audit_log_update('Event', event.id, f'Updated event: {event.name}', {'name': 'Old name'})

    # For deletions
    audit_log_delete('Event', event_id, 'Deleted event')
"""

import logging
import os
from typing import Optional, Dict, Any, Union
from flask import current_app, has_request_context
from flask_login import current_user


# Configure audit logger
def setup_audit_logger():
    """Setup and configure the audit logger with proper formatting and file handling."""
    audit_logger = logging.getLogger('audit')
    audit_logger.setLevel(logging.INFO)

    # Already configured by an earlier call
    if audit_logger.handlers:
        return audit_logger

    log_dir = os.path.join(current_app.instance_path, 'logs')
    os.makedirs(log_dir, exist_ok=True)

    log_file = os.path.join(log_dir, 'audit.log')
    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    audit_logger.addHandler(file_handler)

    # Prevent propagation to root logger
    audit_logger.propagate = False

    return audit_logger


def get_current_user_info(user_id: Optional[str] = None) -> str:
    """Get current user information for audit logging."""
    if user_id:
        return f"ID: {user_id}"
    if has_request_context() and current_user.is_authenticated:
        return f"{current_user.email} (ID: {current_user.id})"
    return "SYSTEM"


def _format_changes(changes: Optional[Dict[str, Any]]) -> str:
    if not changes:
        return ""
    return " | Changes: " + ", ".join(f"{field}={value!r}" for field, value in changes.items())


def _log_record(operation: str, model_name: str, record_id: Union[int, str], description: str,
                user_id: Optional[str] = None, changes: Optional[Dict[str, Any]] = None):
    logger = setup_audit_logger()
    logger.info(f"{operation} | {model_name} | ID: {record_id} | "
                f"User: {get_current_user_info(user_id)} | {description}{_format_changes(changes)}")


def audit_log_create(model_name: str, record_id: Union[int, str], description: str,
                     user_id: Optional[str] = None):
    """
    Log creation of an event, venue or user.

    Args:
        model_name: 'Event', 'Venue' or 'User'
        record_id: id of the new row
        description: what was created, e.g. 'Created event: Spring Cup'
        user_id: acting user when no one is logged in on the request
    """
    _log_record('CREATE', model_name, record_id, description, user_id)


def audit_log_update(model_name: str, record_id: Union[int, str], description: str,
                     changes: Optional[Dict[str, Any]] = None, user_id: Optional[str] = None):
    """
    Log an update. ``changes`` maps each changed field to its previous value.
    """
    _log_record('UPDATE', model_name, record_id, description, user_id, changes)


def audit_log_delete(model_name: str, record_id: Union[int, str], description: str,
                     user_id: Optional[str] = None):
    _log_record('DELETE', model_name, record_id, description, user_id)


def audit_log_authentication(event_type: str, email: str, success: bool):
    """
    Log a sign up, login or logout attempt.

    Failed attempts are logged with the submitted email so repeated
    guessing against one account shows up in the audit trail.
    """
    logger = setup_audit_logger()
    outcome = "SUCCESS" if success else "FAILURE"
    logger.info(f"AUTH | {event_type} | {outcome} | User: {email}")


def audit_log_security_event(event_type: str, description: str, user_id: Optional[str] = None):
    """Log a denied operation (e.g. 'ACCESS_DENIED') at warning level."""
    logger = setup_audit_logger()
    logger.warning(f"SECURITY | {event_type} | User: {get_current_user_info(user_id)} | {description}")


def get_model_changes(model_instance, new_values: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return ``{field: old_value}`` for every field in new_values that differs
    from the instance. Old values are stringified for the log line.
    """
    changes = {}
    for field, new_value in new_values.items():
        if not hasattr(model_instance, field):
            continue
        old_value = getattr(model_instance, field)
        if old_value != new_value:
            changes[field] = str(old_value) if old_value is not None else None
    return changes
