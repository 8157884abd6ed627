"""
Identity resolution for the action pipeline.
"""

from dataclasses import dataclass
from typing import Optional

from flask import current_app, has_request_context
from flask_login import current_user


@dataclass(frozen=True)
class Identity:
    """The authenticated caller: an opaque id plus optional profile fields."""

    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> 'Identity':
        return cls(
            id=str(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
        }


def current_identity() -> Optional[Identity]:
    """
    Resolve the logged in user from the Flask-Login session.

    Returns None when there is no request, no session or the session
    cannot be loaded.
    """
    if not has_request_context():
        return None
    try:
        if not current_user.is_authenticated:
            return None
        return Identity.from_user(current_user)
    except Exception as e:
        current_app.logger.error(f"Error resolving current user: {str(e)}")
        return None
