"""
Authentication actions.

Each action runs through the action pipeline, so callers always receive
an ``Ok`` or ``Err`` result. Actions that read or write accounts take a
``UserStore`` as the ``users`` dependency.
"""

from datetime import datetime

from flask_login import login_user, logout_user
from sqlalchemy.exc import IntegrityError

from sportevents.actions import ActionResult, create_action
from sportevents.audit import audit_log_authentication, audit_log_create
from sportevents.auth.forms import LoginForm, SignUpForm
from sportevents.auth.utils import Identity, current_identity
from sportevents.errors import EmailTakenError, InvalidCredentialsError
from sportevents.models import User


@create_action(schema=SignUpForm, require_auth=False, success_message='Account created successfully')
def sign_up(data, identity, users):
    """Create an account and start a session for it."""
    if users.find_by_email(data['email']) is not None:
        audit_log_authentication('SIGNUP', data['email'], False)
        raise EmailTakenError()

    user = User(
        email=data['email'],
        first_name=data['first_name'],
        last_name=data['last_name'],
        last_login=datetime.utcnow(),
    )
    user.set_password(data['password'])
    users.add(user)
    try:
        users.commit()
    except IntegrityError:
        # Lost a race with a concurrent sign up for the same email
        users.rollback()
        raise EmailTakenError()

    login_user(user)

    audit_log_create('User', user.id, f'Signed up: {user.email}', user_id=user.id)
    audit_log_authentication('SIGNUP', user.email, True)

    return Identity.from_user(user).to_dict()


@create_action(schema=LoginForm, require_auth=False, success_message='Logged in successfully')
def log_in(data, identity, users):
    user = users.find_by_email(data['email'])

    if user is None or not user.check_password(data['password']):
        audit_log_authentication('LOGIN', data['email'], False)
        raise InvalidCredentialsError()

    login_user(user, remember=False)

    user.last_login = datetime.utcnow()
    users.commit()

    audit_log_authentication('LOGIN', user.email, True)

    return Identity.from_user(user).to_dict()


@create_action(require_auth=False, success_message='Logged out successfully')
def log_out(data, identity):
    """End the current session. Logging out without a session is a no-op."""
    resolved = current_identity()
    if resolved is None:
        return ActionResult(data=None, message='You are not logged in')

    logout_user()
    audit_log_authentication('LOGOUT', resolved.email, True)
    return None


@create_action()
def who_am_i(data, identity):
    return identity.to_dict()
