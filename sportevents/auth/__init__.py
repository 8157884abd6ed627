"""
Authentication blueprint.

Sign up, log in and log out actions backed by Flask-Login sessions, plus
the identity resolver used by the action pipeline's authentication gate.
"""

from flask import Blueprint

bp = Blueprint('auth', __name__)

from sportevents.auth import routes
