"""
Events blueprint.

JSON endpoints for events, venues and sport types. Writes require a
logged in user; reads are public.
"""

from flask import Blueprint

bp = Blueprint('events', __name__)

from sportevents.events import routes
