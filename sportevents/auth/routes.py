# Authentication routes. Every route delegates to an action and returns
# its tagged result as JSON.

from flask import current_app, jsonify
from flask_wtf.csrf import generate_csrf

from sportevents import db, limiter
from sportevents.auth import bp
from sportevents.auth.actions import log_in, log_out, sign_up, who_am_i
from sportevents.auth.store import UserStore
from sportevents.utils import action_response, request_payload


def auth_rate_limit():
    return current_app.config.get('AUTH_RATE_LIMIT', '10 per minute')


def get_user_store():
    return UserStore(db.session)


@bp.route('/signup', methods=['POST'])
@limiter.limit(auth_rate_limit)
def signup():
    """
    Create an account and log it in
    """
    return action_response(sign_up(request_payload(), users=get_user_store()), success_status=201)


@bp.route('/login', methods=['POST'])
@limiter.limit(auth_rate_limit)
def login():
    """
    Start a session for an existing account
    """
    return action_response(log_in(request_payload(), users=get_user_store()))


@bp.route('/logout', methods=['POST'])
def logout():
    return action_response(log_out())


@bp.route('/me')
def me():
    return action_response(who_am_i())


@bp.route('/csrf-token')
def csrf_token():
    """
    Issue a CSRF token for session authenticated API clients
    """
    return jsonify({'success': True, 'data': {'csrf_token': generate_csrf()}})
