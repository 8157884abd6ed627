# Helpers shared by the HTTP blueprints: turning requests into action
# payloads and action results into JSON responses.

from flask import abort, jsonify, request


def request_payload():
    """
    Return the action payload carried by the current request.

    JSON bodies must be objects; form posts and query strings are passed
    through as MultiDicts.
    """
    if request.method == 'GET':
        return request.args
    if request.is_json:
        payload = request.get_json(silent=True)
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            abort(400)
        return payload
    return request.form


def action_response(result, success_status=200):
    """Serialize an action result, deriving the HTTP status from it."""
    status = success_status if result.success else result.http_status
    return jsonify(result.to_dict()), status
