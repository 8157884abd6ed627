# Event, venue and sport type routes. Every route delegates to an action
# and returns its tagged result as JSON.

from sportevents import db
from sportevents.events import bp
from sportevents.events.actions import (
    create_event, delete_event, get_event, list_events, list_sport_types, list_venues,
    update_event,
)
from sportevents.events.services import EventService
from sportevents.events.store import EventStore
from sportevents.utils import action_response, request_payload

# Client-side spellings accepted for snake_case fields
FIELD_ALIASES = {'sportType': 'sport_type', 'dateTime': 'date_time'}


def get_event_service():
    return EventService(EventStore(db.session))


def event_payload(**overrides):
    """
    Build an action payload from the request, resolving field aliases.

    Keyword overrides (such as the event id taken from the URL) replace
    anything the client sent under the same name.
    """
    payload = request_payload()
    payload = payload.copy() if hasattr(payload, 'getlist') else dict(payload)

    for alias, name in FIELD_ALIASES.items():
        if alias in payload and name not in payload:
            payload[name] = payload[alias]

    for name, value in overrides.items():
        payload[name] = value
    return payload


@bp.route('/events', methods=['GET'])
def events():
    """
    List events, optionally filtered by ?search= and ?sport_type=
    """
    return action_response(list_events(event_payload(), service=get_event_service()))


@bp.route('/events', methods=['POST'])
def add_event():
    return action_response(create_event(event_payload(), service=get_event_service()),
                           success_status=201)


@bp.route('/events/<event_id>', methods=['GET'])
def event_detail(event_id):
    return action_response(get_event({'id': event_id}, service=get_event_service()))


@bp.route('/events/<event_id>', methods=['PUT'])
def edit_event(event_id):
    """
    Replace an event's fields and venues. The id in the URL wins over
    any id in the body.
    """
    return action_response(update_event(event_payload(id=event_id), service=get_event_service()))


@bp.route('/events/<event_id>', methods=['DELETE'])
def remove_event(event_id):
    return action_response(delete_event({'id': event_id}, service=get_event_service()))


@bp.route('/venues')
def venues():
    return action_response(list_venues(service=get_event_service()))


@bp.route('/sports')
def sports():
    return action_response(list_sport_types())
