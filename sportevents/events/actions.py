"""
Event and venue actions.

Handlers receive the validated input, the caller's identity and an
``EventService`` passed in by the caller as the ``service`` dependency.
"""

from flask import current_app

from sportevents.actions import ActionResult, create_action
from sportevents.events.forms import (
    CreateEventForm, DeleteEventForm, EventFilterForm, EventLookupForm, UpdateEventForm,
)


def _outcome_result(outcome, verb):
    if not outcome.partial:
        return ActionResult(data=outcome.to_dict())
    count = len(outcome.skipped_venues)
    noun = 'venue' if count == 1 else 'venues'
    return ActionResult(
        data=outcome.to_dict(),
        message=f'Event {verb}, but {count} {noun} could not be linked',
    )


@create_action(schema=CreateEventForm, success_message='Event created successfully')
def create_event(data, identity, service):
    outcome = service.create_event(identity.id, data)
    return _outcome_result(outcome, 'created')


@create_action(schema=UpdateEventForm, success_message='Event updated successfully')
def update_event(data, identity, service):
    outcome = service.update_event(identity.id, data)
    return _outcome_result(outcome, 'updated')


@create_action(schema=DeleteEventForm, success_message='Event deleted successfully')
def delete_event(event_id, identity, service):
    service.delete_event(identity.id, event_id)
    return None


@create_action(schema=EventFilterForm, require_auth=False)
def list_events(filters, identity, service):
    return [event.to_dict() for event in service.list_events(filters)]


@create_action(schema=EventLookupForm, require_auth=False)
def get_event(event_id, identity, service):
    return service.get_event(event_id).to_dict()


@create_action(require_auth=False)
def list_venues(data, identity, service):
    return [venue.to_dict() for venue in service.list_venues()]


@create_action(require_auth=False)
def list_sport_types(data, identity):
    return list(current_app.config['SPORT_TYPES'])
