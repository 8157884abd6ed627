"""
Event and venue business logic.

EventService owns the unit of work for every mutation: it opens no more
than one transaction per operation and commits it exactly once. Venue
creation and linking run inside SAVEPOINTs so that one failing venue is
rolled back on its own and reported back as skipped.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from sportevents.audit import (
    audit_log_create, audit_log_delete, audit_log_security_event, audit_log_update,
    get_model_changes,
)
from sportevents.errors import EventNotFoundError, OperationFailedError, PermissionDeniedError
from sportevents.events.forms import EventFilter, EventInput, VenueInput
from sportevents.events.store import EventStore
from sportevents.models import Event, Venue
from sportevents.signals import notify_dashboard_stale


@dataclass
class EventWithVenues:
    """Read projection: an event plus its linked venues."""

    event: Event
    venues: List[Venue] = field(default_factory=list)

    def to_dict(self):
        data = self.event.to_dict()
        data['venues'] = [venue.to_dict() for venue in self.venues]
        return data


@dataclass
class EventOutcome:
    """Result of a create or update, including venues that were not linked."""

    event: EventWithVenues
    skipped_venues: List[VenueInput] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.skipped_venues)

    def to_dict(self):
        data = self.event.to_dict()
        data['skipped_venues'] = [venue.name for venue in self.skipped_venues]
        return data


class EventService:
    def __init__(self, store: EventStore, invalidate: Optional[Callable[[], None]] = None):
        self.store = store
        self.invalidate = invalidate or notify_dashboard_stale

    def create_event(self, owner_id: str, data: EventInput) -> EventOutcome:
        """
        Create an event owned by owner_id and link its venues.

        The event row is mandatory: if it cannot be written nothing is
        persisted. Venues that fail to insert or link are skipped.
        """
        try:
            event = self.store.add_event(
                name=data.name,
                sport_type=data.sport_type,
                date_time=data.date_time,
                description=data.description,
                user_id=owner_id,
            )
            created, skipped = self._attach_venues(event.id, data.venues)
            self.store.commit()
        except SQLAlchemyError as e:
            self.store.rollback()
            current_app.logger.error(f"Event creation failed for user {owner_id}: {e}")
            raise OperationFailedError('Failed to create event') from e

        audit_log_create('Event', event.id, f'Created event: {event.name}', user_id=owner_id)
        self._audit_new_venues(created, owner_id)
        if skipped:
            current_app.logger.warning(f"Event {event.id} created with {len(skipped)} skipped venue(s)")

        self.invalidate()
        return EventOutcome(self._resolve_one(event), skipped)

    def update_event(self, owner_id: str, data: EventInput) -> EventOutcome:
        """
        Replace an event's fields and venue links.

        Links are cleared and rebuilt inside the same transaction, so other
        readers never observe the event without venues.
        """
        event = self.store.get_event(data.id)
        if event is None:
            raise EventNotFoundError(data.id)

        if event.user_id != owner_id:
            audit_log_security_event(
                'ACCESS_DENIED', f'Attempted to update event {event.id} owned by another user',
                user_id=owner_id
            )
            raise PermissionDeniedError()

        fields = {
            'name': data.name,
            'sport_type': data.sport_type,
            'date_time': data.date_time,
            'description': data.description,
        }
        changes = get_model_changes(event, fields)

        try:
            # Setting updated_at guarantees an UPDATE is emitted before any SAVEPOINT
            self.store.update_event(event, updated_at=datetime.utcnow(), **fields)
            self.store.clear_links(event.id)
            created, skipped = self._attach_venues(event.id, data.venues)
            self.store.commit()
        except SQLAlchemyError as e:
            self.store.rollback()
            current_app.logger.error(f"Event update failed for event {data.id}: {e}")
            raise OperationFailedError('Failed to update event') from e

        audit_log_update('Event', event.id, f'Updated event: {event.name}', changes, user_id=owner_id)
        self._audit_new_venues(created, owner_id)

        self.invalidate()
        return EventOutcome(self._resolve_one(event), skipped)

    def delete_event(self, owner_id: str, event_id: str) -> bool:
        """
        Delete an event if owner_id owns it.

        Deleting a missing or foreign event is a no-op, not an error.
        Returns True when a row was removed.
        """
        try:
            deleted = self.store.delete_event(event_id, owner_id)
            self.store.commit()
        except SQLAlchemyError as e:
            self.store.rollback()
            current_app.logger.error(f"Event deletion failed for event {event_id}: {e}")
            raise OperationFailedError('Failed to delete event') from e

        if deleted:
            audit_log_delete('Event', event_id, 'Deleted event', user_id=owner_id)
        else:
            current_app.logger.info(f"Delete of event {event_id} by user {owner_id} matched no rows")

        self.invalidate()
        return bool(deleted)

    def list_events(self, filters: Optional[EventFilter] = None) -> List[EventWithVenues]:
        filters = filters or EventFilter()
        try:
            events = self.store.find_events(search=filters.search, sport_type=filters.sport_type)
            venues = self.store.venues_for_events(event.id for event in events)
        except SQLAlchemyError as e:
            self.store.rollback()
            current_app.logger.error(f"Event listing failed: {e}")
            raise OperationFailedError('Failed to fetch events') from e

        return [EventWithVenues(event, venues.get(event.id, [])) for event in events]

    def get_event(self, event_id: str) -> EventWithVenues:
        try:
            event = self.store.get_event(event_id)
            resolved = self._resolve_one(event) if event is not None else None
        except SQLAlchemyError as e:
            self.store.rollback()
            current_app.logger.error(f"Event lookup failed for event {event_id}: {e}")
            raise OperationFailedError('Failed to fetch event') from e

        if resolved is None:
            raise EventNotFoundError(event_id)
        return resolved

    def list_venues(self) -> List[Venue]:
        try:
            return self.store.list_venues()
        except SQLAlchemyError as e:
            self.store.rollback()
            current_app.logger.error(f"Venue listing failed: {e}")
            raise OperationFailedError('Failed to fetch venues') from e

    def _resolve_one(self, event: Event) -> EventWithVenues:
        venues = self.store.venues_for_events([event.id])
        return EventWithVenues(event, venues.get(event.id, []))

    def _attach_venues(self, event_id: str, venues):
        """
        Create (when needed) and link each submitted venue.

        Returns (created venues, skipped venue inputs). Must run after the
        enclosing transaction has emitted its first write.
        """
        created = []
        skipped = []
        linked = set()

        for venue in venues:
            venue_id = venue.id
            if not venue_id:
                try:
                    with self.store.savepoint():
                        new_venue = self.store.add_venue(
                            name=venue.name, address=venue.address,
                            city=venue.city, state=venue.state,
                        )
                except SQLAlchemyError as e:
                    current_app.logger.warning(f"Skipping venue '{venue.name}': could not be created: {e}")
                    skipped.append(venue)
                    continue
                created.append(new_venue)
                venue_id = new_venue.id

            if venue_id in linked:
                continue

            try:
                with self.store.savepoint():
                    self.store.add_link(event_id, venue_id)
            except SQLAlchemyError as e:
                current_app.logger.warning(f"Skipping venue '{venue.name}': could not be linked to event {event_id}: {e}")
                skipped.append(venue)
                continue
            linked.add(venue_id)

        return created, skipped

    def _audit_new_venues(self, venues: List[Venue], owner_id: str) -> None:
        for venue in venues:
            audit_log_create('Venue', venue.id, f'Created venue: {venue.name}', user_id=owner_id)
