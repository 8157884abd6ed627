"""
Storage access for events, venues and their link rows.

EventStore wraps a SQLAlchemy session and exposes one method per table
operation. It never commits: the service decides where a unit of work
begins and ends. Keep business rules (ownership, partial failure policy)
out of this module.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

import sqlalchemy as sa

from sportevents.models import Event, Venue, event_venues


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so a search term matches literally."""
    return term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


class EventStore:
    """Table level operations on events, venues and event_venues."""

    def __init__(self, session):
        self.session = session

    # Transaction control

    def savepoint(self):
        """Begin a SAVEPOINT; use as a context manager."""
        return self.session.begin_nested()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    # Events

    def add_event(self, **fields) -> Event:
        event = Event(**fields)
        self.session.add(event)
        self.session.flush()
        return event

    def get_event(self, event_id: str) -> Optional[Event]:
        return self.session.get(Event, event_id)

    def update_event(self, event: Event, **fields) -> Event:
        for name, value in fields.items():
            setattr(event, name, value)
        self.session.flush()
        return event

    def delete_event(self, event_id: str, owner_id: str) -> int:
        """Delete an event owned by owner_id. Returns the number of rows removed."""
        result = self.session.execute(
            sa.delete(Event)
            .where(Event.id == event_id, Event.user_id == owner_id)
        )
        return result.rowcount

    def find_events(self, search: Optional[str] = None, sport_type: Optional[str] = None) -> List[Event]:
        """
        Events ordered by date_time ascending.

        Args:
            search: case-insensitive substring of the event name
            sport_type: exact sport type
        """
        query = sa.select(Event).order_by(Event.date_time.asc(), Event.created_at.asc())

        if search:
            query = query.where(Event.name.ilike(f'%{escape_like(search)}%', escape='\\'))

        if sport_type:
            query = query.where(Event.sport_type == sport_type)

        return list(self.session.scalars(query).all())

    # Venues

    def add_venue(self, name: str, address: Optional[str] = None,
                  city: Optional[str] = None, state: Optional[str] = None) -> Venue:
        venue = Venue(name=name, address=address, city=city, state=state)
        self.session.add(venue)
        self.session.flush()
        return venue

    def list_venues(self) -> List[Venue]:
        return list(self.session.scalars(
            sa.select(Venue).order_by(Venue.name, Venue.created_at)
        ).all())

    # Links

    def add_link(self, event_id: str, venue_id: str) -> None:
        self.session.execute(
            sa.insert(event_venues).values(event_id=event_id, venue_id=venue_id)
        )

    def clear_links(self, event_id: str) -> int:
        result = self.session.execute(
            sa.delete(event_venues).where(event_venues.c.event_id == event_id)
        )
        return result.rowcount

    def venues_for_events(self, event_ids: Iterable[str]) -> Dict[str, List[Venue]]:
        """
        Resolve linked venues for many events in one query.

        Returns a mapping of event id to its venues ordered by name. Events
        without links map to an empty list.
        """
        event_ids = list(event_ids)
        grouped = defaultdict(list)
        if not event_ids:
            return grouped

        rows = self.session.execute(
            sa.select(event_venues.c.event_id, Venue)
            .join(Venue, Venue.id == event_venues.c.venue_id)
            .where(event_venues.c.event_id.in_(event_ids))
            .order_by(Venue.name, Venue.id)
        ).all()

        for event_id, venue in rows:
            grouped[event_id].append(venue)
        return grouped
