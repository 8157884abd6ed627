"""
Unit tests for EventService against the test database.
"""
import uuid
import pytest
import sqlalchemy as sa
from datetime import datetime
from unittest.mock import patch
from sqlalchemy.exc import OperationalError
from sportevents.errors import EventNotFoundError, OperationFailedError, PermissionDeniedError
from sportevents.events.forms import EventFilter, EventInput, VenueInput
from sportevents.events.services import EventService
from sportevents.events.store import EventStore
from sportevents.models import Event, Venue, event_venues
from sportevents.signals import dashboard_invalidated
from tests.fixtures.factories import EventFactory, VenueFactory


def make_input(**overrides):
    values = {
        'name': 'Spring Cup',
        'sport_type': 'Soccer',
        'date_time': datetime(2026, 5, 1, 14, 0),
        'description': 'Season opener',
        'venues': (VenueInput(name='Riverside Arena', city='Springfield'),),
    }
    values.update(overrides)
    return EventInput(**values)


def link_count(session, event_id):
    return session.scalar(
        sa.select(sa.func.count()).select_from(event_venues).where(event_venues.c.event_id == event_id)
    )


class FailingVenueStore(EventStore):
    """Store whose venue inserts fail for one venue name."""

    def __init__(self, session, failing_name):
        super().__init__(session)
        self.failing_name = failing_name

    def add_venue(self, name, address=None, city=None, state=None):
        if name == self.failing_name:
            raise OperationalError('INSERT INTO venues', {}, Exception('disk I/O error'))
        return super().add_venue(name, address=address, city=city, state=state)


class FailingLinkStore(EventStore):
    """Store that cannot link one venue id."""

    def __init__(self, session, failing_venue_id):
        super().__init__(session)
        self.failing_venue_id = failing_venue_id

    def add_link(self, event_id, venue_id):
        if venue_id == self.failing_venue_id:
            raise OperationalError('INSERT INTO event_venues', {}, Exception('disk I/O error'))
        super().add_link(event_id, venue_id)


class BrokenCommitStore(EventStore):
    """Store whose commits always fail."""

    def commit(self):
        raise OperationalError('COMMIT', {}, Exception('disk I/O error'))


class BrokenEventInsertStore(EventStore):
    def add_event(self, **fields):
        raise OperationalError('INSERT INTO events', {}, Exception('disk I/O error'))


class BrokenClearLinksStore(EventStore):
    def clear_links(self, event_id):
        raise OperationalError('DELETE FROM event_venues', {}, Exception('disk I/O error'))


def event_count(session):
    return session.scalar(sa.select(sa.func.count()).select_from(Event))


@pytest.mark.unit
class TestCreateEvent:
    """Test cases for EventService.create_event."""

    def test_create_then_get_returns_all_venues(self, event_service, owner, invalidations):
        data = make_input(venues=(
            VenueInput(name='Riverside Arena', address='200 River Street', city='Springfield', state='IL'),
            VenueInput(name='Central Park Field'),
        ))

        outcome = event_service.create_event(owner.id, data)
        fetched = event_service.get_event(outcome.event.event.id)

        assert outcome.partial is False
        assert fetched.event.name == 'Spring Cup'
        assert fetched.event.user_id == owner.id
        assert fetched.event.date_time == datetime(2026, 5, 1, 14, 0)
        assert [venue.name for venue in fetched.venues] == ['Central Park Field', 'Riverside Arena']
        assert all(venue.id for venue in fetched.venues)
        riverside = fetched.venues[1]
        assert (riverside.address, riverside.city, riverside.state) == ('200 River Street', 'Springfield', 'IL')
        assert invalidations == ['/dashboard']

    def test_existing_venue_is_reused(self, event_service, owner, db_session):
        venue = VenueFactory.create(name='Riverside Arena')

        outcome = event_service.create_event(owner.id, make_input(venues=(
            VenueInput(id=venue.id, name='Riverside Arena'),
        )))

        assert [v.id for v in outcome.event.venues] == [venue.id]
        assert db_session.scalar(sa.select(sa.func.count()).select_from(Venue)) == 1

    def test_duplicate_venue_in_submission_linked_once(self, event_service, owner, db_session):
        venue = VenueFactory.create()

        outcome = event_service.create_event(owner.id, make_input(venues=(
            VenueInput(id=venue.id, name=venue.name),
            VenueInput(id=venue.id, name=venue.name),
        )))

        assert outcome.partial is False
        assert link_count(db_session, outcome.event.event.id) == 1

    def test_unknown_venue_id_is_skipped(self, event_service, owner, db_session):
        missing_id = str(uuid.uuid4())

        outcome = event_service.create_event(owner.id, make_input(venues=(
            VenueInput(name='Riverside Arena'),
            VenueInput(id=missing_id, name='Ghost Venue'),
        )))

        assert outcome.partial is True
        assert [venue.name for venue in outcome.skipped_venues] == ['Ghost Venue']
        assert [venue.name for venue in outcome.event.venues] == ['Riverside Arena']
        assert outcome.to_dict()['skipped_venues'] == ['Ghost Venue']

    def test_failing_venue_insert_skips_only_that_venue(self, db_session, owner, invalidations):
        service = EventService(FailingVenueStore(db_session, 'Broken Venue'),
                               invalidate=lambda: invalidations.append('/dashboard'))

        outcome = service.create_event(owner.id, make_input(venues=(
            VenueInput(name='Riverside Arena'),
            VenueInput(name='Broken Venue'),
            VenueInput(name='Central Park Field'),
        )))

        assert [venue.name for venue in outcome.skipped_venues] == ['Broken Venue']
        fetched = service.get_event(outcome.event.event.id)
        assert [venue.name for venue in fetched.venues] == ['Central Park Field', 'Riverside Arena']
        assert invalidations == ['/dashboard']

    def test_failing_link_leaves_created_venue_unlinked(self, db_session, owner):
        venue = VenueFactory.create(name='Unlinkable Hall')
        service = EventService(FailingLinkStore(db_session, venue.id), invalidate=lambda: None)

        outcome = service.create_event(owner.id, make_input(venues=(
            VenueInput(id=venue.id, name='Unlinkable Hall'),
            VenueInput(name='Riverside Arena'),
        )))

        assert [v.name for v in outcome.skipped_venues] == ['Unlinkable Hall']
        assert [v.name for v in outcome.event.venues] == ['Riverside Arena']

    def test_creation_is_audited(self, event_service, owner):
        with patch('sportevents.events.services.audit_log_create') as mock_audit:
            event_service.create_event(owner.id, make_input())

        logged = [(c.args[0], c.args[2]) for c in mock_audit.call_args_list]
        assert ('Event', 'Created event: Spring Cup') in logged
        assert ('Venue', 'Created venue: Riverside Arena') in logged

    def test_failed_commit_persists_nothing(self, db_session, owner, invalidations):
        service = EventService(BrokenCommitStore(db_session),
                               invalidate=lambda: invalidations.append('/dashboard'))

        with pytest.raises(OperationFailedError) as excinfo:
            service.create_event(owner.id, make_input())

        assert excinfo.value.message == 'Failed to create event'
        assert event_count(db_session) == 0
        assert db_session.scalar(sa.select(sa.func.count()).select_from(Venue)) == 0
        assert invalidations == []

    def test_failed_event_insert_persists_nothing(self, db_session, owner):
        service = EventService(BrokenEventInsertStore(db_session), invalidate=lambda: None)

        with pytest.raises(OperationFailedError) as excinfo:
            service.create_event(owner.id, make_input())

        assert excinfo.value.message == 'Failed to create event'
        assert event_count(db_session) == 0


@pytest.mark.unit
class TestUpdateEvent:
    """Test cases for EventService.update_event."""

    def test_venue_set_replaced(self, event_service, owner, db_session):
        venue_a = VenueFactory.create(name='Arena A')
        venue_b = VenueFactory.create(name='Arena B')
        created = event_service.create_event(owner.id, make_input(venues=(
            VenueInput(id=venue_a.id, name='Arena A'),
            VenueInput(id=venue_b.id, name='Arena B'),
        )))
        event_id = created.event.event.id

        outcome = event_service.update_event(owner.id, make_input(
            id=event_id,
            name='Spring Cup Final',
            venues=(VenueInput(id=venue_b.id, name='Arena B'), VenueInput(name='Arena C')),
        ))

        fetched = event_service.get_event(event_id)
        assert outcome.partial is False
        assert fetched.event.name == 'Spring Cup Final'
        assert [venue.name for venue in fetched.venues] == ['Arena B', 'Arena C']
        assert fetched.venues[0].id == venue_b.id
        # Arena A is unlinked but not deleted
        assert db_session.get(Venue, venue_a.id) is not None
        assert db_session.scalar(sa.select(sa.func.count()).select_from(Venue)) == 3

    def test_all_fields_updated(self, event_service, owner, test_user):
        event = EventFactory.create(owner=test_user, name='Old', sport_type='Tennis', description='Old text')

        event_service.update_event(owner.id, make_input(
            id=event.id, name='New', sport_type='Basketball',
            date_time=datetime(2026, 9, 1, 18, 30), description=None,
        ))

        fetched = event_service.get_event(event.id)
        assert fetched.event.name == 'New'
        assert fetched.event.sport_type == 'Basketball'
        assert fetched.event.date_time == datetime(2026, 9, 1, 18, 30)
        assert fetched.event.description is None

    def test_non_owner_cannot_update(self, event_service, owner, stranger, invalidations):
        created = event_service.create_event(owner.id, make_input())
        event_id = created.event.event.id
        invalidations.clear()

        with pytest.raises(PermissionDeniedError):
            event_service.update_event(stranger.id, make_input(id=event_id, name='Hijacked', venues=()))

        fetched = event_service.get_event(event_id)
        assert fetched.event.name == 'Spring Cup'
        assert [venue.name for venue in fetched.venues] == ['Riverside Arena']
        assert invalidations == []

    def test_missing_event(self, event_service, owner):
        with pytest.raises(EventNotFoundError):
            event_service.update_event(owner.id, make_input(id=str(uuid.uuid4())))

    @pytest.mark.parametrize('store_class', [BrokenClearLinksStore, BrokenCommitStore])
    def test_failed_update_keeps_original_event(self, store_class, event_service, owner, db_session,
                                                invalidations):
        created = event_service.create_event(owner.id, make_input())
        event_id = created.event.event.id
        invalidations.clear()
        service = EventService(store_class(db_session),
                               invalidate=lambda: invalidations.append('/dashboard'))

        with pytest.raises(OperationFailedError) as excinfo:
            service.update_event(owner.id, make_input(
                id=event_id, name='Renamed Cup', venues=(VenueInput(name='Downtown Gym'),),
            ))

        assert excinfo.value.message == 'Failed to update event'
        db_session.expire_all()
        fetched = event_service.get_event(event_id)
        assert fetched.event.name == 'Spring Cup'
        assert [venue.name for venue in fetched.venues] == ['Riverside Arena']
        assert invalidations == []


@pytest.mark.unit
class TestDeleteEvent:
    """Test cases for EventService.delete_event."""

    def test_delete_twice_is_a_no_op(self, event_service, owner, db_session, invalidations):
        created = event_service.create_event(owner.id, make_input())
        event_id = created.event.event.id

        assert event_service.delete_event(owner.id, event_id) is True
        assert event_service.delete_event(owner.id, event_id) is False

        assert db_session.get(Event, event_id) is None
        assert link_count(db_session, event_id) == 0
        # Venues outlive the events that used them
        assert db_session.scalar(sa.select(sa.func.count()).select_from(Venue)) == 1
        assert invalidations == ['/dashboard', '/dashboard', '/dashboard']

    def test_non_owner_delete_changes_nothing(self, event_service, owner, stranger, db_session):
        created = event_service.create_event(owner.id, make_input())
        event_id = created.event.event.id

        assert event_service.delete_event(stranger.id, event_id) is False
        assert db_session.get(Event, event_id) is not None


@pytest.mark.unit
class TestReadEvents:
    """Test cases for listing and fetching events."""

    @pytest.fixture
    def two_events(self, event_service, owner):
        event_service.create_event(owner.id, make_input(
            name='Spring Cup', sport_type='Soccer', date_time=datetime(2026, 4, 1, 10, 0),
        ))
        event_service.create_event(owner.id, make_input(
            name='Fall Classic', sport_type='Basketball', date_time=datetime(2026, 10, 1, 10, 0),
            venues=(VenueInput(name='Downtown Gym'), VenueInput(name='Bayside Court')),
        ))

    def test_list_ordered_by_date(self, event_service, two_events):
        events = event_service.list_events()

        assert [e.event.name for e in events] == ['Spring Cup', 'Fall Classic']
        assert [v.name for v in events[1].venues] == ['Bayside Court', 'Downtown Gym']

    def test_search_is_case_insensitive_substring(self, event_service, two_events):
        events = event_service.list_events(EventFilter(search='cup'))

        assert [e.event.name for e in events] == ['Spring Cup']

    def test_sport_type_is_exact(self, event_service, two_events):
        events = event_service.list_events(EventFilter(sport_type='Basketball'))

        assert [e.event.name for e in events] == ['Fall Classic']

    def test_non_matching_combination_is_empty(self, event_service, two_events):
        assert event_service.list_events(EventFilter(search='cup', sport_type='Basketball')) == []

    def test_like_wildcards_match_literally(self, event_service, two_events):
        assert event_service.list_events(EventFilter(search='%')) == []
        assert event_service.list_events(EventFilter(search='_')) == []

    def test_get_missing_event(self, event_service, db_session):
        with pytest.raises(EventNotFoundError):
            event_service.get_event(str(uuid.uuid4()))

    def test_event_without_links_has_no_venues(self, event_service, test_user):
        event = EventFactory.create(owner=test_user)

        assert event_service.get_event(event.id).venues == []

    def test_list_venues_ordered_by_name(self, event_service, db_session):
        VenueFactory.create(name='Zeta Park')
        VenueFactory.create(name='Alpha Hall')

        assert [v.name for v in event_service.list_venues()] == ['Alpha Hall', 'Zeta Park']

    def test_projection_serializes_venues(self, event_service, two_events):
        data = event_service.list_events(EventFilter(search='Fall'))[0].to_dict()

        assert data['name'] == 'Fall Classic'
        assert data['date_time'] == '2026-10-01T10:00:00'
        assert [v['name'] for v in data['venues']] == ['Bayside Court', 'Downtown Gym']


@pytest.mark.unit
class TestDashboardInvalidation:
    """The default invalidation hook sends the dashboard_invalidated signal."""

    def test_signal_sent_on_create(self, app, db_session, owner):
        received = []

        def receiver(sender, path, **extra):
            received.append((sender, path))

        service = EventService(EventStore(db_session))
        with dashboard_invalidated.connected_to(receiver):
            service.create_event(owner.id, make_input())

        assert received == [(app, '/dashboard')]

