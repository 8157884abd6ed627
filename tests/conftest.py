"""
Test configuration and fixtures for the Sport Events application.
"""
import os

# config.py refuses to load without a SECRET_KEY
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'

import pytest
from sportevents import create_app, db
from sportevents.auth.utils import Identity
from sportevents.events.services import EventService
from sportevents.events.store import EventStore
from tests.fixtures.factories import UserFactory


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app('testing')

    with app.app_context():
        # Ensure all models are registered with SQLAlchemy
        from sportevents import models

        db.create_all()

        import sqlalchemy as sa
        tables = sa.inspect(db.engine).get_table_names()
        if 'event_venues' not in tables:
            raise RuntimeError(f"Database setup failed. Tables created: {tables}")

        yield app

        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create test CLI runner."""
    return app.test_cli_runner()


@pytest.fixture
def db_session(app):
    """Create database session for testing."""
    with app.app_context():
        yield db.session

        # Clear all tables for clean state between tests
        try:
            db.session.rollback()
            for table in reversed(db.metadata.sorted_tables):
                db.session.execute(table.delete())
            db.session.commit()
        except Exception:
            db.session.rollback()
        finally:
            db.session.remove()


@pytest.fixture
def test_user(db_session):
    """Create a basic test user."""
    return UserFactory.create(
        email='testuser@example.com',
        first_name='Test',
        last_name='User',
        password='testpassword123'
    )


@pytest.fixture
def other_user(db_session):
    """Create a second user who owns nothing of test_user's."""
    return UserFactory.create(
        email='otheruser@example.com',
        first_name='Other',
        last_name='User',
        password='otherpassword123'
    )


@pytest.fixture
def owner(test_user):
    """Identity of test_user as seen by the action pipeline."""
    return Identity.from_user(test_user)


@pytest.fixture
def stranger(other_user):
    return Identity.from_user(other_user)


@pytest.fixture
def invalidations():
    """Records every dashboard invalidation the service performs."""
    return []


@pytest.fixture
def event_service(db_session, invalidations):
    """EventService over the test session with invalidations recorded."""
    return EventService(EventStore(db_session), invalidate=lambda: invalidations.append('/dashboard'))


@pytest.fixture
def authenticated_client(client, test_user):
    """Create an authenticated client session."""
    with client.session_transaction() as sess:
        sess['_user_id'] = str(test_user.id)
        sess['_fresh'] = True
    return client


@pytest.fixture
def other_client(app, other_user):
    """A second client logged in as other_user."""
    client = app.test_client()
    with client.session_transaction() as sess:
        sess['_user_id'] = str(other_user.id)
        sess['_fresh'] = True
    return client
