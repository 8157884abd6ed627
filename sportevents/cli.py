"""
Flask CLI commands.

    flask seed-venues    create the configured SEED_VENUES that do not exist yet
"""

import sqlalchemy as sa
from flask import current_app

from sportevents import db
from sportevents.audit import audit_log_create
from sportevents.models import Venue


def seed_venues():
    """Create configured venues missing from the database. Returns the number created."""
    created = 0
    for seed in current_app.config.get('SEED_VENUES', []):
        existing = db.session.scalar(sa.select(Venue).where(Venue.name == seed['name']))
        if existing is not None:
            print(f"  - Venue already exists: {seed['name']}")
            continue

        venue = Venue(
            name=seed['name'],
            address=seed.get('address'),
            city=seed.get('city'),
            state=seed.get('state'),
        )
        db.session.add(venue)
        db.session.flush()
        audit_log_create('Venue', venue.id, f'Seeded venue: {venue.name}')
        created += 1
        print(f"  - Created venue: {venue.name}")

    db.session.commit()
    return created


def register_cli(app):
    @app.cli.command('seed-venues')
    def seed_venues_command():
        """Create the configured seed venues."""
        created = seed_venues()
        print(f"Venues created: {created}")
