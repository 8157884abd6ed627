# Standard library imports
import sqlite3
import uuid
from datetime import datetime
from typing import Optional

# Third-party imports
import sqlalchemy as sa
import sqlalchemy.orm as so
from flask_login import UserMixin
from sqlalchemy import Table, Column, String, ForeignKey
from sqlalchemy.engine import Engine
from werkzeug.security import generate_password_hash, check_password_hash

# Local application imports
from sportevents import db, login


def new_id() -> str:
    return str(uuid.uuid4())


@sa.event.listens_for(Engine, 'connect')
def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite only enforces ON DELETE CASCADE with foreign keys switched on."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


# Association table for many-to-many relationship between events and venues
event_venues = Table(
    'event_venues',
    db.Model.metadata,
    Column('event_id', String(36), ForeignKey('events.id', ondelete='CASCADE'), primary_key=True, index=True),
    Column('venue_id', String(36), ForeignKey('venues.id', ondelete='CASCADE'), primary_key=True, index=True)
)


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id: so.Mapped[str] = so.mapped_column(sa.String(36), primary_key=True, default=new_id)
    email: so.Mapped[str] = so.mapped_column(sa.String(255), index=True, unique=True)
    password_hash: so.Mapped[Optional[str]] = so.mapped_column(sa.String(256))
    first_name: so.Mapped[Optional[str]] = so.mapped_column(sa.String(64))
    last_name: so.Mapped[Optional[str]] = so.mapped_column(sa.String(64))
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)
    updated_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_login: so.Mapped[Optional[datetime]] = so.mapped_column(sa.DateTime, nullable=True)  # Last successful login

    def __repr__(self):
        return '<User {}>'.format(self.email)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if self.password_hash is None or password is None:
            return False
        return check_password_hash(self.password_hash, password)


@login.user_loader
def load_user(id):
    return db.session.get(User, id)


class Event(db.Model):
    __tablename__ = 'events'

    id: so.Mapped[str] = so.mapped_column(sa.String(36), primary_key=True, default=new_id)
    name: so.Mapped[str] = so.mapped_column(sa.String(255), nullable=False)
    sport_type: so.Mapped[str] = so.mapped_column(sa.String(100), nullable=False, index=True)
    date_time: so.Mapped[datetime] = so.mapped_column(sa.DateTime, nullable=False, index=True)  # Stored as naive UTC
    description: so.Mapped[Optional[str]] = so.mapped_column(sa.Text, nullable=True)
    user_id: so.Mapped[str] = so.mapped_column(
        sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True
    )
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)
    updated_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Event id={self.id}, name='{self.name}', sport_type='{self.sport_type}'>"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'sport_type': self.sport_type,
            'date_time': self.date_time.isoformat() if self.date_time else None,
            'description': self.description,
            'user_id': self.user_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


class Venue(db.Model):
    __tablename__ = 'venues'

    id: so.Mapped[str] = so.mapped_column(sa.String(36), primary_key=True, default=new_id)
    name: so.Mapped[str] = so.mapped_column(sa.String(255), nullable=False, index=True)
    address: so.Mapped[Optional[str]] = so.mapped_column(sa.String(500), nullable=True)
    city: so.Mapped[Optional[str]] = so.mapped_column(sa.String(100), nullable=True)
    state: so.Mapped[Optional[str]] = so.mapped_column(sa.String(100), nullable=True)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Venue id={self.id}, name='{self.name}'>"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'city': self.city,
            'state': self.state,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
