"""
Input schemas for event and venue actions.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional as Opt

from wtforms import DateTimeField, FieldList, FormField, StringField, TextAreaField
from wtforms.validators import UUID, DataRequired, InputRequired, Length, Optional

from sportevents.forms import DATETIME_FORMATS, ActionForm, strip_or_none, to_naive_utc


@dataclass(frozen=True)
class VenueInput:
    """A submitted venue. Venues with an id are reused, others are created."""

    name: str
    id: Opt[str] = None
    address: Opt[str] = None
    city: Opt[str] = None
    state: Opt[str] = None


@dataclass(frozen=True)
class EventInput:
    name: str
    sport_type: str
    date_time: datetime
    venues: tuple
    description: Opt[str] = None
    id: Opt[str] = None


@dataclass(frozen=True)
class EventFilter:
    search: Opt[str] = None
    sport_type: Opt[str] = None


class VenueForm(ActionForm):
    """Schema for one venue inside an event payload"""
    id = StringField('Venue ID', filters=[strip_or_none], validators=[Optional()])

    name = StringField('Venue Name', filters=[strip_or_none], validators=[
        DataRequired(message='Venue name is required'),
        Length(max=255, message='Venue name must be 255 characters or less')
    ])

    address = StringField('Address', filters=[strip_or_none], validators=[
        Optional(),
        Length(max=500, message='Address must be 500 characters or less')
    ])

    city = StringField('City', filters=[strip_or_none], validators=[
        Optional(),
        Length(max=100, message='City must be 100 characters or less')
    ])

    state = StringField('State', filters=[strip_or_none], validators=[
        Optional(),
        Length(max=100, message='State must be 100 characters or less')
    ])


class CreateEventForm(ActionForm):
    """Schema for creating events"""
    name = StringField('Event Name', filters=[strip_or_none], validators=[
        DataRequired(message='Event name is required'),
        Length(min=1, max=255, message='Event name must be between 1 and 255 characters')
    ])

    sport_type = StringField('Sport Type', filters=[strip_or_none], validators=[
        DataRequired(message='Sport type is required'),
        Length(max=100, message='Sport type must be 100 characters or less')
    ])

    date_time = DateTimeField('Date and Time', format=DATETIME_FORMATS, filters=[to_naive_utc], validators=[
        InputRequired(message='Date and time are required')
    ])

    description = TextAreaField('Description', filters=[strip_or_none], validators=[Optional()])

    venues = FieldList(FormField(VenueForm), validators=[
        Length(min=1, message='At least one venue is required')
    ])

    def to_input(self):
        return EventInput(
            name=self.name.data,
            sport_type=self.sport_type.data,
            date_time=self.date_time.data,
            description=self.description.data,
            venues=tuple(VenueInput(**entry.data) for entry in self.venues.entries),
        )


class UpdateEventForm(CreateEventForm):
    """Schema for updating events"""
    id = StringField('Event ID', filters=[strip_or_none], validators=[
        DataRequired(message='Event ID is required'),
        UUID(message='Invalid event ID')
    ])

    def to_input(self):
        return replace(super().to_input(), id=self.id.data)


class EventIdForm(ActionForm):
    """Schema for actions addressing a single event"""
    id = StringField('Event ID', filters=[strip_or_none], validators=[
        DataRequired(message='Event ID is required'),
        UUID(message='Invalid event ID')
    ])

    def to_input(self):
        return self.id.data


class DeleteEventForm(EventIdForm):
    pass


class EventLookupForm(ActionForm):
    """Schema for reading one event. Any id that matches no event is simply not found."""
    id = StringField('Event ID', filters=[strip_or_none], validators=[
        DataRequired(message='Event ID is required')
    ])

    def to_input(self):
        return self.id.data


class EventFilterForm(ActionForm):
    """Schema for listing events"""
    search = StringField('Search', filters=[strip_or_none], validators=[
        Optional(),
        Length(max=255, message='Search term must be 255 characters or less')
    ])

    sport_type = StringField('Sport Type', filters=[strip_or_none], validators=[Optional()])

    def to_input(self):
        return EventFilter(search=self.search.data, sport_type=self.sport_type.data)
