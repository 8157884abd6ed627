import sqlalchemy as sa
import sqlalchemy.orm as so
from sportevents import create_app, db
from sportevents.models import User, Event, Venue, event_venues
import os

app = create_app(os.getenv('FLASK_CONFIG') or 'development')

@app.shell_context_processor
def make_shell_context():
    return {
        'sa': sa,
        'so': so,
        'db': db,
        'User': User,
        'Event': Event,
        'Venue': Venue,
        'event_venues': event_venues,
    }

if __name__ == '__main__':
    app.run(debug=True)
