#!/usr/bin/env python3
"""
User Bootstrap Script

Creates a user account from the command line, for fresh installations
where nobody can sign up through the API yet (e.g. signup is disabled
behind a proxy). Run this after applying migrations.

Usage:
    source venv/bin/activate
    python bin/create_user.py
"""

import getpass
import os
import sys

# Add the parent directory to the path so we can import our modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv('.flaskenv')
load_dotenv('.env')

import sqlalchemy as sa

from sportevents import create_app, db
from sportevents.audit import audit_log_create
from sportevents.models import User

REQUIRED_TABLES = ['users', 'events', 'venues', 'event_venues']


def verify_database_structure():
    """Verify that all expected tables exist."""
    print("\nVerifying database structure...")

    existing_tables = sa.inspect(db.engine).get_table_names()

    missing_tables = [table for table in REQUIRED_TABLES if table not in existing_tables]
    for table in REQUIRED_TABLES:
        mark = '✗' if table in missing_tables else '✓'
        print(f"  {mark} Table '{table}'")

    if missing_tables:
        print(f"\nERROR: Missing tables: {missing_tables}")
        print("Please run the database migration first:")
        print("  flask db upgrade")
        return False

    return True


def prompt_user_details():
    while True:
        email = input("Email: ").strip().lower()
        if not email or '@' not in email:
            print("Please enter a valid email address.")
            continue
        if db.session.scalar(sa.select(User).where(User.email == email)) is not None:
            print("A user with that email already exists.")
            continue
        break

    first_name = input("First Name (optional): ").strip() or None
    last_name = input("Last Name (optional): ").strip() or None

    while True:
        password = getpass.getpass("Password: ")
        if len(password) < 8:
            print("Password must be at least 8 characters long.")
            continue
        if password != getpass.getpass("Confirm Password: "):
            print("Passwords don't match. Please try again.")
            continue
        break

    return email, first_name, last_name, password


def create_user():
    email, first_name, last_name, password = prompt_user_details()

    user = User(email=email, first_name=first_name, last_name=last_name)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    audit_log_create('User', user.id, f'Created user from bootstrap script: {user.email}')

    print(f"\n✓ User '{email}' created successfully!")
    print("✓ You can now log in with these credentials")


def main():
    print("=" * 60)
    print("SPORT EVENTS - Create User")
    print("=" * 60)

    app = create_app(os.getenv('FLASK_CONFIG') or 'development')

    with app.app_context():
        if not verify_database_structure():
            sys.exit(1)
        create_user()


if __name__ == '__main__':
    main()
