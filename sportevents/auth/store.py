"""
Storage access for user accounts.

UserStore wraps a SQLAlchemy session the same way EventStore does. The
auth actions decide when to commit.
"""

from typing import Optional

import sqlalchemy as sa

from sportevents.models import User


class UserStore:
    def __init__(self, session):
        self.session = session

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.scalar(sa.select(User).where(User.email == email))

    def add(self, user: User) -> User:
        self.session.add(user)
        return user
