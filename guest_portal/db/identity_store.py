"""Typed access to the administrative ``mgmt_users`` / ``mgmt_guests`` tables."""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from guest_portal.db.models import Guest, ManagementUser

logger = logging.getLogger(__name__)


class IdentityStore:
    """Administrative metadata adapter over a caller-owned session."""

    def __init__(self, session: Session):
        self.session = session

    # Management users

    def get_user(self, user_id: int) -> ManagementUser | None:
        return self.session.get(ManagementUser, user_id)

    def get_user_by_username(self, username: str) -> ManagementUser | None:
        return self.session.execute(
            select(ManagementUser).where(ManagementUser.username == username)
        ).scalar_one_or_none()

    def count_users(self) -> int:
        return self.session.execute(
            select(func.count()).select_from(ManagementUser)
        ).scalar_one()

    def add_user(self, user: ManagementUser) -> ManagementUser:
        self.session.add(user)
        self.session.flush()
        return user

    # Guests

    def get_guest(self, guest_id: int) -> Guest | None:
        """Load a guest with its creator eagerly attached."""
        return self.session.get(Guest, guest_id, options=[joinedload(Guest.creator)])

    def find_guest_by_email(self, email: str) -> Guest | None:
        return self.session.execute(
            select(Guest).where(Guest.email == email)
        ).scalar_one_or_none()

    def list_guests(self, departments: list[int] | None = None) -> list[Guest]:
        """List guests, newest expiry first.

        Args:
            departments: Restrict to these department ids; None lists everything

        Returns:
            Guests with creators loaded
        """
        query = select(Guest).options(joinedload(Guest.creator))
        if departments is not None:
            query = query.where(Guest.department.in_(departments))
        query = query.order_by(Guest.valid_until.desc(), Guest.id.desc())
        return list(self.session.execute(query).scalars().unique().all())

    def add_guest(self, guest: Guest) -> Guest:
        self.session.add(guest)
        self.session.flush()
        return guest

    def delete_guest(self, guest: Guest) -> None:
        self.session.delete(guest)
        self.session.flush()
