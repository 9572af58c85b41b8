"""Typed access to the FreeRADIUS ``radcheck`` and ``radusergroup`` tables.

These tables follow the generic FreeRADIUS SQL schema: one row per
(username, attribute, op, value) check item and one row per
(username, groupname) membership. Only two check attributes are managed here,
so they are modelled as an enum with explicit per-kind helpers instead of
free-form attribute strings.
"""

import logging
from enum import Enum

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from guest_portal.db.models import RadCheck, RadUserGroup

logger = logging.getLogger(__name__)

# Operator := means "always matches and replaces"
ASSIGN_OP = ":="
BLOCKED_GROUP_PRIORITY = 1


class RadiusAttribute(str, Enum):
    """Check attributes written for guests."""

    CLEARTEXT_PASSWORD = "Cleartext-Password"
    EXPIRATION = "Expiration"


class RadiusStore:
    """RADIUS credential store adapter over a caller-owned session."""

    def __init__(self, session: Session):
        self.session = session

    # radcheck

    def username_exists(self, username: str) -> bool:
        """Check if any radcheck row is keyed by this username."""
        row = self.session.execute(
            select(RadCheck.id).where(RadCheck.username == username).limit(1)
        ).first()
        return row is not None

    def get_attribute(self, username: str, attribute: RadiusAttribute) -> RadCheck | None:
        return self.session.execute(
            select(RadCheck)
            .where(RadCheck.username == username, RadCheck.attribute == attribute.value)
            .order_by(RadCheck.id)
            .limit(1)
        ).scalar_one_or_none()

    def get_attributes(self, username: str) -> list[RadCheck]:
        return list(
            self.session.execute(
                select(RadCheck).where(RadCheck.username == username).order_by(RadCheck.id)
            ).scalars().all()
        )

    def add_attribute(self, username: str, attribute: RadiusAttribute, value: str) -> RadCheck:
        row = RadCheck(username=username, attribute=attribute.value, op=ASSIGN_OP, value=value)
        self.session.add(row)
        self.session.flush()
        return row

    def set_attribute(self, username: str, attribute: RadiusAttribute, value: str | None) -> bool:
        """Upsert one attribute, or delete it when ``value`` is None.

        Duplicate rows of the same attribute are collapsed to one.

        Returns:
            True if anything was written
        """
        if value is None:
            return self.delete_attribute(username, attribute) > 0

        rows = list(
            self.session.execute(
                select(RadCheck)
                .where(RadCheck.username == username, RadCheck.attribute == attribute.value)
                .order_by(RadCheck.id)
            ).scalars().all()
        )
        if not rows:
            self.add_attribute(username, attribute, value)
            return True

        primary, extras = rows[0], rows[1:]
        changed = False
        for extra in extras:
            self.session.delete(extra)
            changed = True
        if primary.value != value or primary.op != ASSIGN_OP:
            primary.value = value
            primary.op = ASSIGN_OP
            changed = True
        self.session.flush()
        return changed

    def delete_attribute(self, username: str, attribute: RadiusAttribute) -> int:
        result = self.session.execute(
            delete(RadCheck).where(
                RadCheck.username == username,
                RadCheck.attribute == attribute.value,
            )
        )
        return result.rowcount or 0

    def delete_all_attributes(self, username: str) -> int:
        """Delete every radcheck row for a username, whatever the attribute."""
        result = self.session.execute(delete(RadCheck).where(RadCheck.username == username))
        return result.rowcount or 0

    # radusergroup

    def is_member(self, username: str, groupname: str) -> bool:
        return self.session.get(RadUserGroup, (username, groupname)) is not None

    def get_memberships(self, username: str) -> list[RadUserGroup]:
        return list(
            self.session.execute(
                select(RadUserGroup)
                .where(RadUserGroup.username == username)
                .order_by(RadUserGroup.priority, RadUserGroup.groupname)
            ).scalars().all()
        )

    def ensure_membership(
        self,
        username: str,
        groupname: str,
        priority: int = BLOCKED_GROUP_PRIORITY,
    ) -> bool:
        """Create the membership row if absent.

        Returns:
            True if a row was created
        """
        if self.is_member(username, groupname):
            return False
        self.session.add(RadUserGroup(username=username, groupname=groupname, priority=priority))
        self.session.flush()
        return True

    def remove_membership(self, username: str, groupname: str) -> bool:
        """Delete the membership row if present.

        Returns:
            True if a row was deleted
        """
        result = self.session.execute(
            delete(RadUserGroup).where(
                RadUserGroup.username == username,
                RadUserGroup.groupname == groupname,
            )
        )
        return (result.rowcount or 0) > 0

    def delete_all_memberships(self, username: str) -> int:
        result = self.session.execute(delete(RadUserGroup).where(RadUserGroup.username == username))
        return result.rowcount or 0
