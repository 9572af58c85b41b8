"""Unit tests for the RADIUS store adapter."""

import pytest
from sqlalchemy.orm import Session

from guest_portal.db.models import RadCheck, RadUserGroup
from guest_portal.db.radius_store import RadiusAttribute, RadiusStore

USERNAME = "guest@example.com"


@pytest.fixture
def store(db: Session) -> RadiusStore:
    return RadiusStore(db)


@pytest.mark.unit
class TestRadCheckAttributes:
    """Test radcheck attribute helpers."""

    def test_add_attribute_uses_assign_operator(self, store: RadiusStore, db: Session):
        row = store.add_attribute(USERNAME, RadiusAttribute.CLEARTEXT_PASSWORD, "abc23XYZ")
        db.commit()

        assert row.attribute == "Cleartext-Password"
        assert row.op == ":="
        assert row.value == "abc23XYZ"

    def test_username_exists(self, store: RadiusStore, db: Session):
        assert store.username_exists(USERNAME) is False
        store.add_attribute(USERNAME, RadiusAttribute.EXPIRATION, "Jan 01 2025 00:00:00 GMT+00:00")
        db.commit()
        assert store.username_exists(USERNAME) is True

    def test_set_attribute_inserts_when_absent(self, store: RadiusStore, db: Session):
        assert store.set_attribute(USERNAME, RadiusAttribute.EXPIRATION, "Jun 01 2024 00:00:00 GMT+00:00")
        db.commit()

        row = store.get_attribute(USERNAME, RadiusAttribute.EXPIRATION)
        assert row is not None
        assert row.value == "Jun 01 2024 00:00:00 GMT+00:00"

    def test_set_attribute_updates_in_place(self, store: RadiusStore, db: Session):
        original = store.add_attribute(USERNAME, RadiusAttribute.EXPIRATION, "Jun 01 2024 00:00:00 GMT+00:00")
        db.commit()

        assert store.set_attribute(USERNAME, RadiusAttribute.EXPIRATION, "Dec 31 2024 23:59:59 GMT+00:00")
        db.commit()

        rows = store.get_attributes(USERNAME)
        assert len(rows) == 1
        assert rows[0].id == original.id
        assert rows[0].value == "Dec 31 2024 23:59:59 GMT+00:00"

    def test_set_attribute_same_value_is_noop(self, store: RadiusStore, db: Session):
        store.add_attribute(USERNAME, RadiusAttribute.EXPIRATION, "Jun 01 2024 00:00:00 GMT+00:00")
        db.commit()

        assert store.set_attribute(USERNAME, RadiusAttribute.EXPIRATION, "Jun 01 2024 00:00:00 GMT+00:00") is False

    def test_set_attribute_collapses_duplicates(self, store: RadiusStore, db: Session):
        store.add_attribute(USERNAME, RadiusAttribute.EXPIRATION, "old-1")
        store.add_attribute(USERNAME, RadiusAttribute.EXPIRATION, "old-2")
        db.commit()

        store.set_attribute(USERNAME, RadiusAttribute.EXPIRATION, "new")
        db.commit()

        rows = [r for r in store.get_attributes(USERNAME) if r.attribute == "Expiration"]
        assert [r.value for r in rows] == ["new"]

    def test_set_attribute_none_deletes(self, store: RadiusStore, db: Session):
        store.add_attribute(USERNAME, RadiusAttribute.CLEARTEXT_PASSWORD, "secret23")
        store.add_attribute(USERNAME, RadiusAttribute.EXPIRATION, "Jun 01 2024 00:00:00 GMT+00:00")
        db.commit()

        assert store.set_attribute(USERNAME, RadiusAttribute.EXPIRATION, None) is True
        db.commit()

        assert store.get_attribute(USERNAME, RadiusAttribute.EXPIRATION) is None
        assert store.get_attribute(USERNAME, RadiusAttribute.CLEARTEXT_PASSWORD) is not None

    def test_delete_all_attributes_removes_every_kind(self, store: RadiusStore, db: Session):
        store.add_attribute(USERNAME, RadiusAttribute.CLEARTEXT_PASSWORD, "secret23")
        store.add_attribute(USERNAME, RadiusAttribute.EXPIRATION, "Jun 01 2024 00:00:00 GMT+00:00")
        db.add(RadCheck(username=USERNAME, attribute="Simultaneous-Use", op=":=", value="1"))
        db.add(RadCheck(username="other@example.com", attribute="Cleartext-Password", op=":=", value="x"))
        db.commit()

        assert store.delete_all_attributes(USERNAME) == 3
        db.commit()

        assert store.get_attributes(USERNAME) == []
        assert store.username_exists("other@example.com") is True


@pytest.mark.unit
class TestGroupMembership:
    """Test radusergroup helpers."""

    def test_ensure_membership_creates_with_priority_one(self, store: RadiusStore, db: Session):
        assert store.ensure_membership(USERNAME, "blocked-guests") is True
        db.commit()

        memberships = store.get_memberships(USERNAME)
        assert len(memberships) == 1
        assert memberships[0].groupname == "blocked-guests"
        assert memberships[0].priority == 1

    def test_ensure_membership_is_idempotent(self, store: RadiusStore, db: Session):
        store.ensure_membership(USERNAME, "blocked-guests")
        db.commit()

        assert store.ensure_membership(USERNAME, "blocked-guests") is False
        db.commit()
        assert len(store.get_memberships(USERNAME)) == 1

    def test_remove_membership(self, store: RadiusStore, db: Session):
        store.ensure_membership(USERNAME, "blocked-guests")
        db.commit()

        assert store.remove_membership(USERNAME, "blocked-guests") is True
        db.commit()
        assert store.is_member(USERNAME, "blocked-guests") is False

    def test_remove_absent_membership_is_noop(self, store: RadiusStore):
        assert store.remove_membership(USERNAME, "blocked-guests") is False

    def test_delete_all_memberships(self, store: RadiusStore, db: Session):
        db.add_all([
            RadUserGroup(username=USERNAME, groupname="blocked-guests", priority=1),
            RadUserGroup(username=USERNAME, groupname="vip", priority=2),
        ])
        db.commit()

        assert store.delete_all_memberships(USERNAME) == 2
        db.commit()
        assert store.get_memberships(USERNAME) == []
