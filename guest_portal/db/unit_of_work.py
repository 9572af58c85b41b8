"""Transactional unit of work spanning both stores."""

from sqlalchemy.orm import Session

from guest_portal.db.identity_store import IdentityStore
from guest_portal.db.radius_store import RadiusStore


class UnitOfWork:
    """Both store adapters bound to one session, hence one transaction.

    Instances are produced by :meth:`guest_portal.db.database.Database.unit_of_work`,
    which owns commit and rollback. Adapters only add, flush and delete.
    """

    def __init__(self, session: Session):
        self.session = session
        self.identities = IdentityStore(session)
        self.radius = RadiusStore(session)
