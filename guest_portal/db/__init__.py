"""Database module for the guest portal."""

from guest_portal.db.database import Database, create_database_engine
from guest_portal.db.models import Base, Guest, ManagementUser, RadCheck, RadUserGroup
from guest_portal.db.radius_store import RadiusAttribute
from guest_portal.db.unit_of_work import UnitOfWork

__all__ = [
    "Base",
    "Database",
    "Guest",
    "ManagementUser",
    "RadCheck",
    "RadUserGroup",
    "RadiusAttribute",
    "UnitOfWork",
    "create_database_engine",
]
