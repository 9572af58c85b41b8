"""SQLAlchemy database models.

Two groups of tables live in the same database but are never joined by a
foreign key:

- administrative metadata: ``mgmt_users`` and ``mgmt_guests``
- FreeRADIUS credential store: ``radcheck`` and ``radusergroup``

The guest email doubles as the RADIUS username and is the only link between
the two groups.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models."""


class ManagementUser(Base):
    """Operator allowed to log into the administrative API."""

    __tablename__ = "mgmt_users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="user", nullable=False)  # admin, user
    departments: Mapped[list[int]] = mapped_column(JSON, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    guests: Mapped[list["Guest"]] = relationship(back_populates="creator")

    def __repr__(self) -> str:
        return f"<ManagementUser {self.username} ({self.role})>"


class Guest(Base):
    """Guest network-access identity metadata."""

    __tablename__ = "mgmt_guests"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    surname: Mapped[str] = mapped_column(String(255), nullable=False)
    # Also the RADIUS username
    email: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)

    valid_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    department: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    blocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_by_user_id: Mapped[int] = mapped_column(
        ForeignKey("mgmt_users.id"),
        nullable=False,
    )
    creator: Mapped[ManagementUser] = relationship(back_populates="guests")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Guest {self.name} {self.surname} ({self.email})>"


class RadCheck(Base):
    """FreeRADIUS check attribute row (``radcheck``)."""

    __tablename__ = "radcheck"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), default="", nullable=False, index=True)
    attribute: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    op: Mapped[str] = mapped_column(String(2), default=":=", nullable=False)
    value: Mapped[str] = mapped_column(String(253), default="", nullable=False)

    def __repr__(self) -> str:
        return f"<RadCheck {self.username} {self.attribute} {self.op}>"


class RadUserGroup(Base):
    """FreeRADIUS user group membership row (``radusergroup``)."""

    __tablename__ = "radusergroup"

    username: Mapped[str] = mapped_column(String(64), primary_key=True, default="")
    groupname: Mapped[str] = mapped_column(String(64), primary_key=True, default="", index=True)
    priority: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    def __repr__(self) -> str:
        return f"<RadUserGroup {self.username} -> {self.groupname} ({self.priority})>"
