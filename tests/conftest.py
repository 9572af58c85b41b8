"""Pytest fixtures for guest portal tests."""

import os
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

# Set test environment variables before importing the app
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"
os.environ["RADIUS_BLOCKED_GROUP"] = "blocked-guests"
os.environ["SMTP_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "DEBUG"

from guest_portal.config import Settings, reload_settings
from guest_portal.core.authorization import RequesterClaims
from guest_portal.core.email_service import CredentialMessage, NotificationResult
from guest_portal.core.provisioning import ProvisioningEngine
from guest_portal.core.security import create_access_token, hash_password
from guest_portal.db.database import Database
from guest_portal.db.models import Guest, ManagementUser, RadCheck, RadUserGroup
from guest_portal.main import create_app

BLOCKED_GROUP = "blocked-guests"


class RecordingNotifier:
    """Credential notifier that records messages instead of sending them."""

    def __init__(self, result: NotificationResult | None = None, error: Exception | None = None):
        self.result = result or NotificationResult(delivered=True)
        self.error = error
        self.messages: list[CredentialMessage] = []

    async def send_guest_credentials(self, message: CredentialMessage) -> NotificationResult:
        self.messages.append(message)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def settings() -> Settings:
    return reload_settings()


@pytest.fixture(scope="function")
def database() -> Generator[Database, None, None]:
    """Fresh in-memory database per test."""
    db = Database("sqlite:///:memory:")
    db.connect()
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture(scope="function")
def db(database: Database) -> Generator[Session, None, None]:
    """Session for seeding and inspecting rows directly."""
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def engine(database: Database, notifier: RecordingNotifier) -> ProvisioningEngine:
    return ProvisioningEngine(database, notifier, blocked_group=BLOCKED_GROUP)


def make_user(
    db: Session,
    username: str,
    role: str = "user",
    departments: list[int] | None = None,
    password: str = "S3cret-pass",
) -> ManagementUser:
    user = ManagementUser(
        username=username,
        password_hash=hash_password(password),
        role=role,
        departments=departments or [],
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def claims_for(user: ManagementUser) -> RequesterClaims:
    return RequesterClaims(
        user_id=user.id,
        username=user.username,
        role=user.role,
        departments=tuple(user.departments),
    )


def auth_headers(user: ManagementUser) -> dict:
    token = create_access_token(claims_for(user))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_user(db: Session) -> ManagementUser:
    return make_user(db, "admin", role="admin")


@pytest.fixture
def scoped_user(db: Session) -> ManagementUser:
    """Non-admin managing departments 1 and 2."""
    return make_user(db, "frontdesk", role="user", departments=[1, 2])


@pytest.fixture
def admin_claims(admin_user: ManagementUser) -> RequesterClaims:
    return claims_for(admin_user)


@pytest.fixture
def scoped_claims(scoped_user: ManagementUser) -> RequesterClaims:
    return claims_for(scoped_user)


@pytest.fixture
def client(
    settings: Settings,
    database: Database,
    notifier: RecordingNotifier,
) -> Generator[TestClient, None, None]:
    """Test client running the real lifespan against the test database."""
    app = create_app(settings, database=database, notifier=notifier)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def sample_guest_data() -> dict:
    """Sample guest creation payload."""
    return {
        "name": "Jane",
        "surname": "Doe",
        "email": "jane.doe@example.com",
        "valid_from": "2024-06-01T08:00:00Z",
        "valid_until": "2024-06-07T18:00:00Z",
        "department": 1,
    }


def radcheck_rows(database: Database, username: str) -> list[RadCheck]:
    with database.session() as session:
        return list(session.execute(select(RadCheck).where(RadCheck.username == username)).scalars())


def radusergroup_rows(database: Database, username: str) -> list[RadUserGroup]:
    with database.session() as session:
        return list(
            session.execute(select(RadUserGroup).where(RadUserGroup.username == username)).scalars()
        )


def guest_rows(database: Database, email: str) -> list[Guest]:
    with database.session() as session:
        return list(session.execute(select(Guest).where(Guest.email == email)).scalars())
