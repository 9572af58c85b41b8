"""Database connection and session management.

Supports multiple database types:
- SQLite (development, testing, small deployments)
- PostgreSQL (production)
- MySQL/MariaDB (the usual FreeRADIUS SQL backend)

Database type is auto-detected from the connection string. The engine is owned
by a :class:`Database` handle that the application creates once at startup and
disposes on shutdown; nothing in this module is a process-wide singleton.
"""

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from guest_portal.config import mask_database_url
from guest_portal.db.models import Base
from guest_portal.db.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def is_sqlite_memory_url(db_url: str) -> bool:
    """Check if a URL names a private in-memory SQLite database."""
    if not db_url.startswith("sqlite"):
        return False
    path = db_url.split("://", 1)[-1].lstrip("/")
    return path == "" or path.startswith(":memory:") or "mode=memory" in db_url


def create_database_engine(db_url: str, echo: bool = False) -> Engine:
    """Create SQLAlchemy engine with database-specific configuration.

    Automatically detects database type from URL and applies optimal settings:
    - SQLite file: default pool, foreign keys and WAL enabled
    - SQLite in-memory: one static connection, foreign keys enabled
    - PostgreSQL: connection pooling, pre-ping
    - MySQL/MariaDB: connection pooling, pre-ping, charset

    Args:
        db_url: Database connection string
        echo: Log emitted SQL

    Returns:
        SQLAlchemy engine configured for the detected database type

    Raises:
        ValueError: If database URL is empty or unsupported
    """
    if not db_url:
        raise ValueError("DATABASE_URL is required but not configured")

    engine_kwargs: dict = {"echo": echo}

    in_memory = is_sqlite_memory_url(db_url)

    if in_memory:
        # Every session must see the same in-memory database
        logger.info("📊 Database: SQLite (in-memory)")
        engine_kwargs.update({
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        })

    elif db_url.startswith("sqlite"):
        logger.info("📊 Database: SQLite (file-based)")
        engine_kwargs["connect_args"] = {"check_same_thread": False}

    elif db_url.startswith("postgresql"):
        logger.info("📊 Database: PostgreSQL (connection pooling enabled)")
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_size": 10,
            "max_overflow": 20,
            "pool_recycle": 3600,
        })

    elif db_url.startswith("mysql"):
        logger.info("📊 Database: MySQL/MariaDB (connection pooling enabled)")
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_size": 10,
            "max_overflow": 20,
            "pool_recycle": 3600,
        })
        if "charset" not in db_url:
            engine_kwargs["connect_args"] = {"charset": "utf8mb4", "connect_timeout": 10}

    else:
        raise ValueError(f"Unsupported database URL: {mask_database_url(db_url)}")

    engine = create_engine(db_url, **engine_kwargs)

    # SQLite ships with foreign keys disabled
    if db_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if not in_memory:
                cursor.execute("PRAGMA journal_mode=WAL")  # Readers do not block the writer
            cursor.close()

    return engine


class Database:
    """Explicit handle on the administrative and RADIUS database.

    Lifecycle: :meth:`connect` once at process start, :meth:`verify` and
    :meth:`create_schema` before serving, :meth:`dispose` on shutdown.
    """

    def __init__(self, db_url: str, echo: bool = False):
        self.db_url = db_url
        self.echo = echo
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def is_connected(self) -> bool:
        """Check if the engine has been created."""
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    def connect(self) -> None:
        """Create the engine and session factory."""
        if self._engine is not None:
            return
        logger.info(f"Connecting to DB: {mask_database_url(self.db_url)}")
        self._engine = create_database_engine(self.db_url, echo=self.echo)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    def verify(self) -> None:
        """Round-trip a trivial query so a bad URL fails at startup."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection established successfully")

    def create_schema(self) -> None:
        """Create any missing tables."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables initialized")

    def dispose(self) -> None:
        """Release pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database connections released")
        self._engine = None
        self._session_factory = None

    def session(self) -> Session:
        """Open a new session. The caller is responsible for closing it."""
        if self._session_factory is None:
            raise RuntimeError("Database is not connected")
        return self._session_factory()

    @contextmanager
    def unit_of_work(self) -> Iterator[UnitOfWork]:
        """Run a block as one transaction over both stores.

        Commits when the block exits normally, rolls back on any exception
        (including errors raised by the commit itself) and re-raises.
        """
        session = self.session()
        uow = UnitOfWork(session)
        try:
            yield uow
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_db(self) -> Generator[Session, None, None]:
        """Yield a session that is closed after use."""
        db = self.session()
        try:
            yield db
        finally:
            db.close()
