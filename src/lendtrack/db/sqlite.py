"""Database connection and session management.

SQLite is the default store. Each SQLite transaction is opened with
``BEGIN IMMEDIATE`` so the write lock is taken before the first read, which
serialises concurrent borrow and return transactions. Other backends (set
``LENDTRACK_DB_URL``) run at SERIALIZABLE isolation and rely on
``SELECT ... FOR UPDATE`` row locks.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

import structlog
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from ..errors import TransactionConflictError
from .models import Base

logger = structlog.get_logger(__name__)

# Serialization failure, deadlock detected
CONFLICT_SQLSTATES = frozenset({"40001", "40P01"})


def is_conflict_error(exc: DBAPIError) -> bool:
    """Check whether a driver error is a lock timeout or serialization failure."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in CONFLICT_SQLSTATES:
        return True
    if isinstance(exc, OperationalError):
        message = str(orig).lower()
        return "database is locked" in message or "database is busy" in message
    return False


def _install_sqlite_hooks(engine: Engine) -> None:
    """Enable foreign keys and IMMEDIATE transactions on SQLite connections."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Hand transaction control to SQLAlchemy so the begin hook below
        # decides how each transaction starts
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Database connection and session manager."""

    def __init__(
        self,
        db_path: Optional[str] = None,
        url: Optional[str] = None,
        busy_timeout: Optional[float] = None,
    ):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ":memory:". If neither
                     this nor url is given, the configured location is used.
            url: SQLAlchemy database URL; takes precedence over db_path.
            busy_timeout: Seconds to wait for a locked SQLite database.
        """
        config = get_config()
        if url is None and db_path is None:
            url = config.db_url
            db_path = str(config.db_path)
        if busy_timeout is None:
            busy_timeout = config.busy_timeout

        self.url = url
        self.db_path = Path(db_path) if db_path else None
        self._is_memory = url is None and str(db_path) == ":memory:"

        if url is not None:
            if url.startswith("sqlite"):
                self.engine = create_engine(
                    url,
                    echo=False,
                    connect_args={"check_same_thread": False, "timeout": busy_timeout},
                )
            else:
                self.engine = create_engine(
                    url,
                    echo=False,
                    isolation_level="SERIALIZABLE",
                    pool_pre_ping=True,
                )
        elif self._is_memory:
            # StaticPool keeps one connection so every session sees the same
            # in-memory database
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False, "timeout": busy_timeout},
                poolclass=StaticPool,
            )
        else:
            self._ensure_directory()
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False, "timeout": busy_timeout},
            )

        if self.is_sqlite:
            _install_sqlite_hooks(self.engine)

        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    @property
    def is_sqlite(self) -> bool:
        """Check if the engine talks to SQLite."""
        return self.engine.dialect.name == "sqlite"

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        # Import models to register them with Base
        from ..catalog.models import Item  # noqa: F401
        from ..users.models import User  # noqa: F401
        from ..lending.models import ActiveLoan, LoanRecord  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager.

        The session commits when the block exits normally and rolls back on
        any exception. Lock timeouts and serialization failures are re-raised
        as TransactionConflictError.

        Sessions must not be nested on an in-memory database: every session
        shares its single connection, which already has a transaction open.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except DBAPIError as e:
            session.rollback()
            if is_conflict_error(e):
                logger.warning("transaction.conflict", error=str(e.orig))
                raise TransactionConflictError(str(e.orig)) from e
            raise
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    if _db is not None:
        _db.dispose()
    _db = None
