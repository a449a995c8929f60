"""
Module: inventory_kernel.db.engine
Responsibility: The store handle.  ``Database`` owns the SQLAlchemy engine and
    session factory and provides the transactional scope every write runs in.
    It is constructed once at process start and injected; there is no
    module-level engine.
Architecture position: Kernel > DB.  May import from db/base.py.  MUST NOT
    import from services/, selectors/, or domain/ (except create_tables, which
    imports the models package so Base.metadata is complete).

Invariants enforced:
    - PostgreSQL: READ COMMITTED with explicit row locks (FOR UPDATE) taken by
      the ledger store; QueuePool with pre-ping.
    - SQLite: every transaction starts with BEGIN IMMEDIATE so writers are
      serialized for the whole read-validate-write sequence; connections may
      be shared across threads; writers wait ``busy_timeout`` seconds for
      the lock.
    - session_scope() commits on success and rolls back on any exception.

Failure modes:
    - OperationalError if the database is unreachable or a lock wait times out.
    - Connection pool exhaustion if pool_size + max_overflow is exceeded.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.db.base import Base
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def _normalize_url(database_url: str) -> str:
    # Some hosting providers still hand out postgres:// URLs
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def _install_sqlite_locking(engine: Engine) -> None:
    """Take over transaction control from pysqlite and begin IMMEDIATE."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Disable pysqlite's own BEGIN handling
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """
    Store handle owning the engine and the session factory.

    Contract:
        One instance per process (or per test), passed to the services that
        need a transactional scope.  ``dispose()`` releases pooled connections.

    Usage:
        db = Database.from_url("postgresql://inventory@localhost/inventory")
        db.create_tables()
        with db.session_scope() as session:
            ...
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine,
            expire_on_commit=False,
        )

    @classmethod
    def from_url(
        cls,
        database_url: str,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
        busy_timeout: float = 30.0,
    ) -> "Database":
        """
        Build a store handle from a database URL.

        Args:
            database_url: SQLAlchemy URL (postgresql://... or sqlite:///...).
            echo: If True, log all SQL statements.
            pool_size: Connections kept in the pool (PostgreSQL).
            max_overflow: Connections beyond pool_size (PostgreSQL).
            pool_pre_ping: Test connections before use.
            pool_timeout: Seconds to wait for a pooled connection.
            pool_recycle: Seconds after which a connection is recycled.
            busy_timeout: Seconds a SQLite writer waits for the lock.
        """
        url = make_url(_normalize_url(database_url))

        if url.get_backend_name() == "sqlite":
            engine = create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False, "timeout": busy_timeout},
            )
            _install_sqlite_locking(engine)
        else:
            engine = create_engine(
                url,
                echo=echo,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                isolation_level="READ COMMITTED",
            )

        logger.info(
            "engine_initialized",
            extra={"dialect": url.get_backend_name(), "echo": echo},
        )
        return cls(engine)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def session(self) -> Session:
        """Return a new session; the caller owns its lifecycle."""
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        On normal exit the session is committed and closed.  On exception it
        is rolled back and closed, and the exception is re-raised.
        """
        session = self._session_factory()
        logger.debug("transaction_started")
        try:
            yield session
            session.commit()
            logger.debug("transaction_committed")
        except Exception:
            session.rollback()
            logger.debug("transaction_rolled_back")
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Create all tables defined in the models package."""
        import inventory_kernel.models  # noqa: F401

        Base.metadata.create_all(self.engine)
        logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})

    def drop_tables(self) -> None:
        """Drop all tables. FOR TESTING ONLY."""
        import inventory_kernel.models  # noqa: F401

        Base.metadata.drop_all(self.engine)
        logger.info("tables_dropped")

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("engine_disposed")
