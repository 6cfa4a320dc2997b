"""Database configuration and session management."""

from collections.abc import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bullion.config import settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def configure_sqlite(sqlite_engine: Engine) -> Engine:
    """Give a SQLite engine foreign keys and working SAVEPOINTs.

    pysqlite issues its own BEGIN lazily and ignores SAVEPOINT, which breaks
    nested transactions. Its transaction handling is switched off and
    SQLAlchemy emits BEGIN itself (the recipe from the SQLAlchemy SQLite
    dialect docs).
    """

    @event.listens_for(sqlite_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        # Lot draws rely on foreign keys to block deleting consumed lots
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(sqlite_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return sqlite_engine


def _build_engine(database_url: str) -> Engine:
    """Create the engine with dialect-specific settings.

    SQLite is used for local development and tests; any other URL is treated
    as the remote relational store and gets pooling plus READ COMMITTED.
    """
    if database_url.startswith("sqlite"):
        return configure_sqlite(
            create_engine(
                database_url,
                echo=settings.db_echo,
                connect_args={"check_same_thread": False},  # Allow use across threads
            )
        )

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Enable connection health checks
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,  # Recycle connections after 1 hour
        echo=settings.db_echo,
        isolation_level="READ COMMITTED",  # Readers only ever see committed ledger state
    )


engine = _build_engine(settings.database_url)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,  # Prevent lazy loading errors after commit
)


def get_db() -> Generator[Session, None, None]:
    """One session per request; the ledger service commits or rolls it back."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
