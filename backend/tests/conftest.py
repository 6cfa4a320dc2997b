"""Shared fixtures: in-memory ledger database, services and API client."""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bullion.config import Settings
from bullion.constants import MatchingPolicy, Metal, ShortfallMode
from bullion.database import Base, configure_sqlite, get_db
from bullion.main import app
from bullion.services.ledger import LedgerService, TransactionIntent
from bullion.services.ledger.locks import PartitionLockRegistry

PROFILE = "Default"


def make_settings(**overrides) -> Settings:
    """Settings that ignore the developer's .env file."""
    values = {
        "database_url": "sqlite:///:memory:",
        "matching_policy": MatchingPolicy.CHEAPEST_FIRST,
        "shortfall_mode": ShortfallMode.STRICT,
        "commit_retry_attempts": 3,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def engine():
    """Create in-memory SQLite engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite in WAL mode so separate sessions get separate connections.

    WAL lets one session commit while another still holds an open read
    snapshot, the way two ledger processes interleave on a server database.
    """
    engine = create_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    configure_sqlite(engine)

    @event.listens_for(engine, "connect")
    def set_wal_mode(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    """Create database session for testing."""
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    """Strict, cheapest-first settings."""
    return make_settings()


@pytest.fixture
def ledger(db, settings):
    """Ledger service with its own lock registry."""
    return LedgerService(db, settings=settings, locks=PartitionLockRegistry())


@pytest.fixture
def ledger_factory(db):
    """Build ledger services with overridden settings on the shared session."""

    def _ledger_factory(**overrides) -> LedgerService:
        return LedgerService(db, settings=make_settings(**overrides), locks=PartitionLockRegistry())

    return _ledger_factory


@pytest.fixture
def record(ledger):
    """Factory that adds a transaction through the ledger service."""

    def _record(
        kind: str,
        quantity: str,
        unit_price: str,
        *,
        metal: str = Metal.GOLD,
        profile: str = PROFILE,
        day: date = date(2024, 1, 1),
        service: LedgerService | None = None,
    ):
        return (service or ledger).add_transaction(
            TransactionIntent(
                profile=profile,
                kind=kind,
                metal=metal,
                quantity=Decimal(quantity),
                unit_price=Decimal(unit_price),
                date=day,
            )
        )

    return _record


@pytest.fixture
def client(engine):
    """Create test client with database override."""
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = testing_session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
