"""Database initialization script with seed data."""

from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from bullion.constants import Metal, TransactionKind
from bullion.database import Base, SessionLocal, engine
from bullion.models import MetalTransaction
from bullion.services.ledger import LedgerService, TransactionIntent

DEMO_PROFILE = "Default"


def create_tables():
    """Create all database tables."""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Tables created successfully!")


def seed_data(db: Session, profile: str = DEMO_PROFILE):
    """Seed a profile with a small gold and silver history."""
    print(f"\nSeeding ledger for profile '{profile}'...")
    service = LedgerService(db)

    entries = [
        (TransactionKind.BUY, Metal.GOLD, "100", "50", date(2024, 1, 5)),
        (TransactionKind.BUY, Metal.GOLD, "50", "40", date(2024, 1, 20)),
        (TransactionKind.SELL, Metal.GOLD, "120", "60", date(2024, 2, 10)),
        (TransactionKind.BUY, Metal.SILVER, "2000", "0.9", date(2024, 1, 8)),
        (TransactionKind.SELL, Metal.SILVER, "500", "1.1", date(2024, 3, 1)),
    ]
    for kind, metal, quantity, unit_price, when in entries:
        transaction = service.add_transaction(
            TransactionIntent(
                profile=profile,
                kind=kind,
                metal=metal,
                quantity=Decimal(quantity),
                unit_price=Decimal(unit_price),
                date=when,
            )
        )
        print(f"  {kind:<4} {quantity:>6} {metal:<6} @ {unit_price} -> id {transaction.id}")

    print("Seeding complete!")


def init_db():
    """Initialize database with tables and a demo ledger."""
    print("Initializing database...")

    create_tables()

    db = SessionLocal()
    try:
        existing = db.query(MetalTransaction).filter(MetalTransaction.profile == DEMO_PROFILE).count()
        if existing > 0:
            print(f"\nProfile '{DEMO_PROFILE}' already has {existing} transactions. Skipping seed data.")
            return

        seed_data(db)
        print("\nDatabase initialization complete!")

    except Exception as e:
        print(f"\nError during database initialization: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    init_db()
