"""
Seed staff users and demo customers into PostgreSQL
Gives a fresh database adjusters to assign claims to and customers to
issue policies for.
"""

import sys
from pathlib import Path

from sqlalchemy.orm import Session

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.database import SessionLocal, init_db
from app.models.customer import Customer, CustomerType
from app.models.user import User, RoleType


def create_seed_users(session: Session, adjuster_count: int = 5):
    """Create back-office staff"""

    # Check if users already exist
    if session.query(User).count() > 0:
        print("Users already exist, skipping creation")
        return

    admin = User(
        email="admin@policyengine.local",
        full_name="System Administrator",
        role=RoleType.ADMIN,
    )
    underwriter = User(
        email="underwriter@policyengine.local",
        full_name="Senior Underwriter",
        role=RoleType.UNDERWRITER,
    )

    adjusters = [
        User(
            email=f"adjuster{i}@policyengine.local",
            full_name=f"Claims Adjuster {i}",
            role=RoleType.ADJUSTER,
        )
        for i in range(1, adjuster_count + 1)
    ]

    session.add_all([admin, underwriter, *adjusters])
    session.commit()

    print(f"Created {len(adjusters) + 2} users")


def create_seed_customers(session: Session):
    """Create a few customers across rated states"""

    if session.query(Customer).count() > 0:
        print("Customers already exist, skipping creation")
        return

    customers = [
        Customer(first_name="Maria", last_name="Lopez", email="maria.lopez@example.com", state="CA"),
        Customer(first_name="James", last_name="Carter", email="james.carter@example.com", state="TX"),
        Customer(first_name="Aisha", last_name="Patel", email="aisha.patel@example.com", state="NY"),
        Customer(
            customer_type=CustomerType.BUSINESS,
            business_name="Harbor Freight Logistics LLC",
            email="ops@harborfreight.example.com",
            state="WA",
        ),
    ]
    session.add_all(customers)
    session.commit()

    print(f"Created {len(customers)} customers")
    for customer in customers:
        print(f"  {customer.id}  {customer.display_name} ({customer.state})")


def seed(adjuster_count: int = 5):
    print("\n" + "=" * 60)
    print("Policy Engine - Reference Data")
    print("=" * 60 + "\n")

    print("Initializing database...")
    init_db()

    session = SessionLocal()
    try:
        create_seed_users(session, adjuster_count=adjuster_count)
        create_seed_customers(session)
    except Exception as e:
        print(f"\nError during seeding: {e}")
        session.rollback()
        raise
    finally:
        session.close()

    print("\n" + "=" * 60)
    print("Next steps:")
    print("1. Start API: uvicorn app.main:app --reload")
    print("2. Retry pending side effects: python scripts/run_outbox.py")
    print("=" * 60)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed staff users and demo customers")
    parser.add_argument("--adjusters", type=int, default=5, help="Number of adjusters to create")
    args = parser.parse_args()

    seed(adjuster_count=args.adjusters)
