"""
Pytest configuration and fixtures.
Every test gets its own SQLite database file.
"""

import os
import tempfile

# Point the app at SQLite before app.core.config is imported anywhere
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite:///" + os.path.join(tempfile.gettempdir(), "policy_engine_api_test.db"),
)

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.database import init_db
from app.models import Customer, User, RoleType
from app.services.registry import build_services

from factories import FrozenClock, make_auto_application


@pytest.fixture
def db_engine(tmp_path):
    """File-backed SQLite engine so several threads can share it."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'engine.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        pool_size=10,
        max_overflow=20,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def services(session_factory, clock):
    return build_services(session_factory, clock=clock)


@pytest.fixture
def customer(session_factory):
    """California individual."""
    with session_factory() as session:
        customer = Customer(
            first_name="Maria",
            last_name="Lopez",
            email="maria.lopez@example.com",
            state="CA",
        )
        session.add(customer)
        session.commit()
        return customer


@pytest.fixture
def other_customer(session_factory):
    with session_factory() as session:
        customer = Customer(
            first_name="James",
            last_name="Carter",
            email="james.carter@example.com",
            state="TX",
        )
        session.add(customer)
        session.commit()
        return customer


@pytest.fixture
def adjusters(session_factory):
    """Three active adjusters created a minute apart, plus one inactive."""
    with session_factory() as session:
        staff = [
            User(
                email=f"adjuster{i}@policyengine.local",
                full_name=f"Claims Adjuster {i}",
                role=RoleType.ADJUSTER,
                created_at=datetime(2024, 1, 1, 9, i),
            )
            for i in range(1, 4)
        ]
        staff.append(User(
            email="retired@policyengine.local",
            full_name="Retired Adjuster",
            role=RoleType.ADJUSTER,
            is_active=False,
            created_at=datetime(2023, 1, 1),
        ))
        staff.append(User(
            email="underwriter@policyengine.local",
            full_name="Senior Underwriter",
            role=RoleType.UNDERWRITER,
            created_at=datetime(2023, 1, 1),
        ))
        session.add_all(staff)
        session.commit()
        return staff[:3]


@pytest.fixture
def application(customer):
    return make_auto_application(customer.id)


@pytest.fixture
def bound_policy(services, application):
    return services.policies.issue_policy(application)
