"""
Shared fixtures: an in-memory SQLite ledger seeded with two owners,
their apartments and contracts, plus a TestClient wired to it.
"""
import os
from datetime import date
from decimal import Decimal

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from models import Apartment, Base, Contract, Owner
from services.commission import ImpactPolicy
from services.directory import ContractDirectory

TODAY = date(2024, 3, 15)
USER_ID = 1


def make_engine(url="sqlite://"):
    if url == "sqlite://":
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(url, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    return engine


def seed(session):
    session.add_all([
        Owner(id=1, user_id=USER_ID, name="Laura Gómez", commission_percentage=Decimal("0.08"),
              balance=Decimal("0")),
        Owner(id=2, user_id=USER_ID, name="Martín Díaz", commission_percentage=Decimal("0.05"),
              balance=Decimal("1500.00")),
        Apartment(id=10, user_id=USER_ID, owner_id=1, nomenclature="1A"),
        Apartment(id=20, user_id=USER_ID, owner_id=2, nomenclature="2B"),
        Apartment(id=30, user_id=USER_ID, owner_id=None, nomenclature="PB"),
        # Contract commission overrides the owner default
        Contract(id=100, user_id=USER_ID, apartment_id=10, tenant_id=500,
                 start_date=date(2024, 1, 1), end_date=date(2024, 12, 31),
                 rent_amount=Decimal("100000.00"), commission_percentage=Decimal("0.10")),
        # Falls back to owner 2's 5%
        Contract(id=200, user_id=USER_ID, apartment_id=20, tenant_id=501,
                 start_date=date(2024, 3, 10), end_date=date(2025, 3, 9),
                 rent_amount=Decimal("80000.00"), commission_percentage=None),
        # Ended before March
        Contract(id=300, user_id=USER_ID, apartment_id=30, tenant_id=502,
                 start_date=date(2023, 1, 1), end_date=date(2024, 1, 31),
                 rent_amount=Decimal("50000.00"), commission_percentage=None),
        # Another agency account
        Contract(id=900, user_id=2, apartment_id=None, tenant_id=503,
                 start_date=date(2024, 1, 1), end_date=date(2024, 12, 31),
                 rent_amount=Decimal("70000.00"), commission_percentage=None),
    ])
    session.commit()


@pytest.fixture
def engine():
    engine = make_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    session = factory()
    seed(session)
    session.close()
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def directory(db):
    return ContractDirectory(db)


@pytest.fixture
def policy():
    return ImpactPolicy()


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def obligation_service(db, directory, policy, clock):
    from services.obligation_service import ObligationService
    return ObligationService(db, directory, policy, clock=clock)


@pytest.fixture
def recorder(db, directory, policy, clock):
    from services.payment_service import PaymentRecorder
    return PaymentRecorder(db, directory, policy, clock=clock)


@pytest.fixture
def make_obligation(obligation_service):
    """Create an obligation with sensible defaults for the seeded contract 100."""

    def _make(**overrides):
        values = dict(
            type="rent",
            amount=Decimal("50000.00"),
            period=date(2024, 3, 1),
            due_date=date(2024, 3, 20),
            contract_id=100,
        )
        values.update(overrides)
        return obligation_service.create_obligation(USER_ID, **values)

    return _make


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient

    from auth import verify_token
    from database import get_session
    from main import app

    def override_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[verify_token] = lambda: {"id": USER_ID}
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
