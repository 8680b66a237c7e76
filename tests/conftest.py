"""
ShopDesk Test Suite — Shared Fixtures

Everything runs in-process: repositories against an in-memory SQLite
database, routes through FastAPI's TestClient with get_db overridden.

Usage:
    pytest tests/ -v --tb=short
"""

import os
import sys
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("API_KEY", "test-api-key")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from core.app import create_app  # noqa: E402
from core.auth import create_access_token  # noqa: E402
from core.base import Base  # noqa: E402
from core.db import build_engine, get_db  # noqa: E402
from core.event_bus import InMemoryEventBus  # noqa: E402

# Register every table on Base.metadata
import modules.catalog.models  # noqa: E402,F401
import modules.customers.models  # noqa: E402,F401
import modules.email_marketing.models  # noqa: E402,F401
import modules.equipment.models  # noqa: E402,F401
import modules.presets.models  # noqa: E402,F401
import modules.work_orders.models  # noqa: E402,F401

from modules.customers.models import Customer, Vehicle  # noqa: E402
from modules.work_orders.models import WorkOrder  # noqa: E402

API_KEY = os.environ["API_KEY"]


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture()
def engine():
    eng = build_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@pytest.fixture()
def bus():
    return InMemoryEventBus()


@pytest.fixture()
def events(bus):
    """Every event published on the test bus, in order."""
    received = []
    bus.subscribe("*", received.append)
    return received


# ---------------------------------------------------------------------------
# Sample rows
# ---------------------------------------------------------------------------

@pytest.fixture()
def customer(db):
    row = Customer(first_name="Dana", last_name="Reyes", email="dana@example.com",
                   phone="555-0100", city="Springfield", state="IL", postal_code="62701")
    row.vehicles.append(Vehicle(year=2019, make="Ford", model="F-150", vin="1FTEW1E50KFA00001",
                                license_plate="ABC123"))
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture()
def work_order(db, customer):
    row = WorkOrder(
        work_order_number="WO-TEST-1",
        customer_id=customer.id,
        vehicle_id=customer.vehicles[0].id,
        description="Spring service",
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def app():
    return create_app(create_tables=False)


@pytest.fixture()
def client(app, session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def token_headers(role: str, username: str = None) -> dict:
    token = create_access_token({"sub": username or f"test_{role}", "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def viewer():
    return token_headers("viewer")


@pytest.fixture()
def operator():
    return token_headers("operator")


@pytest.fixture()
def admin():
    return token_headers("admin")
