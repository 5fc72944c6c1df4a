"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Must be set before the application settings are imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from packcheck.main import app
from packcheck.models import Base, Modifier, Product, Tenant
from packcheck.services.catalog import normalize_text
from packcheck.services.domain import OrderService
from packcheck.services.workflow import get_workflow_dispatcher
from shared.infrastructure.db import get_db
from shared.utils.schemas import StructuredOrder


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeDispatcher:
    """Records dispatched jobs instead of writing to Redis."""

    def __init__(self):
        self.jobs: list[tuple[str, dict]] = []

    async def dispatch(self, workflow: str, payload: dict) -> str:
        self.jobs.append((workflow, payload))
        return f"1700000000000-{len(self.jobs) - 1}"


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture(scope="function")
def client(db_session, dispatcher):
    """
    Test client with the database session and the workflow queue overridden.
    The lifespan is not run, so no real database or Redis is touched.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_workflow_dispatcher] = lambda: dispatcher

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def seed_tenant(db_session):
    """Create a test tenant."""
    tenant = Tenant(
        name="Taqueria Test",
        slug="taqueria-test",
        inbound_address="orders@taqueria.test",
        order_weight_delta_tolerance=100,
    )
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def other_tenant(db_session):
    """A second tenant, for isolation checks."""
    tenant = Tenant(name="Other Kitchen", slug="other-kitchen", inbound_address="orders@other.test")
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def tenant_headers(seed_tenant):
    return {"X-Tenant-ID": str(seed_tenant.id), "X-Actor-ID": "operator-1"}


def _catalog_row(model, tenant_id: int, name: str, weight: int, price: int = 0):
    return model(
        tenant_id=tenant_id,
        name=name,
        normalized_name=normalize_text(name),
        weight=weight,
        price=price,
    )


@pytest.fixture
def seed_catalog(db_session, seed_tenant):
    """Taco 170g, Burrito 400g, Extra Cheese +20g, No Onion -30g."""
    rows = {
        "taco": _catalog_row(Product, seed_tenant.id, "Taco", 170, 350),
        "burrito": _catalog_row(Product, seed_tenant.id, "Burrito", 400, 1200),
        "extra cheese": _catalog_row(Modifier, seed_tenant.id, "Extra Cheese", 20, 100),
        "no onion": _catalog_row(Modifier, seed_tenant.id, "No Onion", -30, 0),
    }
    db_session.add_all(rows.values())
    db_session.commit()
    return rows


@pytest.fixture
def make_structured():
    """Build a StructuredOrder; items default to 2x Taco with Extra Cheese."""
    def _make(items=None, check_number="1001", channel="takeout", **overrides):
        payload = {
            "type": channel,
            "check_number": check_number,
            "customer": {"name": "Ana Pérez", "email": "ana@example.com", "phone": "555-0100"},
            "items": items
            if items is not None
            else [
                {
                    "name": "Taco",
                    "quantity": 2,
                    "price": 7.00,
                    "modifiers": [{"name": "Extra Cheese", "price": 2.00}],
                }
            ],
            "subtotal_amount": 9.00,
            "tax_amount": 0.72,
            "total_amount": 9.72,
        }
        payload.update(overrides)
        return StructuredOrder.model_validate(payload)

    return _make


@pytest.fixture
def make_order(db_session, seed_tenant, seed_catalog, make_structured):
    """Create a persisted order through OrderService."""
    def _make(status=None, tenant=None, **structured_kwargs):
        order = OrderService(db_session, tenant or seed_tenant).create_order(
            make_structured(**structured_kwargs), raw_input="Check #1001\n2x Taco"
        )
        if status is not None:
            order.status = status
            db_session.commit()
        return order

    return _make
