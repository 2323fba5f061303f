"""
Shared fixtures: in-memory SQLite database, API client, organizations,
users and auth headers
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import uuid  # noqa: E402
from datetime import datetime  # noqa: E402
from decimal import Decimal  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from main import app  # noqa: E402
from venue_api.core.database import Base, get_db  # noqa: E402
from venue_api.core.security import create_access_token, hash_password  # noqa: E402
from venue_api.models import Organization, OrganizationType, User, TaxConfiguration  # noqa: E402
from venue_api.models.tax import TaxType  # noqa: E402

TEST_PASSWORD = "SecurePass123"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    """Fresh schema per test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_client(db_session):
    """Test client bound to the test database"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def create_organization(db, name="Spice Garden", slug="spice-garden", type=OrganizationType.RESTAURANT):
    organization = Organization(
        id=uuid.uuid4(),
        name=name,
        slug=slug,
        type=type,
        is_active=True,
    )
    db.add(organization)
    db.commit()
    db.refresh(organization)
    return organization


def create_user(db, organization, email, role="staff"):
    user = User(
        id=uuid.uuid4(),
        organization_id=organization.id,
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        first_name="Test",
        last_name="User",
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_tax_configuration(db, organization, created_at=None, **overrides):
    values = {
        "organization_type": organization.type,
        "name": "Restaurant GST",
        "tax_type": TaxType.GST,
        "tax_rate": Decimal("5.00"),
        "is_default": True,
        "is_active": True,
        "is_tax_exempt": False,
        "is_price_inclusive": False,
    }
    values.update(overrides)
    configuration = TaxConfiguration(
        id=uuid.uuid4(),
        organization_id=organization.id,
        created_at=created_at or datetime.utcnow(),
        **values,
    )
    db.add(configuration)
    db.commit()
    db.refresh(configuration)
    return configuration


def auth_headers_for(user):
    token = create_access_token({
        "sub": user.id,
        "organization_id": user.organization_id,
        "email": user.email,
        "role": user.role,
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def organization(db_session):
    return create_organization(db_session)


@pytest.fixture
def other_organization(db_session):
    return create_organization(db_session, name="Harbour Bar", slug="harbour-bar", type=OrganizationType.BAR)


@pytest.fixture
def admin_user(db_session, organization):
    return create_user(db_session, organization, "admin@spicegarden.example.com", role="admin")


@pytest.fixture
def staff_user(db_session, organization):
    return create_user(db_session, organization, "staff@spicegarden.example.com", role="staff")


@pytest.fixture
def super_admin_user(db_session, other_organization):
    return create_user(db_session, other_organization, "root@platform.example.com", role="super_admin")


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers_for(admin_user)


@pytest.fixture
def staff_headers(staff_user):
    return auth_headers_for(staff_user)


@pytest.fixture
def super_admin_headers(super_admin_user):
    return auth_headers_for(super_admin_user)


# -------------------------
# IN-MEMORY REPOSITORIES
# -------------------------
def make_configuration(
    tax_rate="5.0",
    organization_id=None,
    organization_type=OrganizationType.RESTAURANT,
    created_at=None,
    id=None,
    **overrides
):
    values = {
        "id": id or uuid.uuid4(),
        "organization_id": organization_id,
        "organization_type": organization_type,
        "name": "GST",
        "description": None,
        "tax_type": TaxType.GST,
        "tax_rate": Decimal(tax_rate),
        "is_default": False,
        "is_active": True,
        "is_tax_exempt": False,
        "is_price_inclusive": False,
        "applicable_region": None,
        "service_type": None,
        "created_at": created_at or datetime(2026, 1, 1, 12, 0, 0),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class FakeTaxConfigurationRepository:
    """List-backed configuration store"""

    def __init__(self, configurations=None):
        self.configurations = list(configurations or [])
        self.find_active_calls = 0

    def find_active(self, organization_id, organization_type):
        self.find_active_calls += 1
        return [
            c for c in self.configurations
            if c.organization_id == organization_id
            and c.organization_type == organization_type
            and c.is_active
        ]

    def list_for_organization(self, organization_id):
        return [c for c in self.configurations if c.organization_id == organization_id]

    def get(self, configuration_id, organization_id):
        for c in self.configurations:
            if c.id == configuration_id and c.organization_id == organization_id:
                return c
        return None

    def add(self, configuration):
        self.configurations.append(configuration)
        return configuration

    def save(self, configuration):
        return configuration

    def delete(self, configuration):
        self.configurations.remove(configuration)


class FakeOrganizationRepository:
    def __init__(self, organizations=None):
        self.organizations = {o.id: o for o in organizations or []}

    def get(self, organization_id):
        return self.organizations.get(organization_id)
