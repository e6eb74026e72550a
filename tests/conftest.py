"""Pytest configuration and shared fixtures."""

import itertools
import os

# Configure before the package reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["REDIS_URL"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["SECURITY_HEADERS_ENABLED"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from spotin.auth import create_client_token, create_staff_token
from spotin.database import Base, get_db
from spotin.domain.checkins.service import CheckInService
from spotin.domain.clients.schemas import ClientCreate
from spotin.domain.clients.service import ClientService
from spotin.domain.stock.schemas import ProductCreate, RecipeIngredient, RecipeUpdate, StockItemCreate
from spotin.domain.stock.service import StockService
from spotin.main import app
from spotin.models import StaffUser
from spotin.rate_limiter import reset_memory_cache
from spotin.security_utils import hash_password

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

STAFF_PASSWORD = "Reception2024"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def api(db) -> TestClient:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    reset_memory_cache()
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_memory_cache()


@pytest.fixture
def make_staff(db):
    counter = itertools.count(1)

    def _make(role: str = "admin", is_active: bool = True) -> StaffUser:
        n = next(counter)
        staff = StaffUser(
            email=f"{role}{n}@spotin.test",
            full_name=f"{role.title()} {n}",
            role=role,
            password_hash=hash_password(STAFF_PASSWORD),
            is_active=is_active,
        )
        db.add(staff)
        db.commit()
        db.refresh(staff)
        return staff

    return _make


@pytest.fixture
def admin(make_staff) -> StaffUser:
    return make_staff("admin")


@pytest.fixture
def headers_for(make_staff):
    """Bearer headers for a fresh staff member with the given role"""

    def _headers(role: str = "admin") -> dict:
        return {"Authorization": f"Bearer {create_staff_token(make_staff(role))}"}

    return _headers


@pytest.fixture
def make_member(db):
    counter = itertools.count(1)

    def _make(first_name: str = "Nour", last_name: str = "Hassan", email=None):
        n = next(counter)
        data = ClientCreate(
            first_name=first_name,
            last_name=last_name,
            phone=f"0100{n:07d}",
            email=email,
        )
        return ClientService(db).create_client(data)

    return _make


@pytest.fixture
def member_headers():
    def _headers(member) -> dict:
        return {"Authorization": f"Bearer {create_client_token(member)}"}

    return _headers


@pytest.fixture
def make_stock(db):
    def _make(name: str = "Milk", quantity: float = 1000, unit: str = "ml", min_quantity: float = 200) -> dict:
        return StockService(db).create_item(
            StockItemCreate(name=name, unit=unit, current_quantity=quantity, min_quantity=min_quantity)
        )

    return _make


@pytest.fixture
def make_product(db):
    def _make(name: str = "Latte", price: float = 40.0, category: str = "hot_drinks", recipe=None) -> dict:
        """recipe maps stock id to the quantity one unit of the product uses"""
        service = StockService(db)
        product = service.create_product(ProductCreate(name=name, category=category, price=price))
        if recipe:
            ingredients = [RecipeIngredient(stock_id=sid, quantity_needed=qty) for sid, qty in recipe.items()]
            product = service.set_recipe(product["id"], RecipeUpdate(ingredients=ingredients))
        return product

    return _make


@pytest.fixture
def checked_in(db, admin):
    """Check a member in and return them"""

    def _check_in(member):
        CheckInService(db).check_in(member.id, admin)
        db.refresh(member)
        return member

    return _check_in
