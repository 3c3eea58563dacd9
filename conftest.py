import os
from decimal import Decimal

from dotenv import load_dotenv
import pytest

# Load environment so TEST_DATABASE_URL can be read from .env
load_dotenv()

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///./test_laundry.db")
# the app binds its engine at import time
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine.url import make_url  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from laundry.main import app  # noqa: E402
from laundry.database import get_db, Base  # noqa: E402
from laundry.models.product import Product  # noqa: E402
from laundry.models.user import User, UserRole, Profile  # noqa: E402
from laundry.utils.enums import Role, PricingModel  # noqa: E402

connect_args = {"check_same_thread": False} if make_url(TEST_DATABASE_URL).get_backend_name() == "sqlite" else {}
engine = create_engine(TEST_DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Override the app's DB dependency to use the test engine/session
def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh schema for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _create_user(email: str, role: Role = None) -> str:
    session = TestingSessionLocal()
    try:
        user = User(email=email)
        session.add(user)
        session.flush()
        if role is not None:
            session.add(UserRole(user_id=user.id, role=role))
        session.add(Profile(user_id=user.id, points_balance=0))
        session.commit()
        return user.id
    finally:
        session.close()


def auth(user_id: str) -> dict:
    return {"X-User-Id": user_id}


@pytest.fixture
def admin_id():
    return _create_user("admin@example.com", Role.ADMIN)


@pytest.fixture
def customer_id():
    return _create_user("customer@example.com", Role.CUSTOMER)


@pytest.fixture
def other_customer_id():
    # no role row: treated as a customer
    return _create_user("other@example.com")


@pytest.fixture
def driver_id():
    return _create_user("driver@example.com", Role.DRIVER)


@pytest.fixture
def second_driver_id():
    return _create_user("driver2@example.com", Role.DRIVER)


@pytest.fixture
def products():
    session = TestingSessionLocal()
    try:
        session.add_all([
            Product(product_id="wash_fold", name="Pesu ja viikkaus", category="laundry",
                    base_price=Decimal("25.90"), pricing_model=PricingModel.FIXED, is_active=True),
            Product(product_id="shirt", name="Kauluspaita", category="laundry",
                    base_price=Decimal("4.50"), pricing_model=PricingModel.FIXED, is_active=True),
            Product(product_id="rug_wash", name="Mattopesu", category="rugs",
                    base_price=Decimal("0"), pricing_model=PricingModel.RUG_AREA, is_active=True),
            Product(product_id="retired", name="Vanha palvelu", category="laundry",
                    base_price=Decimal("9.90"), pricing_model=PricingModel.FIXED, is_active=False),
        ])
        session.commit()
    finally:
        session.close()
    return ["wash_fold", "shirt", "rug_wash"]


def tomorrow_slot(start: str = "10:00") -> dict:
    from laundry.services.scheduling import generate_time_slots

    for slot in generate_time_slots(start_from_today=False, days=2):
        if slot.start == start:
            return slot.model_dump()
    raise LookupError(start)


def order_payload(**overrides) -> dict:
    payload = {
        "cart_items": [{"service_id": "wash_fold", "quantity": 1}],
        "phone": "+358 40 123 4567",
        "address": "Mannerheimintie 1, Helsinki",
        "pickup_option": "choose_time",
        "selected_time_slot": tomorrow_slot(),
        "payment_method": "cash",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def place_order(client, products):
    def _place(user_id: str, **overrides) -> dict:
        response = client.post("/orders", json=order_payload(**overrides), headers=auth(user_id))
        assert response.status_code == 201, response.text
        return response.json()

    return _place
