import os

# przed importem shopcart, engine modulu ma byc sqlite
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import shopcart.data.models  # noqa: F401
from shopcart.api import create_app
from shopcart.api.deps import get_payment_client, get_scheduler
from shopcart.data.database import Base, get_db
from shopcart.data.models import CartModel, ProductModel, ReservationModel
from shopcart.services.payment_client import AlwaysApprovePaymentClient
from shopcart.utils.settings import JWT_ALGORITHM, JWT_SECRET_KEY


class RecordingScheduler:
    """Zamiast Celery: pamieta uzbrojone i odwolane timery."""

    def __init__(self):
        self.scheduled = {}
        self.cancelled = []
        self._next = 0

    def schedule(self, reservation_id, run_at):
        self._next += 1
        task_id = f"task-{self._next}"
        self.scheduled[task_id] = (reservation_id, run_at)
        return task_id

    def cancel(self, task_id):
        self.cancelled.append(task_id)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def make_product(db):
    def _make(price="5.00", stock=10, name="Widget"):
        product = ProductModel(name=name, price=Decimal(price), stock_quantity=stock)
        db.add(product)
        db.commit()
        return product.id

    return _make


@pytest.fixture
def make_cart(db):
    def _make(user_id=1):
        cart = CartModel(user_id=user_id, total_amount=Decimal("0.00"))
        db.add(cart)
        db.commit()
        return cart.id

    return _make


@pytest.fixture
def stock_of(db):
    def _stock(product_id):
        return db.get(ProductModel, product_id, populate_existing=True).stock_quantity

    return _stock


@pytest.fixture
def reservations_of(db):
    def _reservations(cart_id):
        return (
            db.query(ReservationModel)
            .filter(ReservationModel.cart_id == cart_id)
            .order_by(ReservationModel.id)
            .populate_existing()
            .all()
        )

    return _reservations


@pytest.fixture
def token():
    def _token(user_id=1, role="user"):
        return jwt.encode({"user_id": user_id, "role": role}, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)

    return _token


@pytest.fixture
def client(session_factory, scheduler):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    app.dependency_overrides[get_payment_client] = lambda: AlwaysApprovePaymentClient()

    with TestClient(app) as c:
        yield c
