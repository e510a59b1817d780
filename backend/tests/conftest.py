import os

# Avant tout import de l'app : pas de Postgres pour les tests
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backend.app.api.deps import get_db, get_settings  # noqa: E402
from backend.app.core.config import Config  # noqa: E402
from backend.app.db.base import Base  # noqa: E402
from backend.app.db.models.models_v1 import User, Product, ProcurementPrice, Order, OrderItem  # noqa: E402
from backend.app.db.models.core_types import Role, OrderStatus  # noqa: E402
from backend.app.main import app  # noqa: E402


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Session DB isolée par test.

    SQLite en mémoire, une base neuve par test (StaticPool : une seule connexion
    partagée entre le test et l'app).
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def settings() -> Config:
    return Config(database_url="sqlite://", convenience_fee=Decimal("40"), enforce_status_transitions=False)


@pytest.fixture
def client(db_session, settings):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ---------- helpers ----------
@pytest.fixture
def make_user(db_session):
    def _make(name="Vendor", role=Role.vendor):
        u = User(email=f"{name.lower().replace(' ', '.')}@test.local", name=name, role=role)
        db_session.add(u)
        db_session.commit()
        return u

    return _make


@pytest.fixture
def make_product(db_session):
    def _make(name, unit="kg"):
        p = Product(name=name, unit=unit)
        db_session.add(p)
        db_session.commit()
        return p

    return _make


@pytest.fixture
def set_price(db_session):
    def _set(product, price, set_at=None):
        row = ProcurementPrice(
            product_id=product.id,
            price=Decimal(str(price)),
            set_at=set_at or datetime.now(timezone.utc),
        )
        db_session.add(row)
        db_session.commit()
        return row

    return _set


@pytest.fixture
def make_order(db_session):
    """Commande brute (sans passer par le service), pour préparer un état donné."""

    def _make(user, lines, status=OrderStatus.placed):
        order = Order(user_id=user.id, status=status, total=Decimal("40"))
        db_session.add(order)
        db_session.flush()
        for product, qty in lines:
            db_session.add(OrderItem(order_id=order.id, product_id=product.id, quantity=qty, price=Decimal("0")))
        db_session.commit()
        return order

    return _make
