import os
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret-key-with-enough-length-for-hs256')

from booking_backend.auth.passwords import hash_password  # noqa: E402
from booking_backend.database import Base, get_db  # noqa: E402
from booking_backend.main import app  # noqa: E402
from booking_backend.models.admin import Admin  # noqa: E402
from booking_backend.models.appointment import Appointment  # noqa: E402
from booking_backend.models.customer import Customer  # noqa: E402

TABLES = [Customer.__table__, Admin.__table__, Appointment.__table__]

NOW = datetime(2030, 1, 7, 9, 0)

ADMIN_EMAIL = 'admin@system.com'
ADMIN_PASSWORD = 'admin123'


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def file_session_factory(tmp_path):
    engine = create_engine(
        f'sqlite:///{tmp_path / "bookings.db"}',
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_customer(db):
    def _make_customer(name: str = 'Ada Lovelace', email: str | None = None) -> Customer:
        customer = Customer(
            name=name,
            phone_number='555-0100',
            email=email or f'{name.split()[0].lower()}@example.com',
        )
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    return _make_customer


@pytest.fixture
def customer(make_customer) -> Customer:
    return make_customer()


@pytest.fixture
def other_customer(make_customer) -> Customer:
    return make_customer(name='Grace Hopper')


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def slot() -> datetime:
    return NOW + timedelta(days=1, hours=1)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin(db) -> Admin:
    admin = Admin(name='admin', email=ADMIN_EMAIL, hashed_password=hash_password(ADMIN_PASSWORD))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def auth_headers(client, admin) -> dict[str, str]:
    response = client.post('/auth/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return {'Authorization': f"Bearer {response.json()['access_token']}"}
