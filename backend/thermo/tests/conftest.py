import os
import tempfile

# Point the app at a throwaway SQLite file before anything imports the engine
_DB_DIR = tempfile.mkdtemp(prefix="thermo-tests-")
os.environ["DB_URI"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from httpx import ASGITransport, AsyncClient

from thermo.core.security import create_access_token, hash_device_token
from thermo.db.session import Base, SessionLocal, engine, init_db
from thermo.main import app
from thermo.models.device import Device
from thermo.models.operator import Operator
from thermo.services.operators import seed_operator

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123"
VIEWER_EMAIL = "viewer@example.com"
VIEWER_PASSWORD = "viewer123"


@pytest.fixture(autouse=True)
def fresh_db():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _token_for(email: str) -> str:
    session = SessionLocal()
    try:
        op = session.query(Operator).filter(Operator.email == email).one()
        return create_access_token(op.id, op.email, op.role)
    finally:
        session.close()


@pytest.fixture
def admin_headers(db):
    seed_operator(db, ADMIN_EMAIL, ADMIN_PASSWORD, "admin")
    return {"Authorization": f"Bearer {_token_for(ADMIN_EMAIL)}"}


@pytest.fixture
def viewer_headers(db):
    seed_operator(db, VIEWER_EMAIL, VIEWER_PASSWORD, "viewer")
    return {"Authorization": f"Bearer {_token_for(VIEWER_EMAIL)}"}


def add_device(session, device_id="thermo-01", token="dev-secret-01", enabled=True):
    session.add(Device(device_id=device_id, name=device_id, token_hash=hash_device_token(token), enabled=enabled))
    session.commit()
    return {"X-Device-Token": token}
