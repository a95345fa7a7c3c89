import os
import sys
import uuid
from datetime import date, datetime, timedelta
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

DEFAULT_SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
SQLALCHEMY_DATABASE_URL = os.getenv("TEST_DATABASE_URL") or DEFAULT_SQLALCHEMY_DATABASE_URL

# Ensure the application itself uses the test database instead of the production default.
os.environ.setdefault("DATABASE_URL", SQLALCHEMY_DATABASE_URL)
# Never reach SendGrid from the test suite.
os.environ["SENDGRID_API_KEY"] = ""

from ParkPermitAPI.main import app
from ParkPermitAPI.config import JWT_ALGORITHM, JWT_SECRET_KEY
from ParkPermitAPI.constants import ROLE_ADMIN, ROLE_STAFF
from ParkPermitAPI.database import Base, get_db
from ParkPermitAPI.models import Application, Park, ParkLocation, User


def _create_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


engine = _create_engine(SQLALCHEMY_DATABASE_URL)


class _TestingSession(Session):
    pass


TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine, class_=_TestingSession
)

try:
    with engine.begin() as connection:
        Base.metadata.drop_all(bind=connection)
        Base.metadata.create_all(bind=connection)
except OperationalError as exc:
    raise RuntimeError(
        "Unable to initialize the database schema for tests. "
        "Set TEST_DATABASE_URL to a reachable database URL or ensure SQLite is available."
    ) from exc


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="module")
def test_client():
    with TestClient(app) as client:
        yield client


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


# Helpers shared by the test modules; tables are not emptied between tests,
# so every record gets a unique name or email.

def create_user(db, role: str = ROLE_STAFF, parks=None) -> User:
    user = User(email=f"{uuid.uuid4().hex[:10]}@parks.example.com", encrypted_password="test", role=role)
    if parks:
        user.parks = list(parks)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_admin(db) -> User:
    return create_user(db, role=ROLE_ADMIN)


def get_token_for_user(user_id: int) -> str:
    payload = {"sub": str(user_id), "exp": datetime.utcnow() + timedelta(hours=1)}
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {get_token_for_user(user.id)}"}


def create_park(db, name: str = None) -> Park:
    park = Park(name=name or f"Park {uuid.uuid4().hex[:6]}", location="Northern Region")
    db.add(park)
    db.commit()
    db.refresh(park)
    return park


def create_location(db, park: Park, name: str = "Pavilion") -> ParkLocation:
    location = ParkLocation(park_id=park.id, name=name)
    db.add(location)
    db.commit()
    db.refresh(location)
    return location


def create_application(db, park: Park = None, **fields) -> Application:
    """Insert an application row directly, bypassing intake validation."""
    park = park or create_park(db)
    values = {
        "application_number": f"APP-TEST-{uuid.uuid4().hex[:8]}",
        "park_id": park.id,
        "first_name": "Dana",
        "last_name": "Reyes",
        "email": "dana@example.com",
        "phone": "801-555-0142",
        "event_title": "Family Reunion",
        "event_dates": [date.today().isoformat()],
        "application_fee": 10,
        "permit_fee": 35,
        "total_fee": 45,
        "status": "pending",
        "is_paid": False,
    }
    values.update(fields)
    application = Application(**values)
    db.add(application)
    db.commit()
    db.refresh(application)
    return application
