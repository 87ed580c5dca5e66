from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt as jose_jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wedding_transport.config import JWT_ALGORITHM, SECRET_KEY
from wedding_transport.database import Base, get_db
from wedding_transport.main import app
from wedding_transport.models import Guest, TravelInfo, User, WeddingEvent

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PLANNER_EMAIL = "planner@example.com"


@pytest.fixture()
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def planner(db_session):
    user = User(email=PLANNER_EMAIL, full_name="Pat Planner", role="staff")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def make_token():
    """Factory: sign a token the way the planner application issues them"""

    def _make_token(email, expires_in=timedelta(minutes=60)):
        claims = {"sub": email, "exp": datetime.now(timezone.utc) + expires_in}
        return jose_jwt.encode(claims, SECRET_KEY, algorithm=JWT_ALGORITHM)

    return _make_token


@pytest.fixture()
def auth_headers(planner, make_token):
    return {"Authorization": f"Bearer {make_token(planner.email)}"}


@pytest.fixture()
def event(db_session):
    wedding = WeddingEvent(
        title="Ana & Luis",
        couple_names="Ana and Luis",
        location="Lisbon",
        start_date=date(2025, 6, 14),
        accommodation_hotel_name="Hotel Avenida",
        arrival_buffer_time="00:30",
    )
    db_session.add(wedding)
    db_session.commit()
    return wedding


@pytest.fixture()
def add_guest(db_session):
    """Factory: add a guest, optionally with travel info, and return the guest"""

    def _add_guest(event, first_name, last_name="Guest", **travel):
        guest = Guest(event_id=event.id, first_name=first_name, last_name=last_name)
        db_session.add(guest)
        db_session.flush()
        if travel:
            travel.setdefault("travel_mode", "air")
            db_session.add(TravelInfo(guest_id=guest.id, **travel))
        db_session.commit()
        return guest

    return _add_guest


@pytest.fixture()
def add_flight_guest(add_guest):
    """Factory: guest on a confirmed flight who needs a pickup"""

    def _add_flight_guest(event, first_name, arrival_time, arrival_location="LIS", **overrides):
        travel = {
            "arrival_date": date(2025, 6, 12),
            "arrival_time": arrival_time,
            "arrival_location": arrival_location,
            "flight_status": "confirmed",
            "needs_transportation": True,
        }
        travel.update(overrides)
        return add_guest(event, first_name, **travel)

    return _add_flight_guest
