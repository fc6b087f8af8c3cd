"""
Pytest configuration and shared fixtures
"""
import os

# The app module builds its engine at import time; keep tests off the on-disk default
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from decimal import Decimal
from itertools import count
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from reservation_engine.database import Base, get_db
from reservation_engine.models import ontology
from reservation_engine.models.ontology import (
    Hotel, Room, Guest, Reservation, BookingPeriod,
    RoomType, BedType, RoomState, BookingStatus
)
from reservation_engine.services.event_bus import event_bus
from reservation_engine.services.event_handlers import EventHandlers, event_handlers
from reservation_engine.services.price_service import PriceService
from reservation_engine.main import app


@pytest.fixture(scope="function")
def db_engine():
    """In-memory database engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Database session"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def guest_counter_handlers(db_engine, clean_event_bus):
    """Event handlers writing to the test database"""
    handlers = EventHandlers(db_session_factory=sessionmaker(bind=db_engine))
    handlers.register_handlers()
    yield handlers
    handlers.unregister_handlers()


@pytest.fixture(scope="function")
def client(db_session, guest_counter_handlers):
    """Test client bound to the test session"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        # Startup subscribed the handlers bound to the application database
        event_handlers.unregister_handlers()
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clean_event_bus():
    event_bus.clear_subscribers()
    event_bus.clear_history()
    yield
    event_bus.clear_subscribers()
    event_bus.clear_history()


# ============== Sample data ==============

@pytest.fixture
def sample_hotel(db_session):
    hotel = Hotel(name="Hotel Mirador")
    db_session.add(hotel)
    db_session.commit()
    db_session.refresh(hotel)
    return hotel


@pytest.fixture
def make_room(db_session, sample_hotel):
    """Factory: rooms in the sample hotel with a generated price"""
    numbers = count(101)

    def _make(room_type=RoomType.STANDARD, bed_type=BedType.SINGLE_BED, floor=5,
              people_capacity=2, number_of_beds=1, state=RoomState.FREE, hotel=None):
        room = Room(
            hotel_id=(hotel or sample_hotel).id,
            room_number=str(next(numbers)),
            floor=floor,
            number_of_beds=number_of_beds,
            bed_type=bed_type,
            people_capacity=people_capacity,
            room_type=room_type,
            state=state,
            times_booked=0,
            version=0,
            price_per_night=PriceService().calculate_nightly_price(
                room_type, bed_type, floor, people_capacity
            ),
        )
        db_session.add(room)
        db_session.commit()
        db_session.refresh(room)
        return room

    return _make


@pytest.fixture
def sample_room(make_room):
    """STANDARD / SINGLE_BED / floor 5 / capacity 2 -> 28.62 per night"""
    return make_room()


@pytest.fixture
def make_guest(db_session):
    """Factory: adult guests with unique identifiers"""
    numbers = count(1)

    def _make(name="Ana Torres", age=30):
        n = next(numbers)
        guest = Guest(
            name=name,
            email=f"guest{n}@example.com",
            dni=f"DNI-{n:05d}",
            cell_phone=f"+34600000{n:03d}",
            age=age,
            number_of_reservations=0,
        )
        db_session.add(guest)
        db_session.commit()
        db_session.refresh(guest)
        return guest

    return _make


@pytest.fixture
def sample_guest(make_guest):
    return make_guest()


@pytest.fixture
def make_period(db_session):
    """Factory: booking period rows written directly (past dates allowed)"""

    def _make(room, start_at, end_at, status=BookingStatus.RESERVED, reservation=None):
        period = BookingPeriod(
            room_id=room.id,
            reservation_id=reservation.id if reservation else None,
            start_at=start_at,
            end_at=end_at,
            status=status,
        )
        db_session.add(period)
        db_session.commit()
        db_session.refresh(period)
        return period

    return _make


@pytest.fixture
def make_stored_reservation(db_session, make_period):
    """Factory: reservation + RESERVED period written directly (past dates allowed)"""

    def _make(room, guest, start_at, end_at, number_of_people=1, status=BookingStatus.RESERVED):
        nights = (end_at - start_at).days
        reservation = Reservation(
            guest_id=guest.id,
            room_id=room.id,
            number_of_people=number_of_people,
            number_of_nights=nights,
            start_at=start_at,
            end_at=end_at,
            total_price=Decimal(room.price_per_night) * nights,
        )
        db_session.add(reservation)
        guest.number_of_reservations += 1
        db_session.commit()
        db_session.refresh(reservation)
        period = make_period(room, start_at, end_at, status, reservation)
        return reservation, period

    return _make
