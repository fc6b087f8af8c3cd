"""
Persistent objects (Ontology Objects)
Rooms, guests, reservations and booking periods reference each other by id
only; cross-entity reads go through explicit service queries.
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, ForeignKey,
    Enum as SQLEnum, Numeric, UniqueConstraint, CheckConstraint, Index
)
from reservation_engine.database import Base


# ============== Enums ==============

class RoomType(str, Enum):
    """Room category"""
    STANDARD = "STANDARD"
    DELUXE = "DELUXE"
    SUITE = "SUITE"
    EXECUTIVE = "EXECUTIVE"
    PRESIDENTIAL = "PRESIDENTIAL"


class BedType(str, Enum):
    """Bed type"""
    SINGLE_BED = "SINGLE_BED"
    DOUBLE_BED = "DOUBLE_BED"
    QUEEN_BED = "QUEEN_BED"
    KING_BED = "KING_BED"
    TWIN_BED = "TWIN_BED"


class RoomState(str, Enum):
    """Cached room state, projected from booking periods"""
    FREE = "FREE"
    RESERVED = "RESERVED"
    BLOCKED = "BLOCKED"
    MAINTENANCE = "MAINTENANCE"    # administrative, never overwritten by the engine


class BookingStatus(str, Enum):
    """Booking period status"""
    RESERVED = "RESERVED"      # initial
    BLOCKED = "BLOCKED"        # administrative block
    CANCELED = "CANCELED"      # terminal
    COMPLETED = "COMPLETED"    # terminal


# Statuses that occupy a room
ACTIVE_BOOKING_STATUSES = (BookingStatus.RESERVED, BookingStatus.BLOCKED)
TERMINAL_BOOKING_STATUSES = (BookingStatus.CANCELED, BookingStatus.COMPLETED)


# ============== Objects ==============

class Hotel(Base):
    """Hotel - owner of rooms"""
    __tablename__ = "hotels"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now)


class Room(Base):
    """
    Room
    price_per_night is generated from the room attributes; state is a
    denormalized projection of the room's booking periods.
    """
    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("hotel_id", "room_number", name="uq_room_number_per_hotel"),
        CheckConstraint("floor >= 1", name="ck_room_floor_positive"),
        CheckConstraint("number_of_beds BETWEEN 1 AND 4", name="ck_room_beds_range"),
        CheckConstraint("people_capacity BETWEEN 1 AND 4", name="ck_room_capacity_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False, index=True)
    room_number = Column(String(10), nullable=False)
    floor = Column(Integer, nullable=False)
    number_of_beds = Column(Integer, nullable=False, default=1)
    bed_type = Column(SQLEnum(BedType), nullable=False)
    people_capacity = Column(Integer, nullable=False)
    room_type = Column(SQLEnum(RoomType), nullable=False)
    state = Column(SQLEnum(RoomState), nullable=False, default=RoomState.FREE)
    times_booked = Column(Integer, nullable=False, default=0)
    price_per_night = Column(Numeric(10, 2), nullable=False)
    # Bumped as the first write of every booking unit of work; serializes writers per room
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class Guest(Base):
    """Guest (person holding reservations)"""
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(52), nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    dni = Column(String(30), unique=True, nullable=False)
    cell_phone = Column(String(20), unique=True, nullable=False)
    age = Column(Integer, nullable=False)
    number_of_reservations = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.now)


class Reservation(Base):
    """Reservation - owned by one guest and one room"""
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("end_at > start_at", name="ck_reservation_end_after_start"),
        CheckConstraint("number_of_people BETWEEN 1 AND 4", name="ck_reservation_people_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    number_of_people = Column(Integer, nullable=False)
    number_of_nights = Column(Integer, nullable=False)
    start_at = Column(Date, nullable=False)
    end_at = Column(Date, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class BookingPeriod(Base):
    """
    Booking period - the authoritative occupancy record of a room
    One-to-one with its reservation; the link is cleared (not the row) when
    the reservation is deleted so that history survives.
    """
    __tablename__ = "booking_periods"
    __table_args__ = (
        CheckConstraint("end_at > start_at", name="ck_booking_period_end_after_start"),
        Index("ix_booking_periods_room_dates", "room_id", "start_at", "end_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    reservation_id = Column(
        Integer,
        ForeignKey("reservations.id", ondelete="SET NULL"),
        unique=True,
        nullable=True,
    )
    start_at = Column(Date, nullable=False)
    end_at = Column(Date, nullable=False)
    status = Column(SQLEnum(BookingStatus), nullable=False, default=BookingStatus.RESERVED)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
