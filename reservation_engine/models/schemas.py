"""
Pydantic schemas
Request/response validation for the service layer and the API.
Business ranges (people, floor, capacity, dates) are checked by the services
so that each violation surfaces as its own error type.
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator
from reservation_engine.models.ontology import (
    RoomType, BedType, RoomState, BookingStatus
)


# ============== Hotel Schemas ==============

class HotelCreate(BaseModel):
    name: str = Field(..., max_length=100)


class HotelResponse(BaseModel):
    id: int
    name: str
    model_config = ConfigDict(from_attributes=True)


# ============== Room Schemas ==============

class RoomBase(BaseModel):
    room_number: str = Field(..., max_length=10)
    floor: int
    number_of_beds: int = 1
    bed_type: BedType
    people_capacity: int
    room_type: RoomType


class RoomCreate(RoomBase):
    hotel_id: int


class RoomUpdate(BaseModel):
    floor: Optional[int] = None
    number_of_beds: Optional[int] = None
    bed_type: Optional[BedType] = None
    people_capacity: Optional[int] = None
    room_type: Optional[RoomType] = None


class RoomResponse(RoomBase):
    id: int
    hotel_id: int
    state: RoomState
    times_booked: int
    price_per_night: Decimal
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== Guest Schemas ==============

class GuestCreate(BaseModel):
    name: str = Field(..., max_length=52)
    email: str = Field(..., max_length=100)
    dni: str = Field(..., max_length=30)
    cell_phone: str = Field(..., max_length=20)
    age: int


class GuestResponse(GuestCreate):
    id: int
    number_of_reservations: int
    model_config = ConfigDict(from_attributes=True)


# ============== Reservation Schemas ==============

class ReservationCreate(BaseModel):
    """Either guest_id (existing guest) or guest (new guest data) is required"""
    guest_id: Optional[int] = None
    guest: Optional[GuestCreate] = None
    room_id: int
    number_of_people: int
    start_at: date
    end_at: date

    @model_validator(mode="after")
    def check_guest_reference(self):
        if self.guest_id is None and self.guest is None:
            raise ValueError("guest_id or guest data is required")
        return self


class ReservationUpdate(BaseModel):
    room_id: Optional[int] = None
    number_of_people: Optional[int] = None
    start_at: Optional[date] = None
    end_at: Optional[date] = None


class ReservationResponse(BaseModel):
    id: int
    guest_id: int
    room_id: int
    number_of_people: int
    number_of_nights: int
    start_at: date
    end_at: date
    total_price: Decimal
    booking_period_id: Optional[int] = None
    booking_status: Optional[BookingStatus] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== Booking Period Schemas ==============

class BookingPeriodResponse(BaseModel):
    id: int
    room_id: int
    reservation_id: Optional[int]
    start_at: date
    end_at: date
    status: BookingStatus
    model_config = ConfigDict(from_attributes=True)


# ============== Availability / Price Schemas ==============

class AvailabilityResponse(BaseModel):
    room_id: int
    start_at: date
    end_at: date
    free: bool


class NightlyPriceResponse(BaseModel):
    room_type: RoomType
    bed_type: BedType
    floor: int
    people_capacity: int
    price_per_night: Decimal
