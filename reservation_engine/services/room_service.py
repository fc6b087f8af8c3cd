"""
Room service - hotels and rooms
Room price is generated from the room attributes; room state is a projection
of the room's booking periods and is only written by refresh_state().
"""
from datetime import date, datetime
from typing import List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from reservation_engine.exceptions import (
    HotelNotFound, InvalidCapacity, InvalidRoomConfiguration,
    RoomNotFound, RoomNotFree, ValidationError
)
from reservation_engine.models.events import EventType, RoomStateChangedData
from reservation_engine.models.ontology import (
    ACTIVE_BOOKING_STATUSES, BedType, BookingPeriod, BookingStatus, Hotel, Reservation,
    Room, RoomState, RoomType
)
from reservation_engine.models.schemas import HotelCreate, RoomCreate, RoomUpdate
from reservation_engine.services.event_bus import Event
from reservation_engine.services.price_service import PriceService
from reservation_engine.services.unit_of_work import UnitOfWork
from reservation_engine.services.validators import (
    require_not_blank, require_positive_id, require_range
)

logger = logging.getLogger(__name__)

MIN_BEDS, MAX_BEDS = 1, 4
MIN_PEOPLE, MAX_PEOPLE = 1, 4

# Allowed number_of_beds per bed type
BEDS_PER_TYPE = {
    BedType.KING_BED: (1, 1),
    BedType.QUEEN_BED: (1, 1),
    BedType.DOUBLE_BED: (1, 2),
    BedType.SINGLE_BED: (1, 4),
    BedType.TWIN_BED: (1, 4),
}


def validate_room_configuration(bed_type: BedType, number_of_beds: int, people_capacity: int) -> None:
    """
    Bed rule:
    - 1 to 4 beds and 1 to 4 people per room
    - KING_BED / QUEEN_BED: exactly one bed
    - DOUBLE_BED: one or two beds
    - SINGLE_BED / TWIN_BED: one to four beds
    """
    require_range(number_of_beds, MIN_BEDS, MAX_BEDS, "number_of_beds", InvalidRoomConfiguration)
    require_range(people_capacity, MIN_PEOPLE, MAX_PEOPLE, "people_capacity", InvalidCapacity)
    if bed_type is None:
        raise InvalidRoomConfiguration("bed_type is required")

    low, high = BEDS_PER_TYPE[BedType(bed_type)]
    if not low <= number_of_beds <= high:
        raise InvalidRoomConfiguration(
            f"{BedType(bed_type).value} rooms take {low} to {high} beds, got {number_of_beds}",
            bed_type=BedType(bed_type).value, number_of_beds=number_of_beds,
        )


def project_room_state(current: RoomState, periods: List[BookingPeriod],
                       today: Optional[date] = None) -> RoomState:
    """
    Derive a room's cached state from its booking periods

    MAINTENANCE is administrative and kept as is. Otherwise the room is
    BLOCKED while a blocked period covers today, RESERVED while any active
    period has not ended, and FREE when none remain.
    """
    if current == RoomState.MAINTENANCE:
        return current

    today = today or date.today()
    live = [p for p in periods if p.status in ACTIVE_BOOKING_STATUSES and p.end_at > today]
    if any(p.status == BookingStatus.BLOCKED and p.start_at <= today for p in live):
        return RoomState.BLOCKED
    if live:
        return RoomState.RESERVED
    return RoomState.FREE


class RoomService:
    """Room service"""

    def __init__(self, db: Session):
        self.db = db
        self.price_service = PriceService()

    # ============== Hotels ==============

    def create_hotel(self, data: HotelCreate) -> Hotel:
        require_not_blank(data.name, "name")
        if self.db.query(Hotel).filter(Hotel.name == data.name).first():
            raise ValidationError(f"Hotel '{data.name}' already exists")

        hotel = Hotel(name=data.name.strip())
        self.db.add(hotel)
        self.db.commit()
        self.db.refresh(hotel)
        return hotel

    def get_hotel(self, hotel_id: int) -> Hotel:
        require_positive_id(hotel_id, "Hotel", HotelNotFound)
        hotel = self.db.query(Hotel).filter(Hotel.id == hotel_id).first()
        if not hotel:
            raise HotelNotFound(f"Hotel {hotel_id} does not exist")
        return hotel

    # ============== Rooms ==============

    def get_room(self, room_id: int) -> Room:
        require_positive_id(room_id, "Room", RoomNotFound)
        room = self.db.query(Room).filter(Room.id == room_id).first()
        if not room:
            raise RoomNotFound(f"Room {room_id} does not exist", room_id=room_id)
        return room

    def get_rooms(self, hotel_id: Optional[int] = None, floor: Optional[int] = None,
                  room_type: Optional[RoomType] = None, bed_type: Optional[BedType] = None,
                  number_of_beds: Optional[int] = None, people_capacity: Optional[int] = None,
                  state: Optional[RoomState] = None) -> List[Room]:
        """List rooms with optional filters"""
        query = self.db.query(Room)

        if hotel_id is not None:
            query = query.filter(Room.hotel_id == hotel_id)
        if floor is not None:
            query = query.filter(Room.floor == floor)
        if room_type is not None:
            query = query.filter(Room.room_type == room_type)
        if bed_type is not None:
            query = query.filter(Room.bed_type == bed_type)
        if number_of_beds is not None:
            require_range(number_of_beds, MIN_BEDS, MAX_BEDS, "number_of_beds", InvalidRoomConfiguration)
            query = query.filter(Room.number_of_beds == number_of_beds)
        if people_capacity is not None:
            require_range(people_capacity, MIN_PEOPLE, MAX_PEOPLE, "people_capacity", InvalidCapacity)
            query = query.filter(Room.people_capacity == people_capacity)
        if state is not None:
            query = query.filter(Room.state == state)

        return query.order_by(Room.hotel_id, Room.floor, Room.room_number).all()

    def create_room(self, data: RoomCreate) -> Room:
        """Create a room; price_per_night comes from the price service"""
        self.get_hotel(data.hotel_id)
        require_not_blank(data.room_number, "room_number")
        validate_room_configuration(data.bed_type, data.number_of_beds, data.people_capacity)

        existing = self.db.query(Room).filter(
            Room.hotel_id == data.hotel_id,
            Room.room_number == data.room_number,
        ).first()
        if existing:
            raise ValidationError(f"Room number '{data.room_number}' already exists in hotel {data.hotel_id}")

        room = Room(
            **data.model_dump(),
            state=RoomState.FREE,
            times_booked=0,
            version=0,
            price_per_night=self.price_service.calculate_nightly_price(
                data.room_type, data.bed_type, data.floor, data.people_capacity
            ),
        )
        self.db.add(room)
        self.db.commit()
        self.db.refresh(room)
        logger.info(f"Room {room.room_number} created in hotel {room.hotel_id} at {room.price_per_night}/night")
        return room

    def update_room(self, room_id: int, data: RoomUpdate) -> Room:
        """Update room attributes and regenerate the nightly price"""
        room = self.get_room(room_id)
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)

        bed_type = update_data.get("bed_type", room.bed_type)
        number_of_beds = update_data.get("number_of_beds", room.number_of_beds)
        people_capacity = update_data.get("people_capacity", room.people_capacity)
        validate_room_configuration(bed_type, number_of_beds, people_capacity)
        price = self.price_service.calculate_nightly_price(
            update_data.get("room_type", room.room_type),
            bed_type,
            update_data.get("floor", room.floor),
            people_capacity,
        )

        for key, value in update_data.items():
            setattr(room, key, value)
        room.price_per_night = price

        self.db.commit()
        self.db.refresh(room)
        return room

    def delete_room(self, room_id: int) -> bool:
        """Delete a room that is FREE and has no active booking period"""
        room = self.get_room(room_id)
        active = self.db.query(BookingPeriod.id).filter(
            BookingPeriod.room_id == room_id,
            BookingPeriod.status.in_(ACTIVE_BOOKING_STATUSES),
        ).count()
        if room.state != RoomState.FREE or active:
            raise RoomNotFree(
                f"Room {room_id} is {room.state.value} with {active} active booking periods; cannot delete",
                room_id=room_id,
            )
        if self.db.query(Reservation.id).filter(Reservation.room_id == room_id).first():
            raise RoomNotFree(f"Room {room_id} still has reservations; cannot delete", room_id=room_id)

        with UnitOfWork(self.db):
            # Canceled and completed periods go with the room
            self.db.query(BookingPeriod).filter(
                BookingPeriod.room_id == room_id
            ).delete(synchronize_session=False)
            self.db.delete(room)

        logger.info(f"Room {room_id} deleted")
        return True

    # ============== State projection ==============

    def refresh_state(self, room_id: int, uow=None) -> Tuple[RoomState, RoomState]:
        """
        Re-project the room's cached state from its booking periods

        Called inside an open unit of work after booking periods changed;
        collects a room.state_changed event when the state moves.
        """
        self.db.flush()
        room = self.get_room(room_id)
        periods = self.db.query(BookingPeriod).filter(BookingPeriod.room_id == room_id).all()

        old_state = RoomState(room.state)
        new_state = project_room_state(old_state, periods)
        if new_state != old_state:
            room.state = new_state
            logger.info(f"Room {room.room_number} (id={room_id}) state {old_state.value} -> {new_state.value}")
            if uow is not None:
                uow.collect(Event(
                    event_type=EventType.ROOM_STATE_CHANGED,
                    timestamp=datetime.now(),
                    data=RoomStateChangedData(
                        room_id=room_id,
                        room_number=room.room_number,
                        old_state=old_state.value,
                        new_state=new_state.value,
                    ).to_dict(),
                    source="room_service",
                ))
        return old_state, new_state
