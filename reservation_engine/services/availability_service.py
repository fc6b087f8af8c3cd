"""
Availability service - is a room free for a half-open date range?

Availability is derived only from booking periods: a RESERVED or BLOCKED
period for the room that overlaps [start, end) makes the room unavailable.
CANCELED and COMPLETED periods are history and never block. The cached
Room.state is not consulted.
"""
from datetime import date
from typing import List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from reservation_engine.exceptions import RoomNotFound
from reservation_engine.models.ontology import (
    ACTIVE_BOOKING_STATUSES, BookingPeriod, Room
)
from reservation_engine.services.validators import require_date_range

logger = logging.getLogger(__name__)


def overlaps(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Half-open intervals [start_a, end_a) and [start_b, end_b) share at least one day"""
    return start_a < end_b and start_b < end_a


class AvailabilityService:
    """Availability queries"""

    def __init__(self, db: Session):
        self.db = db

    def _overlapping_query(self, start_at: date, end_at: date,
                           exclude_period_id: Optional[int] = None):
        query = self.db.query(BookingPeriod).filter(
            BookingPeriod.status.in_(ACTIVE_BOOKING_STATUSES),
            BookingPeriod.start_at < end_at,
            BookingPeriod.end_at > start_at,
        )
        if exclude_period_id is not None:
            query = query.filter(BookingPeriod.id != exclude_period_id)
        return query

    def blocking_periods(self, room_id: int, start_at: date, end_at: date,
                         exclude_period_id: Optional[int] = None) -> List[BookingPeriod]:
        """Active periods of the room that overlap [start_at, end_at)"""
        return self._overlapping_query(start_at, end_at, exclude_period_id).filter(
            BookingPeriod.room_id == room_id
        ).order_by(BookingPeriod.start_at).all()

    def is_free(self, room_id: int, start_at: date, end_at: date,
                exclude_period_id: Optional[int] = None) -> bool:
        """
        Check one room

        Args:
            room_id: room to check
            start_at: first night (not in the past)
            end_at: departure day, after start_at
            exclude_period_id: period to ignore (a reservation's own period when it is being moved)

        Raises:
            InvalidDateRange: bad or past range
            RoomNotFound: unknown room
        """
        require_date_range(start_at, end_at, allow_past=False)
        if self.db.query(Room.id).filter(Room.id == room_id).first() is None:
            raise RoomNotFound(f"Room {room_id} does not exist", room_id=room_id)

        blocking = self.blocking_periods(room_id, start_at, end_at, exclude_period_id)
        if blocking:
            logger.debug(
                f"Room {room_id} busy for [{start_at}, {end_at}): "
                f"periods {[p.id for p in blocking]}"
            )
        return not blocking

    def free_rooms(self, start_at: date, end_at: date,
                   hotel_id: Optional[int] = None,
                   exclude_period_id: Optional[int] = None) -> List[int]:
        """Ids of every room with no blocking period in [start_at, end_at)"""
        require_date_range(start_at, end_at, allow_past=False)

        busy_rooms = select(BookingPeriod.room_id).where(
            BookingPeriod.status.in_(ACTIVE_BOOKING_STATUSES),
            BookingPeriod.start_at < end_at,
            BookingPeriod.end_at > start_at,
        )
        if exclude_period_id is not None:
            busy_rooms = busy_rooms.where(BookingPeriod.id != exclude_period_id)

        query = self.db.query(Room.id).filter(~Room.id.in_(busy_rooms))
        if hotel_id is not None:
            query = query.filter(Room.hotel_id == hotel_id)

        return [row.id for row in query.order_by(Room.id).all()]
