"""
Domain events
Published by the services after their unit of work commits.
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime, date
from typing import Optional, Dict, Any


class EventType(str, Enum):
    """Event types"""
    # Reservation
    RESERVATION_CREATED = "reservation.created"
    RESERVATION_UPDATED = "reservation.updated"
    RESERVATION_CANCELLED = "reservation.cancelled"
    RESERVATION_DELETED = "reservation.deleted"

    # Booking period
    BOOKING_PERIOD_STATUS_CHANGED = "booking_period.status_changed"

    # Room
    ROOM_STATE_CHANGED = "room.state_changed"


@dataclass
class BaseEventData:
    """Event payload base"""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, (datetime, date)):
                result[key] = value.isoformat()
        return result


@dataclass
class ReservationChangedData(BaseEventData):
    """Reservation created / updated / deleted"""
    reservation_id: int = 0
    guest_id: int = 0
    room_id: int = 0
    start_at: Optional[date] = None
    end_at: Optional[date] = None
    total_price: str = "0"


@dataclass
class BookingPeriodStatusChangedData(BaseEventData):
    booking_period_id: int = 0
    room_id: int = 0
    reservation_id: Optional[int] = None
    old_status: str = ""
    new_status: str = ""
    trigger: str = ""


@dataclass
class RoomStateChangedData(BaseEventData):
    room_id: int = 0
    room_number: str = ""
    old_state: str = ""
    new_state: str = ""
