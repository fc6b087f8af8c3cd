"""
Error categories raised by the reservation engine.

Every error carries a stable ``code`` so the HTTP layer and callers can
tell the specific failure apart without parsing messages. The five category
base classes decide how a failure is reported:

- ValidationError: bad input, fixable by the caller.
- ConflictError: the room is taken; retry with another room or dates.
- NotFoundError: a referenced row does not exist.
- StateError: a business rule forbids the operation in the current state.
- PersistenceError: the storage layer failed; the unit of work was rolled back.
"""
from typing import Any, Dict, Optional


class ReservationEngineError(Exception):
    """Base class for all engine errors"""

    code = "reservation_engine_error"

    def __init__(self, message: str = "", **context: Any):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code}


# ============== Categories ==============

class ValidationError(ReservationEngineError):
    code = "validation_error"


class ConflictError(ReservationEngineError):
    code = "conflict"


class NotFoundError(ReservationEngineError):
    code = "not_found"


class StateError(ReservationEngineError):
    code = "state_error"


class PersistenceError(ReservationEngineError):
    code = "persistence_error"

    def __init__(self, message: str = "", original_error: Optional[Exception] = None, **context: Any):
        super().__init__(message, **context)
        self.original_error = original_error


# ============== Validation ==============

class InvalidDateRange(ValidationError):
    code = "invalid_date_range"


class InvalidPeopleCount(ValidationError):
    code = "invalid_people_count"


class InvalidFloor(ValidationError):
    code = "invalid_floor"


class InvalidCapacity(ValidationError):
    code = "invalid_capacity"


class InvalidRoomConfiguration(ValidationError):
    code = "invalid_room_configuration"


class BlankField(ValidationError):
    code = "blank_field"


# ============== Conflict ==============

class RoomNotAvailable(ConflictError):
    code = "room_not_available"


# ============== Not found ==============

class HotelNotFound(NotFoundError):
    code = "hotel_not_found"


class RoomNotFound(NotFoundError):
    code = "room_not_found"


class ReservationNotFound(NotFoundError):
    code = "reservation_not_found"


class BookingPeriodNotFound(NotFoundError):
    code = "booking_period_not_found"


class GuestNotFound(NotFoundError):
    code = "guest_not_found"


# ============== State ==============

class IllegalStatusTransition(StateError):
    code = "illegal_status_transition"


class CannotDeleteActiveBooking(StateError):
    code = "cannot_delete_active_booking"


class ReservationCurrentlyActive(StateError):
    code = "reservation_currently_active"


class RoomNotFree(StateError):
    code = "room_not_free"


__all__ = [
    "ReservationEngineError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "StateError",
    "PersistenceError",
    "InvalidDateRange",
    "InvalidPeopleCount",
    "InvalidFloor",
    "InvalidCapacity",
    "InvalidRoomConfiguration",
    "BlankField",
    "RoomNotAvailable",
    "HotelNotFound",
    "RoomNotFound",
    "ReservationNotFound",
    "BookingPeriodNotFound",
    "GuestNotFound",
    "IllegalStatusTransition",
    "CannotDeleteActiveBooking",
    "ReservationCurrentlyActive",
    "RoomNotFree",
]
