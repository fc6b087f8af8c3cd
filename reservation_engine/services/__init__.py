# Business Services
from reservation_engine.services.price_service import PriceService
from reservation_engine.services.availability_service import AvailabilityService
from reservation_engine.services.room_service import RoomService
from reservation_engine.services.guest_service import GuestService
from reservation_engine.services.booking_period_service import BookingPeriodService
from reservation_engine.services.reservation_service import ReservationService
from reservation_engine.services.unit_of_work import UnitOfWork

__all__ = [
    'PriceService', 'AvailabilityService', 'RoomService', 'GuestService',
    'BookingPeriodService', 'ReservationService', 'UnitOfWork'
]
