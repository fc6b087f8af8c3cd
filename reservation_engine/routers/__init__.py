# API Routers
from reservation_engine.routers import (
    availability, reservations, booking_periods, prices, rooms, guests
)

__all__ = ['availability', 'reservations', 'booking_periods', 'prices', 'rooms', 'guests']
