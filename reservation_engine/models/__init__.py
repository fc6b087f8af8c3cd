# Ontology Models
from reservation_engine.models.ontology import (
    Hotel, Room, Guest, Reservation, BookingPeriod,
    RoomType, BedType, RoomState, BookingStatus
)

__all__ = [
    'Hotel', 'Room', 'Guest', 'Reservation', 'BookingPeriod',
    'RoomType', 'BedType', 'RoomState', 'BookingStatus'
]
