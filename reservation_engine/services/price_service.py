"""
Price service - nightly room price from room attributes

price = BASE_ROOM_PRICE x room type factor x bed type factor
        x floor factor x people capacity factor

Pure and deterministic; exact Decimal arithmetic, rounded to cents at the end.
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict

from reservation_engine.exceptions import InvalidCapacity, InvalidFloor
from reservation_engine.models.ontology import BedType, Room, RoomType
from reservation_engine.services.validators import require_date_range

BASE_ROOM_PRICE = Decimal("20")

ROOM_TYPE_MULTIPLIERS: Dict[RoomType, Decimal] = {
    RoomType.STANDARD: Decimal("1.10"),
    RoomType.DELUXE: Decimal("1.15"),
    RoomType.SUITE: Decimal("1.20"),
    RoomType.EXECUTIVE: Decimal("1.30"),
    RoomType.PRESIDENTIAL: Decimal("1.45"),
}

BED_TYPE_MULTIPLIERS: Dict[BedType, Decimal] = {
    BedType.SINGLE_BED: Decimal("1.05"),
    BedType.DOUBLE_BED: Decimal("1.10"),
    BedType.QUEEN_BED: Decimal("1.20"),
    BedType.KING_BED: Decimal("1.25"),
    BedType.TWIN_BED: Decimal("1.35"),
}

PEOPLE_CAPACITY_MULTIPLIERS: Dict[int, Decimal] = {
    1: Decimal("1.10"),
    2: Decimal("1.18"),
    3: Decimal("1.25"),
    4: Decimal("1.33"),
}

FLOOR_CAP = 15
FLOOR_CAP_MULTIPLIER = Decimal("1.15")
CENTS = Decimal("0.01")


def floor_multiplier(floor: int) -> Decimal:
    """1 + floor/100 up to floor 15, 1.15 above"""
    if floor is None or floor <= 0:
        raise InvalidFloor(f"Floor must be 1 or higher, got {floor}", floor=floor)
    if floor > FLOOR_CAP:
        return FLOOR_CAP_MULTIPLIER
    return Decimal(1) + Decimal(floor) / Decimal(100)


def people_capacity_multiplier(people_capacity: int) -> Decimal:
    try:
        return PEOPLE_CAPACITY_MULTIPLIERS[people_capacity]
    except KeyError:
        raise InvalidCapacity(
            f"People capacity must be between 1 and 4, got {people_capacity}",
            people_capacity=people_capacity,
        ) from None


class PriceService:
    """Price service"""

    def calculate_nightly_price(self, room_type: RoomType, bed_type: BedType,
                                floor: int, people_capacity: int) -> Decimal:
        """Nightly price for a room with the given attributes"""
        price = (
            BASE_ROOM_PRICE
            * ROOM_TYPE_MULTIPLIERS[RoomType(room_type)]
            * BED_TYPE_MULTIPLIERS[BedType(bed_type)]
            * floor_multiplier(floor)
            * people_capacity_multiplier(people_capacity)
        )
        return price.quantize(CENTS, rounding=ROUND_HALF_UP)

    def nightly_price_for_room(self, room: Room) -> Decimal:
        return self.calculate_nightly_price(
            room.room_type, room.bed_type, room.floor, room.people_capacity
        )

    def calculate_total_price(self, nightly_price: Decimal, start_at: date, end_at: date) -> Decimal:
        """Nightly price times whole nights in [start_at, end_at)"""
        nights = require_date_range(start_at, end_at)
        return (Decimal(nightly_price) * nights).quantize(CENTS, rounding=ROUND_HALF_UP)
