"""
Price routes
"""
from fastapi import APIRouter
from reservation_engine.models.ontology import RoomType, BedType
from reservation_engine.models.schemas import NightlyPriceResponse
from reservation_engine.services.price_service import PriceService

router = APIRouter(prefix="/prices", tags=["Prices"])


@router.get("/nightly", response_model=NightlyPriceResponse)
def nightly_price(
    room_type: RoomType,
    bed_type: BedType,
    floor: int,
    people_capacity: int
):
    """Nightly price for a room with these attributes"""
    price = PriceService().calculate_nightly_price(room_type, bed_type, floor, people_capacity)
    return NightlyPriceResponse(
        room_type=room_type,
        bed_type=bed_type,
        floor=floor,
        people_capacity=people_capacity,
        price_per_night=price
    )
