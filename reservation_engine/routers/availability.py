"""
Availability routes
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from reservation_engine.database import get_db
from reservation_engine.models.schemas import AvailabilityResponse
from reservation_engine.services.availability_service import AvailabilityService

router = APIRouter(prefix="/availability", tags=["Availability"])


@router.get("/rooms/{room_id}", response_model=AvailabilityResponse)
def check_room(
    room_id: int,
    start: date = Query(...),
    end: date = Query(...),
    db: Session = Depends(get_db)
):
    """Is the room free for [start, end)?"""
    service = AvailabilityService(db)
    free = service.is_free(room_id, start, end)
    return AvailabilityResponse(room_id=room_id, start_at=start, end_at=end, free=free)


@router.get("/free-rooms", response_model=List[int])
def list_free_rooms(
    start: date = Query(...),
    end: date = Query(...),
    hotel_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Ids of the rooms free for [start, end)"""
    return AvailabilityService(db).free_rooms(start, end, hotel_id=hotel_id)
