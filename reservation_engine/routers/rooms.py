"""
Hotel and room routes
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from reservation_engine.database import get_db
from reservation_engine.models.ontology import RoomType, BedType, RoomState
from reservation_engine.models.schemas import (
    HotelCreate, HotelResponse, RoomCreate, RoomUpdate, RoomResponse
)
from reservation_engine.services.room_service import RoomService

hotel_router = APIRouter(prefix="/hotels", tags=["Hotels"])
router = APIRouter(prefix="/rooms", tags=["Rooms"])


# ============== Hotels ==============

@hotel_router.post("", response_model=HotelResponse, status_code=status.HTTP_201_CREATED)
def create_hotel(data: HotelCreate, db: Session = Depends(get_db)):
    return RoomService(db).create_hotel(data)


@hotel_router.get("/{hotel_id}", response_model=HotelResponse)
def get_hotel(hotel_id: int, db: Session = Depends(get_db)):
    return RoomService(db).get_hotel(hotel_id)


# ============== Rooms ==============

@router.get("", response_model=List[RoomResponse])
def list_rooms(
    hotel_id: Optional[int] = None,
    floor: Optional[int] = None,
    room_type: Optional[RoomType] = None,
    bed_type: Optional[BedType] = None,
    number_of_beds: Optional[int] = None,
    people_capacity: Optional[int] = None,
    state: Optional[RoomState] = None,
    db: Session = Depends(get_db)
):
    """List rooms"""
    return RoomService(db).get_rooms(
        hotel_id, floor, room_type, bed_type, number_of_beds, people_capacity, state
    )


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(room_id: int, db: Session = Depends(get_db)):
    return RoomService(db).get_room(room_id)


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(data: RoomCreate, db: Session = Depends(get_db)):
    """Create a room; the nightly price is generated"""
    return RoomService(db).create_room(data)


@router.patch("/{room_id}", response_model=RoomResponse)
def update_room(room_id: int, data: RoomUpdate, db: Session = Depends(get_db)):
    return RoomService(db).update_room(room_id, data)


@router.delete("/{room_id}")
def delete_room(room_id: int, db: Session = Depends(get_db)):
    """Delete a free room"""
    RoomService(db).delete_room(room_id)
    return {"message": "Room deleted", "room_id": room_id}
