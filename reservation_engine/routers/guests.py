"""
Guest routes
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from reservation_engine.database import get_db
from reservation_engine.models.schemas import GuestCreate, GuestResponse
from reservation_engine.services.guest_service import GuestService

router = APIRouter(prefix="/guests", tags=["Guests"])


@router.get("", response_model=List[GuestResponse])
def search_guests(search: str = "", db: Session = Depends(get_db)):
    """Search guests by name, email, dni or phone"""
    return GuestService(db).search_guests(search)


@router.get("/{guest_id}", response_model=GuestResponse)
def get_guest(guest_id: int, db: Session = Depends(get_db)):
    return GuestService(db).get_guest(guest_id)


@router.post("", response_model=GuestResponse, status_code=status.HTTP_201_CREATED)
def create_guest(data: GuestCreate, db: Session = Depends(get_db)):
    return GuestService(db).create_guest(data)
