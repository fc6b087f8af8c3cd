"""
Reservation routes
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from reservation_engine.database import get_db
from reservation_engine.models.schemas import (
    ReservationCreate, ReservationUpdate, ReservationResponse, BookingPeriodResponse
)
from reservation_engine.services.reservation_service import ReservationService

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.get("", response_model=List[ReservationResponse])
def list_reservations(
    room_id: Optional[int] = None,
    guest_id: Optional[int] = None,
    number_of_people: Optional[int] = None,
    number_of_nights: Optional[int] = None,
    start_from: Optional[date] = None,
    end_before: Optional[date] = None,
    db: Session = Depends(get_db)
):
    """List reservations"""
    service = ReservationService(db)
    reservations = service.get_reservations(
        room_id, guest_id, number_of_people, number_of_nights, start_from, end_before
    )
    return [ReservationResponse(**service.get_reservation_detail(r.id)) for r in reservations]


@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(reservation_id: int, db: Session = Depends(get_db)):
    """Reservation detail"""
    service = ReservationService(db)
    return ReservationResponse(**service.get_reservation_detail(reservation_id))


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_reservation(data: ReservationCreate, db: Session = Depends(get_db)):
    """Book a room"""
    service = ReservationService(db)
    reservation = service.create_reservation(data)
    return ReservationResponse(**service.get_reservation_detail(reservation.id))


@router.patch("/{reservation_id}", response_model=ReservationResponse)
def update_reservation(
    reservation_id: int,
    data: ReservationUpdate,
    db: Session = Depends(get_db)
):
    """Change room, dates or party size"""
    service = ReservationService(db)
    reservation = service.update_reservation(reservation_id, data)
    return ReservationResponse(**service.get_reservation_detail(reservation.id))


@router.post("/{reservation_id}/cancel", response_model=BookingPeriodResponse)
def cancel_reservation(reservation_id: int, db: Session = Depends(get_db)):
    """Cancel a reservation"""
    return ReservationService(db).cancel_reservation(reservation_id)


@router.delete("/{reservation_id}")
def delete_reservation(reservation_id: int, db: Session = Depends(get_db)):
    """Delete a reservation that is not in progress"""
    ReservationService(db).delete_reservation(reservation_id)
    return {"message": "Reservation deleted", "reservation_id": reservation_id}
