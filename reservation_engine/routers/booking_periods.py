"""
Booking period routes
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from reservation_engine.database import get_db
from reservation_engine.models.ontology import BookingStatus
from reservation_engine.models.schemas import BookingPeriodResponse
from reservation_engine.services.booking_period_service import BookingPeriodService

router = APIRouter(prefix="/booking-periods", tags=["Booking periods"])


@router.get("", response_model=List[BookingPeriodResponse])
def list_periods(
    room_id: Optional[int] = None,
    status: Optional[BookingStatus] = None,
    start_from: Optional[date] = None,
    end_before: Optional[date] = None,
    db: Session = Depends(get_db)
):
    return BookingPeriodService(db).get_periods(room_id, status, start_from, end_before)


@router.get("/{period_id}", response_model=BookingPeriodResponse)
def get_period(period_id: int, db: Session = Depends(get_db)):
    return BookingPeriodService(db).get_period(period_id)


@router.post("/{period_id}/complete", response_model=BookingPeriodResponse)
def complete_period(period_id: int, db: Session = Depends(get_db)):
    """RESERVED -> COMPLETED"""
    return BookingPeriodService(db).complete(period_id)


@router.post("/{period_id}/block", response_model=BookingPeriodResponse)
def block_period(period_id: int, db: Session = Depends(get_db)):
    """RESERVED -> BLOCKED"""
    return BookingPeriodService(db).block(period_id)


@router.post("/{period_id}/unblock", response_model=BookingPeriodResponse)
def unblock_period(period_id: int, db: Session = Depends(get_db)):
    """BLOCKED -> RESERVED"""
    return BookingPeriodService(db).unblock(period_id)


@router.delete("/{period_id}")
def delete_period(period_id: int, db: Session = Depends(get_db)):
    """Delete a canceled or completed period"""
    BookingPeriodService(db).delete_period(period_id)
    return {"message": "Booking period deleted", "booking_period_id": period_id}
