"""
Guest service - people holding reservations
"""
from typing import List, Optional
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from reservation_engine.exceptions import GuestNotFound, ValidationError
from reservation_engine.models.ontology import Guest
from reservation_engine.models.schemas import GuestCreate
from reservation_engine.services.validators import require_not_blank, require_positive_id

logger = logging.getLogger(__name__)

MIN_GUEST_AGE = 18


class GuestService:
    """Guest service"""

    def __init__(self, db: Session):
        self.db = db

    def get_guest(self, guest_id: int) -> Guest:
        require_positive_id(guest_id, "Guest", GuestNotFound)
        guest = self.db.query(Guest).filter(Guest.id == guest_id).first()
        if not guest:
            raise GuestNotFound(f"Guest {guest_id} does not exist", guest_id=guest_id)
        return guest

    def find_guest(self, guest_id: Optional[int]) -> Optional[Guest]:
        if guest_id is None:
            return None
        return self.db.query(Guest).filter(Guest.id == guest_id).first()

    def search_guests(self, keyword: str) -> List[Guest]:
        """Search by name, email, dni or phone"""
        return self.db.query(Guest).filter(
            or_(
                Guest.name.contains(keyword),
                Guest.email.contains(keyword),
                Guest.dni.contains(keyword),
                Guest.cell_phone.contains(keyword),
            )
        ).order_by(Guest.id).all()

    def create_guest(self, data: GuestCreate, commit: bool = True) -> Guest:
        """
        Create a guest

        With commit=False the guest is only flushed, so it joins the caller's
        unit of work.
        """
        for field_name in ("name", "dni", "email", "cell_phone"):
            require_not_blank(getattr(data, field_name), field_name)
        if data.age is None or data.age < MIN_GUEST_AGE:
            raise ValidationError("Only an adult can book a room", age=data.age)

        duplicate = self.db.query(Guest).filter(
            or_(
                Guest.email == data.email,
                Guest.dni == data.dni,
                Guest.cell_phone == data.cell_phone,
            )
        ).first()
        if duplicate:
            raise ValidationError(
                f"A guest with this email, dni or phone already exists (id={duplicate.id})"
            )

        guest = Guest(**data.model_dump(), number_of_reservations=0)
        self.db.add(guest)
        if commit:
            self.db.commit()
            self.db.refresh(guest)
        else:
            self.db.flush()
        logger.info(f"Guest {guest.id} created")
        return guest

    def adjust_reservation_count(self, guest_id: int, delta: int) -> None:
        """Add delta to the guest's reservation counter (never below zero); no commit"""
        guest = self.find_guest(guest_id)
        if guest is None:
            return
        guest.number_of_reservations = max(0, (guest.number_of_reservations or 0) + delta)
