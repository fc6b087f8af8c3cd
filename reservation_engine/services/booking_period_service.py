"""
Booking period service - status lifecycle of booking periods

    RESERVED --cancel--> CANCELED   (terminal)
    RESERVED --complete--> COMPLETED (terminal)
    RESERVED --block--> BLOCKED --unblock--> RESERVED

Only CANCELED or COMPLETED periods may be deleted. Every status change
re-projects the owning room's cached state inside the same unit of work.
"""
from datetime import datetime, date
from typing import Callable, List, Optional
import logging

from sqlalchemy.orm import Session

from reservation_engine.engine.state_machine import (
    StateMachine, StateMachineConfig, StateTransition
)
from reservation_engine.exceptions import (
    BookingPeriodNotFound, CannotDeleteActiveBooking, IllegalStatusTransition
)
from reservation_engine.models.events import EventType, BookingPeriodStatusChangedData
from reservation_engine.models.ontology import (
    BookingPeriod, BookingStatus, TERMINAL_BOOKING_STATUSES
)
from reservation_engine.services.event_bus import Event, event_bus
from reservation_engine.services.room_service import RoomService
from reservation_engine.services.unit_of_work import UnitOfWork
from reservation_engine.services.validators import require_positive_id

logger = logging.getLogger(__name__)


CANCEL, COMPLETE, BLOCK, UNBLOCK = "cancel", "complete", "block", "unblock"

BOOKING_PERIOD_MACHINE = StateMachineConfig(
    name="BookingPeriod",
    states=[s.value for s in BookingStatus],
    transitions=[
        StateTransition(BookingStatus.RESERVED.value, BookingStatus.CANCELED.value, CANCEL),
        StateTransition(BookingStatus.RESERVED.value, BookingStatus.COMPLETED.value, COMPLETE),
        StateTransition(BookingStatus.RESERVED.value, BookingStatus.BLOCKED.value, BLOCK),
        StateTransition(BookingStatus.BLOCKED.value, BookingStatus.RESERVED.value, UNBLOCK),
    ],
    initial_state=BookingStatus.RESERVED.value,
)


class BookingPeriodService:
    """Booking period service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish
        self.room_service = RoomService(db)

    # ============== Queries ==============

    def get_period(self, period_id: int) -> BookingPeriod:
        require_positive_id(period_id, "Booking period", BookingPeriodNotFound)
        period = self.db.query(BookingPeriod).filter(BookingPeriod.id == period_id).first()
        if not period:
            raise BookingPeriodNotFound(f"Booking period {period_id} does not exist")
        return period

    def get_period_for_reservation(self, reservation_id: int) -> Optional[BookingPeriod]:
        return self.db.query(BookingPeriod).filter(
            BookingPeriod.reservation_id == reservation_id
        ).first()

    def get_periods(self, room_id: Optional[int] = None,
                    status: Optional[BookingStatus] = None,
                    start_from: Optional[date] = None,
                    end_before: Optional[date] = None) -> List[BookingPeriod]:
        """List periods, optionally by room, status, start_at >= start_from, end_at <= end_before"""
        query = self.db.query(BookingPeriod)

        if room_id is not None:
            query = query.filter(BookingPeriod.room_id == room_id)
        if status is not None:
            query = query.filter(BookingPeriod.status == status)
        if start_from is not None:
            query = query.filter(BookingPeriod.start_at >= start_from)
        if end_before is not None:
            query = query.filter(BookingPeriod.end_at <= end_before)

        return query.order_by(BookingPeriod.start_at, BookingPeriod.id).all()

    # ============== Transitions ==============

    def apply_transition(self, period: BookingPeriod, trigger: str, uow: UnitOfWork) -> None:
        """
        Fire `trigger` (cancel, complete, block, unblock) on a period inside
        an open unit of work

        Raises:
            IllegalStatusTransition: the trigger is not declared for the
                period's status, including any trigger out of CANCELED or COMPLETED
        """
        old_status = BookingStatus(period.status)
        machine = StateMachine(BOOKING_PERIOD_MACHINE, current_state=old_status.value)

        if machine.is_terminal:
            raise IllegalStatusTransition(
                f"Booking period {period.id} is {old_status.value}; no further status changes are allowed",
                booking_period_id=period.id, status=old_status.value,
            )
        transition = machine.fire(trigger)
        if transition is None:
            allowed = [t.trigger for t in machine.available_transitions()]
            raise IllegalStatusTransition(
                f"Booking period {period.id} is {old_status.value}; cannot {trigger} (allowed: {allowed})",
                booking_period_id=period.id, status=old_status.value, trigger=trigger,
            )

        period.status = BookingStatus(transition.to_state)
        uow.collect(Event(
            event_type=EventType.BOOKING_PERIOD_STATUS_CHANGED,
            timestamp=datetime.now(),
            data=BookingPeriodStatusChangedData(
                booking_period_id=period.id,
                room_id=period.room_id,
                reservation_id=period.reservation_id,
                old_status=old_status.value,
                new_status=transition.to_state,
                trigger=transition.trigger,
            ).to_dict(),
            source="booking_period_service",
        ))

    def change_status(self, period_id: int, trigger: str) -> BookingPeriod:
        """Fire a trigger on a period as its own unit of work"""
        period = self.get_period(period_id)
        room_id = period.room_id

        with UnitOfWork(self.db, self._publish_event) as uow:
            uow.lock_room(room_id)
            period = self.get_period(period_id)
            self.apply_transition(period, trigger, uow)
            self.db.flush()
            self.room_service.refresh_state(room_id, uow)

        self.db.refresh(period)
        return period

    def cancel(self, period_id: int) -> BookingPeriod:
        return self.change_status(period_id, CANCEL)

    def complete(self, period_id: int) -> BookingPeriod:
        return self.change_status(period_id, COMPLETE)

    def block(self, period_id: int) -> BookingPeriod:
        return self.change_status(period_id, BLOCK)

    def unblock(self, period_id: int) -> BookingPeriod:
        return self.change_status(period_id, UNBLOCK)

    # ============== Deletion ==============

    def delete_period(self, period_id: int) -> bool:
        """Delete a CANCELED or COMPLETED period"""
        period = self.get_period(period_id)
        if period.status not in TERMINAL_BOOKING_STATUSES:
            raise CannotDeleteActiveBooking(
                f"Booking period {period_id} is {period.status.value}; "
                f"only canceled or completed periods can be deleted",
                booking_period_id=period_id,
            )

        with UnitOfWork(self.db, self._publish_event):
            self.db.delete(period)

        logger.info(f"Booking period {period_id} deleted")
        return True
