"""
Reservation service - creates, changes and removes reservations

Every write runs as one unit of work that first claims the room row, so two
requests for the same room are serialized: the second one re-reads the
booking periods after the first commits and fails with RoomNotAvailable
instead of double-booking. A reservation, its booking period and the room's
cached state are committed together or not at all. The guest's reservation
counter follows from the published events (see event_handlers).
"""
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from reservation_engine.exceptions import (
    BookingPeriodNotFound, IllegalStatusTransition, InvalidPeopleCount,
    ReservationCurrentlyActive, ReservationNotFound, RoomNotAvailable, RoomNotFound, StateError
)
from reservation_engine.models.events import EventType, ReservationChangedData
from reservation_engine.models.ontology import (
    BookingPeriod, BookingStatus, Guest, Reservation
)
from reservation_engine.models.schemas import ReservationCreate, ReservationUpdate
from reservation_engine.services.availability_service import AvailabilityService
from reservation_engine.services.booking_period_service import (
    CANCEL, COMPLETE, BookingPeriodService
)
from reservation_engine.services.event_bus import Event, event_bus
from reservation_engine.services.guest_service import GuestService
from reservation_engine.services.price_service import PriceService
from reservation_engine.services.room_service import RoomService
from reservation_engine.services.unit_of_work import UnitOfWork
from reservation_engine.services.validators import (
    require_date_range, require_positive_id, require_range, stay_in_progress
)

logger = logging.getLogger(__name__)

MIN_PEOPLE, MAX_PEOPLE = 1, 4


class ReservationService:
    """Reservation service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish
        self.price_service = PriceService()
        self.availability = AvailabilityService(db)
        self.booking_periods = BookingPeriodService(db, self._publish_event)
        self.rooms = RoomService(db)
        self.guests = GuestService(db)

    # ============== Queries ==============

    def get_reservation(self, reservation_id: int) -> Reservation:
        require_positive_id(reservation_id, "Reservation", ReservationNotFound)
        reservation = self.db.query(Reservation).filter(Reservation.id == reservation_id).first()
        if not reservation:
            raise ReservationNotFound(f"Reservation {reservation_id} does not exist")
        return reservation

    def get_reservations(self, room_id: Optional[int] = None, guest_id: Optional[int] = None,
                         number_of_people: Optional[int] = None,
                         number_of_nights: Optional[int] = None,
                         start_from: Optional[date] = None,
                         end_before: Optional[date] = None) -> List[Reservation]:
        """List reservations with optional filters"""
        query = self.db.query(Reservation)

        if room_id is not None:
            query = query.filter(Reservation.room_id == room_id)
        if guest_id is not None:
            query = query.filter(Reservation.guest_id == guest_id)
        if number_of_people is not None:
            require_range(number_of_people, MIN_PEOPLE, MAX_PEOPLE, "number_of_people", InvalidPeopleCount)
            query = query.filter(Reservation.number_of_people == number_of_people)
        if number_of_nights is not None:
            query = query.filter(Reservation.number_of_nights == number_of_nights)
        if start_from is not None:
            query = query.filter(Reservation.start_at >= start_from)
        if end_before is not None:
            query = query.filter(Reservation.end_at <= end_before)

        return query.order_by(Reservation.start_at, Reservation.id).all()

    def get_reservation_detail(self, reservation_id: int) -> dict:
        """Reservation with its booking period"""
        reservation = self.get_reservation(reservation_id)
        period = self.booking_periods.get_period_for_reservation(reservation_id)

        return {
            'id': reservation.id,
            'guest_id': reservation.guest_id,
            'room_id': reservation.room_id,
            'number_of_people': reservation.number_of_people,
            'number_of_nights': reservation.number_of_nights,
            'start_at': reservation.start_at,
            'end_at': reservation.end_at,
            'total_price': reservation.total_price,
            'booking_period_id': period.id if period else None,
            'booking_status': period.status if period else None,
            'created_at': reservation.created_at,
        }

    # ============== Internals ==============

    def _require_room_free(self, room_id: int, start_at: date, end_at: date,
                           exclude_period_id: Optional[int] = None) -> None:
        """The room must be in the free set for [start_at, end_at)"""
        room = self.rooms.get_room(room_id)
        free = self.availability.free_rooms(
            start_at, end_at, hotel_id=room.hotel_id, exclude_period_id=exclude_period_id
        )
        if room_id not in free:
            blocking = self.availability.blocking_periods(room_id, start_at, end_at, exclude_period_id)
            logger.info(
                f"Room {room_id} not available for [{start_at}, {end_at}): "
                f"blocked by periods {[p.id for p in blocking]}"
            )
            raise RoomNotAvailable(
                f"Room {room_id} is not available between {start_at.isoformat()} and {end_at.isoformat()}",
                room_id=room_id, blocking_period_ids=[p.id for p in blocking],
            )

    def _ensure_no_overlap(self, period: BookingPeriod) -> None:
        """Post-write check: no other active period of the room overlaps this one"""
        clashes = self.availability.blocking_periods(
            period.room_id, period.start_at, period.end_at, exclude_period_id=period.id
        )
        if clashes:
            raise RoomNotAvailable(
                f"Room {period.room_id} was booked concurrently for an overlapping period",
                room_id=period.room_id, blocking_period_ids=[p.id for p in clashes],
            )

    def _reload_locked(self, uow: UnitOfWork, reservation_id: int, locked: List[int]) -> Reservation:
        """
        Re-read the reservation once its room is locked

        Guards must be evaluated on this copy. If a concurrent update moved
        the reservation to a room not yet locked, that room is locked too.
        """
        reservation = self.get_reservation(reservation_id)
        if reservation.room_id not in locked:
            uow.lock_room(reservation.room_id)
            reservation = self.get_reservation(reservation_id)
        return reservation

    def _require_not_started(self, reservation: Reservation) -> None:
        if reservation.start_at <= date.today():
            raise ReservationCurrentlyActive(
                f"Reservation {reservation.id} started on {reservation.start_at.isoformat()} and can no longer change",
                reservation_id=reservation.id,
            )

    def _require_not_in_progress(self, reservation: Reservation) -> None:
        if stay_in_progress(reservation.start_at, reservation.end_at):
            raise ReservationCurrentlyActive(
                f"Reservation {reservation.id} is in progress "
                f"[{reservation.start_at.isoformat()}, {reservation.end_at.isoformat()}) and cannot be deleted",
                reservation_id=reservation.id,
            )

    def _merge_patch(self, reservation: Reservation, patch: dict) -> Tuple[int, date, date, int, int]:
        """Validated (room_id, start_at, end_at, number_of_people, nights) after applying the patch"""
        room_id = patch.get("room_id", reservation.room_id)
        start_at = patch.get("start_at", reservation.start_at)
        end_at = patch.get("end_at", reservation.end_at)
        people = patch.get("number_of_people", reservation.number_of_people)

        nights = require_date_range(start_at, end_at, allow_past=False)
        require_range(people, MIN_PEOPLE, MAX_PEOPLE, "number_of_people", InvalidPeopleCount)
        require_positive_id(room_id, "Room", RoomNotFound)
        return room_id, start_at, end_at, people, nights

    def _resolve_guest(self, data: ReservationCreate) -> Guest:
        if data.guest_id is not None:
            guest = self.guests.find_guest(data.guest_id)
            if guest is not None:
                return guest
            if data.guest is None:
                return self.guests.get_guest(data.guest_id)
        return self.guests.create_guest(data.guest, commit=False)

    def _persist_booking_period(self, reservation: Reservation) -> BookingPeriod:
        period = BookingPeriod(
            room_id=reservation.room_id,
            reservation_id=reservation.id,
            start_at=reservation.start_at,
            end_at=reservation.end_at,
            status=BookingStatus.RESERVED,
        )
        self.db.add(period)
        self.db.flush()
        return period

    def _reservation_event(self, event_type: EventType, reservation: Reservation) -> Event:
        return Event(
            event_type=event_type,
            timestamp=datetime.now(),
            data=ReservationChangedData(
                reservation_id=reservation.id,
                guest_id=reservation.guest_id,
                room_id=reservation.room_id,
                start_at=reservation.start_at,
                end_at=reservation.end_at,
                total_price=str(reservation.total_price),
            ).to_dict(),
            source="reservation_service",
        )

    # ============== Commands ==============

    def create_reservation(self, data: ReservationCreate) -> Reservation:
        """
        Create a reservation with its RESERVED booking period

        Raises:
            InvalidDateRange: end not after start, or start in the past
            InvalidPeopleCount: people outside 1..4
            RoomNotFound / GuestNotFound: unknown references
            RoomNotAvailable: an active period overlaps [start_at, end_at)
            PersistenceError: storage failure; nothing was written
        """
        nights = require_date_range(data.start_at, data.end_at, allow_past=False)
        require_range(data.number_of_people, MIN_PEOPLE, MAX_PEOPLE, "number_of_people", InvalidPeopleCount)
        require_positive_id(data.room_id, "Room", RoomNotFound)

        with UnitOfWork(self.db, self._publish_event) as uow:
            uow.lock_room(data.room_id)
            self._require_room_free(data.room_id, data.start_at, data.end_at)

            guest = self._resolve_guest(data)
            room = self.rooms.get_room(data.room_id)
            nightly_price = self.price_service.nightly_price_for_room(room)

            reservation = Reservation(
                guest_id=guest.id,
                room_id=room.id,
                number_of_people=data.number_of_people,
                number_of_nights=nights,
                start_at=data.start_at,
                end_at=data.end_at,
                total_price=self.price_service.calculate_total_price(
                    nightly_price, data.start_at, data.end_at
                ),
            )
            self.db.add(reservation)
            self.db.flush()

            period = self._persist_booking_period(reservation)
            self._ensure_no_overlap(period)

            room.times_booked = (room.times_booked or 0) + 1
            self.rooms.refresh_state(room.id, uow)
            uow.collect(self._reservation_event(EventType.RESERVATION_CREATED, reservation))

        self.db.refresh(reservation)
        logger.info(
            f"Reservation {reservation.id} created: room {reservation.room_id} "
            f"[{reservation.start_at}, {reservation.end_at}) total {reservation.total_price}"
        )
        return reservation

    def update_reservation(self, reservation_id: int, data: ReservationUpdate) -> Reservation:
        """
        Change room, dates or party size of a reservation that has not started

        A new room or new dates are checked for availability, ignoring the
        reservation's own booking period.
        """
        reservation = self.get_reservation(reservation_id)
        patch = data.model_dump(exclude_unset=True, exclude_none=True)
        if not patch:
            return reservation

        self._require_not_started(reservation)
        new_room_id = self._merge_patch(reservation, patch)[0]

        with UnitOfWork(self.db, self._publish_event) as uow:
            # Fixed order so two updates swapping rooms cannot deadlock
            locked = sorted({reservation.room_id, new_room_id})
            for room_id in locked:
                uow.lock_room(room_id)

            reservation = self._reload_locked(uow, reservation_id, locked)
            self._require_not_started(reservation)
            old_room_id = reservation.room_id
            new_room_id, new_start, new_end, new_people, nights = self._merge_patch(reservation, patch)

            period = self.booking_periods.get_period_for_reservation(reservation_id)
            if period is None:
                raise BookingPeriodNotFound(f"Reservation {reservation_id} has no booking period")
            if period.status != BookingStatus.RESERVED:
                raise StateError(
                    f"Reservation {reservation_id} is {period.status.value}; only RESERVED reservations can change",
                    reservation_id=reservation_id,
                )

            moved = (
                new_room_id != reservation.room_id
                or new_start != reservation.start_at
                or new_end != reservation.end_at
            )
            if moved:
                self._require_room_free(new_room_id, new_start, new_end, exclude_period_id=period.id)

            room = self.rooms.get_room(new_room_id)
            reservation.room_id = new_room_id
            reservation.start_at = new_start
            reservation.end_at = new_end
            reservation.number_of_people = new_people
            reservation.number_of_nights = nights
            reservation.total_price = self.price_service.calculate_total_price(
                self.price_service.nightly_price_for_room(room), new_start, new_end
            )

            period.room_id = new_room_id
            period.start_at = new_start
            period.end_at = new_end
            self.db.flush()
            self._ensure_no_overlap(period)

            if new_room_id != old_room_id:
                room.times_booked = (room.times_booked or 0) + 1
                self.rooms.refresh_state(old_room_id, uow)
            self.rooms.refresh_state(new_room_id, uow)
            uow.collect(self._reservation_event(EventType.RESERVATION_UPDATED, reservation))

        self.db.refresh(reservation)
        return reservation

    def cancel_reservation(self, reservation_id: int) -> BookingPeriod:
        """Cancel the reservation's booking period (RESERVED -> CANCELED)"""
        reservation = self.get_reservation(reservation_id)
        room_id = reservation.room_id

        with UnitOfWork(self.db, self._publish_event) as uow:
            uow.lock_room(room_id)
            reservation = self._reload_locked(uow, reservation_id, [room_id])
            room_id = reservation.room_id
            period = self.booking_periods.get_period_for_reservation(reservation_id)
            if period is None:
                raise BookingPeriodNotFound(f"Reservation {reservation_id} has no booking period")

            self.booking_periods.apply_transition(period, CANCEL, uow)
            self.rooms.refresh_state(room_id, uow)
            uow.collect(self._reservation_event(EventType.RESERVATION_CANCELLED, reservation))

        self.db.refresh(period)
        logger.info(f"Reservation {reservation_id} cancelled")
        return period

    def complete_booking_period(self, period_id: int) -> BookingPeriod:
        """Mark a booking period as fulfilled (RESERVED -> COMPLETED)"""
        return self.booking_periods.complete(period_id)

    def delete_reservation(self, reservation_id: int) -> bool:
        """
        Delete a reservation whose stay is not in progress

        The booking period is kept as history and detached from the
        reservation: an upcoming RESERVED period is canceled, an elapsed one
        is completed. The room is FREE afterwards only if no other active
        period remains.

        Raises:
            ReservationCurrentlyActive: start_at <= today < end_at
            IllegalStatusTransition: the period is BLOCKED (unblock it first)
        """
        reservation = self.get_reservation(reservation_id)
        self._require_not_in_progress(reservation)
        room_id = reservation.room_id

        with UnitOfWork(self.db, self._publish_event) as uow:
            uow.lock_room(room_id)
            reservation = self._reload_locked(uow, reservation_id, [room_id])
            self._require_not_in_progress(reservation)
            room_id = reservation.room_id
            period = self.booking_periods.get_period_for_reservation(reservation_id)

            if period is not None:
                if period.status == BookingStatus.BLOCKED:
                    raise IllegalStatusTransition(
                        f"Booking period {period.id} is BLOCKED; unblock it before deleting reservation {reservation_id}",
                        booking_period_id=period.id,
                    )
                if period.status == BookingStatus.RESERVED:
                    trigger = COMPLETE if period.end_at <= date.today() else CANCEL
                    self.booking_periods.apply_transition(period, trigger, uow)
                period.reservation_id = None
                self.db.flush()

            event = self._reservation_event(EventType.RESERVATION_DELETED, reservation)
            self.db.delete(reservation)
            self.db.flush()

            self.rooms.refresh_state(room_id, uow)
            uow.collect(event)

        logger.info(f"Reservation {reservation_id} deleted")
        return True
