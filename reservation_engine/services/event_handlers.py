"""
Event handlers - follow-up work driven by committed domain events

The guest's number_of_reservations counter is not part of the booking unit
of work: it trails reservation.created / reservation.deleted and is updated
in a session of its own once the reservation change has committed.
"""
from typing import Callable, Optional
import logging

from reservation_engine.database import SessionLocal
from reservation_engine.models.events import EventType
from reservation_engine.services.event_bus import Event, EventBus, event_bus
from reservation_engine.services.guest_service import GuestService

logger = logging.getLogger(__name__)


class EventHandlers:
    """
    Event handler collection

    db_session_factory is injectable so tests can bind the handlers to
    their own engine.
    """

    def __init__(self, db_session_factory: Callable = None):
        self._db_session_factory = db_session_factory or SessionLocal

    def _get_db(self):
        return self._db_session_factory()

    def _adjust_guest_counter(self, event: Event, delta: int) -> None:
        guest_id = event.data.get('guest_id')
        if not guest_id:
            logger.warning(f"Invalid {event.event_type} event: missing guest_id")
            return

        db = self._get_db()
        try:
            GuestService(db).adjust_reservation_count(guest_id, delta)
            db.commit()
            logger.info(
                f"Guest {guest_id} reservation counter adjusted by {delta:+d} "
                f"(reservation {event.data.get('reservation_id')})"
            )
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to adjust reservation counter of guest {guest_id}: {e}", exc_info=True)
        finally:
            db.close()

    def handle_reservation_created(self, event: Event) -> None:
        self._adjust_guest_counter(event, +1)

    def handle_reservation_deleted(self, event: Event) -> None:
        self._adjust_guest_counter(event, -1)

    def register_handlers(self, event_bus_instance: Optional[EventBus] = None) -> None:
        """Subscribe every handler; subscribing twice is a no-op"""
        bus = event_bus_instance or event_bus
        bus.subscribe(EventType.RESERVATION_CREATED, self.handle_reservation_created)
        bus.subscribe(EventType.RESERVATION_DELETED, self.handle_reservation_deleted)

        logger.info("Event handlers registered")

    def unregister_handlers(self, event_bus_instance: Optional[EventBus] = None) -> None:
        bus = event_bus_instance or event_bus
        bus.unsubscribe(EventType.RESERVATION_CREATED, self.handle_reservation_created)
        bus.unsubscribe(EventType.RESERVATION_DELETED, self.handle_reservation_deleted)


# Global handlers, bound to the application's sessions
event_handlers = EventHandlers()


def register_event_handlers() -> EventHandlers:
    """Register the global handlers (application startup)"""
    event_handlers.register_handlers()
    return event_handlers
