"""
Unit of work over a SQLAlchemy session

Commits on success and rolls back on any exception; storage failures are
re-raised as PersistenceError. Domain events collected during the unit of
work are published only after the commit succeeds.

Usage:
    with UnitOfWork(db) as uow:
        uow.lock_room(room_id)
        ...                      # reads and writes on db
        uow.collect(event)
    # committed here, events published
"""
from typing import Callable, List, Optional
import logging

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reservation_engine.exceptions import PersistenceError, RoomNotFound
from reservation_engine.models.ontology import Room
from reservation_engine.services.event_bus import Event, event_bus

logger = logging.getLogger(__name__)


class UnitOfWork:
    """All-or-nothing scope for one engine operation"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish
        self._events: List[Event] = []
        self.committed = False

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            try:
                self.db.commit()
            except SQLAlchemyError as e:
                self._rollback(e)
                raise PersistenceError(f"Commit failed: {e}", original_error=e) from e
            self.committed = True
            self._flush_events()
            return False

        self._rollback(exc_val)
        if isinstance(exc_val, SQLAlchemyError):
            raise PersistenceError(f"Storage failure: {exc_val}", original_error=exc_val) from exc_val
        return False

    def _rollback(self, reason: Optional[BaseException]) -> None:
        logger.warning(
            f"Rolling back unit of work ({type(reason).__name__}: {reason}), "
            f"discarding {len(self._events)} events"
        )
        self._events.clear()
        self.db.rollback()

    def lock_room(self, room_id: int) -> None:
        """
        Claim the room row for this unit of work

        Must be the first write of the unit of work: concurrent writers on the
        same room queue here, and every read after it sees their committed rows.
        """
        result = self.db.execute(
            update(Room)
            .where(Room.id == room_id)
            .values(version=Room.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise RoomNotFound(f"Room {room_id} does not exist", room_id=room_id)
        # Drop cached rows loaded before the lock was held
        self.db.expire_all()

    def collect(self, event: Event) -> None:
        self._events.append(event)

    def _flush_events(self) -> None:
        events = self._events.copy()
        self._events.clear()
        for event in events:
            try:
                self._publish_event(event)
            except Exception as e:
                # The data is already committed
                logger.error(f"Error publishing {event.event_type}: {e}", exc_info=True)
