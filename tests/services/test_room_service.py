"""
Hotels, rooms, bed rule and room state projection
"""
import pytest
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

from reservation_engine.exceptions import (
    BlankField, HotelNotFound, InvalidCapacity, InvalidFloor,
    InvalidRoomConfiguration, RoomNotFound, RoomNotFree, ValidationError
)
from reservation_engine.models.events import EventType
from reservation_engine.models.ontology import (
    BedType, BookingPeriod, BookingStatus, Room, RoomState, RoomType
)
from reservation_engine.models.schemas import HotelCreate, RoomCreate, RoomUpdate
from reservation_engine.services.room_service import (
    RoomService, project_room_state, validate_room_configuration
)
from reservation_engine.services.unit_of_work import UnitOfWork


def days(n: int) -> date:
    return date.today() + timedelta(days=n)


def period(start, end, status=BookingStatus.RESERVED):
    return SimpleNamespace(start_at=days(start), end_at=days(end), status=status)


class TestBedRule:

    @pytest.mark.parametrize("bed_type,beds", [
        (BedType.KING_BED, 1),
        (BedType.QUEEN_BED, 1),
        (BedType.DOUBLE_BED, 2),
        (BedType.SINGLE_BED, 4),
        (BedType.TWIN_BED, 3),
    ])
    def test_valid_configurations(self, bed_type, beds):
        validate_room_configuration(bed_type, beds, 2)

    @pytest.mark.parametrize("bed_type,beds", [
        (BedType.KING_BED, 2),
        (BedType.QUEEN_BED, 2),
        (BedType.DOUBLE_BED, 3),
        (BedType.SINGLE_BED, 5),
        (BedType.TWIN_BED, 0),
    ])
    def test_invalid_configurations(self, bed_type, beds):
        with pytest.raises(InvalidRoomConfiguration):
            validate_room_configuration(bed_type, beds, 2)

    @pytest.mark.parametrize("capacity", [0, 5])
    def test_capacity_range(self, capacity):
        with pytest.raises(InvalidCapacity):
            validate_room_configuration(BedType.SINGLE_BED, 1, capacity)


class TestProjection:

    def test_no_periods_is_free(self):
        assert project_room_state(RoomState.RESERVED, []) == RoomState.FREE

    def test_future_reserved(self):
        assert project_room_state(RoomState.FREE, [period(3, 5)]) == RoomState.RESERVED

    def test_blocked_covering_today(self):
        periods = [period(0, 2, BookingStatus.BLOCKED), period(5, 7)]
        assert project_room_state(RoomState.FREE, periods) == RoomState.BLOCKED

    def test_elapsed_periods_ignored(self):
        assert project_room_state(RoomState.RESERVED, [period(-5, -2)]) == RoomState.FREE

    def test_terminal_periods_ignored(self):
        periods = [period(1, 3, BookingStatus.CANCELED), period(4, 6, BookingStatus.COMPLETED)]
        assert project_room_state(RoomState.RESERVED, periods) == RoomState.FREE

    def test_maintenance_is_kept(self):
        assert project_room_state(RoomState.MAINTENANCE, [period(1, 3)]) == RoomState.MAINTENANCE


class TestHotels:

    def test_create_hotel(self, db_session):
        hotel = RoomService(db_session).create_hotel(HotelCreate(name="Hotel Norte"))
        assert hotel.id is not None

    def test_duplicate_hotel(self, db_session, sample_hotel):
        with pytest.raises(ValidationError):
            RoomService(db_session).create_hotel(HotelCreate(name=sample_hotel.name))

    def test_blank_hotel_name(self, db_session):
        with pytest.raises(BlankField):
            RoomService(db_session).create_hotel(HotelCreate(name="   "))

    def test_unknown_hotel(self, db_session):
        with pytest.raises(HotelNotFound):
            RoomService(db_session).get_hotel(9)


class TestRooms:

    def room_data(self, hotel, **overrides):
        data = dict(hotel_id=hotel.id, room_number="301", floor=5, number_of_beds=1,
                    bed_type=BedType.SINGLE_BED, people_capacity=2, room_type=RoomType.STANDARD)
        data.update(overrides)
        return RoomCreate(**data)

    def test_create_room_generates_price(self, db_session, sample_hotel):
        room = RoomService(db_session).create_room(self.room_data(sample_hotel))
        assert room.price_per_night == Decimal("28.62")
        assert room.state == RoomState.FREE
        assert room.times_booked == 0

    def test_create_room_unknown_hotel(self, db_session, sample_hotel):
        with pytest.raises(HotelNotFound):
            RoomService(db_session).create_room(self.room_data(sample_hotel, hotel_id=99))

    def test_create_room_bad_bed_rule(self, db_session, sample_hotel):
        with pytest.raises(InvalidRoomConfiguration):
            RoomService(db_session).create_room(
                self.room_data(sample_hotel, bed_type=BedType.KING_BED, number_of_beds=2)
            )

    def test_create_room_bad_floor(self, db_session, sample_hotel):
        with pytest.raises(InvalidFloor):
            RoomService(db_session).create_room(self.room_data(sample_hotel, floor=0))
        assert db_session.query(Room).count() == 0

    def test_duplicate_room_number(self, db_session, sample_hotel):
        service = RoomService(db_session)
        service.create_room(self.room_data(sample_hotel))
        with pytest.raises(ValidationError):
            service.create_room(self.room_data(sample_hotel))

    def test_update_room_recomputes_price(self, db_session, sample_room):
        room = RoomService(db_session).update_room(
            sample_room.id, RoomUpdate(room_type=RoomType.SUITE, bed_type=BedType.KING_BED, floor=20, people_capacity=4)
        )
        assert room.price_per_night == Decimal("45.89")

    def test_update_room_invalid_floor_leaves_room_unchanged(self, db_session, sample_room):
        with pytest.raises(InvalidFloor):
            RoomService(db_session).update_room(sample_room.id, RoomUpdate(floor=-2))
        db_session.refresh(sample_room)
        assert sample_room.floor == 5

    def test_filter_rooms(self, db_session, make_room):
        make_room(room_type=RoomType.SUITE, floor=3)
        make_room(room_type=RoomType.STANDARD, floor=3)
        make_room(room_type=RoomType.STANDARD, floor=8)
        service = RoomService(db_session)

        assert len(service.get_rooms(floor=3)) == 2
        assert len(service.get_rooms(room_type=RoomType.STANDARD)) == 2
        assert len(service.get_rooms(room_type=RoomType.SUITE, floor=3)) == 1
        assert len(service.get_rooms(state=RoomState.FREE)) == 3

    def test_unknown_room(self, db_session):
        with pytest.raises(RoomNotFound):
            RoomService(db_session).get_room(404)


class TestDeleteRoom:

    def test_delete_free_room(self, db_session, sample_room, make_period):
        make_period(sample_room, days(-5), days(-3), BookingStatus.COMPLETED)
        room_id = sample_room.id

        assert RoomService(db_session).delete_room(room_id) is True
        assert db_session.get(Room, room_id) is None
        assert db_session.query(BookingPeriod).count() == 0

    def test_room_with_active_period(self, db_session, sample_room, make_period):
        make_period(sample_room, days(3), days(5))
        with pytest.raises(RoomNotFree):
            RoomService(db_session).delete_room(sample_room.id)

    def test_room_in_maintenance(self, db_session, make_room):
        room = make_room(state=RoomState.MAINTENANCE)
        with pytest.raises(RoomNotFree):
            RoomService(db_session).delete_room(room.id)

    def test_room_with_reservations(self, db_session, sample_room, sample_guest, make_stored_reservation):
        make_stored_reservation(sample_room, sample_guest, days(-6), days(-4), status=BookingStatus.COMPLETED)
        with pytest.raises(RoomNotFree):
            RoomService(db_session).delete_room(sample_room.id)


class TestRefreshState:

    def test_state_change_collects_event(self, db_session, sample_room, make_period):
        make_period(sample_room, days(2), days(4))
        published = []

        with UnitOfWork(db_session, published.append) as uow:
            old, new = RoomService(db_session).refresh_state(sample_room.id, uow)

        assert (old, new) == (RoomState.FREE, RoomState.RESERVED)
        assert [e.event_type for e in published] == [EventType.ROOM_STATE_CHANGED]
        assert published[0].data["new_state"] == "RESERVED"

    def test_unchanged_state_collects_nothing(self, db_session, sample_room):
        published = []
        with UnitOfWork(db_session, published.append) as uow:
            RoomService(db_session).refresh_state(sample_room.id, uow)
        assert published == []
