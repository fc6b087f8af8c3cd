"""
Room availability over half-open date ranges
"""
import pytest
from datetime import date, timedelta

from reservation_engine.exceptions import InvalidDateRange, RoomNotFound
from reservation_engine.models.ontology import BookingStatus, Hotel
from reservation_engine.services.availability_service import AvailabilityService, overlaps


def days(n: int) -> date:
    return date.today() + timedelta(days=n)


class TestOverlaps:

    def test_adjacent_ranges_do_not_overlap(self):
        assert not overlaps(days(1), days(3), days(3), days(5))
        assert not overlaps(days(3), days(5), days(1), days(3))

    def test_partial_overlap(self):
        assert overlaps(days(1), days(3), days(2), days(4))

    def test_containment(self):
        assert overlaps(days(1), days(10), days(3), days(4))
        assert overlaps(days(3), days(4), days(1), days(10))

    def test_identical_ranges(self):
        assert overlaps(days(1), days(2), days(1), days(2))

    def test_disjoint(self):
        assert not overlaps(days(1), days(2), days(5), days(6))


class TestIsFree:

    def test_room_without_periods_is_free(self, db_session, sample_room):
        assert AvailabilityService(db_session).is_free(sample_room.id, days(1), days(3))

    def test_blocked_period_boundaries(self, db_session, sample_room, make_period):
        """BLOCKED [d10, d12): [d12, d14) is free, [d9, d11) is not"""
        make_period(sample_room, days(10), days(12), BookingStatus.BLOCKED)
        service = AvailabilityService(db_session)

        assert service.is_free(sample_room.id, days(12), days(14))
        assert not service.is_free(sample_room.id, days(9), days(11))
        assert not service.is_free(sample_room.id, days(10), days(12))
        assert service.is_free(sample_room.id, days(8), days(10))

    def test_reserved_period_blocks(self, db_session, sample_room, make_period):
        make_period(sample_room, days(5), days(8), BookingStatus.RESERVED)
        assert not AvailabilityService(db_session).is_free(sample_room.id, days(6), days(7))

    @pytest.mark.parametrize("status", [BookingStatus.CANCELED, BookingStatus.COMPLETED])
    def test_terminal_periods_never_block(self, db_session, sample_room, make_period, status):
        make_period(sample_room, days(5), days(8), status)
        assert AvailabilityService(db_session).is_free(sample_room.id, days(5), days(8))

    def test_other_rooms_do_not_block(self, db_session, make_room, make_period):
        room_a, room_b = make_room(), make_room()
        make_period(room_a, days(5), days(8))
        assert AvailabilityService(db_session).is_free(room_b.id, days(5), days(8))

    def test_excluded_period_is_ignored(self, db_session, sample_room, make_period):
        period = make_period(sample_room, days(5), days(8))
        service = AvailabilityService(db_session)
        assert not service.is_free(sample_room.id, days(6), days(9))
        assert service.is_free(sample_room.id, days(6), days(9), exclude_period_id=period.id)

    def test_past_start_rejected(self, db_session, sample_room):
        with pytest.raises(InvalidDateRange):
            AvailabilityService(db_session).is_free(sample_room.id, days(-1), days(2))

    def test_today_is_allowed(self, db_session, sample_room):
        assert AvailabilityService(db_session).is_free(sample_room.id, days(0), days(1))

    @pytest.mark.parametrize("offset", [0, -1])
    def test_end_not_after_start_rejected(self, db_session, sample_room, offset):
        with pytest.raises(InvalidDateRange):
            AvailabilityService(db_session).is_free(sample_room.id, days(3), days(3 + offset))

    def test_unknown_room(self, db_session):
        with pytest.raises(RoomNotFound):
            AvailabilityService(db_session).is_free(999, days(1), days(2))


class TestFreeRooms:

    def test_lists_rooms_without_overlap(self, db_session, make_room, make_period):
        room_a, room_b, room_c = make_room(), make_room(), make_room()
        make_period(room_a, days(5), days(8))
        make_period(room_c, days(5), days(8), BookingStatus.CANCELED)

        free = AvailabilityService(db_session).free_rooms(days(6), days(7))
        assert free == [room_b.id, room_c.id]

    def test_filters_by_hotel(self, db_session, make_room):
        other_hotel = Hotel(name="Hotel Costa")
        db_session.add(other_hotel)
        db_session.commit()
        here = make_room()
        make_room(hotel=other_hotel)

        free = AvailabilityService(db_session).free_rooms(days(1), days(2), hotel_id=here.hotel_id)
        assert free == [here.id]

    def test_no_rooms(self, db_session):
        assert AvailabilityService(db_session).free_rooms(days(1), days(2)) == []

    def test_past_start_rejected(self, db_session):
        with pytest.raises(InvalidDateRange):
            AvailabilityService(db_session).free_rooms(days(-3), days(-1))
