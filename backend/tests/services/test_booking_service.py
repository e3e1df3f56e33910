# backend/tests/services/test_booking_service.py
"""
Tests for BookingService.

Covers every booking type, the write-time capacity re-checks, and the
confirm/cancel lifecycle including seat release and guest notification.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from app.core.exceptions import (
    BusinessRuleException,
    CapacityConflictException,
    InvalidStateTransitionException,
    NotFoundException,
    ResortClosedException,
    ValidationException,
)
from app.models.booking import Booking, BookingStatus, BookingType
from app.models.session import SessionStatus
from app.schemas.booking import BookingCreate
from app.services.availability_service import AvailabilityService
from app.services.booking_service import BookingService


@pytest.fixture
def service(db, notifier):
    return BookingService(db, notification_service=notifier)


def _request(booking_type: BookingType, **fields) -> BookingCreate:
    data = {
        "booking_type": booking_type,
        "guest_name": "Noa Levi",
        "guest_email": "noa@example.com",
    }
    data.update(fields)
    return BookingCreate(**data)


def _room(room_type, check_in=date(2025, 12, 1), check_out=date(2025, 12, 4), **fields):
    return _request(
        BookingType.ROOM, item_id=room_type.slug, check_in=check_in, check_out=check_out, **fields
    )


class TestRoomBookings:
    def test_creates_pending_booking_priced_per_night(self, service, make_room_type):
        room = make_room_type(price_base=Decimal("120.00"))

        booking = service.create_booking(_room(room, units=2, guest_count=3))

        assert booking.status == BookingStatus.PENDING.value
        assert booking.item_id == room.id
        assert booking.units == 2
        assert booking.total_price == Decimal("720.00")
        assert booking.booking_number.startswith("RS-")

    def test_stock_runs_out(self, service, db, make_room_type):
        room = make_room_type(stock=2)
        service.create_booking(_room(room))
        service.create_booking(_room(room, check_in=date(2025, 12, 2), check_out=date(2025, 12, 3)))

        with pytest.raises(CapacityConflictException) as exc_info:
            service.create_booking(_room(room, check_in=date(2025, 12, 2), check_out=date(2025, 12, 5)))

        assert exc_info.value.code == "CAPACITY_CONFLICT"
        assert db.query(Booking).count() == 2

    def test_back_to_back_stays_share_a_unit(self, service, make_room_type):
        room = make_room_type(stock=1)
        service.create_booking(_room(room))

        booking = service.create_booking(
            _room(room, check_in=date(2025, 12, 4), check_out=date(2025, 12, 6))
        )

        assert booking.check_in_date == date(2025, 12, 4)

    def test_cancelled_stay_frees_the_unit(self, service, make_room_type):
        room = make_room_type(stock=1)
        first = service.create_booking(_room(room))
        service.cancel_booking(first.id)

        second = service.create_booking(_room(room))

        assert second.status == BookingStatus.PENDING.value

    def test_too_many_guests_per_room(self, service, make_room_type):
        room = make_room_type(max_guests=2)

        with pytest.raises(ValidationException) as exc_info:
            service.create_booking(_room(room, guest_count=5, units=2))

        assert exc_info.value.code == "TOO_MANY_GUESTS"

    def test_closed_retreat_blocks_rooms(self, service, make_room_type, make_retreat):
        room = make_room_type()
        make_retreat(is_closed=True)

        with pytest.raises(ResortClosedException):
            service.create_booking(
                _room(room, check_in=date(2025, 11, 9), check_out=date(2025, 11, 11))
            )

    def test_unknown_or_inactive_room_type(self, service, make_room_type):
        inactive = make_room_type(active=False)

        with pytest.raises(NotFoundException):
            service.create_booking(_room(inactive))


class TestWorkshopBookings:
    def test_last_seat_then_cancel_reopens_session(self, service, db, make_workshop, make_session):
        workshop = make_workshop()
        session = make_session(workshop, capacity=1)
        availability = AvailabilityService(db)

        booking = service.create_booking(_request(BookingType.WORKSHOP, session_id=session.id))

        assert booking.total_price == Decimal("40.00")
        assert booking.session_id == session.id
        assert booking.booking_date is None
        full = availability.check_session_availability(session.id)
        assert (full.remaining, full.status) == (0, SessionStatus.FULL.value)

        with pytest.raises(CapacityConflictException):
            service.create_booking(_request(BookingType.WORKSHOP, session_id=session.id))
        # The refused request left no booking behind
        assert db.query(Booking).count() == 1

        service.cancel_booking(booking.id)

        reopened = availability.check_session_availability(session.id)
        assert (reopened.remaining, reopened.status) == (1, SessionStatus.SCHEDULED.value)

    def test_late_night_session_carries_no_booking_date(self, service, make_workshop, make_session):
        # 22:30 UTC is 01:30 the next morning in Jerusalem
        session = make_session(
            make_workshop(), capacity=4, start=datetime(2025, 10, 6, 22, 30, tzinfo=timezone.utc)
        )

        booking = service.create_booking(_request(BookingType.WORKSHOP, session_id=session.id))

        assert booking.session_id == session.id
        assert (booking.check_in_date, booking.check_out_date, booking.booking_date) == (
            None,
            None,
            None,
        )
        assert session.local_date == date(2025, 10, 7)

    def test_group_booking_takes_several_seats(self, service, db, make_workshop, make_session):
        session = make_session(make_workshop(), capacity=10, booked_count=6)

        booking = service.create_booking(
            _request(BookingType.WORKSHOP, session_id=session.id, guest_count=4)
        )

        db.refresh(session)
        assert session.booked_count == 10
        assert session.status == SessionStatus.FULL.value
        assert booking.total_price == Decimal("160.00")

    def test_cancelled_session_cannot_be_booked(self, service, make_workshop, make_session):
        session = make_session(make_workshop(), capacity=5, status=SessionStatus.CANCELLED.value)

        with pytest.raises(BusinessRuleException) as exc_info:
            service.create_booking(_request(BookingType.WORKSHOP, session_id=session.id))

        assert exc_info.value.code == "SESSION_CANCELLED"

    def test_session_must_match_workshop(self, service, make_workshop, make_session):
        session = make_session(make_workshop(), capacity=5)
        other = make_workshop()

        with pytest.raises(ValidationException):
            service.create_booking(
                _request(BookingType.WORKSHOP, session_id=session.id, item_id=other.slug)
            )

    def test_missing_session(self, service):
        with pytest.raises(NotFoundException):
            service.create_booking(
                _request(BookingType.WORKSHOP, session_id="01HZZZZZZZZZZZZZZZZZZZZZZZ")
            )


class TestRetreatBookings:
    def test_seats_come_from_the_pool(self, service, db, make_retreat):
        retreat = make_retreat(capacity=10)

        booking = service.create_booking(
            _request(BookingType.RETREAT, item_id=retreat.id, guest_count=4)
        )

        assert booking.booking_date == retreat.start_date
        assert booking.total_price == Decimal("3600.00")
        db.refresh(retreat)
        assert retreat.capacity == 6

    def test_pool_sells_out_and_reopens(self, service, db, make_retreat):
        retreat = make_retreat(capacity=3)
        booking = service.create_booking(
            _request(BookingType.RETREAT, item_id=retreat.id, guest_count=3)
        )
        db.refresh(retreat)
        assert (retreat.capacity, retreat.sold_out) == (0, True)

        with pytest.raises(CapacityConflictException):
            service.create_booking(_request(BookingType.RETREAT, item_id=retreat.id))

        service.cancel_booking(booking.id)
        db.refresh(retreat)
        assert (retreat.capacity, retreat.sold_out) == (3, False)

    def test_closed_retreat_is_not_bookable(self, service, make_retreat):
        retreat = make_retreat(is_closed=True)

        with pytest.raises(ResortClosedException):
            service.create_booking(_request(BookingType.RETREAT, item_id=retreat.id))

    def test_date_outside_retreat(self, service, make_retreat):
        retreat = make_retreat()

        with pytest.raises(ValidationException) as exc_info:
            service.create_booking(
                _request(BookingType.RETREAT, item_id=retreat.id, booking_date=date(2025, 11, 20))
            )

        assert exc_info.value.code == "DATE_OUTSIDE_RETREAT"


class TestTreatmentBookings:
    def test_treatment_booking(self, service, make_treatment):
        treatment = make_treatment()

        booking = service.create_booking(
            _request(BookingType.TREATMENT, item_id=treatment.id, booking_date=date(2025, 12, 1))
        )

        assert booking.booking_type == BookingType.TREATMENT.value
        assert booking.total_price == Decimal("85.00")

    def test_inactive_treatment(self, service, make_treatment):
        treatment = make_treatment(is_active=False)

        with pytest.raises(NotFoundException):
            service.create_booking(
                _request(BookingType.TREATMENT, item_id=treatment.id, booking_date=date(2025, 12, 1))
            )


class TestLifecycle:
    def test_confirm_notifies_guest(self, service, notifier, make_treatment):
        booking = service.create_booking(
            _request(BookingType.TREATMENT, item_id=make_treatment().id, booking_date=date(2025, 12, 1))
        )

        confirmed = service.confirm_booking(booking.id)

        assert confirmed.status == BookingStatus.CONFIRMED.value
        assert confirmed.confirmed_at is not None
        notifier.send_booking_confirmation.assert_called_once()

    def test_confirm_twice_is_harmless(self, service, notifier, make_treatment):
        booking = service.create_booking(
            _request(BookingType.TREATMENT, item_id=make_treatment().id, booking_date=date(2025, 12, 1))
        )
        service.confirm_booking(booking.id)

        again = service.confirm_booking(booking.id)

        assert again.status == BookingStatus.CONFIRMED.value
        assert notifier.send_booking_confirmation.call_count == 1

    def test_notification_failure_does_not_fail_confirm(self, service, notifier, make_treatment):
        notifier.send_booking_confirmation.side_effect = RuntimeError("smtp down")
        booking = service.create_booking(
            _request(BookingType.TREATMENT, item_id=make_treatment().id, booking_date=date(2025, 12, 1))
        )

        confirmed = service.confirm_booking(booking.id)

        assert confirmed.status == BookingStatus.CONFIRMED.value

    def test_cancelled_booking_cannot_be_confirmed(self, service, make_treatment):
        booking = service.create_booking(
            _request(BookingType.TREATMENT, item_id=make_treatment().id, booking_date=date(2025, 12, 1))
        )
        service.cancel_booking(booking.id, reason="change of plans")

        with pytest.raises(InvalidStateTransitionException):
            service.confirm_booking(booking.id)

    def test_cancel_is_idempotent(self, service, db, notifier, make_workshop, make_session):
        session = make_session(make_workshop(), capacity=4)
        booking = service.create_booking(
            _request(BookingType.WORKSHOP, session_id=session.id, guest_count=2)
        )

        first = service.cancel_booking(booking.id, reason="ill")
        second = service.cancel_booking(booking.id)

        assert first.status == second.status == BookingStatus.CANCELLED.value
        assert second.cancellation_reason == "ill"
        db.refresh(session)
        assert session.booked_count == 0
        notifier.send_booking_cancellation.assert_called_once()

    def test_missing_booking(self, service):
        with pytest.raises(NotFoundException):
            service.cancel_booking("01HZZZZZZZZZZZZZZZZZZZZZZZ")


class TestLookup:
    def test_lookup_by_reference_ignores_email_case(self, service, make_treatment):
        booking = service.create_booking(
            _request(BookingType.TREATMENT, item_id=make_treatment().id, booking_date=date(2025, 12, 1))
        )

        found = service.find_booking_by_reference(booking.booking_number, "NOA@example.com")

        assert found.id == booking.id

    def test_wrong_email_looks_like_unknown_booking(self, service, make_treatment):
        booking = service.create_booking(
            _request(BookingType.TREATMENT, item_id=make_treatment().id, booking_date=date(2025, 12, 1))
        )

        with pytest.raises(NotFoundException):
            service.find_booking_by_reference(booking.booking_number, "someone@example.com")
