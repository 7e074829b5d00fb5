from datetime import time

import pytest

from booking.core.errors import RejectReason
from booking.models.appointment import AppointmentStatus
from booking.scheduling.appointment_store import AppointmentStore
from booking.scheduling.conflicts import ConflictResolver
from booking.scheduling.intervals import TimeInterval
from conftest import BOOKING_DAY, actor_for, add_window


@pytest.fixture
def morning_window(db, people):
    return add_window(db, people['employee'].id, time(9, 0), time(12, 0))


def admit_and_store(db, people, service, start: time):
    resolver = ConflictResolver(db)
    decision = resolver.can_book_appointment(people['employee'].id, service.id, BOOKING_DAY, start)
    assert decision.admitted
    appointment = resolver.appointments.create(people['client'].id, people['employee'].id, service.id, decision.interval)
    db.commit()
    return decision, appointment


def test_booking_scenario_within_morning_window(db, people, haircut, morning_window) -> None:
    resolver = ConflictResolver(db)
    employee_id = people['employee'].id

    decision, _ = admit_and_store(db, people, haircut, time(9, 0))
    assert decision.end == time(9, 30)

    overlapping = resolver.can_book_appointment(employee_id, haircut.id, BOOKING_DAY, time(9, 15))
    assert not overlapping.admitted
    assert overlapping.reason is RejectReason.OVERLAP
    assert overlapping.interval == TimeInterval(BOOKING_DAY, time(9, 15), time(9, 45))
    assert overlapping.conflicts[0]['start_time'] == '09:00'

    past_window_end = resolver.can_book_appointment(employee_id, haircut.id, BOOKING_DAY, time(11, 45))
    assert not past_window_end.admitted
    assert past_window_end.reason is RejectReason.NOT_AVAILABLE


def test_booking_same_start_time_conflicts(db, people, haircut, morning_window) -> None:
    admit_and_store(db, people, haircut, time(10, 0))

    decision = ConflictResolver(db).can_book_appointment(people['employee'].id, haircut.id, BOOKING_DAY, time(10, 0))

    assert decision.reason is RejectReason.OVERLAP


def test_back_to_back_appointments_are_admitted(db, people, haircut, morning_window) -> None:
    admit_and_store(db, people, haircut, time(9, 0))

    decision = ConflictResolver(db).can_book_appointment(people['employee'].id, haircut.id, BOOKING_DAY, time(9, 30))

    assert decision.admitted
    assert decision.end == time(10, 0)


def test_booking_unknown_service_is_rejected(db, people, morning_window) -> None:
    decision = ConflictResolver(db).can_book_appointment(people['employee'].id, 999, BOOKING_DAY, time(9, 0))

    assert decision.reason is RejectReason.SERVICE_NOT_FOUND


def test_booking_without_any_window_is_rejected(db, people, haircut) -> None:
    decision = ConflictResolver(db).can_book_appointment(people['employee'].id, haircut.id, BOOKING_DAY, time(9, 0))

    assert decision.reason is RejectReason.NOT_AVAILABLE


def test_booking_that_would_end_after_midnight_is_not_available(db, people, haircut) -> None:
    add_window(db, people['employee'].id, time(22, 0), time(23, 59))

    decision = ConflictResolver(db).can_book_appointment(people['employee'].id, haircut.id, BOOKING_DAY, time(23, 45))

    assert decision.reason is RejectReason.NOT_AVAILABLE


def test_cancelled_appointment_frees_its_slot(db, people, haircut, morning_window) -> None:
    _, appointment = admit_and_store(db, people, haircut, time(9, 0))
    AppointmentStore(db).update_status(appointment.id, AppointmentStatus.CANCELLED, actor_for(people['client']))
    db.commit()

    decision = ConflictResolver(db).can_book_appointment(people['employee'].id, haircut.id, BOOKING_DAY, time(9, 0))

    assert decision.admitted


@pytest.mark.parametrize(
    ('start', 'admitted'),
    [
        (time(8, 30), False),
        (time(9, 0), False),
        (time(9, 15), False),
        (time(9, 30), True),
        (time(11, 30), True),
        (time(11, 31), False),
    ],
)
def test_admits_iff_covered_and_free(db, people, haircut, morning_window, start: time, admitted: bool) -> None:
    admit_and_store(db, people, haircut, time(9, 0))

    decision = ConflictResolver(db).can_book_appointment(people['employee'].id, haircut.id, BOOKING_DAY, start)

    assert decision.admitted is admitted


def test_publish_rejects_inverted_range(db, people) -> None:
    decision = ConflictResolver(db).can_publish_availability(people['employee'].id, BOOKING_DAY, time(12, 0), time(9, 0))

    assert decision.reason is RejectReason.INVALID_RANGE


def test_publish_allows_touching_windows(db, people) -> None:
    add_window(db, people['employee'].id, time(9, 0), time(10, 0))

    decision = ConflictResolver(db).can_publish_availability(people['employee'].id, BOOKING_DAY, time(10, 0), time(11, 0))

    assert decision.admitted


def test_publish_rejects_overlap_unless_excluded(db, people) -> None:
    window = add_window(db, people['employee'].id, time(9, 0), time(10, 0))
    resolver = ConflictResolver(db)

    rejected = resolver.can_publish_availability(people['employee'].id, BOOKING_DAY, time(9, 30), time(10, 30))
    admitted = resolver.can_publish_availability(
        people['employee'].id, BOOKING_DAY, time(9, 30), time(10, 30), exclude_id=window.id,
    )

    assert rejected.reason is RejectReason.OVERLAP
    assert rejected.conflicts[0]['id'] == window.id
    assert admitted.admitted
