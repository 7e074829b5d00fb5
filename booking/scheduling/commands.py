"""Write paths: decide, mutate and commit under the employee/day lock."""

import logging
from contextlib import contextmanager
from datetime import date, time

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booking.auth.actor import Actor
from booking.core.errors import RejectReason, SchedulingError
from booking.models.appointment import Appointment, AppointmentStatus
from booking.models.availability import Availability
from booking.models.user import Role, User
from booking.scheduling.appointment_store import AppointmentStore
from booking.scheduling.availability_store import AvailabilityStore, WindowDraft
from booking.scheduling.conflicts import ConflictResolver
from booking.scheduling.locks import employee_day_lock

logger = logging.getLogger(__name__)


@contextmanager
def _unit_of_work(db: Session):
    try:
        yield
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # Unique (employee_id, date, start_time) raced past the overlap check.
        raise SchedulingError(RejectReason.OVERLAP, 'Slot was taken by a concurrent request.') from exc
    except Exception:
        db.rollback()
        raise


def _require_employee(db: Session, actor: Actor, employee_id: int) -> None:
    if not actor.can_manage_employee(employee_id):
        raise SchedulingError(RejectReason.FORBIDDEN, 'Unauthorized to manage availability for this employee.')

    employee = db.query(User).filter(User.id == employee_id, User.role >= int(Role.EMPLOYEE)).first()
    if employee is None:
        raise SchedulingError(RejectReason.NOT_FOUND, 'Employee not found.')


def book_appointment(
    db: Session,
    actor: Actor,
    employee_id: int,
    service_id: int,
    day: date,
    start: time,
) -> Appointment:
    resolver = ConflictResolver(db)

    with employee_day_lock(db, [(employee_id, day)]), _unit_of_work(db):
        decision = resolver.can_book_appointment(employee_id, service_id, day, start)
        if not decision.admitted:
            logger.info(
                'Rejected booking for employee %s on %s at %s: %s',
                employee_id, day, start, decision.reason.value,
            )
            raise decision.to_error()

        appointment = resolver.appointments.create(actor.id, employee_id, service_id, decision.interval)

    logger.info(
        'Booked appointment %s for employee %s on %s %s-%s',
        appointment.id, employee_id, day, start, decision.end,
    )
    return appointment


def publish_availability(
    db: Session,
    actor: Actor,
    employee_id: int,
    day: date,
    start: time,
    end: time,
) -> Availability:
    return publish_availability_batch(db, actor, [(employee_id, day, start, end)])[0]


def publish_availability_batch(db: Session, actor: Actor, slots) -> list[Availability]:
    """Publish every slot or none of them."""
    resolver = ConflictResolver(db)
    drafts: list[WindowDraft] = []

    for employee_id in sorted({employee_id for employee_id, _, _, _ in slots}):
        _require_employee(db, actor, employee_id)

    keys = [(employee_id, day) for employee_id, day, _, _ in slots]
    with employee_day_lock(db, keys), _unit_of_work(db):
        for employee_id, day, start, end in slots:
            decision = resolver.can_publish_availability(employee_id, day, start, end)
            if not decision.admitted:
                logger.info(
                    'Rejected availability for employee %s on %s %s-%s: %s',
                    employee_id, day, start, end, decision.reason.value,
                )
                raise decision.to_error()
            drafts.append(WindowDraft(employee_id, decision.interval))

        windows = resolver.availability.create_many(drafts)

    logger.info('Published %d availability window(s)', len(windows))
    return windows


def update_availability(
    db: Session,
    actor: Actor,
    window_id: int,
    employee_id: int,
    day: date,
    start: time,
    end: time,
) -> Availability:
    store = AvailabilityStore(db)
    window = store.get(window_id)
    if window is None:
        raise SchedulingError(RejectReason.NOT_FOUND, 'Availability slot not found.')
    if not actor.can_manage_employee(window.employee_id):
        raise SchedulingError(RejectReason.FORBIDDEN, 'Unauthorized to manage availability for this employee.')
    _require_employee(db, actor, employee_id)

    resolver = ConflictResolver(db)
    keys = [(window.employee_id, window.date), (employee_id, day)]
    with employee_day_lock(db, keys), _unit_of_work(db):
        decision = resolver.can_publish_availability(employee_id, day, start, end, exclude_id=window_id)
        if not decision.admitted:
            raise decision.to_error()
        window = store.update(window_id, WindowDraft(employee_id, decision.interval))

    return window


def delete_availability(db: Session, actor: Actor, window_id: int) -> None:
    store = AvailabilityStore(db)
    window = store.get(window_id)
    if window is None:
        raise SchedulingError(RejectReason.NOT_FOUND, 'Availability slot not found.')
    if not actor.can_manage_employee(window.employee_id):
        raise SchedulingError(RejectReason.FORBIDDEN, 'Unauthorized to manage availability for this employee.')

    with employee_day_lock(db, [(window.employee_id, window.date)]), _unit_of_work(db):
        store.delete(window_id)


def change_appointment_status(
    db: Session,
    actor: Actor,
    appointment_id: int,
    new_status: AppointmentStatus,
) -> Appointment:
    store = AppointmentStore(db)
    appointment = store.get(appointment_id)
    if appointment is None:
        raise SchedulingError(RejectReason.NOT_FOUND, 'Appointment not found.')

    with employee_day_lock(db, [(appointment.employee_id, appointment.date)]), _unit_of_work(db):
        db.expire(appointment)
        appointment = store.update_status(appointment_id, new_status, actor)
    return appointment
