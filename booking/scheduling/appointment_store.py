"""Booked appointments and their status state machine."""

import logging
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy.orm import Session, joinedload

from booking.auth.actor import Actor
from booking.core.errors import RejectReason, SchedulingError
from booking.models.appointment import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Appointment,
    AppointmentStatus,
)
from booking.scheduling.intervals import DateRange, TimeInterval, appointment_interval
from booking.scheduling.predicates import Operator, Predicate, apply_predicates

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.COMPLETED,
    }),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
}


@dataclass(frozen=True)
class ScheduledAppointment:
    appointment: Appointment
    interval: TimeInterval

    @property
    def end_time(self) -> time:
        return self.interval.end


def describe_appointment(appointment: Appointment) -> dict:
    return {
        'id': appointment.id,
        'employee_id': appointment.employee_id,
        'status': appointment.status,
        **appointment_interval(appointment).to_dict(),
    }


def authorize_status_change(appointment: Appointment, new_status: AppointmentStatus, actor: Actor) -> None:
    if actor.is_admin or appointment.employee_id == actor.id:
        return
    if appointment.client_id == actor.id and new_status is AppointmentStatus.CANCELLED:
        return

    raise SchedulingError(RejectReason.FORBIDDEN, 'Unauthorized to update this appointment.')


def check_transition(current: AppointmentStatus, new_status: AppointmentStatus) -> None:
    if current in TERMINAL_STATUSES:
        raise SchedulingError(
            RejectReason.TERMINAL_STATE,
            f'Cannot change an appointment that is already {current.value}.',
        )
    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise SchedulingError(
            RejectReason.INVALID_TRANSITION,
            f'Cannot move an appointment from {current.value} to {new_status.value}.',
        )


class AppointmentStore:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Appointment).options(
            joinedload(Appointment.service),
            joinedload(Appointment.client),
            joinedload(Appointment.employee),
        )

    def get(self, appointment_id: int) -> Appointment | None:
        return self._query().filter(Appointment.id == appointment_id).first()

    def create(
        self,
        client_id: int,
        employee_id: int,
        service_id: int,
        interval: TimeInterval,
    ) -> Appointment:
        """Stage a new pending appointment. Conflict checks are the caller's job."""
        appointment = Appointment(
            client_id=client_id,
            employee_id=employee_id,
            service_id=service_id,
            date=interval.date,
            start_time=interval.start,
            duration_minutes=interval.duration_minutes,
            status=AppointmentStatus.PENDING.value,
        )
        self.db.add(appointment)
        self.db.flush()
        return appointment

    def find_overlapping(
        self,
        employee_id: int,
        day: date,
        interval: TimeInterval,
        exclude_statuses=frozenset({AppointmentStatus.CANCELLED}),
    ) -> list[Appointment]:
        predicates = [
            Predicate('employee_id', Operator.EQ, employee_id),
            Predicate('date', Operator.EQ, day),
        ]
        if exclude_statuses:
            predicates.append(
                Predicate('status', Operator.NOT_IN, [AppointmentStatus(s).value for s in exclude_statuses])
            )

        candidates = apply_predicates(self._query(), Appointment, predicates).all()
        return [
            appointment
            for appointment in candidates
            if appointment_interval(appointment).overlaps(interval)
        ]

    def update_status(self, appointment_id: int, new_status: AppointmentStatus, actor: Actor) -> Appointment:
        appointment = self.get(appointment_id)
        if appointment is None:
            raise SchedulingError(RejectReason.NOT_FOUND, 'Appointment not found.')

        new_status = AppointmentStatus(new_status)
        current = AppointmentStatus(appointment.status)
        authorize_status_change(appointment, new_status, actor)
        check_transition(current, new_status)

        # Only write over the status the checks above were made against.
        changed = self.db.query(Appointment).filter(
            Appointment.id == appointment.id,
            Appointment.status == current.value,
        ).update({Appointment.status: new_status.value}, synchronize_session=False)
        self.db.refresh(appointment)
        if not changed:
            check_transition(AppointmentStatus(appointment.status), new_status)
            raise SchedulingError(
                RejectReason.INVALID_TRANSITION,
                'Appointment status changed while this update was in progress.',
            )

        logger.info(
            'Appointment %s: %s -> %s by user %s',
            appointment.id,
            current.value,
            new_status.value,
            actor.id,
        )
        return appointment

    def _newest_first(self, predicates: list[Predicate]) -> list[Appointment]:
        query = apply_predicates(self._query(), Appointment, predicates)
        return query.order_by(Appointment.date.desc(), Appointment.start_time.desc()).all()

    def list_by_client(self, client_id: int, exclude_cancelled: bool = True) -> list[Appointment]:
        predicates = [Predicate('client_id', Operator.EQ, client_id)]
        if exclude_cancelled:
            predicates.append(Predicate('status', Operator.NE, AppointmentStatus.CANCELLED.value))
        return self._newest_first(predicates)

    def list_by_employee(self, employee_id: int) -> list[Appointment]:
        return self._newest_first([Predicate('employee_id', Operator.EQ, employee_id)])

    def list_all(self) -> list[Appointment]:
        return self._newest_first([])

    def list_by_employee_in_range(self, employee_id: int, date_range: DateRange) -> list[ScheduledAppointment]:
        predicates = [
            Predicate('employee_id', Operator.EQ, employee_id),
            Predicate('date', Operator.BETWEEN, (date_range.start, date_range.end)),
            Predicate('status', Operator.IN, [status.value for status in ACTIVE_STATUSES]),
        ]
        query = apply_predicates(self._query(), Appointment, predicates)
        appointments = query.order_by(Appointment.date.asc(), Appointment.start_time.asc()).all()
        return [ScheduledAppointment(appointment, appointment_interval(appointment)) for appointment in appointments]
