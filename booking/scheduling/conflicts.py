"""Admission decisions for new appointments and availability windows.

The resolver only reads. It answers with an ``Admit`` or a ``Reject`` value and
leaves the mutation to the caller, which must hold the employee/day lock from
``booking.scheduling.locks`` across the decision and the commit.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, time

from sqlalchemy.orm import Session

from booking.core.errors import RejectReason, SchedulingError
from booking.models.service import Service
from booking.scheduling.appointment_store import AppointmentStore, describe_appointment
from booking.scheduling.availability_store import AvailabilityStore, describe_window
from booking.scheduling.intervals import TimeInterval

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Admit:
    interval: TimeInterval
    service: Service | None = None

    admitted = True

    @property
    def end(self) -> time:
        return self.interval.end


@dataclass(frozen=True)
class Reject:
    reason: RejectReason
    message: str
    interval: TimeInterval | None = None
    conflicts: list = field(default_factory=list)

    admitted = False

    def to_error(self) -> SchedulingError:
        return SchedulingError(self.reason, self.message, interval=self.interval, conflicts=self.conflicts)


Decision = Admit | Reject


class ConflictResolver:
    def __init__(self, db: Session):
        self.db = db
        self.availability = AvailabilityStore(db)
        self.appointments = AppointmentStore(db)

    def can_book_appointment(self, employee_id: int, service_id: int, day: date, start: time) -> Decision:
        service = self.db.query(Service).filter(Service.id == service_id).first()
        if service is None:
            return Reject(RejectReason.SERVICE_NOT_FOUND, 'Service not found.')

        try:
            interval = TimeInterval.from_duration(day, start, service.duration_minutes)
        except ValueError:
            return Reject(RejectReason.NOT_AVAILABLE, 'Employee not available at this time.')

        if not self.availability.find_covering(employee_id, interval):
            return Reject(RejectReason.NOT_AVAILABLE, 'Employee not available at this time.', interval=interval)

        overlapping = self.appointments.find_overlapping(employee_id, day, interval)
        if overlapping:
            logger.debug(
                'Booking for employee %s at %s clashes with %d appointment(s)',
                employee_id, interval, len(overlapping),
            )
            return Reject(
                RejectReason.OVERLAP,
                'Employee already has an appointment at this time.',
                interval=interval,
                conflicts=[describe_appointment(appointment) for appointment in overlapping],
            )

        return Admit(interval, service)

    def can_publish_availability(
        self,
        employee_id: int,
        day: date,
        start: time,
        end: time,
        exclude_id: int | None = None,
    ) -> Decision:
        try:
            interval = TimeInterval(day, start, end)
        except ValueError:
            return Reject(RejectReason.INVALID_RANGE, 'End time must be after start time.')

        overlapping = self.availability.find_overlapping(employee_id, interval, exclude_id=exclude_id)
        if overlapping:
            logger.debug(
                'Window for employee %s at %s clashes with %d window(s)',
                employee_id, interval, len(overlapping),
            )
            return Reject(
                RejectReason.OVERLAP,
                'Availability slot overlaps with existing slot.',
                interval=interval,
                conflicts=[describe_window(window) for window in overlapping],
            )

        return Admit(interval)
