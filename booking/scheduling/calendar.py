"""Read-only calendar views of an employee's appointments and availability."""

from datetime import date

from sqlalchemy.orm import Session

from booking.scheduling.appointment_store import AppointmentStore
from booking.scheduling.availability_store import AvailabilityStore
from booking.scheduling.intervals import DateRange, window_interval


def _calendar_entry(scheduled) -> dict:
    appointment = scheduled.appointment
    service = appointment.service
    client = appointment.client
    return {
        'id': appointment.id,
        'date': scheduled.interval.date,
        'start_time': scheduled.interval.start,
        'end_time': scheduled.interval.end,
        'status': appointment.status,
        'service': {
            'id': service.id,
            'name': service.name,
            'duration_minutes': scheduled.interval.duration_minutes,
        },
        'client': {
            'id': client.id,
            'name': client.full_name,
        },
    }


class CalendarProjector:
    def __init__(self, db: Session):
        self.appointments = AppointmentStore(db)
        self.availability = AvailabilityStore(db)

    def project_range(self, employee_id: int, date_range: DateRange) -> list[dict]:
        scheduled = self.appointments.list_by_employee_in_range(employee_id, date_range)
        entries = [_calendar_entry(item) for item in scheduled]
        return sorted(entries, key=lambda entry: (entry['date'], entry['start_time']))

    def project_week(self, employee_id: int, day: date) -> list[dict]:
        return self.project_range(employee_id, DateRange.week_of(day))

    def availability_week(self, employee_id: int, day: date) -> list[dict]:
        windows = self.availability.query(employee_id=employee_id, date_range=DateRange.week_of(day))
        return [
            {
                'id': window.id,
                'employee_id': window.employee_id,
                'date': window.date,
                'start_time': window.start_time,
                'end_time': window.end_time,
                'duration_minutes': window_interval(window).duration_minutes,
            }
            for window in windows
        ]
