from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from booking.auth.actor import Actor
from booking.auth.dependencies import get_current_actor, require_admin
from booking.core import config
from booking.database import get_db
from booking.models.appointment import Appointment, AppointmentStatus
from booking.routes.common import ensure_database_ready, parse_date_range, translate_errors
from booking.scheduling import commands
from booking.scheduling.appointment_store import AppointmentStore
from booking.scheduling.calendar import CalendarProjector
from booking.scheduling.intervals import appointment_interval

router = APIRouter(tags=['appointments'])


class CreateAppointmentRequest(BaseModel):
    employee_id: int
    service_id: int
    date: date
    start_time: time

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, value: time) -> time:
        if value.tzinfo is not None:
            raise ValueError('Start time must not carry a timezone.')
        return value.replace(second=0, microsecond=0)


class UpdateAppointmentStatusRequest(BaseModel):
    status: AppointmentStatus

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class AppointmentResponse(BaseModel):
    id: int
    client_id: int
    employee_id: int
    service_id: int
    service_name: str
    date: date
    start_time: time
    end_time: time
    duration_minutes: int
    status: str
    created_at: datetime | None = None
    client_name: str | None = None
    employee_name: str | None = None


class CalendarServiceResponse(BaseModel):
    id: int
    name: str
    duration_minutes: int


class CalendarClientResponse(BaseModel):
    id: int
    name: str


class CalendarEntryResponse(BaseModel):
    id: int
    date: date
    start_time: time
    end_time: time
    status: str
    service: CalendarServiceResponse
    client: CalendarClientResponse


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    interval = appointment_interval(appointment)
    return AppointmentResponse(
        id=appointment.id,
        client_id=appointment.client_id,
        employee_id=appointment.employee_id,
        service_id=appointment.service_id,
        service_name=appointment.service.name,
        date=interval.date,
        start_time=interval.start,
        end_time=interval.end,
        duration_minutes=interval.duration_minutes,
        status=appointment.status,
        created_at=appointment.created_at,
        client_name=appointment.client.full_name if appointment.client else None,
        employee_name=appointment.employee.full_name if appointment.employee else None,
    )


def _require_calendar_access(actor: Actor, employee_id: int) -> None:
    if not actor.can_manage_employee(employee_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only the employee or an admin can view this calendar.',
        )


@router.post('/new', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with translate_errors(db):
        appointment = commands.book_appointment(
            db, actor, data.employee_id, data.service_id, data.date, data.start_time,
        )
        return to_appointment_response(appointment)


@router.get('/', response_model=list[AppointmentResponse])
def list_my_appointments(
    include_cancelled: bool = Query(default=False),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with translate_errors(db):
        appointments = AppointmentStore(db).list_by_client(actor.id, exclude_cancelled=not include_cancelled)
        return [to_appointment_response(appointment) for appointment in appointments]


@router.get('/employee', response_model=list[CalendarEntryResponse])
def list_weekly_employee_appointments(
    employee_id: int | None = Query(default=None),
    day: date | None = Query(default=None),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    employee_id = actor.id if employee_id is None else employee_id
    _require_calendar_access(actor, employee_id)
    ensure_database_ready()

    with translate_errors(db):
        return CalendarProjector(db).project_week(employee_id, day or date.today())


@router.get('/employee/range', response_model=list[CalendarEntryResponse])
def list_employee_appointments_in_range(
    start_date: date = Query(...),
    end_date: date = Query(...),
    employee_id: int | None = Query(default=None),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    employee_id = actor.id if employee_id is None else employee_id
    _require_calendar_access(actor, employee_id)
    date_range = parse_date_range(start_date, end_date, max_days=config.CALENDAR_MAX_RANGE_DAYS)
    ensure_database_ready()

    with translate_errors(db):
        return CalendarProjector(db).project_range(employee_id, date_range)


@router.get('/employee/personal', response_model=list[AppointmentResponse])
def list_personal_employee_appointments(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    if not actor.is_employee:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only employees have a personal appointment list.',
        )
    ensure_database_ready()

    with translate_errors(db):
        appointments = AppointmentStore(db).list_by_employee(actor.id)
        return [to_appointment_response(appointment) for appointment in appointments]


@router.get('/all', response_model=list[AppointmentResponse])
def list_all_appointments(
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del actor
    ensure_database_ready()

    with translate_errors(db):
        return [to_appointment_response(appointment) for appointment in AppointmentStore(db).list_all()]


@router.put('/update/{appointment_id}', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateAppointmentStatusRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with translate_errors(db):
        appointment = commands.change_appointment_status(db, actor, appointment_id, data.status)
        return to_appointment_response(appointment)


@router.put('/cancel/{appointment_id}', response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with translate_errors(db):
        appointment = commands.change_appointment_status(db, actor, appointment_id, AppointmentStatus.CANCELLED)
        return to_appointment_response(appointment)
