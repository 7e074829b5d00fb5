from datetime import date, time

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from booking.auth.actor import Actor
from booking.auth.dependencies import get_current_actor
from booking.database import get_db
from booking.routes.common import ensure_database_ready, parse_date_range, translate_errors
from booking.scheduling import commands
from booking.scheduling.availability_store import AvailabilityStore
from booking.scheduling.calendar import CalendarProjector

router = APIRouter(tags=['availability'])

MAX_BATCH_SLOTS = 50


def _truncate_seconds(value: time) -> time:
    return value.replace(second=0, microsecond=0)


class AvailabilityRequest(BaseModel):
    employee_id: int
    date: date
    start_time: time
    end_time: time

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_minute_precision(cls, value: time) -> time:
        if value.tzinfo is not None:
            raise ValueError('Times must not carry a timezone.')
        return _truncate_seconds(value)


class AvailabilityBatchRequest(BaseModel):
    slots: list[AvailabilityRequest]

    @field_validator('slots')
    @classmethod
    def validate_slot_count(cls, value: list[AvailabilityRequest]) -> list[AvailabilityRequest]:
        if not value:
            raise ValueError('At least one slot is required.')
        if len(value) > MAX_BATCH_SLOTS:
            raise ValueError(f'A batch can contain at most {MAX_BATCH_SLOTS} slots.')
        return value


class AvailabilityResponse(BaseModel):
    id: int
    employee_id: int
    date: date
    start_time: time
    end_time: time

    class Config:
        from_attributes = True


class AvailabilityWeekEntryResponse(AvailabilityResponse):
    duration_minutes: int


@router.post('/new', response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
def create_availability(
    data: AvailabilityRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with translate_errors(db):
        return commands.publish_availability(
            db, actor, data.employee_id, data.date, data.start_time, data.end_time,
        )


@router.post('/batch', response_model=list[AvailabilityResponse], status_code=status.HTTP_201_CREATED)
def create_availability_batch(
    data: AvailabilityBatchRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    slots = [(slot.employee_id, slot.date, slot.start_time, slot.end_time) for slot in data.slots]
    with translate_errors(db):
        return commands.publish_availability_batch(db, actor, slots)


@router.get('/', response_model=list[AvailabilityResponse])
def list_availability(
    employee_id: int | None = Query(default=None),
    day: date | None = Query(default=None, alias='date'),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    del actor
    ensure_database_ready()

    date_range = None if day is not None else parse_date_range(start_date, end_date)
    with translate_errors(db):
        return AvailabilityStore(db).query(employee_id=employee_id, day=day, date_range=date_range)


@router.get('/employee', response_model=list[AvailabilityWeekEntryResponse])
def list_weekly_availability(
    employee_id: int = Query(...),
    day: date | None = Query(default=None),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    del actor
    ensure_database_ready()

    with translate_errors(db):
        return CalendarProjector(db).availability_week(employee_id, day or date.today())


@router.put('/update/{availability_id}', response_model=AvailabilityResponse)
def update_availability(
    availability_id: int,
    data: AvailabilityRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with translate_errors(db):
        return commands.update_availability(
            db, actor, availability_id, data.employee_id, data.date, data.start_time, data.end_time,
        )


@router.delete('/{availability_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_availability(
    availability_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with translate_errors(db):
        commands.delete_availability(db, actor, availability_id)
