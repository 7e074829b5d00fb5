import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from booking.auth.actor import Actor
from booking.auth.dependencies import get_current_actor, require_admin
from booking.core.errors import RejectReason, SchedulingError
from booking.database import get_db
from booking.models.appointment import Appointment
from booking.models.service import Service
from booking.routes.common import ensure_database_ready, translate_errors

router = APIRouter(tags=['services'])

logger = logging.getLogger(__name__)

MAX_SERVICE_NAME_LENGTH = 100


class ServiceRequest(BaseModel):
    name: str
    duration_minutes: int
    description: str | None = None
    price: int = 0

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Service name is required.')
        if len(normalized) > MAX_SERVICE_NAME_LENGTH:
            raise ValueError(f'Service name must be {MAX_SERVICE_NAME_LENGTH} characters or fewer.')
        return normalized

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        if value < 1:
            raise ValueError('Duration must be a positive integer.')
        return value

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator('price')
    @classmethod
    def validate_price(cls, value: int) -> int:
        if value < 0:
            raise ValueError('Price cannot be negative.')
        return value


class ServiceResponse(BaseModel):
    id: int
    name: str
    duration_minutes: int
    description: str | None = None
    price: int

    class Config:
        from_attributes = True


def _get_service_or_404(db: Session, service_id: int) -> Service:
    service = db.query(Service).filter(Service.id == service_id).first()
    if service is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Service not found.')
    return service


@router.post('/new', response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    data: ServiceRequest,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with translate_errors(db):
        service = Service(
            name=data.name,
            duration_minutes=data.duration_minutes,
            description=data.description,
            price=data.price,
        )
        db.add(service)
        db.commit()
        db.refresh(service)

        logger.info('Service %s created by user %s', service.id, actor.id)
        return service


@router.get('/', response_model=list[ServiceResponse])
def list_services(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    del actor
    ensure_database_ready()

    with translate_errors(db):
        return db.query(Service).order_by(Service.name.asc()).all()


@router.get('/{service_id}', response_model=ServiceResponse)
def get_service(
    service_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    del actor
    ensure_database_ready()

    with translate_errors(db):
        return _get_service_or_404(db, service_id)


@router.put('/update/{service_id}', response_model=ServiceResponse)
def update_service(
    service_id: int,
    data: ServiceRequest,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with translate_errors(db):
        service = _get_service_or_404(db, service_id)
        # Booked appointments keep the duration they were booked with.
        service.name = data.name
        service.duration_minutes = data.duration_minutes
        service.description = data.description
        service.price = data.price
        db.commit()
        db.refresh(service)

        logger.info('Service %s updated by user %s', service.id, actor.id)
        return service


@router.delete('/{service_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    service_id: int,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with translate_errors(db):
        service = _get_service_or_404(db, service_id)

        in_use = db.query(Appointment.id).filter(Appointment.service_id == service_id).first()
        if in_use is not None:
            raise SchedulingError(
                RejectReason.IN_USE,
                'Cannot delete service - it is being referenced by appointments.',
            )

        db.delete(service)
        db.commit()
        logger.info('Service %s deleted by user %s', service_id, actor.id)
