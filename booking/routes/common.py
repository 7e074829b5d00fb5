import logging
from contextlib import contextmanager

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking.core.errors import SchedulingError, to_http_exception, upstream_failure
from booking.database import ensure_scheduling_schema
from booking.scheduling.intervals import DateRange

logger = logging.getLogger(__name__)


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        logger.exception('Database schema check failed.')
        raise upstream_failure() from exc


@contextmanager
def translate_errors(db: Session | None):
    """Map scheduling rejections and store failures onto HTTP errors."""
    try:
        yield
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        if db is not None:
            db.rollback()
        logger.exception('Database operation failed.')
        raise upstream_failure() from exc


def parse_date_range(start_date, end_date, max_days: int | None = None) -> DateRange | None:
    if start_date is None and end_date is None:
        return None
    if start_date is None or end_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Both start_date and end_date are required for a date range.',
        )

    try:
        date_range = DateRange(start_date, end_date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if max_days is not None and date_range.days > max_days:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Date range cannot exceed {max_days} days.',
        )
    return date_range
