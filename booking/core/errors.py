"""Error taxonomy shared by the scheduling engine and the HTTP layer."""

from enum import Enum

from fastapi import HTTPException, status


class ErrorKind(str, Enum):
    VALIDATION = 'validation'
    NOT_FOUND = 'not_found'
    CONFLICT = 'conflict'
    FORBIDDEN = 'forbidden'
    TERMINAL_STATE = 'terminal_state'
    UPSTREAM_FAILURE = 'upstream_failure'


class RejectReason(str, Enum):
    SERVICE_NOT_FOUND = 'SERVICE_NOT_FOUND'
    NOT_AVAILABLE = 'NOT_AVAILABLE'
    OVERLAP = 'OVERLAP'
    INVALID_RANGE = 'INVALID_RANGE'
    INVALID_TRANSITION = 'INVALID_TRANSITION'
    NOT_FOUND = 'NOT_FOUND'
    FORBIDDEN = 'FORBIDDEN'
    TERMINAL_STATE = 'TERMINAL_STATE'
    IN_USE = 'IN_USE'

    @property
    def kind(self) -> ErrorKind:
        return _REASON_KINDS[self]


_REASON_KINDS = {
    RejectReason.SERVICE_NOT_FOUND: ErrorKind.NOT_FOUND,
    RejectReason.NOT_AVAILABLE: ErrorKind.CONFLICT,
    RejectReason.OVERLAP: ErrorKind.CONFLICT,
    RejectReason.INVALID_RANGE: ErrorKind.VALIDATION,
    RejectReason.INVALID_TRANSITION: ErrorKind.VALIDATION,
    RejectReason.NOT_FOUND: ErrorKind.NOT_FOUND,
    RejectReason.FORBIDDEN: ErrorKind.FORBIDDEN,
    RejectReason.TERMINAL_STATE: ErrorKind.TERMINAL_STATE,
    RejectReason.IN_USE: ErrorKind.CONFLICT,
}

_KIND_STATUS_CODES = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.TERMINAL_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UPSTREAM_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


class SchedulingError(Exception):
    """A rejected mutation, with enough detail for the caller to self-correct."""

    def __init__(self, reason: RejectReason, message: str, interval=None, conflicts=None):
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.interval = interval
        self.conflicts = list(conflicts or [])

    @property
    def kind(self) -> ErrorKind:
        return self.reason.kind

    def to_detail(self) -> dict:
        detail = {'error': self.message, 'reason': self.reason.value}
        if self.interval is not None:
            detail['interval'] = self.interval.to_dict()
        if self.conflicts:
            detail['conflicts'] = self.conflicts
        return detail


def status_code_for(kind: ErrorKind) -> int:
    return _KIND_STATUS_CODES[kind]


def to_http_exception(error: SchedulingError) -> HTTPException:
    return HTTPException(status_code=status_code_for(error.kind), detail=error.to_detail())


def upstream_failure() -> HTTPException:
    return HTTPException(
        status_code=status_code_for(ErrorKind.UPSTREAM_FAILURE),
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )
