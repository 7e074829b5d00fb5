"""Appointment model definitions."""

from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Time, func
from sqlalchemy.orm import relationship
from booking.database import Base


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


TERMINAL_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED})
ACTIVE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})


class Appointment(Base):
    """Represents a scheduled appointment.

    The end time is not stored. ``duration_minutes`` is the service duration
    captured when the appointment was booked.
    """
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    employee_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer)
    status = Column(String(20), nullable=False, default=AppointmentStatus.PENDING.value)
    created_at = Column(DateTime, server_default=func.now())

    client = relationship("User", foreign_keys=[client_id])
    employee = relationship("User", foreign_keys=[employee_id])
    service = relationship("Service")

    @property
    def effective_duration_minutes(self) -> int:
        if self.duration_minutes:
            return self.duration_minutes
        # Rows booked before the duration snapshot existed.
        return self.service.duration_minutes
