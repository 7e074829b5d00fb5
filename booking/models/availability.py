"""Availability model definitions."""

from sqlalchemy import Column, Date, ForeignKey, Integer, Time, UniqueConstraint
from sqlalchemy.orm import relationship
from booking.database import Base


class Availability(Base):
    """Represents a window during which an employee can be booked."""
    __tablename__ = "availability"
    __table_args__ = (
        UniqueConstraint("employee_id", "date", "start_time", name="uq_availability_employee_date_start"),
    )

    id = Column(Integer, primary_key=True)
    employee_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    employee = relationship("User")
