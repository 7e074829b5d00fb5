"""Service catalogue model definitions."""

from sqlalchemy import CheckConstraint, Column, Integer, String, Text
from booking.database import Base


class Service(Base):
    """A bookable service with a fixed duration."""
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
        CheckConstraint("price >= 0", name="ck_services_price_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    description = Column(Text)
    price = Column(Integer, nullable=False, default=0)
