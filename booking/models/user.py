"""User model definitions."""

from enum import IntEnum

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func
from booking.database import Base


class Role(IntEnum):
    CLIENT = 0
    EMPLOYEE = 1
    ADMIN = 2


class User(Base):
    """Represents an application user (client, employee or admin)."""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN (0, 1, 2)", name="ck_users_role_known"),
    )

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    phone = Column(String(20))
    role = Column(Integer, nullable=False, default=Role.CLIENT)
    created_at = Column(DateTime, server_default=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_employee(self) -> bool:
        return (self.role or 0) >= Role.EMPLOYEE
