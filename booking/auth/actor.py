from dataclasses import dataclass

from booking.models.user import Role


@dataclass(frozen=True)
class Actor:
    """The authenticated user behind a request."""

    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role >= Role.ADMIN

    @property
    def is_employee(self) -> bool:
        return self.role >= Role.EMPLOYEE

    def can_manage_employee(self, employee_id: int) -> bool:
        return self.is_admin or (self.is_employee and self.id == employee_id)
