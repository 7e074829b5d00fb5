import os
from datetime import date, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from booking.auth.actor import Actor  # noqa: E402
from booking.database import Base  # noqa: E402
from booking.models import appointment, availability, service, user  # noqa: E402,F401
from booking.models.availability import Availability  # noqa: E402
from booking.models.service import Service  # noqa: E402
from booking.models.user import Role, User  # noqa: E402

BOOKING_DAY = date(2024, 6, 1)


def _build_session_factory(url: str):
    engine = create_engine(url, connect_args={'check_same_thread': False})
    Base.metadata.create_all(bind=engine)
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    engine, testing_session_local = _build_session_factory('sqlite:///:memory:')

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a shared on-disk database, usable from several threads."""
    engine, testing_session_local = _build_session_factory(f"sqlite:///{tmp_path / 'booking.db'}")
    try:
        yield testing_session_local
    finally:
        engine.dispose()


def add_user(db, first_name: str, role: Role) -> User:
    account = User(
        first_name=first_name,
        last_name='Tester',
        email=f'{first_name.lower()}@example.com',
        role=int(role),
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def add_service(db, name: str = 'Haircut', duration_minutes: int = 30) -> Service:
    item = Service(name=name, duration_minutes=duration_minutes, description=None, price=25)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def add_window(db, employee_id: int, start: time, end: time, day: date = BOOKING_DAY) -> Availability:
    window = Availability(employee_id=employee_id, date=day, start_time=start, end_time=end)
    db.add(window)
    db.commit()
    db.refresh(window)
    return window


def actor_for(account: User) -> Actor:
    return Actor(id=account.id, role=Role(account.role))


@pytest.fixture
def people(db):
    return {
        'client': add_user(db, 'Clara', Role.CLIENT),
        'other_client': add_user(db, 'Oscar', Role.CLIENT),
        'employee': add_user(db, 'Emma', Role.EMPLOYEE),
        'other_employee': add_user(db, 'Evan', Role.EMPLOYEE),
        'admin': add_user(db, 'Ada', Role.ADMIN),
    }


@pytest.fixture
def haircut(db):
    return add_service(db)
