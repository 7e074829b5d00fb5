import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import IntegrityError

from booking.auth import jwt_handler
from booking.auth.dependencies import get_current_actor, require_admin
from booking.models.user import Role, User
from conftest import actor_for


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_token_round_trip_carries_subject_and_role() -> None:
    token = jwt_handler.create_access_token(7, int(Role.EMPLOYEE))

    payload = jwt_handler.decode_access_token(token)

    assert payload['sub'] == '7'
    assert payload['role'] == 1


def test_get_current_actor_resolves_role_from_database(db, people) -> None:
    employee = people['employee']
    # A stale role claim in the token must not grant admin rights.
    token = jwt_handler.create_access_token(employee.id, int(Role.ADMIN))

    actor = get_current_actor(credentials=bearer(token), db=db)

    assert actor.id == employee.id
    assert actor.role is Role.EMPLOYEE
    assert not actor.is_admin


def test_get_current_actor_rejects_garbage_token(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_actor(credentials=bearer('not-a-jwt'), db=db)

    assert exception_info.value.status_code == 401


def test_get_current_actor_rejects_unknown_user(db) -> None:
    token = jwt_handler.create_access_token(4040, int(Role.CLIENT))

    with pytest.raises(HTTPException) as exception_info:
        get_current_actor(credentials=bearer(token), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'User not found'


def test_require_admin(people) -> None:
    assert require_admin(actor=actor_for(people['admin'])).is_admin

    with pytest.raises(HTTPException) as exception_info:
        require_admin(actor=actor_for(people['employee']))

    assert exception_info.value.status_code == 403


def test_actor_can_manage_only_own_schedule_unless_admin(people) -> None:
    employee = actor_for(people['employee'])

    assert employee.can_manage_employee(employee.id)
    assert not employee.can_manage_employee(people['other_employee'].id)
    assert actor_for(people['admin']).can_manage_employee(people['employee'].id)
    assert not actor_for(people['client']).can_manage_employee(people['client'].id)


def test_users_table_rejects_unknown_role(db) -> None:
    db.add(User(first_name='Rex', last_name='Tester', email='rex@example.com', role=5))

    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

    assert db.query(User).count() == 0
