import asyncio
import uuid

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eduhouse.access.permissions import (
    SchoolAdminPermission,
    authorize,
    is_restricted,
    parse_school_ref,
    school_code,
)
from eduhouse.access.principal import Principal
from eduhouse.core.security import create_access_token, decode_access_token
from eduhouse.main import integrity_error_handler
from eduhouse.models.rbac import Admin, SchoolAdmin, User


def test_school_code_round_trip() -> None:
    assert school_code(42) == 'SCH10042'
    assert parse_school_ref('SCH10042') == 42
    assert parse_school_ref('sch10042') == 42
    assert parse_school_ref('42') == 42
    assert parse_school_ref(7) == 7
    assert parse_school_ref('SCH00042') is None
    assert parse_school_ref('ABC10042') is None


def test_owner_is_never_restricted() -> None:
    restrictions = ['UPDATE_ASSESSMENT']
    owner = SchoolAdmin(role='owner', restrictions=restrictions)
    admin = SchoolAdmin(role='admin', restrictions=restrictions)

    assert is_restricted(owner, SchoolAdminPermission.UPDATE_ASSESSMENT) is False
    assert is_restricted(admin, SchoolAdminPermission.UPDATE_ASSESSMENT) is True
    assert is_restricted(admin, SchoolAdminPermission.DELETE_ASSESSMENT) is False


def test_authorize(db_session: Session, seeded) -> None:
    def principal_for(admin_id) -> Principal:
        return Principal.for_admin(db_session.get(Admin, admin_id))

    code = school_code(seeded.school_id)
    school = authorize(db_session, principal_for(seeded.owner_id), code, SchoolAdminPermission.UPDATE_ASSESSMENT)
    assert school.id == seeded.school_id
    assert authorize(
        db_session, principal_for(seeded.super_admin_id), seeded.other_school_id, SchoolAdminPermission.DELETE_TEACHER
    ).id == seeded.other_school_id

    denied = [
        (principal_for(seeded.restricted_id), SchoolAdminPermission.UPDATE_ASSESSMENT),
        (principal_for(seeded.outsider_id), SchoolAdminPermission.VIEW_ASSESSMENT),
        (Principal.for_user(db_session.get(User, seeded.teacher_ids[0])), SchoolAdminPermission.VIEW_ASSESSMENT),
    ]
    for principal, permission in denied:
        with pytest.raises(HTTPException) as exc_info:
            authorize(db_session, principal, seeded.school_id, permission)
        assert exc_info.value.status_code == 403

    with pytest.raises(HTTPException) as exc_info:
        authorize(db_session, principal_for(seeded.owner_id), 'SCH99999999', SchoolAdminPermission.VIEW_ASSESSMENT)
    assert exc_info.value.status_code == 404


def test_principal_capabilities(db_session: Session, seeded) -> None:
    super_admin = Principal.for_admin(db_session.get(Admin, seeded.super_admin_id))
    learner = Principal.for_user(db_session.get(User, seeded.teacher_ids[0]))

    assert super_admin.is_admin and super_admin.is_super_admin
    assert super_admin.user_id is None
    assert not learner.is_admin and not learner.is_super_admin
    assert learner.user_id == seeded.teacher_ids[0]


def test_tokens_are_checked(client: TestClient, headers, seeded, db_session: Session) -> None:
    bad = client.get('/api/v1/takers', headers={'Authorization': 'Bearer not-a-token'})
    assert bad.status_code == 401

    ghost = client.get('/api/v1/takers', headers=headers(uuid.uuid4(), kind='user'))
    assert ghost.status_code == 401

    # an admin id presented as a learner does not resolve
    mixed = client.get('/api/v1/takers', headers=headers(seeded.owner_id, kind='user'))
    assert mixed.status_code == 401

    user = db_session.get(User, seeded.staff_ids[0])
    user.is_active = False
    db_session.commit()
    inactive = client.get('/api/v1/takers', headers=headers(seeded.staff_ids[0], kind='user'))
    assert inactive.status_code == 403


def test_health(client: TestClient) -> None:
    response = client.get('/api/v1/health')
    assert response.status_code == 200
    assert response.json()['status'] == 'ok'


def test_bootstrap_keeps_super_admin(client: TestClient, db_session: Session, seeded) -> None:
    admin = db_session.get(Admin, seeded.super_admin_id)
    assert admin.is_super_admin is True


def test_school_membership_endpoints(client: TestClient, headers, seeded) -> None:
    url = f'/api/v1/schools/{school_code(seeded.school_id)}/members/{seeded.stranger_id}'

    created = client.put(url, headers=headers(seeded.manager_id), json={'is_teaching_staff': False})
    assert created.status_code == 201, created.text
    assert created.json()['created'] is True
    assert created.json()['member']['school_code'] == school_code(seeded.school_id)
    assert created.json()['member']['is_teaching_staff'] is False

    updated = client.put(url, headers=headers(seeded.manager_id), json={'class_assigned': 'JSS2'})
    assert updated.status_code == 200
    assert updated.json()['member']['class_assigned'] == 'JSS2'

    assert client.delete(url, headers=headers(seeded.restricted_id)).status_code == 403
    assert client.delete(url, headers=headers(seeded.outsider_id)).status_code == 403
    assert client.delete(url, headers=headers(seeded.manager_id)).status_code == 204
    assert client.delete(url, headers=headers(seeded.manager_id)).status_code == 404


def test_access_token_carries_kind() -> None:
    payload = decode_access_token(create_access_token('abc', kind='user'))
    assert payload['sub'] == 'abc'
    assert payload['kind'] == 'user'


def test_unmapped_integrity_error_is_a_conflict() -> None:
    exc = IntegrityError('INSERT INTO assessment_takers', {}, Exception('duplicate key value'))

    response = asyncio.run(integrity_error_handler(None, exc))

    assert response.status_code == 409
    assert b'Conflicting database state' in response.body
