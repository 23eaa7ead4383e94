import os
from collections.abc import Callable, Generator
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

TEST_DATABASE_URL = os.getenv('TEST_DATABASE_URL', 'sqlite+pysqlite:///:memory:')

os.environ.setdefault('DATABASE_URL', TEST_DATABASE_URL)
os.environ.setdefault('JWT_SECRET_KEY', 'test-access-secret-32-chars-min-0001')
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('CORS_ORIGINS', 'http://localhost:3001')
os.environ.setdefault('SUPER_ADMIN_EMAIL', 'seed-super-admin@example.com')

from eduhouse.core.security import create_access_token
from eduhouse.db.base import Base
from eduhouse.db.session import SessionLocal, engine, get_db
from eduhouse.main import app
from eduhouse.models.rbac import Admin, SchoolAdmin, User
from eduhouse.models.school import School, SchoolTeacher


TEACHING_STAFF = 5
NON_TEACHING_STAFF = 3


@pytest.fixture(autouse=True)
def seeded() -> Generator[SimpleNamespace, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        data = _seed(db)
        db.commit()
    finally:
        db.close()

    yield data

    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def _override_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _override_db

    with TestClient(app) as api_client:
        yield api_client

    app.dependency_overrides.clear()


@pytest.fixture()
def headers() -> Callable[..., dict[str, str]]:
    def _headers(subject_id, kind: str = 'admin') -> dict[str, str]:
        return auth_header(create_access_token(str(subject_id), kind=kind))

    return _headers


def auth_header(access_token: str) -> dict[str, str]:
    return {'Authorization': f'Bearer {access_token}'}


def _seed(db: Session) -> SimpleNamespace:
    school = School(name='Greenfield Academy', registration_id='RC-1001', is_active=True)
    other_school = School(name='Riverside College', registration_id='RC-2002', is_active=True)
    db.add_all([school, other_school])
    db.flush()

    super_admin = Admin(name='Super Admin', email='seed-super-admin@example.com', is_super_admin=True)
    owner = Admin(name='School Owner', email='owner@example.com')
    manager = Admin(name='School Manager', email='manager@example.com')
    restricted = Admin(name='Restricted Admin', email='restricted@example.com')
    outsider = Admin(name='Other School Admin', email='outsider@example.com')
    db.add_all([super_admin, owner, manager, restricted, outsider])
    db.flush()

    db.add_all(
        [
            # owners ignore their restriction list
            SchoolAdmin(
                admin_id=owner.id,
                school_id=school.id,
                role='owner',
                restrictions=['UPDATE_ASSESSMENT', 'VIEW_ASSESSMENT'],
            ),
            SchoolAdmin(admin_id=manager.id, school_id=school.id, role='admin', restrictions=[]),
            SchoolAdmin(
                admin_id=restricted.id,
                school_id=school.id,
                role='admin',
                restrictions=['UPDATE_ASSESSMENT', 'VIEW_ASSESSMENT', 'GRADE_ASSESSMENT', 'DELETE_TEACHER'],
            ),
            SchoolAdmin(admin_id=outsider.id, school_id=other_school.id, role='owner', restrictions=[]),
        ]
    )

    teachers = []
    for index in range(TEACHING_STAFF):
        teachers.append(User(email=f'teacher-{index}@example.com', first_name='Teacher', last_name=f'No{index}'))
    staff = []
    for index in range(NON_TEACHING_STAFF):
        staff.append(User(email=f'staff-{index}@example.com', first_name='Staff', last_name=f'No{index}'))
    inactive_member = User(email='former@example.com', first_name='Former', last_name='Teacher')
    stranger = User(email='stranger@example.com', first_name='Walk', last_name='In')
    db.add_all([*teachers, *staff, inactive_member, stranger])
    db.flush()

    for user in teachers:
        db.add(SchoolTeacher(school_id=school.id, user_id=user.id, is_teaching_staff=True, is_active=True))
    for user in staff:
        db.add(SchoolTeacher(school_id=school.id, user_id=user.id, is_teaching_staff=False, is_active=True))
    db.add(SchoolTeacher(school_id=school.id, user_id=inactive_member.id, is_teaching_staff=True, is_active=False))
    db.flush()

    return SimpleNamespace(
        school_id=school.id,
        other_school_id=other_school.id,
        super_admin_id=super_admin.id,
        owner_id=owner.id,
        manager_id=manager.id,
        restricted_id=restricted.id,
        outsider_id=outsider.id,
        teacher_ids=[user.id for user in teachers],
        staff_ids=[user.id for user in staff],
        inactive_member_id=inactive_member.id,
        stranger_id=stranger.id,
    )


def _question_body(text: str, answer: str = 'A', categories: list[str] | None = None) -> dict:
    return {
        'question': text,
        'options': [
            {'option': 'A', 'text': 'First'},
            {'option': 'B', 'text': 'Second'},
            {'option': 'C', 'text': 'Third'},
            {'option': 'D', 'text': 'Fourth'},
        ],
        'answer': answer,
        'categories': categories or [],
    }


@pytest.fixture()
def question_body() -> Callable[..., dict]:
    return _question_body
