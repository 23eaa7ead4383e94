import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from eduhouse.models.assessment import AssessmentTaker
from eduhouse.models.school import SchoolTeacher


# matches the school membership seeded in conftest
TEACHING_STAFF = 5
NON_TEACHING_STAFF = 3


def _create(client: TestClient, headers, seeded, question_body, audience: str) -> dict:
    response = client.post(
        '/api/v1/assessments',
        headers=headers(seeded.owner_id),
        json={
            'name': f'{audience} quiz',
            'school_id': seeded.school_id,
            'target_audience': audience,
            'duration': 20,
            'questions': [question_body('Two plus two?')],
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def _takers(db_session: Session, assessment_id: str) -> list[AssessmentTaker]:
    return list(
        db_session.scalars(
            select(AssessmentTaker).where(AssessmentTaker.assessment_id == uuid.UUID(assessment_id))
        ).all()
    )


@pytest.mark.parametrize(
    ('audience', 'expected'),
    [
        ('teaching', TEACHING_STAFF),
        ('non_teaching', NON_TEACHING_STAFF),
        ('all', TEACHING_STAFF + NON_TEACHING_STAFF),
        ('specific', 0),
    ],
)
def test_audience_fan_out(
    client: TestClient, headers, seeded, question_body, db_session: Session, audience: str, expected: int
) -> None:
    assessment = _create(client, headers, seeded, question_body, audience)

    takers = _takers(db_session, assessment['id'])
    assert len(takers) == expected
    assert {taker.status for taker in takers} <= {'pending'}
    assert all(taker.answers is None and taker.results is None for taker in takers)


def test_teaching_audience_matches_teaching_members(
    client: TestClient, headers, seeded, question_body, db_session: Session
) -> None:
    assessment = _create(client, headers, seeded, question_body, 'teaching')

    assigned = {taker.user_id for taker in _takers(db_session, assessment['id'])}
    assert assigned == set(seeded.teacher_ids)
    assert seeded.inactive_member_id not in assigned
    assert seeded.stranger_id not in assigned


def test_audience_is_a_snapshot(client: TestClient, headers, seeded, question_body, db_session: Session) -> None:
    assessment = _create(client, headers, seeded, question_body, 'all')

    db_session.add(SchoolTeacher(school_id=seeded.school_id, user_id=seeded.stranger_id, is_teaching_staff=True))
    db_session.commit()

    assert len(_takers(db_session, assessment['id'])) == TEACHING_STAFF + NON_TEACHING_STAFF
