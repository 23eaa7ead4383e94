import uuid

from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from eduhouse.access.permissions import school_code
from eduhouse.models.assessment import Assessment, AssessmentQuestion, AssessmentTaker, QuestionBankEntry


def _payload(seeded, question_body, **overrides) -> dict:
    payload = {
        'name': 'Mid-term science',
        'description': 'Covers chapters one to four',
        'categories': ['science'],
        'school_id': seeded.school_id,
        'target_audience': 'specific',
        'duration': 45,
        'questions': [question_body('What is H2O?'), question_body('What is NaCl?', answer='B')],
    }
    payload.update(overrides)
    return payload


def test_create_assessment_with_defaults(client: TestClient, headers, seeded, question_body) -> None:
    response = client.post('/api/v1/assessments', headers=headers(seeded.owner_id), json=_payload(seeded, question_body))
    assert response.status_code == 201, response.text
    payload = response.json()

    assert payload['grading'] == {'is_gradable': True, 'pass_mark': 50.0}
    assert payload['school_id'] == seeded.school_id
    assert payload['target_audience'] == 'specific'


def test_create_assessment_rejects_empty_questions(
    client: TestClient, headers, seeded, question_body, db_session: Session
) -> None:
    response = client.post(
        '/api/v1/assessments', headers=headers(seeded.owner_id), json=_payload(seeded, question_body, questions=[])
    )
    assert response.status_code == 400

    assert db_session.scalar(select(func.count()).select_from(Assessment)) == 0
    assert db_session.scalar(select(func.count()).select_from(QuestionBankEntry)) == 0


def test_create_assessment_validates_settings(client: TestClient, headers, seeded, question_body) -> None:
    bad_pass_mark = _payload(seeded, question_body, grading={'is_gradable': True, 'pass_mark': 120})
    assert client.post('/api/v1/assessments', headers=headers(seeded.owner_id), json=bad_pass_mark).status_code == 400

    bad_duration = _payload(seeded, question_body, duration=0)
    assert client.post('/api/v1/assessments', headers=headers(seeded.owner_id), json=bad_duration).status_code == 400

    one_option = question_body('Lonely option')
    one_option['options'] = one_option['options'][:1]
    too_few = _payload(seeded, question_body, questions=[one_option])
    assert client.post('/api/v1/assessments', headers=headers(seeded.owner_id), json=too_few).status_code == 400

    wrong_answer = _payload(seeded, question_body, questions=[question_body('Pick one', answer='Z')])
    assert client.post('/api/v1/assessments', headers=headers(seeded.owner_id), json=wrong_answer).status_code == 400


def test_create_assessment_attaches_bank_and_inline_questions(
    client: TestClient, headers, seeded, question_body, db_session: Session
) -> None:
    bank_entry = QuestionBankEntry(
        question='Capital of Nigeria?',
        options=[{'option': 'A', 'text': 'Lagos'}, {'option': 'B', 'text': 'Abuja'}],
        answer='B',
        categories=['geography'],
    )
    db_session.add(bank_entry)
    db_session.commit()

    response = client.post(
        '/api/v1/assessments',
        headers=headers(seeded.owner_id),
        json=_payload(seeded, question_body, questions=[{'id': str(bank_entry.id)}, question_body('Inline one')]),
    )
    assert response.status_code == 201, response.text

    links = db_session.scalars(
        select(AssessmentQuestion)
        .where(AssessmentQuestion.assessment_id == uuid.UUID(response.json()['id']))
        .order_by(AssessmentQuestion.order)
    ).all()
    assert [link.order for link in links] == [1, 2]
    assert links[0].question_id == bank_entry.id
    assert links[0].is_custom is False
    assert links[1].is_custom is True


def test_create_assessment_accepts_school_code(client: TestClient, headers, seeded, question_body) -> None:
    payload = _payload(seeded, question_body, school_id=school_code(seeded.school_id).lower())
    response = client.post('/api/v1/assessments', headers=headers(seeded.owner_id), json=payload)
    assert response.status_code == 201, response.text
    assert response.json()['school_id'] == seeded.school_id

    unknown = _payload(seeded, question_body, school_id='SCH99999999')
    assert client.post('/api/v1/assessments', headers=headers(seeded.owner_id), json=unknown).status_code == 404


def test_create_assessment_requires_school_admin(client: TestClient, headers, seeded, question_body) -> None:
    outsider = client.post('/api/v1/assessments', headers=headers(seeded.outsider_id), json=_payload(seeded, question_body))
    assert outsider.status_code == 403

    learner = client.post(
        '/api/v1/assessments',
        headers=headers(seeded.teacher_ids[0], kind='user'),
        json=_payload(seeded, question_body),
    )
    assert learner.status_code == 403

    anonymous = client.post('/api/v1/assessments', json=_payload(seeded, question_body))
    assert anonymous.status_code == 401


def test_update_respects_restrictions(client: TestClient, headers, seeded, question_body) -> None:
    created = client.post(
        '/api/v1/assessments', headers=headers(seeded.manager_id), json=_payload(seeded, question_body)
    ).json()

    denied = client.patch(
        f"/api/v1/assessments/{created['id']}", headers=headers(seeded.restricted_id), json={'name': 'Renamed'}
    )
    assert denied.status_code == 403

    # same restriction list, but owners are never restricted
    allowed = client.patch(
        f"/api/v1/assessments/{created['id']}",
        headers=headers(seeded.owner_id),
        json={'name': 'Renamed', 'grading': {'pass_mark': 70}},
    )
    assert allowed.status_code == 200, allowed.text
    assert allowed.json()['name'] == 'Renamed'
    assert allowed.json()['grading'] == {'is_gradable': True, 'pass_mark': 70.0}

    invalid = client.patch(
        f"/api/v1/assessments/{created['id']}", headers=headers(seeded.owner_id), json={'duration': -5}
    )
    assert invalid.status_code == 400


def test_list_assessments_is_scoped_to_admin_schools(client: TestClient, headers, seeded, question_body) -> None:
    client.post('/api/v1/assessments', headers=headers(seeded.owner_id), json=_payload(seeded, question_body))

    own = client.get('/api/v1/assessments', headers=headers(seeded.manager_id))
    assert own.status_code == 200
    assert own.json()['meta']['total'] == 1

    other = client.get('/api/v1/assessments', headers=headers(seeded.outsider_id))
    assert other.json()['meta']['total'] == 0

    everything = client.get('/api/v1/assessments', headers=headers(seeded.super_admin_id), params={'q': 'science'})
    assert everything.json()['meta']['total'] == 1

    by_audience = client.get(
        '/api/v1/assessments', headers=headers(seeded.super_admin_id), params={'target_audience': 'all'}
    )
    assert by_audience.json()['meta']['total'] == 0


def test_delete_cascades_but_keeps_bank(
    client: TestClient, headers, seeded, question_body, db_session: Session
) -> None:
    created = client.post(
        '/api/v1/assessments',
        headers=headers(seeded.owner_id),
        json=_payload(seeded, question_body, target_audience='all'),
    ).json()

    response = client.delete(f"/api/v1/assessments/{created['id']}", headers=headers(seeded.owner_id))
    assert response.status_code == 204

    assert db_session.scalar(select(func.count()).select_from(Assessment)) == 0
    assert db_session.scalar(select(func.count()).select_from(AssessmentQuestion)) == 0
    assert db_session.scalar(select(func.count()).select_from(AssessmentTaker)) == 0
    assert db_session.scalar(select(func.count()).select_from(QuestionBankEntry)) == 2

    missing = client.get(f"/api/v1/assessments/{created['id']}", headers=headers(seeded.owner_id))
    assert missing.status_code == 404
