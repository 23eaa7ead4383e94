from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from eduhouse.access.permissions import (
    SchoolAdminPermission,
    authorize,
    can_view_questions,
    parse_school_ref,
)
from eduhouse.access.principal import Principal
from eduhouse.core.config import settings
from eduhouse.models.assessment import Assessment
from eduhouse.models.constants import TARGET_AUDIENCE_VALUES
from eduhouse.models.rbac import SchoolAdmin
from eduhouse.services import audience_service, audit_service, question_service


logger = logging.getLogger(__name__)


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _validate_settings(*, duration: int | None, pass_mark: float | None, target_audience: str | None) -> None:
    if duration is not None and duration <= 0:
        raise _bad_request('Duration must be a positive number of minutes')
    if pass_mark is not None and not 0 <= pass_mark <= 100:
        raise _bad_request('Pass mark must be between 0 and 100')
    if target_audience is not None and target_audience not in TARGET_AUDIENCE_VALUES:
        raise _bad_request('Unknown target audience')


def _prepare_questions(db: Session, items: list[dict[str, Any]]) -> list[tuple[dict[str, Any], Any]]:
    """Check every question before anything is written. Returns (item, bank entry or None) pairs."""
    prepared = []
    seen_ids = set()
    for item in items:
        question_id = item.get('id')
        if question_id:
            if question_id in seen_ids:
                raise _bad_request('The same question is listed twice')
            seen_ids.add(question_id)
            prepared.append((item, question_service.get_bank_question(db, question_id)))
            continue
        question_service.validate_question_fields(
            question=item.get('question'), options=item.get('options'), answer=item.get('answer')
        )
        prepared.append((item, None))
    return prepared


def get_assessment(db: Session, assessment_id: UUID) -> Assessment:
    assessment = db.get(Assessment, assessment_id)
    if not assessment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Assessment not found')
    return assessment


def create_assessment(db: Session, *, payload: dict[str, Any], principal: Principal) -> Assessment:
    """
    Create an assessment with its questions and fan it out to the target audience.

    Items in ``questions`` either reference a bank entry by ``id`` or carry a full
    question body, which becomes a new bank entry. Everything is flushed into the
    caller's transaction, so a failure part way leaves nothing behind.
    """
    questions = payload.get('questions') or []
    if not questions:
        raise _bad_request('An assessment needs at least one question')

    school = authorize(db, principal, payload['school_id'], SchoolAdminPermission.CREATE_ASSESSMENT)

    grading = payload.get('grading') or {}
    pass_mark = grading.get('pass_mark')
    if pass_mark is None:
        pass_mark = settings.DEFAULT_PASS_MARK
    target_audience = payload.get('target_audience') or 'all'
    _validate_settings(duration=payload.get('duration'), pass_mark=pass_mark, target_audience=target_audience)
    if payload.get('duration') is None:
        raise _bad_request('Duration is required')
    prepared = _prepare_questions(db, questions)

    assessment = Assessment(
        name=payload['name'].strip(),
        description=payload.get('description'),
        categories=payload.get('categories') or [],
        school_id=school.id,
        target_audience=target_audience,
        start_date=payload.get('start_date'),
        duration=payload['duration'],
        is_gradable=grading.get('is_gradable', True),
        pass_mark=pass_mark,
        created_by=principal.id,
        updated_by=principal.id,
    )
    db.add(assessment)
    db.flush()

    for order, (item, bank_entry) in enumerate(prepared, start=1):
        if bank_entry is None:
            bank_entry = question_service.create_bank_question(db, payload=item, actor_id=principal.id)
            is_custom = True
        else:
            is_custom = False
        question_service.attach_question(
            db, assessment_id=assessment.id, question=bank_entry, is_custom=is_custom, order=order
        )

    assigned = audience_service.assign_audience(db, assessment)

    audit_service.log_action(
        db,
        actor=principal,
        action='assessment_created',
        entity_type='assessment',
        entity_id=assessment.id,
        details={'school_id': school.id, 'question_count': len(prepared), 'assigned_count': assigned},
    )
    return assessment


def list_assessments(
    db: Session,
    *,
    principal: Principal,
    page: int,
    page_size: int,
    query: str | None = None,
    school_ref: int | str | None = None,
    target_audience: str | None = None,
) -> tuple[list[Assessment], int]:
    base = select(Assessment)
    if not principal.is_super_admin:
        school_ids = select(SchoolAdmin.school_id).where(SchoolAdmin.admin_id == principal.id)
        base = base.where(Assessment.school_id.in_(school_ids))

    if query:
        base = base.where(or_(Assessment.name.ilike(f'%{query}%'), Assessment.description.ilike(f'%{query}%')))
    if school_ref is not None:
        base = base.where(Assessment.school_id == parse_school_ref(school_ref))
    if target_audience:
        base = base.where(Assessment.target_audience == target_audience)

    total = db.scalar(select(func.count()).select_from(base.subquery()))
    rows = db.scalars(
        base.order_by(Assessment.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
    ).all()
    return list(rows), int(total or 0)


def view_single_assessment(
    db: Session, *, assessment_id: UUID, principal: Principal | None
) -> tuple[Assessment, list[dict[str, Any]] | None]:
    """Returns the assessment and, when the caller may see them, its questions with answers."""
    assessment = get_assessment(db, assessment_id)
    if not can_view_questions(db, principal, assessment):
        return assessment, None
    links = question_service.get_assessment_questions(db, assessment.id)
    return assessment, [question_service.project_question(link, include_answer=True) for link in links]


def update_assessment(
    db: Session, *, assessment_id: UUID, payload: dict[str, Any], principal: Principal
) -> Assessment:
    assessment = get_assessment(db, assessment_id)
    authorize(db, principal, assessment.school_id, SchoolAdminPermission.UPDATE_ASSESSMENT)

    grading = payload.get('grading') or {}
    _validate_settings(
        duration=payload.get('duration'),
        pass_mark=grading.get('pass_mark'),
        target_audience=payload.get('target_audience'),
    )

    for field in ['description', 'start_date']:
        if field in payload:
            setattr(assessment, field, payload[field])
    for field in ['categories', 'target_audience', 'duration']:
        if payload.get(field) is not None:
            setattr(assessment, field, payload[field])
    if payload.get('name'):
        assessment.name = payload['name'].strip()
    if grading.get('is_gradable') is not None:
        assessment.is_gradable = grading['is_gradable']
    if grading.get('pass_mark') is not None:
        assessment.pass_mark = grading['pass_mark']
    assessment.updated_by = principal.id
    db.flush()

    audit_service.log_action(
        db,
        actor=principal,
        action='assessment_updated',
        entity_type='assessment',
        entity_id=assessment.id,
        details={'fields': sorted(payload.keys())},
    )
    return assessment


def delete_assessment(db: Session, *, assessment_id: UUID, principal: Principal) -> None:
    """Delete the assessment together with its question links and takers. Bank entries stay."""
    assessment = get_assessment(db, assessment_id)
    authorize(db, principal, assessment.school_id, SchoolAdminPermission.DELETE_ASSESSMENT)

    audit_service.log_action(
        db,
        actor=principal,
        action='assessment_deleted',
        entity_type='assessment',
        entity_id=assessment.id,
        details={'school_id': assessment.school_id, 'name': assessment.name},
    )
    db.delete(assessment)
    db.flush()
    logger.info('Deleted assessment %s', assessment_id)
