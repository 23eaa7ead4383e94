from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eduhouse.access.permissions import SchoolAdminPermission, authorize
from eduhouse.access.principal import Principal
from eduhouse.core.dates import utcnow
from eduhouse.models.assessment import Assessment, AssessmentTaker
from eduhouse.models.rbac import SchoolAdmin, User
from eduhouse.services import audit_service


def _normalize_answers(answers: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    return [{'question_id': str(item['question_id']), 'answer': item['answer']} for item in answers or []]


def _get_assessment(db: Session, assessment_id: UUID) -> Assessment:
    assessment = db.get(Assessment, assessment_id)
    if not assessment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Assessment not found')
    return assessment


def get_taker(db: Session, taker_id: UUID) -> AssessmentTaker:
    taker = db.get(AssessmentTaker, taker_id)
    if not taker:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Assessment taker not found')
    return taker


def _ensure_can_act(db: Session, taker: AssessmentTaker, principal: Principal, permission: SchoolAdminPermission):
    if principal.is_admin:
        authorize(db, principal, taker.assessment.school_id, permission)
        return
    if taker.user_id != principal.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Not your assessment')


def get_taker_for(db: Session, *, taker_id: UUID, principal: Principal) -> AssessmentTaker:
    taker = get_taker(db, taker_id)
    _ensure_can_act(db, taker, principal, SchoolAdminPermission.VIEW_ASSESSMENT)
    return taker


def assign_taker(db: Session, *, assessment_id: UUID, user_id: UUID, principal: Principal) -> AssessmentTaker:
    assessment = _get_assessment(db, assessment_id)
    authorize(db, principal, assessment.school_id, SchoolAdminPermission.UPDATE_ASSESSMENT)

    if not db.get(User, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')
    existing = db.scalar(
        select(AssessmentTaker.id).where(
            AssessmentTaker.assessment_id == assessment.id, AssessmentTaker.user_id == user_id
        )
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='User already assigned to this assessment')

    taker = AssessmentTaker(
        assessment_id=assessment.id,
        user_id=user_id,
        status='pending',
        created_by=principal.id,
        updated_by=principal.id,
    )
    db.add(taker)
    try:
        db.flush()
    except IntegrityError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail='User already assigned to this assessment'
        ) from exc

    audit_service.log_action(
        db,
        actor=principal,
        action='taker_assigned',
        entity_type='assessment_taker',
        entity_id=taker.id,
        details={'assessment_id': assessment.id, 'user_id': user_id},
    )
    return taker


def list_takers(
    db: Session,
    *,
    principal: Principal,
    page: int,
    page_size: int,
    assessment_id: UUID | None = None,
    user_id: UUID | None = None,
    status_filter: str | None = None,
) -> tuple[list[AssessmentTaker], int]:
    base = select(AssessmentTaker)
    if not principal.is_admin:
        # learners only ever see their own rows
        user_id = principal.user_id
    elif not principal.is_super_admin:
        school_ids = select(SchoolAdmin.school_id).where(SchoolAdmin.admin_id == principal.id)
        base = base.join(Assessment, Assessment.id == AssessmentTaker.assessment_id).where(
            Assessment.school_id.in_(school_ids)
        )

    if assessment_id:
        base = base.where(AssessmentTaker.assessment_id == assessment_id)
    if user_id:
        base = base.where(AssessmentTaker.user_id == user_id)
    if status_filter:
        base = base.where(AssessmentTaker.status == status_filter)

    total = db.scalar(select(func.count()).select_from(base.subquery()))
    rows = db.scalars(
        base.order_by(AssessmentTaker.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
    ).all()
    return list(rows), int(total or 0)


def start_taker(db: Session, *, taker_id: UUID, principal: Principal) -> AssessmentTaker:
    """
    Move a taker from ``pending`` to ``ongoing``.

    Starting an ``ongoing`` taker again is a no-op that keeps the first ``started_at``.
    """
    taker = get_taker(db, taker_id)
    _ensure_can_act(db, taker, principal, SchoolAdminPermission.UPDATE_ASSESSMENT)

    if taker.status == 'completed':
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Assessment already completed')
    if taker.status == 'ongoing':
        return taker

    taker.status = 'ongoing'
    taker.started_at = utcnow()
    taker.updated_by = principal.id
    db.flush()
    audit_service.log_action(
        db,
        actor=principal,
        action='taker_started',
        entity_type='assessment_taker',
        entity_id=taker.id,
    )
    return taker


def submit_taker(
    db: Session, *, taker_id: UUID, answers: list[dict[str, Any]], principal: Principal
) -> AssessmentTaker:
    """Store the answers and complete the taker. Partial and empty answer sets are accepted."""
    taker = get_taker(db, taker_id)
    _ensure_can_act(db, taker, principal, SchoolAdminPermission.UPDATE_ASSESSMENT)

    if taker.status != 'ongoing':
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Assessment has not been started')

    taker.answers = _normalize_answers(answers)
    taker.completed_at = utcnow()
    taker.status = 'completed'
    taker.updated_by = principal.id
    db.flush()
    audit_service.log_action(
        db,
        actor=principal,
        action='taker_submitted',
        entity_type='assessment_taker',
        entity_id=taker.id,
        details={'answer_count': len(taker.answers)},
    )
    return taker


def update_taker(
    db: Session, *, taker_id: UUID, payload: dict[str, Any], principal: Principal
) -> AssessmentTaker:
    """Administrative correction. Skips the start/submit guards."""
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Admin access required')
    taker = get_taker(db, taker_id)
    authorize(db, principal, taker.assessment.school_id, SchoolAdminPermission.UPDATE_ASSESSMENT)

    if payload.get('status') is not None:
        taker.status = payload['status']
    for field in ['started_at', 'completed_at', 'results']:
        if field in payload:
            setattr(taker, field, payload[field])
    if 'answers' in payload:
        taker.answers = _normalize_answers(payload['answers']) if payload['answers'] is not None else None
    taker.updated_by = principal.id
    db.flush()

    audit_service.log_action(
        db,
        actor=principal,
        action='taker_updated',
        entity_type='assessment_taker',
        entity_id=taker.id,
        details={'fields': sorted(payload.keys())},
    )
    return taker


def delete_taker(db: Session, *, taker_id: UUID, principal: Principal) -> None:
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Admin access required')
    taker = get_taker(db, taker_id)
    authorize(db, principal, taker.assessment.school_id, SchoolAdminPermission.UPDATE_ASSESSMENT)

    audit_service.log_action(
        db,
        actor=principal,
        action='taker_deleted',
        entity_type='assessment_taker',
        entity_id=taker.id,
        details={'assessment_id': taker.assessment_id, 'user_id': taker.user_id},
    )
    db.delete(taker)
    db.flush()
