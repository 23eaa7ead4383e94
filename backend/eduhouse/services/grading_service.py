import logging
from collections.abc import Iterable, Sequence
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from eduhouse.access.permissions import SchoolAdminPermission, authorize
from eduhouse.access.principal import Principal
from eduhouse.core.config import settings
from eduhouse.models.assessment import Assessment, AssessmentQuestion, AssessmentTaker
from eduhouse.services import audit_service


logger = logging.getLogger(__name__)


def _answer_lookup(answers: Iterable[dict[str, Any]] | None) -> dict[str, str]:
    lookup: dict[str, str] = {}
    # later entries overwrite earlier ones for the same question
    for item in answers or []:
        question_id = item.get('question_id')
        if question_id is None:
            continue
        lookup[str(question_id)] = item.get('answer')
    return lookup


def calculate_results(
    answers: Iterable[dict[str, Any]] | None,
    questions: Sequence[AssessmentQuestion],
    pass_mark: float | None = None,
) -> dict[str, Any]:
    """
    Score one submission against the attached question set.

    ``total_questions`` counts attached questions, not submitted answers. Answers
    are compared verbatim with the stored correct option; questions without an
    answer count as unanswered, and answers to unattached questions are ignored.
    """
    total = len(questions)
    if total == 0:
        raise ValueError('Cannot score an assessment with no questions')

    submitted = _answer_lookup(answers)
    correct = 0
    incorrect = 0
    for link in questions:
        key = str(link.question_id)
        if key not in submitted:
            continue
        if submitted[key] == link.question.answer:
            correct += 1
        else:
            incorrect += 1

    threshold = settings.DEFAULT_PASS_MARK if pass_mark is None else float(pass_mark)
    raw_score = correct / total * 100
    return {
        'score': round(raw_score, 2),
        'total_questions': total,
        'correct_answers': correct,
        'incorrect_answers': incorrect,
        'unanswered': total - (correct + incorrect),
        'passed': raw_score >= threshold,
    }


def grade_assessment(db: Session, *, assessment_id: UUID, principal: Principal | None = None) -> dict[str, Any]:
    """
    Score every completed taker that has no results yet.

    Rows are locked with ``FOR UPDATE SKIP LOCKED`` so a concurrent run never
    scores the same taker twice. The whole batch shares the caller's transaction.
    """
    assessment = db.get(Assessment, assessment_id)
    if not assessment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Assessment not found')
    if principal is not None:
        authorize(db, principal, assessment.school_id, SchoolAdminPermission.GRADE_ASSESSMENT)
    if not assessment.is_gradable:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Assessment is not gradable')

    questions = list(
        db.scalars(
            select(AssessmentQuestion)
            .where(AssessmentQuestion.assessment_id == assessment.id)
            .options(joinedload(AssessmentQuestion.question))
            .order_by(AssessmentQuestion.order.asc())
        ).all()
    )
    if not questions:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Assessment has no questions to grade')

    takers = db.scalars(
        select(AssessmentTaker)
        .where(
            AssessmentTaker.assessment_id == assessment.id,
            AssessmentTaker.status == 'completed',
            AssessmentTaker.results.is_(None),
        )
        .order_by(AssessmentTaker.completed_at.asc())
        .with_for_update(skip_locked=True)
    ).all()

    graded = 0
    for taker in takers:
        taker.results = calculate_results(taker.answers, questions, assessment.pass_mark)
        graded += 1
    db.flush()

    summary = {'assessment_id': assessment.id, 'graded_count': graded, 'total_count': len(takers)}
    logger.info('Graded %d of %d takers for assessment %s', graded, len(takers), assessment.id)
    audit_service.log_action(
        db,
        actor=principal,
        action='assessment_graded',
        entity_type='assessment',
        entity_id=assessment.id,
        details={'graded_count': graded, 'total_count': len(takers)},
    )
    return summary
