from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.orm import Session, joinedload

from eduhouse.access.permissions import SchoolAdminPermission, authorize, can_view_questions
from eduhouse.access.principal import Principal
from eduhouse.models.assessment import Assessment, AssessmentQuestion, AssessmentTaker, QuestionBankEntry
from eduhouse.models.constants import MAX_QUESTION_OPTIONS, MIN_QUESTION_OPTIONS


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _normalize_categories(categories: list[str] | None) -> list[str]:
    # de-dupe while preserving order
    seen = set()
    out = []
    for item in categories or []:
        value = (item or '').strip()
        if not value or value in seen:
            continue
        seen.add(value)
        out.append(value)
    return out


def validate_question_fields(*, question: str | None, options: list[dict[str, Any]] | None, answer: str | None) -> None:
    if not question or not question.strip():
        raise _bad_request('Question text is required')
    options = options or []
    if len(options) < MIN_QUESTION_OPTIONS or len(options) > MAX_QUESTION_OPTIONS:
        raise _bad_request(
            f'Options must contain between {MIN_QUESTION_OPTIONS} and {MAX_QUESTION_OPTIONS} entries'
        )
    labels = [str(option.get('option', '')).strip() for option in options]
    if any(not label for label in labels):
        raise _bad_request('Every option needs a label')
    if len(set(labels)) != len(labels):
        raise _bad_request('Option labels must be unique')
    if answer not in labels:
        raise _bad_request('Answer must match one of the option labels')


def _clean_options(options: list[dict[str, Any]]) -> list[dict[str, str]]:
    return [{'option': str(item['option']).strip(), 'text': str(item['text']).strip()} for item in options]


def categories_filter(db: Session, column, categories: list[str]):
    """Match rows whose JSON category list overlaps ``categories``."""
    if db.get_bind().dialect.name == 'postgresql':
        return or_(*[column.contains([category]) for category in categories])
    return or_(*[cast(column, String).like(f'%"{category}"%') for category in categories])


def list_bank_questions(
    db: Session,
    *,
    page: int,
    page_size: int,
    query: str | None,
    categories: list[str] | None,
) -> tuple[list[QuestionBankEntry], int]:
    base = select(QuestionBankEntry)
    if query:
        base = base.where(QuestionBankEntry.question.ilike(f'%{query}%'))
    if categories:
        base = base.where(categories_filter(db, QuestionBankEntry.categories, categories))

    total = db.scalar(select(func.count()).select_from(base.subquery()))
    items = db.scalars(
        base.order_by(QuestionBankEntry.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
    ).all()
    return list(items), int(total or 0)


def get_bank_question(db: Session, question_id: UUID) -> QuestionBankEntry:
    question = db.get(QuestionBankEntry, question_id)
    if not question:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Question not found')
    return question


def create_bank_question(db: Session, *, payload: dict[str, Any], actor_id: UUID | None) -> QuestionBankEntry:
    validate_question_fields(
        question=payload.get('question'), options=payload.get('options'), answer=payload.get('answer')
    )
    question = QuestionBankEntry(
        question=payload['question'].strip(),
        options=_clean_options(payload['options']),
        answer=payload['answer'],
        categories=_normalize_categories(payload.get('categories')),
        created_by=actor_id,
        updated_by=actor_id,
    )
    db.add(question)
    db.flush()
    return question


def update_bank_question(
    db: Session, *, question: QuestionBankEntry, payload: dict[str, Any], actor_id: UUID | None
) -> QuestionBankEntry:
    """
    Update a bank entry in place.

    Bank entries are shared: the change is visible in every assessment that attaches
    the entry. Concurrent edits are last-write-wins.
    """
    merged = {
        'question': payload.get('question') if payload.get('question') is not None else question.question,
        'options': payload.get('options') if payload.get('options') is not None else question.options,
        'answer': payload.get('answer') if payload.get('answer') is not None else question.answer,
    }
    validate_question_fields(**merged)

    question.question = merged['question'].strip()
    question.options = _clean_options(merged['options'])
    question.answer = merged['answer']
    if payload.get('categories') is not None:
        question.categories = _normalize_categories(payload['categories'])
    question.updated_by = actor_id
    db.flush()
    return question


def next_order(db: Session, assessment_id: UUID) -> int:
    current = db.scalar(
        select(func.max(AssessmentQuestion.order)).where(AssessmentQuestion.assessment_id == assessment_id)
    )
    return int(current or 0) + 1


def get_attachment(db: Session, *, assessment_id: UUID, question_id: UUID) -> AssessmentQuestion | None:
    return db.scalar(
        select(AssessmentQuestion)
        .where(AssessmentQuestion.assessment_id == assessment_id, AssessmentQuestion.question_id == question_id)
        .options(joinedload(AssessmentQuestion.question))
    )


def attach_question(
    db: Session, *, assessment_id: UUID, question: QuestionBankEntry, is_custom: bool, order: int | None = None
) -> AssessmentQuestion:
    link = AssessmentQuestion(
        assessment_id=assessment_id,
        question_id=question.id,
        order=order if order is not None else next_order(db, assessment_id),
        is_custom=is_custom,
    )
    link.question = question
    db.add(link)
    db.flush()
    return link


def get_assessment_questions(db: Session, assessment_id: UUID) -> list[AssessmentQuestion]:
    return list(
        db.scalars(
            select(AssessmentQuestion)
            .where(AssessmentQuestion.assessment_id == assessment_id)
            .options(joinedload(AssessmentQuestion.question))
            .order_by(AssessmentQuestion.order.asc())
        ).all()
    )


def project_question(link: AssessmentQuestion, *, include_answer: bool) -> dict[str, Any]:
    payload = {
        'id': link.question.id,
        'question': link.question.question,
        'options': link.question.options,
        'categories': link.question.categories,
        'order': link.order,
        'is_custom': link.is_custom,
    }
    if include_answer:
        payload['answer'] = link.question.answer
    return payload


def _get_assessment(db: Session, assessment_id: UUID) -> Assessment:
    assessment = db.get(Assessment, assessment_id)
    if not assessment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Assessment not found')
    return assessment


def add_or_update_question(
    db: Session,
    *,
    assessment_id: UUID,
    payload: dict[str, Any],
    principal: Principal,
    permission: SchoolAdminPermission = SchoolAdminPermission.UPDATE_ASSESSMENT,
) -> tuple[AssessmentQuestion, bool]:
    """
    Update a bank question attached to the assessment, or create and attach a new one.

    Returns the attachment and whether a new attachment row was created.
    """
    assessment = _get_assessment(db, assessment_id)
    authorize(db, principal, assessment.school_id, permission)

    question_id = payload.get('id')
    if question_id:
        question = get_bank_question(db, question_id)
        update_bank_question(db, question=question, payload=payload, actor_id=principal.id)
        link = get_attachment(db, assessment_id=assessment.id, question_id=question.id)
        if link:
            return link, False
        return attach_question(db, assessment_id=assessment.id, question=question, is_custom=False), True

    question = create_bank_question(db, payload=payload, actor_id=principal.id)
    return attach_question(db, assessment_id=assessment.id, question=question, is_custom=True), True


def remove_question(
    db: Session,
    *,
    assessment_id: UUID,
    question_id: UUID,
    principal: Principal,
    permission: SchoolAdminPermission = SchoolAdminPermission.UPDATE_ASSESSMENT,
) -> None:
    """Detach a question; the bank entry itself is kept. Remaining orders keep their gaps."""
    assessment = _get_assessment(db, assessment_id)
    authorize(db, principal, assessment.school_id, permission)

    link = get_attachment(db, assessment_id=assessment.id, question_id=question_id)
    if not link:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Question not attached to assessment')
    db.delete(link)
    db.flush()


def view_assessment_questions(
    db: Session,
    *,
    assessment_id: UUID,
    page: int,
    page_size: int,
    query: str | None,
    categories: list[str] | None,
    principal: Principal,
) -> tuple[list[dict[str, Any]], int]:
    """
    Question list without answers.

    Learners must be assigned to the assessment. Admins follow the same visibility
    rule as the single-assessment view, so restricted admins wait for the start date.
    """
    assessment = _get_assessment(db, assessment_id)

    if principal.is_admin:
        if not can_view_questions(db, principal, assessment):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Questions are not visible yet')
    else:
        learner_id = principal.user_id
        assigned = db.scalar(
            select(AssessmentTaker.id).where(
                AssessmentTaker.assessment_id == assessment.id, AssessmentTaker.user_id == learner_id
            )
        )
        if not assigned:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Not assigned to this assessment')

    base = (
        select(AssessmentQuestion)
        .join(AssessmentQuestion.question)
        .where(AssessmentQuestion.assessment_id == assessment.id)
    )
    if query:
        base = base.where(QuestionBankEntry.question.ilike(f'%{query}%'))
    if categories:
        base = base.where(categories_filter(db, QuestionBankEntry.categories, categories))

    total = db.scalar(select(func.count()).select_from(base.subquery()))
    links = db.scalars(
        base.options(joinedload(AssessmentQuestion.question))
        .order_by(AssessmentQuestion.order.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    ).all()
    return [project_question(link, include_answer=False) for link in links], int(total or 0)
