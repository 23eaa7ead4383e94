from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from eduhouse.access.permissions import require_admin
from eduhouse.access.principal import Principal
from eduhouse.api.deps import get_current_principal
from eduhouse.db.session import get_db
from eduhouse.schemas.assessment import (
    AssessmentQuestionAdminOut,
    AssessmentQuestionListResponse,
    AssessmentQuestionOut,
    AssessmentQuestionUpsertOut,
    QuestionBankListResponse,
    QuestionBankOut,
    QuestionPayload,
)
from eduhouse.schemas.common import PaginationMeta
from eduhouse.services import audit_service, question_service


router = APIRouter(tags=['questions'])


def _split_csv(value: str | None) -> list[str] | None:
    if not value:
        return None
    items = [part.strip() for part in value.split(',') if part.strip()]
    return items or None


@router.get('/question-bank', response_model=QuestionBankListResponse)
def list_bank_questions(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    query: str | None = Query(default=None, alias='q'),
    category: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin()),
) -> QuestionBankListResponse:
    items, total = question_service.list_bank_questions(
        db, page=page, page_size=page_size, query=query, categories=_split_csv(category)
    )
    return QuestionBankListResponse(
        items=[QuestionBankOut.model_validate(item) for item in items],
        meta=PaginationMeta(page=page, page_size=page_size, total=total),
    )


@router.get('/question-bank/{question_id}', response_model=QuestionBankOut)
def get_bank_question(
    question_id: UUID,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin()),
) -> QuestionBankOut:
    return QuestionBankOut.model_validate(question_service.get_bank_question(db, question_id))


@router.get('/assessments/{assessment_id}/questions', response_model=AssessmentQuestionListResponse)
def list_assessment_questions(
    assessment_id: UUID,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=100),
    query: str | None = Query(default=None, alias='q'),
    category: str | None = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> AssessmentQuestionListResponse:
    items, total = question_service.view_assessment_questions(
        db,
        assessment_id=assessment_id,
        page=page,
        page_size=page_size,
        query=query,
        categories=_split_csv(category),
        principal=principal,
    )
    return AssessmentQuestionListResponse(
        items=[AssessmentQuestionOut(**item) for item in items],
        meta=PaginationMeta(page=page, page_size=page_size, total=total),
    )


@router.put('/assessments/{assessment_id}/questions', response_model=AssessmentQuestionUpsertOut)
def upsert_assessment_question(
    assessment_id: UUID,
    payload: QuestionPayload,
    response: Response,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin()),
) -> AssessmentQuestionUpsertOut:
    link, created = question_service.add_or_update_question(
        db, assessment_id=assessment_id, payload=payload.model_dump(exclude_unset=True), principal=principal
    )
    audit_service.log_action(
        db,
        actor=principal,
        action='assessment_question_attached' if created else 'assessment_question_updated',
        entity_type='assessment_question',
        entity_id=link.question_id,
        details={'assessment_id': assessment_id, 'order': link.order},
    )
    db.commit()
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return AssessmentQuestionUpsertOut(
        created=created,
        question=AssessmentQuestionAdminOut(**question_service.project_question(link, include_answer=True)),
    )


@router.delete('/assessments/{assessment_id}/questions/{question_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_assessment_question(
    assessment_id: UUID,
    question_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin()),
) -> Response:
    question_service.remove_question(db, assessment_id=assessment_id, question_id=question_id, principal=principal)
    audit_service.log_action(
        db,
        actor=principal,
        action='assessment_question_detached',
        entity_type='assessment_question',
        entity_id=question_id,
        details={'assessment_id': assessment_id},
    )
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
