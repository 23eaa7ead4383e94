from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from eduhouse.access.permissions import require_admin
from eduhouse.access.principal import Principal
from eduhouse.api.deps import get_optional_principal
from eduhouse.db.session import get_db
from eduhouse.schemas.assessment import (
    AssessmentCreate,
    AssessmentDetailOut,
    AssessmentListResponse,
    AssessmentOut,
    AssessmentUpdate,
    GradingSummaryOut,
    TargetAudience,
)
from eduhouse.schemas.common import PaginationMeta
from eduhouse.services import assessment_service, grading_service


router = APIRouter(prefix='/assessments', tags=['assessments'])


@router.post('', response_model=AssessmentOut, status_code=status.HTTP_201_CREATED)
def create_assessment(
    payload: AssessmentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin()),
) -> AssessmentOut:
    assessment = assessment_service.create_assessment(db, payload=payload.model_dump(), principal=principal)
    db.commit()
    return AssessmentOut.model_validate(assessment)


@router.get('', response_model=AssessmentListResponse)
def list_assessments(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    query: str | None = Query(default=None, alias='q'),
    school_id: str | None = Query(default=None),
    target_audience: TargetAudience | None = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin()),
) -> AssessmentListResponse:
    items, total = assessment_service.list_assessments(
        db,
        principal=principal,
        page=page,
        page_size=page_size,
        query=query,
        school_ref=school_id,
        target_audience=target_audience,
    )
    return AssessmentListResponse(
        items=[AssessmentOut.model_validate(item) for item in items],
        meta=PaginationMeta(page=page, page_size=page_size, total=total),
    )


@router.get('/{assessment_id}', response_model=AssessmentDetailOut)
def get_assessment(
    assessment_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal | None = Depends(get_optional_principal),
) -> AssessmentDetailOut:
    assessment, questions = assessment_service.view_single_assessment(
        db, assessment_id=assessment_id, principal=principal
    )
    base = AssessmentOut.model_validate(assessment).model_dump()
    return AssessmentDetailOut(**base, questions=questions)


@router.patch('/{assessment_id}', response_model=AssessmentOut)
def update_assessment(
    assessment_id: UUID,
    payload: AssessmentUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin()),
) -> AssessmentOut:
    assessment = assessment_service.update_assessment(
        db, assessment_id=assessment_id, payload=payload.model_dump(exclude_unset=True), principal=principal
    )
    db.commit()
    return AssessmentOut.model_validate(assessment)


@router.delete('/{assessment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_assessment(
    assessment_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin()),
) -> Response:
    assessment_service.delete_assessment(db, assessment_id=assessment_id, principal=principal)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post('/{assessment_id}/grade', response_model=GradingSummaryOut)
def grade_assessment(
    assessment_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin()),
) -> GradingSummaryOut:
    summary = grading_service.grade_assessment(db, assessment_id=assessment_id, principal=principal)
    db.commit()
    return GradingSummaryOut(**summary)
