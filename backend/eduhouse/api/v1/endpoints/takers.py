from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from eduhouse.access.permissions import require_admin
from eduhouse.access.principal import Principal
from eduhouse.api.deps import get_current_principal
from eduhouse.db.session import get_db
from eduhouse.schemas.assessment import (
    TakerAssign,
    TakerListResponse,
    TakerOut,
    TakerStatus,
    TakerSubmit,
    TakerUpdate,
)
from eduhouse.schemas.common import PaginationMeta
from eduhouse.services import taker_service


router = APIRouter(prefix='/takers', tags=['takers'])


@router.post('', response_model=TakerOut, status_code=status.HTTP_201_CREATED)
def assign_taker(
    payload: TakerAssign,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin()),
) -> TakerOut:
    taker = taker_service.assign_taker(
        db, assessment_id=payload.assessment_id, user_id=payload.user_id, principal=principal
    )
    db.commit()
    return TakerOut.model_validate(taker)


@router.get('', response_model=TakerListResponse)
def list_takers(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    assessment_id: UUID | None = Query(default=None),
    user_id: UUID | None = Query(default=None),
    status_filter: TakerStatus | None = Query(default=None, alias='status'),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TakerListResponse:
    items, total = taker_service.list_takers(
        db,
        principal=principal,
        page=page,
        page_size=page_size,
        assessment_id=assessment_id,
        user_id=user_id,
        status_filter=status_filter,
    )
    return TakerListResponse(
        items=[TakerOut.model_validate(item) for item in items],
        meta=PaginationMeta(page=page, page_size=page_size, total=total),
    )


@router.get('/{taker_id}', response_model=TakerOut)
def get_taker(
    taker_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TakerOut:
    return TakerOut.model_validate(taker_service.get_taker_for(db, taker_id=taker_id, principal=principal))


@router.post('/{taker_id}/start', response_model=TakerOut)
def start_taker(
    taker_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TakerOut:
    taker = taker_service.start_taker(db, taker_id=taker_id, principal=principal)
    db.commit()
    return TakerOut.model_validate(taker)


@router.post('/{taker_id}/submit', response_model=TakerOut)
def submit_taker(
    taker_id: UUID,
    payload: TakerSubmit,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TakerOut:
    taker = taker_service.submit_taker(
        db,
        taker_id=taker_id,
        answers=[item.model_dump() for item in payload.answers],
        principal=principal,
    )
    db.commit()
    return TakerOut.model_validate(taker)


@router.patch('/{taker_id}', response_model=TakerOut)
def update_taker(
    taker_id: UUID,
    payload: TakerUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin()),
) -> TakerOut:
    taker = taker_service.update_taker(
        db, taker_id=taker_id, payload=payload.model_dump(exclude_unset=True), principal=principal
    )
    db.commit()
    return TakerOut.model_validate(taker)


@router.delete('/{taker_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_taker(
    taker_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin()),
) -> Response:
    taker_service.delete_taker(db, taker_id=taker_id, principal=principal)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
