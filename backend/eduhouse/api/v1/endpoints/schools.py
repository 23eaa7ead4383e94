from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from eduhouse.access.permissions import require_admin, school_code
from eduhouse.access.principal import Principal
from eduhouse.db.session import get_db
from eduhouse.models.school import SchoolTeacher
from eduhouse.schemas.school import SchoolMemberOut, SchoolMemberUpsert, SchoolMemberUpsertOut
from eduhouse.services import school_service


router = APIRouter(prefix='/schools', tags=['schools'])


def _to_member_out(member: SchoolTeacher) -> SchoolMemberOut:
    return SchoolMemberOut(
        school_id=member.school_id,
        school_code=school_code(member.school_id),
        user_id=member.user_id,
        is_teaching_staff=member.is_teaching_staff,
        is_active=member.is_active,
        class_assigned=member.class_assigned,
    )


@router.put('/{school_ref}/members/{user_id}', response_model=SchoolMemberUpsertOut)
def upsert_member(
    school_ref: str,
    user_id: UUID,
    payload: SchoolMemberUpsert,
    response: Response,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin()),
) -> SchoolMemberUpsertOut:
    member, created = school_service.upsert_member(
        db, school_ref=school_ref, user_id=user_id, payload=payload.model_dump(), principal=principal
    )
    db.commit()
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return SchoolMemberUpsertOut(created=created, member=_to_member_out(member))


@router.delete('/{school_ref}/members/{user_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_member(
    school_ref: str,
    user_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin()),
) -> Response:
    school_service.delete_member(db, school_ref=school_ref, user_id=user_id, principal=principal)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
