from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from eduhouse.access.permissions import SchoolAdminPermission, authorize, resolve_school
from eduhouse.access.principal import Principal
from eduhouse.models.rbac import User
from eduhouse.models.school import SchoolTeacher
from eduhouse.services import audit_service


def get_member(db: Session, *, school_id: int, user_id: UUID) -> SchoolTeacher | None:
    return db.scalar(
        select(SchoolTeacher).where(SchoolTeacher.school_id == school_id, SchoolTeacher.user_id == user_id)
    )


def upsert_member(
    db: Session,
    *,
    school_ref: int | str,
    user_id: UUID,
    payload: dict[str, Any],
    principal: Principal,
) -> tuple[SchoolTeacher, bool]:
    """Add a user to a school's staff, or update the existing membership."""
    school = resolve_school(db, school_ref)
    if not db.get(User, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

    member = get_member(db, school_id=school.id, user_id=user_id)
    created = member is None
    permission = SchoolAdminPermission.CREATE_TEACHER if created else SchoolAdminPermission.UPDATE_TEACHER
    authorize(db, principal, school.id, permission)

    if created:
        member = SchoolTeacher(school_id=school.id, user_id=user_id)
        db.add(member)
    member.is_teaching_staff = payload.get('is_teaching_staff', True)
    member.is_active = payload.get('is_active', True)
    member.class_assigned = payload.get('class_assigned')
    db.flush()

    audit_service.log_action(
        db,
        actor=principal,
        action='school_member_created' if created else 'school_member_updated',
        entity_type='school_teacher',
        entity_id=member.id,
        details={'school_id': school.id, 'user_id': user_id},
    )
    return member, created


def delete_member(db: Session, *, school_ref: int | str, user_id: UUID, principal: Principal) -> None:
    school = authorize(db, principal, school_ref, SchoolAdminPermission.DELETE_TEACHER)
    member = get_member(db, school_id=school.id, user_id=user_id)
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='School member not found')

    audit_service.log_action(
        db,
        actor=principal,
        action='school_member_deleted',
        entity_type='school_teacher',
        entity_id=member.id,
        details={'school_id': school.id, 'user_id': user_id},
    )
    db.delete(member)
    db.flush()
