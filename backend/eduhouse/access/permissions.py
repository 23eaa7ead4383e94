from __future__ import annotations

import enum
import re
from collections.abc import Callable
from datetime import datetime

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from eduhouse.access.principal import Principal
from eduhouse.api.deps import get_current_principal
from eduhouse.core.config import settings
from eduhouse.core.dates import has_passed
from eduhouse.models.assessment import Assessment
from eduhouse.models.rbac import SchoolAdmin
from eduhouse.models.school import School


class SchoolAdminPermission(str, enum.Enum):
    CREATE_ASSESSMENT = 'CREATE_ASSESSMENT'
    UPDATE_ASSESSMENT = 'UPDATE_ASSESSMENT'
    DELETE_ASSESSMENT = 'DELETE_ASSESSMENT'
    VIEW_ASSESSMENT = 'VIEW_ASSESSMENT'
    GRADE_ASSESSMENT = 'GRADE_ASSESSMENT'
    CREATE_TEACHER = 'CREATE_TEACHER'
    UPDATE_TEACHER = 'UPDATE_TEACHER'
    DELETE_TEACHER = 'DELETE_TEACHER'


OWNER_ROLE = 'owner'


def school_code(school_id: int) -> str:
    return f'{settings.SCHOOL_CODE_PREFIX}{school_id + settings.SCHOOL_CODE_OFFSET}'


def parse_school_ref(school_ref: int | str) -> int | None:
    """
    Turn a school id or business code into a primary key.

    Accepts ``42``, ``'42'`` or ``'SCH10042'`` (prefix is case-insensitive).
    Returns ``None`` when the reference cannot name any school.
    """
    if isinstance(school_ref, int):
        return school_ref
    raw = str(school_ref or '').strip()
    if raw.isdigit():
        return int(raw)
    match = re.fullmatch(rf'{re.escape(settings.SCHOOL_CODE_PREFIX)}(\d+)', raw, flags=re.IGNORECASE)
    if not match:
        return None
    school_id = int(match.group(1)) - settings.SCHOOL_CODE_OFFSET
    return school_id if school_id > 0 else None


def resolve_school(db: Session, school_ref: int | str) -> School:
    school_id = parse_school_ref(school_ref)
    school = db.get(School, school_id) if school_id is not None else None
    if not school:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='School not found')
    return school


def get_school_admin(db: Session, *, admin_id, school_id: int) -> SchoolAdmin | None:
    return db.scalar(
        select(SchoolAdmin).where(SchoolAdmin.admin_id == admin_id, SchoolAdmin.school_id == school_id)
    )


def is_restricted(record: SchoolAdmin, permission: SchoolAdminPermission | str) -> bool:
    if record.role == OWNER_ROLE:
        return False
    tag = permission.value if isinstance(permission, SchoolAdminPermission) else str(permission)
    return tag in set(record.restrictions or [])


def authorize(
    db: Session,
    principal: Principal,
    school_ref: int | str,
    permission: SchoolAdminPermission,
) -> School:
    school = resolve_school(db, school_ref)
    if principal.is_super_admin:
        return school
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Admin access required')

    record = get_school_admin(db, admin_id=principal.id, school_id=school.id)
    if not record:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Not an admin of this school')
    if is_restricted(record, permission):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f'Action restricted: {permission.value}',
        )
    return school


def can_view_questions(
    db: Session,
    principal: Principal | None,
    assessment: Assessment,
    *,
    now: datetime | None = None,
) -> bool:
    """
    Question visibility on the single-assessment read path.

    Super-admins always see questions. A school admin sees them when not restricted
    from VIEW_ASSESSMENT, or once the assessment window has opened. Learners and
    anonymous callers never get them here.
    """
    if principal is None or not principal.is_admin:
        return False
    if principal.is_super_admin:
        return True
    record = get_school_admin(db, admin_id=principal.id, school_id=assessment.school_id)
    if not record:
        return False
    if not is_restricted(record, SchoolAdminPermission.VIEW_ASSESSMENT):
        return True
    return has_passed(assessment.start_date, now=now)


def require_admin() -> Callable:
    def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Admin access required')
        return principal

    return checker
