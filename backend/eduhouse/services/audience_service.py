import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from eduhouse.models.assessment import Assessment, AssessmentTaker
from eduhouse.models.school import SchoolTeacher


logger = logging.getLogger(__name__)

STAFF_FILTERS: dict[str, bool | None] = {
    'all': None,
    'teaching': True,
    'non_teaching': False,
}


def resolve_audience(db: Session, assessment: Assessment) -> list[UUID]:
    """Users of the assessment's school that fall inside its target audience."""
    if assessment.target_audience not in STAFF_FILTERS:
        return []

    query = select(SchoolTeacher.user_id).where(
        SchoolTeacher.school_id == assessment.school_id,
        SchoolTeacher.is_active.is_(True),
    )
    staff_flag = STAFF_FILTERS[assessment.target_audience]
    if staff_flag is not None:
        query = query.where(SchoolTeacher.is_teaching_staff.is_(staff_flag))

    return list(db.scalars(query.order_by(SchoolTeacher.id)).all())


def assign_audience(db: Session, assessment: Assessment) -> int:
    """
    Create pending takers for every member of the target audience.

    A one-shot snapshot: members who join the school later are not picked up.
    Rows are only flushed; the caller's transaction decides whether they persist.
    """
    if assessment.target_audience == 'specific':
        return 0

    user_ids = resolve_audience(db, assessment)
    db.add_all(
        [
            AssessmentTaker(
                assessment_id=assessment.id,
                user_id=user_id,
                status='pending',
                created_by=assessment.created_by,
                updated_by=assessment.created_by,
            )
            for user_id in user_ids
        ]
    )
    db.flush()
    logger.info(
        'Assigned assessment %s to %d users (audience=%s)',
        assessment.id,
        len(user_ids),
        assessment.target_audience,
    )
    return len(user_ids)
