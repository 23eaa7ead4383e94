from eduhouse.services import (
    assessment_service,
    audience_service,
    audit_service,
    bootstrap_service,
    grading_service,
    question_service,
    school_service,
    taker_service,
)

__all__ = [
    'assessment_service',
    'audience_service',
    'audit_service',
    'bootstrap_service',
    'grading_service',
    'question_service',
    'school_service',
    'taker_service',
]
