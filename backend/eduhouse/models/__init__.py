from eduhouse.models.assessment import Assessment, AssessmentQuestion, AssessmentTaker, QuestionBankEntry
from eduhouse.models.audit import AuditLog
from eduhouse.models.rbac import Admin, SchoolAdmin, User
from eduhouse.models.school import School, SchoolTeacher

__all__ = [
    'Admin',
    'Assessment',
    'AssessmentQuestion',
    'AssessmentTaker',
    'AuditLog',
    'QuestionBankEntry',
    'School',
    'SchoolAdmin',
    'SchoolTeacher',
    'User',
]
