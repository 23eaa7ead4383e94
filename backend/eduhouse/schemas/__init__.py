from eduhouse.schemas.assessment import (
    AssessmentCreate,
    AssessmentDetailOut,
    AssessmentListResponse,
    AssessmentOut,
    AssessmentQuestionListResponse,
    AssessmentQuestionUpsertOut,
    AssessmentUpdate,
    GradingSummaryOut,
    QuestionBankListResponse,
    QuestionBankOut,
    QuestionPayload,
    TakerAssign,
    TakerListResponse,
    TakerOut,
    TakerSubmit,
    TakerUpdate,
)
from eduhouse.schemas.school import SchoolMemberOut, SchoolMemberUpsert, SchoolMemberUpsertOut

__all__ = [
    'AssessmentCreate',
    'AssessmentDetailOut',
    'AssessmentListResponse',
    'AssessmentOut',
    'AssessmentQuestionListResponse',
    'AssessmentQuestionUpsertOut',
    'AssessmentUpdate',
    'GradingSummaryOut',
    'QuestionBankListResponse',
    'QuestionBankOut',
    'QuestionPayload',
    'SchoolMemberOut',
    'SchoolMemberUpsert',
    'SchoolMemberUpsertOut',
    'TakerAssign',
    'TakerListResponse',
    'TakerOut',
    'TakerSubmit',
    'TakerUpdate',
]
