from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from eduhouse.core.dates import to_display
from eduhouse.schemas.common import BaseSchema, PaginationMeta, UTCDateTime


TargetAudience = Literal['all', 'teaching', 'non_teaching', 'specific']
TakerStatus = Literal['pending', 'ongoing', 'completed']


class QuestionOption(BaseModel):
    option: str = Field(min_length=1, max_length=50)
    text: str = Field(min_length=1)


class QuestionPayload(BaseModel):
    """
    A question attached to an assessment.

    With ``id`` it refers to an existing bank entry (and, on upsert, updates the fields
    provided); without ``id`` it is a full inline question that becomes a new bank entry.
    """

    id: UUID | None = None
    question: str | None = Field(default=None, min_length=1)
    options: list[QuestionOption] | None = None
    answer: str | None = Field(default=None, min_length=1)
    categories: list[str] | None = None


class QuestionBankOut(BaseSchema):
    id: UUID
    question: str
    options: list[QuestionOption]
    answer: str
    categories: list[str]
    created_at: UTCDateTime
    updated_at: UTCDateTime


class QuestionBankListResponse(BaseModel):
    items: list[QuestionBankOut]
    meta: PaginationMeta


class AssessmentQuestionOut(BaseModel):
    id: UUID
    question: str
    options: list[QuestionOption]
    categories: list[str]
    order: int
    is_custom: bool


class AssessmentQuestionAdminOut(AssessmentQuestionOut):
    answer: str


class AssessmentQuestionListResponse(BaseModel):
    items: list[AssessmentQuestionOut]
    meta: PaginationMeta


class AssessmentQuestionUpsertOut(BaseModel):
    created: bool
    question: AssessmentQuestionAdminOut


class GradingSettings(BaseModel):
    is_gradable: bool = True
    pass_mark: float | None = None


class AssessmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    categories: list[str] = Field(default_factory=list)
    school_id: int | str
    target_audience: TargetAudience = 'all'
    start_date: UTCDateTime | None = None
    duration: int
    grading: GradingSettings | None = None
    questions: list[QuestionPayload] = Field(default_factory=list)


class AssessmentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    categories: list[str] | None = None
    target_audience: TargetAudience | None = None
    start_date: UTCDateTime | None = None
    duration: int | None = None
    grading: GradingSettings | None = None


class AssessmentOut(BaseSchema):
    id: UUID
    name: str
    description: str | None
    categories: list[str]
    school_id: int
    target_audience: TargetAudience
    start_date: UTCDateTime | None
    duration: int
    grading: GradingSettings
    created_at: UTCDateTime
    updated_at: UTCDateTime


class AssessmentDetailOut(AssessmentOut):
    questions: list[AssessmentQuestionAdminOut] | None = None


class AssessmentListResponse(BaseModel):
    items: list[AssessmentOut]
    meta: PaginationMeta


class TakerAnswer(BaseModel):
    question_id: UUID
    answer: str


class TakerResults(BaseModel):
    score: float
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    unanswered: int
    passed: bool


class TakerAssign(BaseModel):
    assessment_id: UUID
    user_id: UUID


class TakerSubmit(BaseModel):
    answers: list[TakerAnswer] = Field(default_factory=list)


class TakerUpdate(BaseModel):
    status: TakerStatus | None = None
    started_at: UTCDateTime | None = None
    completed_at: UTCDateTime | None = None
    answers: list[TakerAnswer] | None = None
    results: TakerResults | None = None


class TakerOut(BaseSchema):
    id: UUID
    assessment_id: UUID
    user_id: UUID
    status: TakerStatus
    started_at: UTCDateTime | None
    completed_at: UTCDateTime | None
    answers: list[TakerAnswer] | None
    results: TakerResults | None
    created_at: UTCDateTime
    updated_at: UTCDateTime

    @computed_field
    @property
    def started_at_local(self) -> str | None:
        return to_display(self.started_at)

    @computed_field
    @property
    def completed_at_local(self) -> str | None:
        return to_display(self.completed_at)


class TakerListResponse(BaseModel):
    items: list[TakerOut]
    meta: PaginationMeta


class GradingSummaryOut(BaseModel):
    assessment_id: UUID
    graded_count: int
    total_count: int