import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eduhouse.db.base_class import Base
from eduhouse.models.constants import TAKER_STATUS_SQL, TARGET_AUDIENCE_SQL
from eduhouse.models.mixins import AuditUserMixin, JSONType, NullableJSONType, TimestampMixin, UUIDPrimaryKeyMixin


class QuestionBankEntry(UUIDPrimaryKeyMixin, TimestampMixin, AuditUserMixin, Base):
    __tablename__ = 'question_bank'

    question: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    answer: Mapped[str] = mapped_column(String(50), nullable=False)
    categories: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)


class Assessment(UUIDPrimaryKeyMixin, TimestampMixin, AuditUserMixin, Base):
    __tablename__ = 'assessments'
    __table_args__ = (
        CheckConstraint(f'target_audience in ({TARGET_AUDIENCE_SQL})', name='assessment_target_audience_values'),
        CheckConstraint('pass_mark >= 0 and pass_mark <= 100', name='assessment_pass_mark_range'),
        CheckConstraint('duration > 0', name='assessment_duration_positive'),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    categories: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    school_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('schools.id', ondelete='CASCADE'), nullable=False
    )
    target_audience: Mapped[str] = mapped_column(String(20), nullable=False, default='all')
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    is_gradable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    pass_mark: Mapped[float] = mapped_column(Float, nullable=False, default=50.0)

    question_links: Mapped[list['AssessmentQuestion']] = relationship(
        back_populates='assessment',
        cascade='all, delete-orphan',
        order_by='AssessmentQuestion.order',
    )
    takers: Mapped[list['AssessmentTaker']] = relationship(
        back_populates='assessment', cascade='all, delete-orphan'
    )

    @property
    def grading(self) -> dict[str, Any]:
        return {'is_gradable': self.is_gradable, 'pass_mark': self.pass_mark}


class AssessmentQuestion(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = 'assessment_questions'
    __table_args__ = (
        UniqueConstraint('assessment_id', 'question_id', name='uq_assessment_questions_question'),
        UniqueConstraint('assessment_id', 'order', name='uq_assessment_questions_order'),
    )

    assessment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('assessments.id', ondelete='CASCADE'), nullable=False
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('question_bank.id', ondelete='CASCADE'), nullable=False
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    is_custom: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    assessment: Mapped['Assessment'] = relationship(back_populates='question_links')
    question: Mapped['QuestionBankEntry'] = relationship()


class AssessmentTaker(UUIDPrimaryKeyMixin, TimestampMixin, AuditUserMixin, Base):
    __tablename__ = 'assessment_takers'
    __table_args__ = (
        UniqueConstraint('assessment_id', 'user_id', name='uq_assessment_takers_assessment_user'),
        CheckConstraint(f'status in ({TAKER_STATUS_SQL})', name='assessment_taker_status_values'),
    )

    assessment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('assessments.id', ondelete='CASCADE'), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default='pending', index=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    answers: Mapped[list[dict[str, Any]] | None] = mapped_column(NullableJSONType, nullable=True)
    results: Mapped[dict[str, Any] | None] = mapped_column(NullableJSONType, nullable=True)

    assessment: Mapped['Assessment'] = relationship(back_populates='takers')


Index('ix_assessments_school_id', Assessment.school_id)
Index('ix_assessments_target_audience', Assessment.target_audience)
Index('ix_assessment_questions_assessment_id', AssessmentQuestion.assessment_id)
Index('ix_assessment_takers_assessment_id', AssessmentTaker.assessment_id)
Index('ix_assessment_takers_user_id', AssessmentTaker.user_id)
Index(
    'ix_assessment_takers_ungraded',
    AssessmentTaker.assessment_id,
    postgresql_where=text("status = 'completed' AND results IS NULL"),
)
