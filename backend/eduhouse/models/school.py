import uuid

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eduhouse.db.base_class import Base
from eduhouse.models.mixins import TimestampMixin


class School(TimestampMixin, Base):
    __tablename__ = 'schools'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    registration_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    members: Mapped[list['SchoolTeacher']] = relationship(back_populates='school', cascade='all, delete-orphan')


class SchoolTeacher(TimestampMixin, Base):
    __tablename__ = 'school_teachers'
    __table_args__ = (UniqueConstraint('school_id', 'user_id', name='uq_school_teachers_school_user'),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    school_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('schools.id', ondelete='CASCADE'), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False
    )
    is_teaching_staff: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    class_assigned: Mapped[str | None] = mapped_column(String(100), nullable=True)

    school: Mapped['School'] = relationship(back_populates='members')


Index('ix_school_teachers_school_staff', SchoolTeacher.school_id, SchoolTeacher.is_teaching_staff)
Index('ix_school_teachers_user_id', SchoolTeacher.user_id)
