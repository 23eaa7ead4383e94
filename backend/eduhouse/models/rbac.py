import uuid
from typing import Any

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eduhouse.db.base_class import Base
from eduhouse.models.constants import SCHOOL_ADMIN_ROLE_SQL
from eduhouse.models.mixins import JSONType, TimestampMixin, UUIDPrimaryKeyMixin


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = 'users'

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Admin(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = 'admins'

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    is_super_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    school_roles: Mapped[list['SchoolAdmin']] = relationship(back_populates='admin', cascade='all, delete-orphan')


class SchoolAdmin(TimestampMixin, Base):
    __tablename__ = 'school_admins'
    __table_args__ = (
        UniqueConstraint('admin_id', 'school_id', name='uq_school_admins_admin_school'),
        CheckConstraint(f'role in ({SCHOOL_ADMIN_ROLE_SQL})', name='school_admin_role_values'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    admin_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('admins.id', ondelete='CASCADE'), nullable=False
    )
    school_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('schools.id', ondelete='CASCADE'), nullable=False
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, default='guest')
    restrictions: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)

    admin: Mapped['Admin'] = relationship(back_populates='school_roles')


Index('ix_school_admins_school_id', SchoolAdmin.school_id)
