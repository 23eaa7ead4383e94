"""schools, identities and the assessment engine tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = '0001_initial'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _actors() -> list[sa.Column]:
    return [
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('updated_by', postgresql.UUID(as_uuid=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'schools',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('registration_id', sa.String(length=100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        *_timestamps(),
        sa.UniqueConstraint('registration_id'),
    )
    op.create_index('ix_schools_registration_id', 'schools', ['registration_id'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'admins',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('is_super_admin', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        *_timestamps(),
    )
    op.create_index('ix_admins_email', 'admins', ['email'], unique=True)

    op.create_table(
        'school_teachers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('school_id', sa.Integer(), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('is_teaching_staff', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('class_assigned', sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('school_id', 'user_id', name='uq_school_teachers_school_user'),
    )
    op.create_index('ix_school_teachers_school_staff', 'school_teachers', ['school_id', 'is_teaching_staff'])
    op.create_index('ix_school_teachers_user_id', 'school_teachers', ['user_id'])

    op.create_table(
        'school_admins',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('admin_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='guest'),
        sa.Column(
            'restrictions', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[]'::jsonb")
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(['admin_id'], ['admins.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('admin_id', 'school_id', name='uq_school_admins_admin_school'),
        sa.CheckConstraint("role in ('owner', 'admin', 'guest')", name='school_admin_role_values'),
    )
    op.create_index('ix_school_admins_school_id', 'school_admins', ['school_id'])

    op.create_table(
        'question_bank',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('options', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('answer', sa.String(length=50), nullable=False),
        sa.Column(
            'categories', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[]'::jsonb")
        ),
        *_timestamps(),
        *_actors(),
    )

    op.create_table(
        'assessments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column(
            'categories', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[]'::jsonb")
        ),
        sa.Column('school_id', sa.Integer(), nullable=False),
        sa.Column('target_audience', sa.String(length=20), nullable=False, server_default='all'),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('is_gradable', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('pass_mark', sa.Float(), nullable=False, server_default='50'),
        *_timestamps(),
        *_actors(),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ondelete='CASCADE'),
        sa.CheckConstraint(
            "target_audience in ('all', 'teaching', 'non_teaching', 'specific')",
            name='assessment_target_audience_values',
        ),
        sa.CheckConstraint('pass_mark >= 0 and pass_mark <= 100', name='assessment_pass_mark_range'),
        sa.CheckConstraint('duration > 0', name='assessment_duration_positive'),
    )
    op.create_index('ix_assessments_name', 'assessments', ['name'])
    op.create_index('ix_assessments_school_id', 'assessments', ['school_id'])
    op.create_index('ix_assessments_target_audience', 'assessments', ['target_audience'])

    op.create_table(
        'assessment_questions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('assessment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('question_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('is_custom', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        *_timestamps(),
        sa.ForeignKeyConstraint(['assessment_id'], ['assessments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['question_id'], ['question_bank.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('assessment_id', 'question_id', name='uq_assessment_questions_question'),
        sa.UniqueConstraint('assessment_id', 'order', name='uq_assessment_questions_order'),
    )
    op.create_index('ix_assessment_questions_assessment_id', 'assessment_questions', ['assessment_id'])

    op.create_table(
        'assessment_takers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('assessment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('answers', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('results', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        *_actors(),
        sa.ForeignKeyConstraint(['assessment_id'], ['assessments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('assessment_id', 'user_id', name='uq_assessment_takers_assessment_user'),
        sa.CheckConstraint("status in ('pending', 'ongoing', 'completed')", name='assessment_taker_status_values'),
    )
    op.create_index('ix_assessment_takers_assessment_id', 'assessment_takers', ['assessment_id'])
    op.create_index('ix_assessment_takers_user_id', 'assessment_takers', ['user_id'])
    op.create_index('ix_assessment_takers_status', 'assessment_takers', ['status'])
    # grading scans completed takers that have no results yet
    op.create_index(
        'ix_assessment_takers_ungraded',
        'assessment_takers',
        ['assessment_id'],
        postgresql_where=sa.text("status = 'completed' AND results IS NULL"),
    )

    op.create_table(
        'audit_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('actor_kind', sa.String(length=20), nullable=True),
        sa.Column('action', sa.String(length=150), nullable=False),
        sa.Column('entity_type', sa.String(length=120), nullable=False),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='success'),
        sa.Column('details', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_audit_log_action', 'audit_log', ['action'])
    op.create_index('ix_audit_log_actor_id', 'audit_log', ['actor_id'])
    op.create_index('ix_audit_log_entity_type', 'audit_log', ['entity_type'])


def downgrade() -> None:
    for table in [
        'audit_log',
        'assessment_takers',
        'assessment_questions',
        'assessments',
        'question_bank',
        'school_admins',
        'school_teachers',
        'admins',
        'users',
        'schools',
    ]:
        op.drop_table(table)
