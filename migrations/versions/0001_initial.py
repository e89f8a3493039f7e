"""initial tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_ONLY = sa.text("status = 'active'")


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(64), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(16), nullable=False),
        sa.Column('is_active_flag', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('sections',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('section_name', sa.String(100), nullable=False),
        sa.Column('grade_level', sa.String(32), nullable=False),
        sa.Column('school_year', sa.String(16), nullable=True),
        sa.Column('course', sa.String(100), nullable=True),
        sa.Column('major', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_sections_section_name', 'sections', ['section_name'], unique=True)

    op.create_table('subjects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('subject_code', sa.String(50), nullable=False),
        sa.Column('subject_name', sa.String(255), nullable=False),
        sa.Column('units', sa.Numeric(4, 1), nullable=False),
        sa.Column('course', sa.String(100), nullable=False),
        sa.Column('major', sa.String(100), nullable=True),
        sa.Column('year_level', sa.Integer(), nullable=False),
        sa.Column('semester', sa.String(32), nullable=True),
    )
    op.create_index('ix_subjects_subject_code', 'subjects', ['subject_code'], unique=True)

    op.create_table('buildings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('building_name', sa.String(255), nullable=False, unique=True),
        sa.Column('num_floors', sa.Integer(), nullable=False),
        sa.Column('rooms_per_floor', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
    )

    op.create_table('teacher_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('section_id', sa.Integer(), sa.ForeignKey('sections.id', ondelete='SET NULL'), nullable=True),
        sa.Column('school_year', sa.String(16), nullable=True),
        sa.Column('semester', sa.String(16), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_teacher_assignments_teacher_id', 'teacher_assignments', ['teacher_id'])
    op.create_index('ix_teacher_assignments_subject_id', 'teacher_assignments', ['subject_id'])
    op.create_index('ix_teacher_assignments_section_id', 'teacher_assignments', ['section_id'])
    op.create_index('uq_teacher_subject_active', 'teacher_assignments', ['teacher_id', 'subject_id'],
                    unique=True, sqlite_where=ACTIVE_ONLY, postgresql_where=ACTIVE_ONLY)

    op.create_table('section_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('section_id', sa.Integer(), sa.ForeignKey('sections.id', ondelete='CASCADE'), nullable=False),
        sa.Column('building_id', sa.Integer(), sa.ForeignKey('buildings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('floor_number', sa.Integer(), nullable=False),
        sa.Column('room_number', sa.Integer(), nullable=False),
        sa.Column('school_year', sa.String(16), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_section_assignments_section_id', 'section_assignments', ['section_id'])
    op.create_index('ix_section_assignments_building_id', 'section_assignments', ['building_id'])
    op.create_index('uq_room_assignment_active', 'section_assignments',
                    ['building_id', 'floor_number', 'room_number', 'school_year'],
                    unique=True, sqlite_where=ACTIVE_ONLY, postgresql_where=ACTIVE_ONLY)
    op.create_index('uq_section_room_active', 'section_assignments', ['section_id'],
                    unique=True, sqlite_where=ACTIVE_ONLY, postgresql_where=ACTIVE_ONLY)

    op.create_table('schedules',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('teacher_assignment_id', sa.Integer(),
                  sa.ForeignKey('teacher_assignments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('section_id', sa.Integer(), sa.ForeignKey('sections.id', ondelete='CASCADE'), nullable=True),
        sa.Column('day_of_week', sa.String(16), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('room_id', sa.Integer(),
                  sa.ForeignKey('section_assignments.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_schedules_teacher_assignment_id', 'schedules', ['teacher_assignment_id'])
    op.create_index('ix_schedules_section_id', 'schedules', ['section_id'])
    op.create_index('ix_schedules_day_of_week', 'schedules', ['day_of_week'])

    op.create_table('study_load',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('section_id', sa.Integer(), sa.ForeignKey('sections.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('semester', sa.String(32), nullable=True),
        sa.Column('school_year', sa.String(16), nullable=True),
        sa.Column('course', sa.String(100), nullable=True),
        sa.Column('major', sa.String(100), nullable=True),
        sa.Column('year_level', sa.String(32), nullable=True),
        sa.Column('section', sa.String(100), nullable=True),
        sa.Column('subject_code', sa.String(50), nullable=False),
        sa.Column('subject_title', sa.String(255), nullable=True),
        sa.Column('units', sa.Numeric(4, 1), nullable=True),
        sa.Column('teacher', sa.String(255), nullable=True),
        sa.Column('enrollment_status', sa.String(32), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('section_id', 'subject_id', 'semester',
                            name='uq_study_load_section_subject_semester'),
    )
    op.create_index('ix_study_load_section_id', 'study_load', ['section_id'])
    op.create_index('ix_study_load_subject_id', 'study_load', ['subject_id'])

    op.create_table('user_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('section_id', sa.Integer(), sa.ForeignKey('sections.id', ondelete='SET NULL'), nullable=True),
        sa.Column('year_level', sa.String(32), nullable=True),
        sa.Column('semester', sa.String(32), nullable=True),
        sa.Column('student_status', sa.String(32), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_assignments_user_id', 'user_assignments', ['user_id'])
    op.create_index('ix_user_assignments_section_id', 'user_assignments', ['section_id'])

    op.create_table('teacher_evaluations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('semester', sa.String(32), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_teacher_evaluations_teacher_id', 'teacher_evaluations', ['teacher_id'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', sa.String(32), nullable=False),
        sa.Column('entity', sa.String(64), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )


def downgrade():
    op.drop_table('audit_logs')
    op.drop_table('teacher_evaluations')
    op.drop_table('user_assignments')
    op.drop_table('study_load')
    op.drop_table('schedules')
    op.drop_table('section_assignments')
    op.drop_table('teacher_assignments')
    op.drop_table('buildings')
    op.drop_table('subjects')
    op.drop_table('sections')
    op.drop_table('users')
