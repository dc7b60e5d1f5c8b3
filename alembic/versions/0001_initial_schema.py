"""initial school portal schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def _indexes(table, *columns):
    for column in columns:
        op.create_index(f'ix_{table}_{column}', table, [column])


def upgrade() -> None:
    user_role = sa.Enum('ADMIN', 'TEACHER', 'STUDENT', name='user_role')
    assignment_status = sa.Enum('DRAFT', 'ACTIVE', 'COMPLETED', name='assignment_status')
    submission_status = sa.Enum('SUBMITTED', 'LATE', 'GRADED', name='submission_status')
    attendance_status = sa.Enum('PRESENT', 'ABSENT', 'LATE', 'EXCUSED', name='attendance_status')
    event_category = sa.Enum(
        'ACADEMIC', 'CULTURAL', 'SPORTS', 'HOLIDAY', 'EXAM', 'MEETING', 'OTHER', name='event_category'
    )
    event_status = sa.Enum('UPCOMING', 'ONGOING', 'COMPLETED', 'CANCELLED', name='event_status')

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('image', sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    _indexes('users', 'id', 'role', 'name', 'created_at')

    op.create_table(
        'admins',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('designation', sa.String(100), nullable=True),
        sa.Column('phone_number', sa.String(20), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_admins_user_id', 'admins', ['user_id'], unique=True)
    _indexes('admins', 'id', 'created_at')

    op.create_table(
        'teachers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('qualification', sa.String(200), nullable=True),
        sa.Column('designation', sa.String(100), nullable=True),
        sa.Column('phone_number', sa.String(20), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_teachers_user_id', 'teachers', ['user_id'], unique=True)
    _indexes('teachers', 'id', 'created_at')

    op.create_table(
        'classes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('teachers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('academic_year', sa.String(10), nullable=True),
        sa.Column('room_number', sa.String(20), nullable=True),
        sa.Column('section', sa.String(10), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_classes_name', 'classes', ['name'], unique=True)
    _indexes('classes', 'id', 'teacher_id', 'created_at')

    op.create_table(
        'students',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('roll_number', sa.String(20), nullable=True),
        sa.Column('gender', sa.String(10), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('parent_name', sa.String(100), nullable=True),
        sa.Column('parent_contact', sa.String(20), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_students_user_id', 'students', ['user_id'], unique=True)
    _indexes('students', 'id', 'class_id', 'roll_number', 'created_at')

    op.create_table(
        'subjects',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    _indexes('subjects', 'id', 'name', 'code', 'created_at')

    op.create_table(
        'assignments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('teachers.id'), nullable=False),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('subject_id', sa.Uuid(), sa.ForeignKey('subjects.id'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', assignment_status, nullable=False),
        *_timestamps(),
    )
    _indexes('assignments', 'id', 'teacher_id', 'class_id', 'subject_id', 'due_date', 'created_at')

    op.create_table(
        'assignment_submissions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('assignment_id', sa.Uuid(), sa.ForeignKey('assignments.id'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('status', submission_status, nullable=False),
        sa.Column('score', sa.Float(), nullable=True),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('assignment_id', 'student_id', name='uq_submission_student'),
    )
    _indexes('assignment_submissions', 'id', 'assignment_id', 'student_id', 'created_at')

    op.create_table(
        'grades',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('teachers.id'), nullable=False),
        sa.Column('subject_id', sa.Uuid(), sa.ForeignKey('subjects.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('max_score', sa.Float(), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('exam_date', sa.Date(), nullable=True),
        *_timestamps(),
    )
    _indexes('grades', 'id', 'student_id', 'teacher_id', 'subject_id', 'created_at')

    op.create_table(
        'attendance_sessions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        *_timestamps(),
    )
    _indexes('attendance_sessions', 'id', 'class_id', 'date', 'created_at')

    op.create_table(
        'attendances',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('session_id', sa.Uuid(), sa.ForeignKey('attendance_sessions.id'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('status', attendance_status, nullable=False),
        sa.Column('remarks', sa.String(500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )
    _indexes('attendances', 'id', 'session_id', 'student_id', 'created_at')

    op.create_table(
        'events',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('admin_id', sa.Uuid(), sa.ForeignKey('admins.id'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(200), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_all_day', sa.Boolean(), nullable=False),
        sa.Column('category', event_category, nullable=False),
        sa.Column('status', event_status, nullable=False),
        sa.Column('class_ids', sa.JSON(), nullable=True),
        *_timestamps(),
    )
    _indexes('events', 'id', 'admin_id', 'start_date', 'created_at')

    op.create_table(
        'timetable_entries',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('subject_id', sa.Uuid(), sa.ForeignKey('subjects.id'), nullable=False),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('teachers.id'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_timetable_day_of_week'),
        sa.CheckConstraint('end_time > start_time', name='ck_timetable_time_order'),
    )
    _indexes('timetable_entries', 'id', 'class_id', 'subject_id', 'teacher_id', 'day_of_week', 'created_at')


def downgrade() -> None:
    for table in (
        'timetable_entries', 'events', 'attendances', 'attendance_sessions', 'grades',
        'assignment_submissions', 'assignments', 'subjects', 'students', 'classes',
        'teachers', 'admins', 'users',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in (
        'event_status', 'event_category', 'attendance_status',
        'submission_status', 'assignment_status', 'user_role',
    ):
        sa.Enum(name=name).drop(bind, checkfirst=True)
