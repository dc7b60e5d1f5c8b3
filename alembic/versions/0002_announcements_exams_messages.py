"""announcements, exams and messages

Revision ID: 0002_announcements_exams_messages
Revises: 0001_initial_schema
Create Date: 2026-10-19 14:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_announcements_exams_messages'
down_revision: Union[str, None] = '0001_initial_schema'
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
    exam_status = sa.Enum('UPCOMING', 'ONGOING', 'COMPLETED', 'CANCELLED', name='exam_status')

    op.create_table(
        'announcements',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('admin_id', sa.Uuid(), sa.ForeignKey('admins.id'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('important', sa.Boolean(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    _indexes('announcements', 'id', 'admin_id', 'important', 'created_at')

    op.create_table(
        'exams',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', exam_status, nullable=False),
        *_timestamps(),
    )
    _indexes('exams', 'id', 'name', 'start_date', 'status', 'created_at')

    op.create_table(
        'exam_classes',
        sa.Column('exam_id', sa.Uuid(), sa.ForeignKey('exams.id'), primary_key=True),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id'), primary_key=True),
    )

    op.create_table(
        'exam_schedules',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('exam_id', sa.Uuid(), sa.ForeignKey('exams.id'), nullable=False),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('subject_id', sa.Uuid(), sa.ForeignKey('subjects.id'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('location', sa.String(200), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('end_time > start_time', name='ck_exam_schedule_time_order'),
    )
    _indexes('exam_schedules', 'id', 'exam_id', 'class_id', 'subject_id', 'date', 'created_at')

    op.create_table(
        'exam_invigilators',
        sa.Column('schedule_id', sa.Uuid(), sa.ForeignKey('exam_schedules.id'), primary_key=True),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('teachers.id'), primary_key=True),
    )

    op.create_table(
        'exam_results',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('exam_id', sa.Uuid(), sa.ForeignKey('exams.id'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('subject_id', sa.Uuid(), sa.ForeignKey('subjects.id'), nullable=False),
        sa.Column('marks', sa.Float(), nullable=False),
        sa.Column('max_marks', sa.Float(), nullable=False),
        sa.Column('grade', sa.String(5), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('exam_id', 'student_id', 'subject_id', name='uq_exam_result_student_subject'),
    )
    _indexes('exam_results', 'id', 'exam_id', 'student_id', 'subject_id', 'created_at')

    op.create_table(
        'messages',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('sender_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('receiver_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('subject', sa.String(200), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    _indexes('messages', 'id', 'sender_id', 'receiver_id', 'read', 'created_at')


def downgrade() -> None:
    for table in (
        'messages', 'exam_results', 'exam_invigilators', 'exam_schedules',
        'exam_classes', 'exams', 'announcements',
    ):
        op.drop_table(table)

    sa.Enum(name='exam_status').drop(op.get_bind(), checkfirst=True)
