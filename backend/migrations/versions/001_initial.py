"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2024-01-15

Creates all database tables for the Student Attendance Tracker:
- students: Student records, unique on roll_number and on email
- classes: Taught classes, unique on (name, subject)
- attendance: Daily marks, unique on (student_id, class_id, date)

Also creates indexes for common query patterns.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Students Table ────────────────────────────────────────
    op.create_table(
        'students',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('roll_number', sa.String(64), nullable=False),
        sa.Column('class_name', sa.Text(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('roll_number', name='uq_students_roll_number'),
        sa.UniqueConstraint('email', name='uq_students_email'),
    )

    # ── Classes Table ─────────────────────────────────────────
    op.create_table(
        'classes',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('teacher', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('name', 'subject', name='uq_classes_name_subject'),
    )

    # ── Attendance Table ──────────────────────────────────────
    op.create_table(
        'attendance',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('student_id', sa.String(36),
                  sa.ForeignKey('students.id'), nullable=False),
        sa.Column('class_id', sa.String(36),
                  sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='Present'),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('student_id', 'class_id', 'date',
                            name='uq_attendance_student_class_date'),
        sa.CheckConstraint("status IN ('Present', 'Absent', 'Late')",
                           name='ck_attendance_status'),
    )

    # Indexes for the class summary and date filters
    op.create_index('ix_attendance_class_id', 'attendance', ['class_id'])
    op.create_index('ix_attendance_date', 'attendance', ['date'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index('ix_attendance_date', table_name='attendance')
    op.drop_index('ix_attendance_class_id', table_name='attendance')
    op.drop_table('attendance')
    op.drop_table('classes')
    op.drop_table('students')
