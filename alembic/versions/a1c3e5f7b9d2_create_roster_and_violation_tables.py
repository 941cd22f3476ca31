"""Create classes, students and violations tables

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b9d2'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the roster tables and the violation ledger with its duplicate-key constraint."""
    op.create_table(
        'classes',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_classes_id', 'classes', ['id'])
    op.create_index('ix_classes_name', 'classes', ['name'], unique=True)

    op.create_table(
        'students',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('room', sa.String(), nullable=False, server_default=''),
        sa.Column('class_id', sa.String(), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=True),
        sa.Column('class_name', sa.String(), nullable=False, server_default=''),
        sa.Column('total_fine', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_students_id', 'students', ['id'])
    op.create_index('ix_students_name', 'students', ['name'])
    op.create_index('ix_students_class_id', 'students', ['class_id'])

    op.create_table(
        'violations',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('student_id', sa.String(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_name', sa.String(), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('prayer', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('fine', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('student_id', 'date', 'prayer', 'type', name='uq_violations_student_date_prayer_type'),
    )
    op.create_index('ix_violations_id', 'violations', ['id'])
    op.create_index('ix_violations_student_id', 'violations', ['student_id'])
    op.create_index('ix_violations_date', 'violations', ['date'])
    op.create_index('ix_violations_type', 'violations', ['type'])
    op.create_index('ix_violations_created_at', 'violations', ['created_at'])


def downgrade() -> None:
    """Drop the ledger first, then the roster."""
    op.drop_table('violations')
    op.drop_table('students')
    op.drop_table('classes')
