"""create_task_assignments_table

Revision ID: a6f3d8b2e915
Revises: 5b90e1c84f26
Create Date: 2026-10-17 09:20:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = 'a6f3d8b2e915'
down_revision: Union[str, None] = '5b90e1c84f26'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create task_assignments table. The composite key backs the assignment upsert."""
    op.create_table(
        'task_assignments',
        sa.Column('task_id', UUID(as_uuid=True), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('task_id', 'user_id', name='task_assignments_pkey'),
    )

    op.create_index('idx_task_assignments_user_id', 'task_assignments', ['user_id'])


def downgrade() -> None:
    """Drop task_assignments table."""
    op.drop_index('idx_task_assignments_user_id', table_name='task_assignments')
    op.drop_table('task_assignments')
