"""create_tasks_table

Revision ID: 5b90e1c84f26
Revises: d27e5f903c4b
Create Date: 2026-10-17 09:15:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = '5b90e1c84f26'
down_revision: Union[str, None] = 'd27e5f903c4b'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create tasks table."""
    op.create_table(
        'tasks',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('organization_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('creator_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='TODO'),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("status IN ('TODO', 'DONE')", name='tasks_status_check'),
    )

    op.create_index('idx_tasks_organization_id', 'tasks', ['organization_id'])
    op.create_index('idx_tasks_creator_id', 'tasks', ['creator_id'])
    op.create_index('idx_tasks_status', 'tasks', ['status'])
    op.create_index('idx_tasks_due_date', 'tasks', ['due_date'])
    op.create_index('idx_tasks_org_created_at', 'tasks', ['organization_id', 'created_at'])


def downgrade() -> None:
    """Drop tasks table."""
    op.drop_index('idx_tasks_org_created_at', table_name='tasks')
    op.drop_index('idx_tasks_due_date', table_name='tasks')
    op.drop_index('idx_tasks_status', table_name='tasks')
    op.drop_index('idx_tasks_creator_id', table_name='tasks')
    op.drop_index('idx_tasks_organization_id', table_name='tasks')
    op.drop_table('tasks')
