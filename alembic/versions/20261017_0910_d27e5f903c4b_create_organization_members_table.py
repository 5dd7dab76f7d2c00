"""create_organization_members_table

Revision ID: d27e5f903c4b
Revises: 8c4d2b6e1a57
Create Date: 2026-10-17 09:10:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = 'd27e5f903c4b'
down_revision: Union[str, None] = '8c4d2b6e1a57'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create organization_members table. One row per (organization, user)."""
    op.create_table(
        'organization_members',
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('organization_id', 'user_id', name='organization_members_pkey'),
        sa.CheckConstraint("role IN ('owner', 'member')", name='organization_members_role_check'),
    )

    op.create_foreign_key(
        'organization_members_organization_id_fkey',
        'organization_members', 'organizations',
        ['organization_id'], ['id'],
        ondelete='CASCADE'
    )
    op.create_foreign_key(
        'organization_members_user_id_fkey',
        'organization_members', 'users',
        ['user_id'], ['id'],
        ondelete='CASCADE'
    )

    op.create_index('idx_organization_members_user_id', 'organization_members', ['user_id'])


def downgrade() -> None:
    """Drop organization_members table."""
    op.drop_index('idx_organization_members_user_id', table_name='organization_members')
    op.drop_constraint('organization_members_user_id_fkey', 'organization_members', type_='foreignkey')
    op.drop_constraint('organization_members_organization_id_fkey', 'organization_members', type_='foreignkey')
    op.drop_table('organization_members')
