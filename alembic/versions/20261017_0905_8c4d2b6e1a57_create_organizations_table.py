"""create_organizations_table

Revision ID: 8c4d2b6e1a57
Revises: 3f1a9c2e7b10
Create Date: 2026-10-17 09:05:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision: str = '8c4d2b6e1a57'
down_revision: Union[str, None] = '3f1a9c2e7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create organizations table."""
    op.create_table(
        'organizations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('invite_code', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_index('idx_organizations_invite_code', 'organizations', ['invite_code'], unique=True)


def downgrade() -> None:
    """Drop organizations table."""
    op.drop_index('idx_organizations_invite_code', table_name='organizations')
    op.drop_table('organizations')
