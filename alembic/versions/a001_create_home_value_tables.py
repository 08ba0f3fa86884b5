"""Create home value request and message tables

Revision ID: a001_create_home_value_tables
Revises:
Create Date: 2026-10-19

Requests carry the owner and the (claim-once) assigned expert; messages
hang off a request and are removed with it.
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'a001_create_home_value_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'home_value_requests',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('owner_id', sa.String(), nullable=False),
        sa.Column('expert_id', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('validated', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    )
    op.create_check_constraint(
        'check_home_value_status',
        'home_value_requests',
        "status IN ('pending', 'in_progress')"
    )
    op.create_index('ix_home_value_requests_owner_id', 'home_value_requests', ['owner_id'])
    op.create_index('ix_home_value_requests_expert_id', 'home_value_requests', ['expert_id'])

    op.create_table(
        'home_value_messages',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('request_id', sa.String(), sa.ForeignKey('home_value_requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sender_id', sa.String(), nullable=False),
        sa.Column('body', sa.Text(), nullable=False, server_default=''),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    )
    # A message needs text or at least one image.
    op.create_check_constraint(
        'check_message_not_empty',
        'home_value_messages',
        "body <> '' OR json_array_length(images) > 0"
    )
    op.create_index('idx_home_value_messages_thread', 'home_value_messages', ['request_id', 'created_at'])


def downgrade() -> None:
    op.drop_index('idx_home_value_messages_thread', table_name='home_value_messages')
    op.drop_constraint('check_message_not_empty', 'home_value_messages', type_='check')
    op.drop_table('home_value_messages')
    op.drop_index('ix_home_value_requests_expert_id', table_name='home_value_requests')
    op.drop_index('ix_home_value_requests_owner_id', table_name='home_value_requests')
    op.drop_constraint('check_home_value_status', 'home_value_requests', type_='check')
    op.drop_table('home_value_requests')
