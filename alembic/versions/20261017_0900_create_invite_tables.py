"""create_invite_tables

Revision ID: 20261017_0900_invite_tables
Revises: None
Create Date: 2026-10-17 09:00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20261017_0900_invite_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Create invite_requests and the invite_lookup fingerprint index.
    """
    op.create_table(
        'invite_requests',
        sa.Column('request_id', sa.String(length=64), nullable=False),
        sa.Column('owner_id', sa.String(length=255), nullable=False),
        sa.Column('correlation_id', sa.String(length=255), server_default='', nullable=False),
        sa.Column('status', sa.String(length=20), server_default='QUEUED', nullable=False),
        sa.Column('attempts', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('next_attempt_at', sa.DateTime(), nullable=True),
        sa.Column('invite_link', sa.Text(), nullable=True),
        sa.Column('link_event_sent', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('join_event_sent', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('redeemer_id', sa.String(length=64), nullable=True),
        sa.Column('joined_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('request_id')
    )
    op.create_index('ix_invite_requests_owner_id', 'invite_requests', ['owner_id'])
    op.create_index('ix_invite_requests_status', 'invite_requests', ['status'])
    op.create_index('ix_invite_requests_pending_link_event', 'invite_requests', ['status', 'link_event_sent'])

    op.create_table(
        'invite_lookup',
        sa.Column('fingerprint', sa.String(length=64), nullable=False),
        sa.Column('invite_link', sa.Text(), nullable=False),
        sa.Column('request_id', sa.String(length=64), nullable=False),
        sa.Column('owner_id', sa.String(length=255), nullable=False),
        sa.Column('correlation_id', sa.String(length=255), server_default='', nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('fingerprint')
    )
    op.create_index('ix_invite_lookup_request_id', 'invite_lookup', ['request_id'])


def downgrade() -> None:
    """
    Drop invite tables.
    """
    op.drop_index('ix_invite_lookup_request_id', table_name='invite_lookup')
    op.drop_table('invite_lookup')

    op.drop_index('ix_invite_requests_pending_link_event', table_name='invite_requests')
    op.drop_index('ix_invite_requests_status', table_name='invite_requests')
    op.drop_index('ix_invite_requests_owner_id', table_name='invite_requests')
    op.drop_table('invite_requests')
