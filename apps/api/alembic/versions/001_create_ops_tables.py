"""Create participant, travel, payout, invite and activity tables.

Revision ID: 001
Revises: 
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'participants',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('role', sa.String(length=100), nullable=False),
        sa.Column('photo_url', sa.String(length=2048), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_participants_email', 'participants', ['email'])

    op.create_table(
        'travel_approvals',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('participant_id', sa.String(length=36), sa.ForeignKey('participants.id'), nullable=False),
        sa.Column('itinerary', sa.Text(), nullable=False),
        sa.Column('stipend_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('sponsor_notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('qr_token', sa.String(length=64), nullable=False),
        sa.Column('attestation_hash', sa.String(length=255), nullable=True),
        sa.Column('approved_by', sa.String(length=255), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_travel_approvals_participant_id', 'travel_approvals', ['participant_id'])
    op.create_index('ix_travel_approvals_status', 'travel_approvals', ['status'])
    op.create_index('ix_travel_approvals_qr_token', 'travel_approvals', ['qr_token'], unique=True)
    op.create_index('ix_travel_approvals_created_at', 'travel_approvals', ['created_at'])

    op.create_table(
        'check_ins',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('travel_approval_id', sa.String(length=36), sa.ForeignKey('travel_approvals.id'), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('scanned_by', sa.String(length=255), nullable=True),
        sa.Column('attestation_hash', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_check_ins_travel_approval_id', 'check_ins', ['travel_approval_id'])
    op.create_index('ix_check_ins_timestamp', 'check_ins', ['timestamp'])

    op.create_table(
        'payouts',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('travel_approval_id', sa.String(length=36), sa.ForeignKey('travel_approvals.id'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('proof_type', sa.String(length=50), nullable=True),
        sa.Column('proof_data', sa.Text(), nullable=True),
        sa.Column('attestation_hash', sa.String(length=255), nullable=True),
        sa.Column('processed_by', sa.String(length=255), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_payouts_travel_approval_id', 'payouts', ['travel_approval_id'])
    op.create_index('ix_payouts_status', 'payouts', ['status'])
    op.create_index('ix_payouts_created_at', 'payouts', ['created_at'])

    op.create_table(
        'onboarding_invites',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('role', sa.String(length=100), nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('form_data', sa.JSON(), nullable=True),
        sa.Column('participant_id', sa.String(length=36), sa.ForeignKey('participants.id'), nullable=True),
        sa.Column('travel_approval_id', sa.String(length=36), sa.ForeignKey('travel_approvals.id'), nullable=True),
        sa.Column('attestation_hash', sa.String(length=255), nullable=True),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_onboarding_invites_email', 'onboarding_invites', ['email'])
    op.create_index('ix_onboarding_invites_token', 'onboarding_invites', ['token'], unique=True)
    op.create_index('ix_onboarding_invites_created_at', 'onboarding_invites', ['created_at'])

    op.create_table(
        'activity_log',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('event_type', sa.String(length=50), nullable=False),
        sa.Column('participant_id', sa.String(length=36), sa.ForeignKey('participants.id'), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('attestation_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_activity_log_event_type', 'activity_log', ['event_type'])
    op.create_index('ix_activity_log_participant_id', 'activity_log', ['participant_id'])
    op.create_index('ix_activity_log_created_at', 'activity_log', ['created_at'])


def downgrade() -> None:
    op.drop_table('activity_log')
    op.drop_table('onboarding_invites')
    op.drop_table('payouts')
    op.drop_table('check_ins')
    op.drop_table('travel_approvals')
    op.drop_index('ix_participants_email', table_name='participants')
    op.drop_table('participants')
