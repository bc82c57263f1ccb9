"""Baseline migration - takedown compliance tables

Revision ID: 0001_takedown_baseline
Revises:
Create Date: 2026-10-19

Creates notices, the append-only audit trail, disputes, trusted flaggers,
fingerprint scans and the repeat infringer ledger.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_takedown_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create takedown tables."""

    # ==========================================================================
    # Trusted flaggers (referenced by notices)
    # ==========================================================================
    op.create_table(
        'trusted_flaggers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('organization_name', sa.String(255), nullable=False),
        sa.Column('contact_email', sa.String(255), nullable=False),
        sa.Column('trust_level', sa.String(20), nullable=False, server_default='standard'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('dsa_certified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('total_notices', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('contact_email', name='uq_trusted_flagger_email'),
    )

    # ==========================================================================
    # Notices
    # ==========================================================================
    op.create_table(
        'takedown_notices',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('ticket_id', sa.String(20), nullable=False),
        sa.Column('content_type', sa.String(20), nullable=False),
        sa.Column('content_id', sa.String(100), nullable=True),
        sa.Column('infringing_content_url', sa.Text(), nullable=True),
        sa.Column('additional_urls', sa.JSON(), nullable=True),
        sa.Column('content_owner_id', sa.String(100), nullable=True),
        sa.Column('claimant_name', sa.String(255), nullable=True),
        sa.Column('claimant_email', sa.String(255), nullable=True),
        sa.Column('claimant_phone', sa.String(50), nullable=True),
        sa.Column('claimant_address', sa.Text(), nullable=True),
        sa.Column('claimant_company', sa.String(255), nullable=True),
        sa.Column('is_rights_holder', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('authorized_agent_for', sa.String(255), nullable=True),
        sa.Column('copyrighted_work_title', sa.String(500), nullable=True),
        sa.Column('copyrighted_work_description', sa.Text(), nullable=True),
        sa.Column('copyrighted_work_url', sa.Text(), nullable=True),
        sa.Column('copyright_registration_number', sa.String(100), nullable=True),
        sa.Column('isrc_code', sa.String(20), nullable=True),
        sa.Column('upc_code', sa.String(20), nullable=True),
        sa.Column('infringement_description', sa.Text(), nullable=True),
        sa.Column('infringement_type', sa.String(30), nullable=True),
        sa.Column('good_faith_statement', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('accuracy_statement', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('perjury_statement', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('electronic_signature', sa.String(255), nullable=True),
        sa.Column('jurisdiction', sa.String(5), nullable=False),
        sa.Column('legal_framework', sa.String(20), nullable=False),
        sa.Column('trust_level', sa.String(20), nullable=True),
        sa.Column(
            'trusted_flagger_id', sa.Uuid(),
            sa.ForeignKey('trusted_flaggers.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('status', sa.String(30), nullable=False, server_default='submitted'),
        sa.Column('priority', sa.String(10), nullable=False, server_default='normal'),
        sa.Column('sla_deadline', sa.DateTime(timezone=True), nullable=False),
        sa.Column('counter_notice_deadline', sa.DateTime(timezone=True), nullable=True),
        sa.Column('needs_remediation', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('missing_elements', sa.JSON(), nullable=True),
        sa.Column('risk_level', sa.String(10), nullable=True),
        sa.Column('ai_suggested_priority', sa.String(10), nullable=True),
        sa.Column('assessment_notes', sa.Text(), nullable=True),
        sa.Column('action_type', sa.String(20), nullable=True),
        sa.Column('action_taken_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('action_taken_by', sa.String(100), nullable=True),
        sa.Column('assigned_to', sa.String(100), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('submitter_ip', sa.String(45), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('ticket_id', name='uq_takedown_ticket_id'),
    )
    op.create_index('idx_takedown_status_deadline', 'takedown_notices', ['status', 'sla_deadline'])
    op.create_index('idx_takedown_content', 'takedown_notices', ['content_type', 'content_id'])
    op.create_index('idx_takedown_owner', 'takedown_notices', ['content_owner_id'])

    # ==========================================================================
    # Audit trail (append-only)
    # ==========================================================================
    op.create_table(
        'takedown_actions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'notice_id', sa.Uuid(),
            sa.ForeignKey('takedown_notices.id', ondelete='RESTRICT'), nullable=False,
        ),
        sa.Column('action_type', sa.String(50), nullable=False),
        sa.Column('is_automated', sa.Boolean(), nullable=False),
        sa.Column('performed_by', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('prev_hash', sa.String(64), nullable=True),
        sa.Column('entry_hash', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_takedown_actions_notice', 'takedown_actions', ['notice_id', 'id'])

    if op.get_bind().dialect.name == 'postgresql':
        # Enforce append-only at the database level as well
        op.execute('''
            CREATE OR REPLACE FUNCTION takedown_actions_immutable() RETURNS trigger AS $$
            BEGIN
                RAISE EXCEPTION 'takedown_actions is append-only';
            END;
            $$ LANGUAGE plpgsql
        ''')
        op.execute('''
            CREATE TRIGGER takedown_actions_no_update_delete
            BEFORE UPDATE OR DELETE ON takedown_actions
            FOR EACH ROW EXECUTE FUNCTION takedown_actions_immutable()
        ''')

    # ==========================================================================
    # Disputes
    # ==========================================================================
    op.create_table(
        'counter_notices',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'notice_id', sa.Uuid(),
            sa.ForeignKey('takedown_notices.id', ondelete='RESTRICT'), nullable=False,
        ),
        sa.Column('submitted_by', sa.String(100), nullable=False),
        sa.Column('identification_of_removed_content', sa.Text(), nullable=False),
        sa.Column('good_faith_belief', sa.Boolean(), nullable=False),
        sa.Column('consent_to_jurisdiction', sa.Boolean(), nullable=False),
        sa.Column('consent_to_service', sa.Boolean(), nullable=False),
        sa.Column('electronic_signature', sa.String(255), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('fair_use_argument', sa.Text(), nullable=True),
        sa.Column('license_evidence', sa.Text(), nullable=True),
        sa.Column('original_work_evidence', sa.Text(), nullable=True),
        sa.Column('status', sa.String(30), nullable=False, server_default='submitted'),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reinstate_after', sa.DateTime(timezone=True), nullable=False),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('notice_id', name='uq_counter_notice_notice'),
    )

    op.create_table(
        'takedown_appeals',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'notice_id', sa.Uuid(),
            sa.ForeignKey('takedown_notices.id', ondelete='RESTRICT'), nullable=False,
        ),
        sa.Column('appeal_type', sa.String(20), nullable=False),
        sa.Column('submitted_by', sa.String(100), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='submitted'),
        sa.Column('decision_notes', sa.Text(), nullable=True),
        sa.Column('decided_by', sa.String(100), nullable=True),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_takedown_appeals_notice', 'takedown_appeals', ['notice_id'])

    # ==========================================================================
    # Fingerprint scans
    # ==========================================================================
    op.create_table(
        'fingerprint_scans',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('content_id', sa.String(100), nullable=False),
        sa.Column('content_type', sa.String(20), nullable=False),
        sa.Column(
            'notice_id', sa.Uuid(),
            sa.ForeignKey('takedown_notices.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('fingerprint_hash', sa.String(128), nullable=True),
        sa.Column('scan_provider', sa.String(50), nullable=True),
        sa.Column('match_found', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('confidence_score', sa.Float(), nullable=True),
        sa.Column('matched_title', sa.String(500), nullable=True),
        sa.Column('auto_action_taken', sa.String(20), nullable=False, server_default='none'),
        sa.Column('scan_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_fingerprint_content', 'fingerprint_scans', ['content_type', 'content_id'])

    # ==========================================================================
    # Repeat infringers
    # ==========================================================================
    op.create_table(
        'repeat_infringers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('artist_id', sa.String(100), nullable=False),
        sa.Column('strike_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_strikes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('termination_eligible', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_strike_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('artist_id', name='uq_repeat_infringer_artist'),
    )

    op.create_table(
        'infringement_strikes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'infringer_id', sa.Uuid(),
            sa.ForeignKey('repeat_infringers.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'notice_id', sa.Uuid(),
            sa.ForeignKey('takedown_notices.id', ondelete='RESTRICT'), nullable=False,
        ),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status_reason', sa.Text(), nullable=True),
        sa.Column('status_changed_by', sa.String(100), nullable=True),
        sa.Column('status_changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('notice_id', name='uq_infringement_strike_notice'),
    )
    op.create_index(
        'idx_infringement_strike_status', 'infringement_strikes', ['infringer_id', 'status']
    )


def downgrade() -> None:
    """Drop takedown tables."""
    op.drop_table('infringement_strikes')
    op.drop_table('repeat_infringers')
    op.drop_table('fingerprint_scans')
    op.drop_table('takedown_appeals')
    op.drop_table('counter_notices')
    if op.get_bind().dialect.name == 'postgresql':
        op.execute('DROP TRIGGER IF EXISTS takedown_actions_no_update_delete ON takedown_actions')
        op.execute('DROP FUNCTION IF EXISTS takedown_actions_immutable()')
    op.drop_table('takedown_actions')
    op.drop_table('takedown_notices')
    op.drop_table('trusted_flaggers')
