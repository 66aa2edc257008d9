"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Locations tracked by housekeeping
    op.create_table('locations',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('name', sa.String(length=100), nullable=False),
    sa.Column('number', sa.String(length=50), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='available'),
    sa.Column('external_code', sa.String(length=100), nullable=True),
    sa.Column('location_type', sa.String(length=30), nullable=False, server_default='leito'),
    sa.Column('current_cleaning', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_locations_id'), 'locations', ['id'], unique=False)
    op.create_index(op.f('ix_locations_status'), 'locations', ['status'], unique=False)
    op.create_index(op.f('ix_locations_external_code'), 'locations', ['external_code'], unique=False)
    op.create_index('idx_locations_name_number', 'locations', ['name', 'number'], unique=False)

    # Singleton integration settings
    op.create_table('integration_config',
    sa.Column('id', sa.String(length=50), nullable=False),
    sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.text('false')),
    sa.Column('host', sa.String(length=255), nullable=False, server_default=''),
    sa.Column('port', sa.Integer(), nullable=False, server_default='5432'),
    sa.Column('database', sa.String(length=255), nullable=False, server_default=''),
    sa.Column('username', sa.String(length=255), nullable=False, server_default=''),
    sa.Column('password', sa.Text(), nullable=True),
    sa.Column('sync_interval', sa.Integer(), nullable=False, server_default='5'),
    sa.Column('query', sa.Text(), nullable=False),
    sa.Column('status_mappings', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column('field_mappings', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column('transformation', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('last_sync', sa.DateTime(timezone=True), nullable=True),
    sa.Column('last_sync_stats', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )

    # Append-only run history
    op.create_table('sync_history',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('sync_id', sa.String(length=50), nullable=False),
    sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
    sa.Column('type', sa.String(length=20), nullable=False, server_default='manual'),
    sa.Column('success', sa.Boolean(), nullable=False),
    sa.Column('stats', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('duration', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('error', sa.Text(), nullable=True),
    sa.Column('target', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_sync_history_id'), 'sync_history', ['id'], unique=False)
    op.create_index(op.f('ix_sync_history_sync_id'), 'sync_history', ['sync_id'], unique=True)
    op.create_index(op.f('ix_sync_history_timestamp'), 'sync_history', ['timestamp'], unique=False)

    # External code overrides
    op.create_table('location_mappings',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('external_code', sa.String(length=100), nullable=False),
    sa.Column('internal_name', sa.String(length=100), nullable=False),
    sa.Column('internal_number', sa.String(length=50), nullable=False),
    sa.Column('setor', sa.String(length=100), nullable=True),
    sa.Column('type', sa.String(length=30), nullable=False, server_default='leito'),
    sa.Column('location_id', sa.String(length=150), nullable=True),
    sa.Column('short_code', sa.String(length=60), nullable=True),
    sa.Column('qr_code_url', sa.String(length=200), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_location_mappings_id'), 'location_mappings', ['id'], unique=False)
    op.create_index(op.f('ix_location_mappings_external_code'), 'location_mappings', ['external_code'], unique=True)
    op.create_index(op.f('ix_location_mappings_location_id'), 'location_mappings', ['location_id'], unique=False)

    # Finished cleanings and SLA delays
    op.create_table('cleaning_records',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('location_id', sa.Integer(), nullable=False),
    sa.Column('location_name', sa.String(length=160), nullable=False),
    sa.Column('location_type', sa.String(length=30), nullable=True),
    sa.Column('cleaning_type', sa.String(length=20), nullable=False),
    sa.Column('user_id', sa.String(length=100), nullable=True),
    sa.Column('user_name', sa.String(length=100), nullable=True),
    sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
    sa.Column('finish_time', sa.DateTime(timezone=True), nullable=False),
    sa.Column('expected_duration', sa.Integer(), nullable=False),
    sa.Column('actual_duration', sa.Integer(), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='completed'),
    sa.Column('delayed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.ForeignKeyConstraint(['location_id'], ['locations.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_cleaning_records_id'), 'cleaning_records', ['id'], unique=False)
    op.create_index(op.f('ix_cleaning_records_location_id'), 'cleaning_records', ['location_id'], unique=False)
    op.create_index(op.f('ix_cleaning_records_finish_time'), 'cleaning_records', ['finish_time'], unique=False)

    op.create_table('cleaning_occurrences',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('location_name', sa.String(length=160), nullable=False),
    sa.Column('cleaning_type', sa.String(length=20), nullable=False),
    sa.Column('user_name', sa.String(length=100), nullable=True),
    sa.Column('delay_in_minutes', sa.Integer(), nullable=False),
    sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_cleaning_occurrences_id'), 'cleaning_occurrences', ['id'], unique=False)
    op.create_index(op.f('ix_cleaning_occurrences_occurred_at'), 'cleaning_occurrences', ['occurred_at'], unique=False)

    # Operator audit trail
    op.create_table('audit_logs',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('action', sa.String(length=100), nullable=False),
    sa.Column('entity_type', sa.String(length=50), nullable=True),
    sa.Column('entity_id', sa.String(length=50), nullable=True),
    sa.Column('user', sa.String(length=100), nullable=True),
    sa.Column('details', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('ip_address', sa.String(length=45), nullable=True),
    sa.Column('user_agent', sa.String(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_audit_logs_id'), 'audit_logs', ['id'], unique=False)
    op.create_index(op.f('ix_audit_logs_created_at'), 'audit_logs', ['created_at'], unique=False)
    op.create_index('idx_audit_logs_action', 'audit_logs', ['action'], unique=False)
    op.create_index('idx_audit_logs_ip_created', 'audit_logs', ['ip_address', 'created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_audit_logs_ip_created', table_name='audit_logs')
    op.drop_index('idx_audit_logs_action', table_name='audit_logs')
    op.drop_index(op.f('ix_audit_logs_created_at'), table_name='audit_logs')
    op.drop_index(op.f('ix_audit_logs_id'), table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index(op.f('ix_cleaning_occurrences_occurred_at'), table_name='cleaning_occurrences')
    op.drop_index(op.f('ix_cleaning_occurrences_id'), table_name='cleaning_occurrences')
    op.drop_table('cleaning_occurrences')
    op.drop_index(op.f('ix_cleaning_records_finish_time'), table_name='cleaning_records')
    op.drop_index(op.f('ix_cleaning_records_location_id'), table_name='cleaning_records')
    op.drop_index(op.f('ix_cleaning_records_id'), table_name='cleaning_records')
    op.drop_table('cleaning_records')
    op.drop_index(op.f('ix_location_mappings_location_id'), table_name='location_mappings')
    op.drop_index(op.f('ix_location_mappings_external_code'), table_name='location_mappings')
    op.drop_index(op.f('ix_location_mappings_id'), table_name='location_mappings')
    op.drop_table('location_mappings')
    op.drop_index(op.f('ix_sync_history_timestamp'), table_name='sync_history')
    op.drop_index(op.f('ix_sync_history_sync_id'), table_name='sync_history')
    op.drop_index(op.f('ix_sync_history_id'), table_name='sync_history')
    op.drop_table('sync_history')
    op.drop_table('integration_config')
    op.drop_index('idx_locations_name_number', table_name='locations')
    op.drop_index(op.f('ix_locations_external_code'), table_name='locations')
    op.drop_index(op.f('ix_locations_status'), table_name='locations')
    op.drop_index(op.f('ix_locations_id'), table_name='locations')
    op.drop_table('locations')
