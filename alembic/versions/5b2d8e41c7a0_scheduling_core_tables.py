"""scheduling core tables

Revision ID: 5b2d8e41c7a0
Revises:
Create Date: 2026-10-17 10:12:44.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5b2d8e41c7a0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Create storefronts table
    op.create_table(
        'storefronts',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('vendor_id', sa.Integer, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('timezone', sa.String(50), nullable=False, server_default='UTC'),
        sa.Column('location_type', sa.String(20), nullable=False, server_default='fixed'),
        sa.Column('is_active', sa.Boolean, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_storefronts_vendor_id', 'storefronts', ['vendor_id'])

    # 2. Create services table
    op.create_table(
        'services',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('storefront_id', sa.Integer, sa.ForeignKey('storefronts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('duration_minutes', sa.Integer, nullable=False),
        sa.Column('buffer_time_minutes', sa.Integer, nullable=False, server_default='0'),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('is_active', sa.Boolean, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('duration_minutes > 0', name='ck_services_duration_positive'),
        sa.CheckConstraint('buffer_time_minutes >= 0', name='ck_services_buffer_non_negative'),
    )
    op.create_index('ix_services_storefront_id', 'services', ['storefront_id'])
    op.create_index('ix_services_is_active', 'services', ['is_active'])

    # 3. Create schedule_rules table
    op.create_table(
        'schedule_rules',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('storefront_id', sa.Integer, sa.ForeignKey('storefronts.id'), nullable=False),
        sa.Column('service_id', sa.Integer, sa.ForeignKey('services.id'), nullable=True),
        sa.Column('rule_type', sa.String(20), nullable=False),
        sa.Column('priority', sa.Integer, nullable=False, server_default='1'),
        sa.Column('day_of_week', sa.Integer, nullable=True),
        sa.Column('specific_date', sa.Date, nullable=True),
        sa.Column('month', sa.Integer, nullable=True),
        sa.Column('year', sa.Integer, nullable=True),
        sa.Column('start_time', sa.Time, nullable=False),
        sa.Column('end_time', sa.Time, nullable=False),
        sa.Column('is_available', sa.Boolean, nullable=False, server_default=sa.text('true')),
        sa.Column('max_concurrent_appointments', sa.Integer, nullable=False, server_default='1'),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("rule_type IN ('weekly', 'daily', 'monthly')", name='ck_schedule_rules_type'),
        sa.CheckConstraint('priority > 0', name='ck_schedule_rules_priority'),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_schedule_rules_day_of_week'),
        sa.CheckConstraint('month BETWEEN 1 AND 12', name='ck_schedule_rules_month'),
        sa.CheckConstraint('start_time < end_time', name='ck_schedule_rules_time_range'),
        sa.CheckConstraint('max_concurrent_appointments > 0', name='ck_schedule_rules_capacity'),
    )
    op.create_index('ix_schedule_rules_storefront_id', 'schedule_rules', ['storefront_id'])
    op.create_index('idx_schedule_rules_lookup', 'schedule_rules', ['storefront_id', 'service_id', 'rule_type'])

    # 4. Create appointments table
    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('client_id', sa.Integer, nullable=False),
        sa.Column('storefront_id', sa.Integer, sa.ForeignKey('storefronts.id'), nullable=False),
        sa.Column('service_id', sa.Integer, sa.ForeignKey('services.id'), nullable=False),
        sa.Column('drop_id', sa.Integer, nullable=True),
        sa.Column('requested_start_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('requested_end_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('confirmed_start_datetime', sa.DateTime(timezone=True), nullable=True),
        sa.Column('confirmed_end_datetime', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('client_notes', sa.Text, nullable=True),
        sa.Column('vendor_notes', sa.Text, nullable=True),
        sa.Column('internal_notes', sa.Text, nullable=True),
        sa.Column('price_quoted', sa.Numeric(10, 2), nullable=True),
        sa.Column('price_final', sa.Numeric(10, 2), nullable=True),
        sa.Column('service_location_type', sa.String(20), nullable=False, server_default='at_vendor'),
        sa.Column('client_address', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'declined', 'cancelled', 'completed', 'no_show')",
            name='ck_appointments_status'
        ),
        sa.CheckConstraint(
            'requested_start_datetime < requested_end_datetime',
            name='ck_appointments_requested_range'
        ),
        sa.CheckConstraint(
            "service_location_type = 'at_vendor' "
            "OR (service_location_type = 'at_client' AND client_address IS NOT NULL)",
            name='ck_appointments_client_address_required'
        ),
    )
    op.create_index('ix_appointments_client_id', 'appointments', ['client_id'])
    op.create_index(
        'idx_appointments_overlap',
        'appointments',
        ['storefront_id', 'requested_start_datetime', 'requested_end_datetime']
    )

    # Capacity checks only ever look at live bookings
    op.execute("""
        CREATE INDEX idx_appointments_active_window
        ON appointments (storefront_id, requested_start_datetime)
        WHERE status IN ('pending', 'confirmed') AND deleted_at IS NULL
    """)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP INDEX IF EXISTS idx_appointments_active_window")
    op.drop_index('idx_appointments_overlap', table_name='appointments')
    op.drop_index('ix_appointments_client_id', table_name='appointments')
    op.drop_table('appointments')

    op.drop_index('idx_schedule_rules_lookup', table_name='schedule_rules')
    op.drop_index('ix_schedule_rules_storefront_id', table_name='schedule_rules')
    op.drop_table('schedule_rules')

    op.drop_index('ix_services_is_active', table_name='services')
    op.drop_index('ix_services_storefront_id', table_name='services')
    op.drop_table('services')

    op.drop_index('ix_storefronts_vendor_id', table_name='storefronts')
    op.drop_table('storefronts')
