"""Initial schema - properties, rates, add-ons, reservations, availability ledger

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

Creates:
- properties: bookable units
- rate_plans: date-scoped nightly prices
- add_ons: optional extras catalog
- reservations + reservation_status_history
- availability: per-night ledger, unique per (tenant, property_id, date)
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ==================
    # properties table
    # ==================
    op.create_table(
        'properties',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant', sa.String(64), nullable=False),
        sa.Column('property_code', sa.String(20), nullable=False, unique=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('property_type', sa.String(20), server_default='room'),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('amenities', sa.JSON, nullable=True),
        sa.Column('tags', sa.JSON, nullable=True),
        sa.Column('max_guests', sa.Integer, nullable=False, server_default='2'),
        sa.Column('beds', sa.Integer, nullable=False, server_default='1'),
        sa.Column('bathrooms', sa.Integer, nullable=False, server_default='1'),
        sa.Column('base_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(3), server_default='GBP'),
        sa.Column('status', sa.String(20), server_default='available'),
        sa.Column('min_stay', sa.Integer, server_default='1'),
        sa.Column('max_stay', sa.Integer, server_default='30'),
        sa.Column('check_in_time', sa.String(10), server_default='15:00'),
        sa.Column('check_out_time', sa.String(10), server_default='11:00'),
        sa.Column('cancellation_policy', sa.String(20), server_default='moderate'),
        sa.Column('sort_order', sa.Integer, server_default='0'),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('tenant', 'slug', name='uq_property_tenant_slug'),
    )
    op.create_index('ix_properties_tenant', 'properties', ['tenant'])
    op.create_index('ix_property_tenant_status', 'properties', ['tenant', 'status', 'is_active'])

    # ==================
    # rate_plans table
    # ==================
    op.create_table(
        'rate_plans',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant', sa.String(64), nullable=False),
        sa.Column('property_id', sa.String(36), sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=False),
        sa.Column('price_per_night', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(3), server_default='GBP'),
        sa.Column('day_modifiers', sa.JSON, nullable=True),
        sa.Column('min_stay', sa.Integer, server_default='1'),
        sa.Column('priority', sa.Integer, server_default='0'),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_rate_plan_property_range', 'rate_plans', ['tenant', 'property_id', 'start_date', 'end_date'])
    op.create_index('ix_rate_plan_active_priority', 'rate_plans', ['tenant', 'is_active', 'priority'])

    # ==================
    # add_ons table
    # ==================
    op.create_table(
        'add_ons',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant', sa.String(64), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(3), server_default='GBP'),
        sa.Column('per', sa.String(10), nullable=False, server_default='stay'),
        sa.Column('category', sa.String(50), nullable=True),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer, server_default='0'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_add_on_tenant_active', 'add_ons', ['tenant', 'is_active', 'sort_order'])
    op.create_index('ix_add_on_tenant_category', 'add_ons', ['tenant', 'category'])

    # ==================
    # reservations table
    # ==================
    op.create_table(
        'reservations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant', sa.String(64), nullable=False),
        sa.Column('reservation_ref', sa.String(20), nullable=False, unique=True),
        sa.Column('property_id', sa.String(36), sa.ForeignKey('properties.id'), nullable=False),
        sa.Column('guest_id', sa.String(64), nullable=False),
        sa.Column('check_in', sa.Date, nullable=False),
        sa.Column('check_out', sa.Date, nullable=False),
        sa.Column('nights', sa.Integer, nullable=False),
        sa.Column('adults', sa.Integer, nullable=False, server_default='1'),
        sa.Column('children', sa.Integer, nullable=False, server_default='0'),
        sa.Column('infants', sa.Integer, nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('source', sa.String(20), server_default='direct'),
        sa.Column('pricing', sa.JSON, nullable=False),
        sa.Column('payment', sa.JSON, nullable=False),
        sa.Column('cancellation', sa.JSON, nullable=True),
        sa.Column('special_requests', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_reservation_property_dates', 'reservations', ['tenant', 'property_id', 'check_in', 'check_out'])
    op.create_index('ix_reservation_guest_status', 'reservations', ['tenant', 'guest_id', 'status'])
    op.create_index('ix_reservation_status_check_in', 'reservations', ['tenant', 'status', 'check_in'])

    op.create_table(
        'reservation_status_history',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('reservation_id', sa.String(36), sa.ForeignKey('reservations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sequence', sa.Integer, nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('timestamp', sa.DateTime, nullable=False),
        sa.Column('note', sa.Text, nullable=True),
        sa.Column('actor_id', sa.String(64), nullable=True),
    )
    op.create_index('ix_status_history_reservation', 'reservation_status_history', ['reservation_id', 'sequence'])

    # ==================
    # availability ledger
    # ==================
    op.create_table(
        'availability',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant', sa.String(64), nullable=False),
        sa.Column('property_id', sa.String(36), sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='booked'),
        sa.Column('reservation_id', sa.String(36), sa.ForeignKey('reservations.id'), nullable=True),
        sa.Column('price_override', sa.Numeric(10, 2), nullable=True),
        sa.Column('note', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('tenant', 'property_id', 'date', name='uq_availability_tenant_property_date'),
    )
    op.create_index('ix_availability_property_status', 'availability', ['tenant', 'property_id', 'status'])
    op.create_index('ix_availability_date_status', 'availability', ['tenant', 'date', 'status'])


def downgrade() -> None:
    op.drop_table('availability')
    op.drop_table('reservation_status_history')
    op.drop_table('reservations')
    op.drop_table('add_ons')
    op.drop_table('rate_plans')
    op.drop_table('properties')
