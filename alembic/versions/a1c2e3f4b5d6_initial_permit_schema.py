"""initial permit schema

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2025-06-02 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c2e3f4b5d6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('email', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('encrypted_password', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='staff'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        'parks',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('location', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        'user_park_assignments',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('park_id', sa.Integer(), sa.ForeignKey('parks.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table(
        'park_locations',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('park_id', sa.Integer(), sa.ForeignKey('parks.id'), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        'applications',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('application_number', sa.String(), nullable=True, unique=True, index=True),
        sa.Column('park_id', sa.Integer(), sa.ForeignKey('parks.id'), nullable=False, index=True),
        sa.Column('location_id', sa.Integer(), sa.ForeignKey('park_locations.id'), nullable=True),
        sa.Column('custom_location', sa.String(), nullable=True),
        sa.Column('applicant_type', sa.String(), nullable=True),
        sa.Column('organization_name', sa.String(), nullable=True),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('state', sa.String(), nullable=True),
        sa.Column('zip_code', sa.String(), nullable=True),
        sa.Column('event_title', sa.String(), nullable=True),
        sa.Column('event_dates', sa.JSON(), nullable=True),
        sa.Column('event_description', sa.Text(), nullable=True),
        sa.Column('attendees', sa.Integer(), nullable=True),
        sa.Column('setup_time', sa.String(), nullable=True),
        sa.Column('start_time', sa.String(), nullable=True),
        sa.Column('end_time', sa.String(), nullable=True),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('application_fee', sa.Numeric(10, 2), nullable=True),
        sa.Column('permit_fee', sa.Numeric(10, 2), nullable=True),
        sa.Column('total_fee', sa.Numeric(10, 2), nullable=True),
        sa.Column('has_location_fee', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('location_fee', sa.Numeric(10, 2), nullable=True),
        sa.Column('location_fee_paid', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('agreed_to_terms', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('is_paid', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('status', sa.String(), nullable=False, server_default='pending', index=True),
        sa.Column('disapproval_reason', sa.Text(), nullable=True),
        sa.Column('activity', sa.String(), nullable=True),
        sa.Column('insurance_carrier', sa.String(), nullable=True),
        sa.Column('insurance_tier', sa.Integer(), nullable=True),
        sa.Column('insurance_document', sa.String(), nullable=True),
        sa.Column('reviewed_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('invoice_number', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('application_id', sa.Integer(), sa.ForeignKey('applications.id'), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending', index=True),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_unique_constraint('uq_invoices_application_id', 'invoices', ['application_id'])


def downgrade():
    op.drop_constraint('uq_invoices_application_id', 'invoices', type_='unique')
    op.drop_table('invoices')
    op.drop_table('applications')
    op.drop_table('park_locations')
    op.drop_table('user_park_assignments')
    op.drop_table('parks')
    op.drop_table('users')
