"""add permits table

Revision ID: b7d8e9f0a1b2
Revises: a1c2e3f4b5d6
Create Date: 2025-06-16 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7d8e9f0a1b2'
down_revision = 'a1c2e3f4b5d6'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'permits',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('permit_number', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('permit_type', sa.String(), nullable=False),
        sa.Column('park_id', sa.Integer(), sa.ForeignKey('parks.id'), nullable=False, index=True),
        sa.Column('location', sa.String(), nullable=False),
        sa.Column('permittee_name', sa.String(), nullable=False),
        sa.Column('permittee_email', sa.String(), nullable=False),
        sa.Column('permittee_phone', sa.String(), nullable=True),
        sa.Column('activity', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('participant_count', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('special_conditions', sa.Text(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='pending', index=True),
        sa.Column('issue_date', sa.Date(), nullable=True),
        sa.Column('is_template', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('template_data', sa.JSON(), nullable=True),
        sa.Column('application_fee', sa.Numeric(10, 2), nullable=True),
        sa.Column('permit_fee', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
    )


def downgrade():
    op.drop_table('permits')
