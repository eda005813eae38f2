"""Create clients, quotes and quote numbering tables

Revision ID: 001_clients_quotes
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = '001_clients_quotes'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BIGINT = sa.BigInteger().with_variant(sa.Integer(), 'sqlite')

PRICING_COLUMNS = (
    'student_accommodation_per_day',
    'teacher_accommodation_per_day',
    'breakfast_per_day',
    'lunch_per_day',
    'dinner_per_day',
    'transport_card_total',
    'student_coordination_fee_total',
    'teacher_coordination_fee_total',
    'airport_transfer_per_person',
)

COST_COLUMNS = (
    'cost_student_accommodation_per_day',
    'cost_teacher_accommodation_per_day',
    'cost_breakfast_per_day',
    'cost_lunch_per_day',
    'cost_dinner_per_day',
    'cost_local_transportation_card',
    'cost_student_coordination',
    'cost_teacher_coordination',
    'cost_local_coordinator',
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Create clients table
    op.create_table('clients',
        sa.Column('id', BIGINT, autoincrement=True, nullable=False),
        sa.Column('fiscal_name', sa.String(length=255), nullable=False),
        sa.Column('tax_id', sa.String(length=50), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('postcode', sa.String(length=20), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_clients_fiscal_name', 'clients', ['fiscal_name'])

    # Create quotes table
    op.create_table('quotes',
        sa.Column('id', BIGINT, autoincrement=True, nullable=False),
        sa.Column('quote_number', sa.String(length=30), nullable=False),
        sa.Column('client_id', BIGINT, nullable=True),
        sa.Column('destination', sa.String(length=255), nullable=False),
        sa.Column('trip_type', sa.String(length=100), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('duration', sa.String(length=50), nullable=False),
        sa.Column('number_of_students', sa.Integer(), nullable=False),
        sa.Column('number_of_teachers', sa.Integer(), nullable=False),
        sa.Column('school_name', sa.String(length=255), nullable=False),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('school_address', sa.Text(), nullable=True),
        *[sa.Column(name, sa.Float(), nullable=True) for name in PRICING_COLUMNS],
        sa.Column('adhoc_services', sa.JSON(), nullable=True),
        *[sa.Column(name, sa.Float(), nullable=True) for name in COST_COLUMNS],
        sa.Column('price_per_student', sa.Float(), nullable=False),
        sa.Column('price_per_teacher', sa.Float(), nullable=False),
        sa.Column('total_price', sa.Float(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_quotes_quote_number', 'quotes', ['quote_number'], unique=True)
    op.create_index('ix_quotes_client_id', 'quotes', ['client_id'])

    # Create quote_number_sequences table
    op.create_table('quote_number_sequences',
        sa.Column('id', BIGINT, autoincrement=True, nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('last_sequence', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('year', name='uq_quote_number_sequences_year')
    )


def downgrade() -> None:
    op.drop_table('quote_number_sequences')
    op.drop_index('ix_quotes_client_id', table_name='quotes')
    op.drop_index('ix_quotes_quote_number', table_name='quotes')
    op.drop_table('quotes')
    op.drop_index('ix_clients_fiscal_name', table_name='clients')
    op.drop_table('clients')
