"""initial field visit schema

Revision ID: 0001fv
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete schema from scratch:
- users: staff accounts with a single role
- companies / branches / branch_recipients: reference data
- visits: lifecycle aggregate (open, submitted, approved, sent)
- visit_cash / visit_inventory_items / visit_notes: captured data

Cash amounts are integer cents. Discrepancy figures are derived at read
time and have no columns.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001fv'
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name, nullable=False):
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=None if nullable else sa.text('CURRENT_TIMESTAMP'),
    )


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _timestamp('created_at'),
        _timestamp('last_login_at', nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'branches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_branches_company_id', 'branches', ['company_id'])

    op.create_table(
        'branch_recipients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('notify_email', sa.Boolean(), nullable=False),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_branch_recipients_branch_id', 'branch_recipients', ['branch_id'])

    op.create_table(
        'visits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('approved_by_user_id', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.ForeignKeyConstraint(['employee_id'], ['users.id']),
        sa.ForeignKeyConstraint(['approved_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_visits_branch_id', 'visits', ['branch_id'])
    op.create_index('ix_visits_employee_id', 'visits', ['employee_id'])
    op.create_index('ix_visits_status', 'visits', ['status'])

    op.create_table(
        'visit_cash',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('visit_id', sa.Integer(), nullable=False),
        sa.Column('system_balance_cents', sa.BigInteger(), nullable=False),
        sa.Column('actual_balance_cents', sa.BigInteger(), nullable=False),
        sa.Column('sales_amount_cents', sa.BigInteger(), nullable=False),
        _timestamp('updated_at'),
        sa.ForeignKeyConstraint(['visit_id'], ['visits.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('visit_id', name='uq_visit_cash_visit'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'visit_inventory_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('visit_id', sa.Integer(), nullable=False),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        sa.Column('color', sa.String(length=64), nullable=True),
        sa.Column('size', sa.String(length=64), nullable=True),
        sa.Column('system_qty', sa.Integer(), nullable=False),
        sa.Column('actual_qty', sa.Integer(), nullable=False),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['visit_id'], ['visits.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_visit_inventory_items_visit_id', 'visit_inventory_items', ['visit_id'])

    op.create_table(
        'visit_notes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('visit_id', sa.Integer(), nullable=False),
        sa.Column('note_text', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['visit_id'], ['visits.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_visit_notes_visit_id', 'visit_notes', ['visit_id'])


def downgrade():
    for index, table in (
        ('ix_visit_notes_visit_id', 'visit_notes'),
        ('ix_visit_inventory_items_visit_id', 'visit_inventory_items'),
        ('ix_visits_status', 'visits'),
        ('ix_visits_employee_id', 'visits'),
        ('ix_visits_branch_id', 'visits'),
        ('ix_branch_recipients_branch_id', 'branch_recipients'),
        ('ix_branches_company_id', 'branches'),
        ('ix_users_role', 'users'),
        ('ix_users_email', 'users'),
    ):
        op.drop_index(index, table_name=table)

    for table in (
        'visit_notes',
        'visit_inventory_items',
        'visit_cash',
        'visits',
        'branch_recipients',
        'branches',
        'companies',
        'users',
    ):
        op.drop_table(table)
