"""add customers, contracts and oneflow_sync_log tables

Revision ID: c7d1e2f3a4b5
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = 'c7d1e2f3a4b5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    conn = op.get_bind()
    inspector = inspect(conn)
    tables = inspector.get_table_names()

    if 'customers' not in tables:
        op.create_table(
            'customers',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('company_name', sa.String(length=255), nullable=False),
            sa.Column('org_number', sa.String(length=50), nullable=True),
            sa.Column('contact_person', sa.String(length=255), nullable=True),
            sa.Column('email', sa.String(length=255), nullable=True),
            sa.Column('phone', sa.String(length=50), nullable=True),
            sa.Column('address', sa.String(length=500), nullable=True),
            sa.Column('contract_start_date', sa.String(length=20), nullable=True),
            sa.Column('contract_length_months', sa.Integer(), nullable=True),
            sa.Column('total_contract_value', sa.Numeric(12, 2), nullable=True),
            sa.Column('contract_description', sa.String(length=500), nullable=True),
            sa.Column('assigned_account_manager', sa.String(length=255), nullable=True),
            sa.Column('business_type', sa.String(length=100), nullable=True),
            sa.Column('contract_status', sa.String(length=20), nullable=False, server_default='active'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.PrimaryKeyConstraint('id', name='pk_customers')
        )
        op.create_index('ix_customers_org_number', 'customers', ['org_number'], unique=False)
        op.create_index('ix_customers_email', 'customers', ['email'], unique=False)

    if 'contracts' not in tables:
        op.create_table(
            'contracts',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('oneflow_contract_id', sa.String(length=50), nullable=False),
            sa.Column('source_type', sa.String(length=20), nullable=False, server_default='webhook'),
            sa.Column('type', sa.String(length=20), nullable=False, server_default='contract'),
            sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
            sa.Column('template_id', sa.String(length=50), nullable=True),
            sa.Column('begone_employee_name', sa.String(length=255), nullable=True),
            sa.Column('begone_employee_email', sa.String(length=255), nullable=True),
            sa.Column('contract_length', sa.String(length=50), nullable=True),
            sa.Column('start_date', sa.String(length=20), nullable=True),
            sa.Column('contact_person', sa.String(length=255), nullable=True),
            sa.Column('contact_email', sa.String(length=255), nullable=True),
            sa.Column('contact_phone', sa.String(length=50), nullable=True),
            sa.Column('contact_address', sa.String(length=500), nullable=True),
            sa.Column('company_name', sa.String(length=255), nullable=True),
            sa.Column('organization_number', sa.String(length=50), nullable=True),
            sa.Column('agreement_text', sa.Text(), nullable=True),
            sa.Column('total_value', sa.Numeric(12, 2), nullable=True),
            sa.Column('selected_products', sa.JSON(), nullable=True),
            sa.Column('customer_id', sa.String(length=36), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], name='fk_contracts_customer_id', ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id', name='pk_contracts')
        )
        # Unique: one row per Oneflow document
        op.create_index('ix_contracts_oneflow_contract_id', 'contracts', ['oneflow_contract_id'], unique=True)
        op.create_index('ix_contracts_status', 'contracts', ['status'], unique=False)

    if 'oneflow_sync_log' not in tables:
        op.create_table(
            'oneflow_sync_log',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('event_type', sa.String(length=500), nullable=False),
            sa.Column('oneflow_contract_id', sa.String(length=50), nullable=True),
            sa.Column('status', sa.String(length=20), nullable=False),
            sa.Column('details', sa.JSON(), nullable=True),
            sa.Column('error_message', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.PrimaryKeyConstraint('id', name='pk_oneflow_sync_log')
        )
        op.create_index('ix_oneflow_sync_log_oneflow_contract_id', 'oneflow_sync_log', ['oneflow_contract_id'], unique=False)
        op.create_index('ix_oneflow_sync_log_created_at', 'oneflow_sync_log', ['created_at'], unique=False)


def downgrade():
    conn = op.get_bind()
    inspector = inspect(conn)
    tables = inspector.get_table_names()

    if 'oneflow_sync_log' in tables:
        op.drop_index('ix_oneflow_sync_log_created_at', table_name='oneflow_sync_log')
        op.drop_index('ix_oneflow_sync_log_oneflow_contract_id', table_name='oneflow_sync_log')
        op.drop_table('oneflow_sync_log')

    if 'contracts' in tables:
        op.drop_index('ix_contracts_status', table_name='contracts')
        op.drop_index('ix_contracts_oneflow_contract_id', table_name='contracts')
        op.drop_table('contracts')

    if 'customers' in tables:
        op.drop_index('ix_customers_email', table_name='customers')
        op.drop_index('ix_customers_org_number', table_name='customers')
        op.drop_table('customers')
