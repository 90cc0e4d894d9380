"""initial_finance_schema

Revision ID: 7c1e5a2d9b40
Revises:
Create Date: 2026-10-19 09:30:12.418270

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7c1e5a2d9b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def _money(name, nullable=True):
    return sa.Column(name, sa.Numeric(18, 2), nullable=nullable)


def _indexes(table, *columns):
    op.create_index(op.f(f'ix_{table}_id'), table, ['id'], unique=False)
    for column in columns:
        op.create_index(op.f(f'ix_{table}_{column}'), table, [column], unique=False)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'app_config',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('value', sa.String(length=255), nullable=False),
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', 'tenant_id', name='_app_config_name_tenant_uc'),
    )
    _indexes('app_config', 'name', 'tenant_id')

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('table_name', sa.String(), nullable=False),
        sa.Column('record_id', sa.Integer(), nullable=False),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('changed_by', sa.String(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    _indexes('audit_log', 'tenant_id')

    op.create_table(
        'chart_of_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_code', sa.String(length=20), nullable=False),
        sa.Column('account_name', sa.String(length=150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'account_code', name='_tenant_account_code_uc'),
    )
    _indexes('chart_of_accounts', 'account_code', 'tenant_id')

    op.create_table(
        'account_balance_recaps',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('recap_code', sa.String(length=30), nullable=False),
        sa.Column('account_code', sa.String(length=20), nullable=False),
        _money('balance', nullable=False),
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'recap_code', 'account_code', name='_tenant_recap_account_uc'),
    )
    _indexes('account_balance_recaps', 'recap_code', 'account_code', 'tenant_id')

    op.create_table(
        'worksheet_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_code', sa.String(length=20), nullable=False),
        sa.Column('account_name', sa.String(length=150), nullable=True),
        _money('tb_debit'), _money('tb_credit'),
        _money('adj_debit'), _money('adj_credit'),
        _money('pl_debit'), _money('pl_credit'),
        _money('bs_debit'), _money('bs_credit'),
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    _indexes('worksheet_lines', 'account_code', 'tenant_id')

    op.create_table(
        'vendors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('vendor_code', sa.String(length=30), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'vendor_code', name='_tenant_vendor_code_uc'),
    )
    _indexes('vendors', 'vendor_code', 'name', 'tenant_id')

    op.create_table(
        'purchase_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('po_number', sa.String(length=40), nullable=False),
        sa.Column('vendor_name', sa.String(), nullable=True),
        sa.Column('order_date', sa.Date(), nullable=True),
        sa.Column('ppn', sa.Numeric(5, 2), nullable=True),
        sa.Column('payment_terms', sa.String(length=50), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'po_number', name='_tenant_po_number_uc'),
    )
    _indexes('purchase_orders', 'po_number', 'tenant_id')

    op.create_table(
        'purchase_order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('purchase_order_id', sa.Integer(), nullable=False),
        sa.Column('material_code', sa.String(length=40), nullable=False),
        sa.Column('material', sa.String(), nullable=True),
        sa.Column('quantity', sa.Numeric(14, 3), nullable=False),
        _money('price', nullable=False),
        sa.Column('received_qty', sa.Numeric(14, 3), nullable=True),
        _money('received_value'),
        sa.Column('invoice_closed', sa.Boolean(), nullable=True),
        sa.Column('receipt_closed', sa.Boolean(), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['purchase_order_id'], ['purchase_orders.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    _indexes('purchase_order_items', 'material_code', 'tenant_id')

    op.create_table(
        'goods_receipts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('receipt_number', sa.String(length=40), nullable=False),
        sa.Column('po_number', sa.String(length=40), nullable=True),
        sa.Column('vendor_name', sa.String(), nullable=True),
        sa.Column('posting_date', sa.Date(), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'receipt_number', name='_tenant_receipt_number_uc'),
    )
    _indexes('goods_receipts', 'receipt_number', 'po_number', 'tenant_id')

    op.create_table(
        'goods_receipt_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('goods_receipt_id', sa.Integer(), nullable=False),
        sa.Column('material_code', sa.String(length=40), nullable=False),
        sa.Column('material', sa.String(), nullable=True),
        sa.Column('quantity', sa.Numeric(14, 3), nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=True),
        _money('price', nullable=False),
        _money('total_price', nullable=False),
        sa.Column('invoiced', sa.Boolean(), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['goods_receipt_id'], ['goods_receipts.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    _indexes('goods_receipt_items', 'material_code', 'tenant_id')

    op.create_table(
        'purchase_invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=20), nullable=False),
        sa.Column('receipt_reference', sa.String(length=60), nullable=True),
        sa.Column('po_number', sa.String(length=40), nullable=True),
        sa.Column('received_date', sa.Date(), nullable=True),
        sa.Column('invoice_date', sa.Date(), nullable=True),
        sa.Column('posting_date', sa.Date(), nullable=True),
        sa.Column('payment_terms', sa.String(length=50), nullable=True),
        sa.Column('vendor_code', sa.String(length=30), nullable=True),
        sa.Column('vendor_name', sa.String(), nullable=True),
        _money('subtotal'), _money('tax'), _money('total'),
        _money('paid_amount'), _money('outstanding'),
        sa.Column('paid_date', sa.Date(), nullable=True),
        sa.Column('payment_request_count', sa.Integer(), nullable=True),
        sa.Column('journal_voucher', sa.String(length=40), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'invoice_number', name='_tenant_invoice_number_uc'),
    )
    _indexes('purchase_invoices', 'invoice_number', 'po_number', 'vendor_name', 'journal_voucher', 'tenant_id')

    op.create_table(
        'purchase_invoice_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('line_no', sa.Integer(), nullable=False),
        sa.Column('material_code', sa.String(length=40), nullable=False),
        sa.Column('material', sa.String(), nullable=True),
        sa.Column('quantity', sa.Numeric(14, 3), nullable=True),
        sa.Column('unit', sa.String(length=20), nullable=True),
        _money('price'), _money('total_price'),
        sa.Column('outstanding_po', sa.Numeric(14, 3), nullable=True),
        sa.Column('po_item_id', sa.Integer(), nullable=True),
        sa.Column('receipt_item_id', sa.Integer(), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['invoice_id'], ['purchase_invoices.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    _indexes('purchase_invoice_items', 'tenant_id')

    slot_columns = []
    for idx in (1, 2, 3):
        slot_columns += [
            sa.Column(f'account_{idx}', sa.String(length=20), nullable=True),
            _money(f'amount_{idx}'),
            sa.Column(f'side_{idx}', sa.String(length=10), nullable=True),
        ]
    op.create_table(
        'cash_vouchers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('voucher_code', sa.String(length=40), nullable=False),
        sa.Column('account_code', sa.String(length=20), nullable=False),
        sa.Column('voucher_date', sa.Date(), nullable=False),
        sa.Column('created_date', sa.Date(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        _money('cash_mutation', nullable=False),
        _money('balance', nullable=False),
        *slot_columns,
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    _indexes('cash_vouchers', 'voucher_code', 'account_code', 'voucher_date', 'tenant_id')

    op.create_table(
        'journal_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('journal_code', sa.String(length=40), nullable=False),
        sa.Column('journal_date', sa.Date(), nullable=False),
        sa.Column('voucher_code', sa.String(length=40), nullable=True),
        sa.Column('remark', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    _indexes('journal_entries', 'tenant_id', 'journal_code', 'journal_date')

    op.create_table(
        'journal_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('journal_entry_id', sa.Integer(), nullable=False),
        sa.Column('account_code', sa.String(length=20), nullable=False),
        _money('debit', nullable=False),
        _money('credit', nullable=False),
        sa.CheckConstraint('debit >= 0'),
        sa.CheckConstraint('credit >= 0'),
        sa.CheckConstraint(
            '(debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0) OR (debit = 0 AND credit = 0)',
            name='check_debit_or_credit_exclusive',
        ),
        sa.ForeignKeyConstraint(['journal_entry_id'], ['journal_entries.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    _indexes('journal_items', 'tenant_id', 'account_code')

    op.create_table(
        'adjustment_journal_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('journal_code', sa.String(length=40), nullable=False),
        sa.Column('period', sa.Date(), nullable=False),
        sa.Column('posting_date', sa.Date(), nullable=True),
        sa.Column('account_code', sa.String(length=20), nullable=False),
        sa.Column('account_name', sa.String(length=150), nullable=True),
        _money('debit', nullable=False),
        _money('credit', nullable=False),
        sa.Column('remark', sa.Text(), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    _indexes('adjustment_journal_lines', 'journal_code', 'period', 'tenant_id')


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'adjustment_journal_lines',
        'journal_items',
        'journal_entries',
        'cash_vouchers',
        'purchase_invoice_items',
        'purchase_invoices',
        'goods_receipt_items',
        'goods_receipts',
        'purchase_order_items',
        'purchase_orders',
        'vendors',
        'worksheet_lines',
        'account_balance_recaps',
        'chart_of_accounts',
        'audit_log',
        'app_config',
    ):
        op.drop_table(table)
