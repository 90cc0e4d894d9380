from models.app_config import AppConfig
from models.audit_log import AuditLog
from models.chart_of_accounts import ChartOfAccounts
from models.account_balance_recap import AccountBalanceRecap
from models.worksheet_line import WorksheetLine
from models.vendors import Vendor
from models.purchase_orders import PurchaseOrder
from models.purchase_order_items import PurchaseOrderItem
from models.goods_receipts import GoodsReceipt, GoodsReceiptItem
from models.purchase_invoices import PurchaseInvoice, PurchaseInvoiceItem
from models.cash_voucher import CashVoucher
from models.journal_entry import JournalEntry
from models.journal_item import JournalItem
from models.adjustment_journal import AdjustmentJournalLine

__all__ = ['AccountBalanceRecap', 'AdjustmentJournalLine', 'AppConfig', 'AuditLog', 'CashVoucher', 'ChartOfAccounts', 'GoodsReceipt', 'GoodsReceiptItem', 'JournalEntry', 'JournalItem', 'PurchaseInvoice', 'PurchaseInvoiceItem', 'PurchaseOrder', 'PurchaseOrderItem', 'Vendor', 'WorksheetLine',]
