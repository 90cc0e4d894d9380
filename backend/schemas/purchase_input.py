from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date
from decimal import Decimal

from schemas.cash_book import CashVoucher, SuggestedLine
from schemas.chart_of_accounts import AccountOption
from schemas.purchase_invoices import PurchaseInvoiceHeader


class PurchaseVoucherPage(BaseModel):
    rows: List[CashVoucher]
    total: int


class PurchaseInvoicePage(BaseModel):
    rows: List[PurchaseInvoiceHeader]
    total: int


class PurchaseInvoiceForInput(BaseModel):
    header: PurchaseInvoiceHeader
    ppn_percent: Optional[float] = None


class PurchaseInputOptions(BaseModel):
    account_options: List[AccountOption]
    default_account: Optional[str] = None
    expense_account_options: List[AccountOption]


class Allocation(BaseModel):
    cash: float
    dpp: float
    tax: float


class PurchaseInputSuggestion(BaseModel):
    allocation: Allocation
    account_code: str = ""
    voucher_type: str = ""
    ppn_account: str = ""
    dpp_lines: List[SuggestedLine] = []
    description: str


class DppLine(BaseModel):
    account_code: str = ""
    side: Optional[str] = None
    amount: Decimal = Field(..., ge=0)


class PurchaseInputCreate(BaseModel):
    invoice_number: str
    account_code: str
    voucher_date: date
    voucher_type: Optional[str] = None
    ppn_account: Optional[str] = None
    nominal: Optional[Decimal] = None
    description: Optional[str] = None
    # Line count and accounts are checked after the invoice lookup so a missing FI reports 404 first
    dpp_lines: List[DppLine]
