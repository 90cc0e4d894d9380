from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date
from decimal import Decimal


class PurchaseInvoiceItemCreate(BaseModel):
    material_code: str
    material: str
    quantity: Decimal
    unit: str
    price: Decimal
    total_price: Decimal


class PurchaseInvoiceItem(BaseModel):
    id: int
    line_no: int
    material_code: str
    material: Optional[str] = None
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    price: Optional[Decimal] = None
    total_price: Optional[Decimal] = None
    outstanding_po: Optional[Decimal] = None
    po_item_id: Optional[int] = None
    receipt_item_id: Optional[int] = None

    class Config:
        from_attributes = True


class PurchaseInvoiceCreate(BaseModel):
    po_number: str
    received_date: date
    invoice_date: date
    payment_terms: Optional[str] = None
    vendor_name: str
    vendor_code: Optional[str] = None
    tax: Decimal = Field(..., ge=0)
    total: Decimal = Field(..., ge=0)
    receipt_reference: str
    warehouse_receipt: str
    items: List[PurchaseInvoiceItemCreate]

    @field_validator('items')
    @classmethod
    def check_items(cls, items):
        if not items:
            raise ValueError('An invoice needs at least one item.')
        return items


class PurchaseInvoiceUpdate(BaseModel):
    received_date: date
    invoice_date: date
    receipt_reference: str


class PurchaseInvoiceHeader(BaseModel):
    id: int
    invoice_number: str
    receipt_reference: Optional[str] = None
    po_number: Optional[str] = None
    received_date: Optional[date] = None
    invoice_date: Optional[date] = None
    posting_date: Optional[date] = None
    payment_terms: Optional[str] = None
    vendor_code: Optional[str] = None
    vendor_name: Optional[str] = None
    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    total: Optional[Decimal] = None
    paid_amount: Optional[Decimal] = None
    outstanding: Optional[Decimal] = None
    paid_date: Optional[date] = None
    payment_request_count: Optional[int] = None
    journal_voucher: Optional[str] = None

    class Config:
        from_attributes = True


class PurchaseInvoice(PurchaseInvoiceHeader):
    items: List[PurchaseInvoiceItem] = []


class PurchaseInvoiceDetail(BaseModel):
    header: PurchaseInvoiceHeader
    warehouse_receipt: Optional[str] = None
    items: List[PurchaseInvoiceItem] = []


class UnbilledSummary(BaseModel):
    unbilled_count: int
    unbilled_total: float


class PurchaseInvoiceList(BaseModel):
    invoices: List[PurchaseInvoiceHeader]
    summary: UnbilledSummary


class GoodsReceiptRow(BaseModel):
    receipt_number: str
    po_number: Optional[str] = None
    vendor_name: Optional[str] = None
    posting_date: Optional[date] = None

    class Config:
        from_attributes = True


class GoodsReceiptLookup(BaseModel):
    receipt_number: str
    po_number: Optional[str] = None
    vendor: Optional[str] = None
    vendor_code: Optional[str] = None
    payment_terms: Optional[str] = None
    ppn: float = 0


class GoodsReceiptMaterial(BaseModel):
    material_code: str
    material: Optional[str] = None
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    price: Optional[Decimal] = None
    total_price: Optional[Decimal] = None

    class Config:
        from_attributes = True
