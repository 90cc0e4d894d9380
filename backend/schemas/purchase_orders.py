from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date
from decimal import Decimal


class PurchaseOrderItemCreate(BaseModel):
    material_code: str
    material: Optional[str] = None
    quantity: Decimal = Field(..., ge=0)
    price: Decimal = Field(..., ge=0)


class PurchaseOrderItem(PurchaseOrderItemCreate):
    id: int
    received_qty: Optional[Decimal] = None
    received_value: Optional[Decimal] = None
    invoice_closed: bool = False
    receipt_closed: bool = False

    class Config:
        from_attributes = True


class PurchaseOrderCreate(BaseModel):
    po_number: str
    vendor_name: Optional[str] = None
    order_date: Optional[date] = None
    ppn: Decimal = Field(Decimal(0), ge=0)
    payment_terms: Optional[str] = None
    items: List[PurchaseOrderItemCreate]


class PurchaseOrder(BaseModel):
    id: int
    po_number: str
    vendor_name: Optional[str] = None
    order_date: Optional[date] = None
    ppn: Optional[Decimal] = None
    payment_terms: Optional[str] = None
    items: List[PurchaseOrderItem] = []

    class Config:
        from_attributes = True


class GoodsReceiptItemCreate(BaseModel):
    material_code: str
    material: Optional[str] = None
    quantity: Decimal = Field(..., ge=0)
    unit: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    total_price: Optional[Decimal] = None


class GoodsReceiptItem(GoodsReceiptItemCreate):
    id: int
    invoiced: bool = False

    class Config:
        from_attributes = True


class GoodsReceiptCreate(BaseModel):
    receipt_number: str
    po_number: Optional[str] = None
    vendor_name: Optional[str] = None
    posting_date: Optional[date] = None
    items: List[GoodsReceiptItemCreate]


class GoodsReceipt(BaseModel):
    id: int
    receipt_number: str
    po_number: Optional[str] = None
    vendor_name: Optional[str] = None
    posting_date: Optional[date] = None
    items: List[GoodsReceiptItem] = []

    class Config:
        from_attributes = True
