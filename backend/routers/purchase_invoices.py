from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from crud import purchase_invoices as crud_invoices
from schemas.purchase_invoices import (
    GoodsReceiptLookup,
    GoodsReceiptMaterial,
    GoodsReceiptRow,
    PurchaseInvoice,
    PurchaseInvoiceCreate,
    PurchaseInvoiceDetail,
    PurchaseInvoiceList,
    PurchaseInvoiceUpdate,
)
from utils.tenancy import get_tenant_id, get_user_id

router = APIRouter(prefix="/purchase-invoices", tags=["Purchase Invoices"])
logger = logging.getLogger("purchase_invoices")

INVOICE_STATUSES = ("all", "unpaid", "outstanding", "unjournaled")


@router.get("/", response_model=PurchaseInvoiceList)
def list_invoices(
    search: Optional[str] = None,
    invoice_status: str = Query("all", alias="status"),
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    if invoice_status not in INVOICE_STATUSES:
        invoice_status = "all"
    return crud_invoices.list_invoices(db, tenant_id, search=search, status=invoice_status)


@router.get("/goods-receipts", response_model=List[GoodsReceiptRow])
def list_goods_receipts(
    search: Optional[str] = None,
    page_size: str = "10",
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    """Goods receipts that can be invoiced, newest first."""
    if page_size == "all":
        limit = None
    else:
        try:
            limit = max(1, int(page_size))
        except ValueError:
            limit = 10
    return crud_invoices.list_goods_receipts(db, tenant_id, search=search, limit=limit)


@router.get("/goods-receipts/{receipt_number}", response_model=GoodsReceiptLookup)
def get_goods_receipt(
    receipt_number: str,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    if not receipt_number.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Warehouse receipt number is required")
    lookup = crud_invoices.goods_receipt_lookup(db, receipt_number, tenant_id)
    if not lookup:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goods receipt not found")
    return lookup


@router.get("/goods-receipts/{receipt_number}/materials", response_model=List[GoodsReceiptMaterial])
def get_goods_receipt_materials(
    receipt_number: str,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    receipt = crud_invoices.get_goods_receipt(db, receipt_number, tenant_id)
    if not receipt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goods receipt not found")
    return sorted(receipt.items, key=lambda item: item.id)


@router.post("/", response_model=PurchaseInvoice, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: PurchaseInvoiceCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    try:
        return crud_invoices.create_invoice(db, payload, tenant_id, user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception:
        logger.exception("Failed to save purchase invoice")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected error occurred.")


@router.get("/{invoice_number}", response_model=PurchaseInvoiceDetail)
def get_invoice(
    invoice_number: str,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    invoice = crud_invoices.get_invoice(db, invoice_number, tenant_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return {
        "header": invoice,
        "warehouse_receipt": crud_invoices.warehouse_receipt_for(db, invoice.po_number, tenant_id),
        "items": invoice.items,
    }


@router.patch("/{invoice_number}", response_model=PurchaseInvoice)
def update_invoice(
    invoice_number: str,
    payload: PurchaseInvoiceUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    invoice = crud_invoices.update_invoice(db, invoice_number, payload, tenant_id, user_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


@router.delete("/{invoice_number}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_number: str,
    po_number: Optional[str] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    try:
        deleted = crud_invoices.delete_invoice(db, invoice_number, tenant_id, user_id, po_number=po_number)
    except Exception:
        logger.exception(f"Failed to delete invoice {invoice_number}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected error occurred.")
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return None
