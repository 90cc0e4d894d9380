from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from database import get_db
from crud import purchase_input as crud_purchase_input
from crud import purchase_suggest
from schemas.cash_book import CashVoucher
from schemas.purchase_input import (
    PurchaseInputCreate,
    PurchaseInputOptions,
    PurchaseInputSuggestion,
    PurchaseInvoiceForInput,
    PurchaseInvoicePage,
    PurchaseVoucherPage,
)
from utils.tenancy import get_tenant_id, get_user_id

router = APIRouter(prefix="/purchase-input", tags=["Purchase Input"])
logger = logging.getLogger("purchase_input")


@router.get("/rows", response_model=PurchaseVoucherPage)
def get_rows(
    search: Optional[str] = None,
    account: str = "all",
    period: Optional[str] = None,
    page: int = 1,
    page_size: str = "10",
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    """Cash vouchers that paid an incoming invoice."""
    return crud_purchase_input.list_rows(db, tenant_id, search=search, account=account, period=period,
                                         page=page, page_size=page_size)


@router.get("/invoices", response_model=PurchaseInvoicePage)
def get_invoices(
    invoice_status: str = Query("unjournaled", alias="status"),
    search: Optional[str] = None,
    page: int = 1,
    page_size: str = "10",
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    return crud_purchase_input.list_invoices(db, tenant_id, status=invoice_status, search=search,
                                             page=page, page_size=page_size)


@router.get("/invoices/{invoice_number}", response_model=PurchaseInvoiceForInput)
def get_invoice(
    invoice_number: str,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    invoice = crud_purchase_input.get_invoice(db, tenant_id, invoice_number)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="FI not found")
    return {"header": invoice, "ppn_percent": crud_purchase_input.ppn_percent(db, tenant_id, invoice.po_number)}


@router.get("/invoices/{invoice_number}/suggest", response_model=PurchaseInputSuggestion)
def suggest(
    invoice_number: str,
    nominal: Optional[float] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    invoice = crud_purchase_input.get_invoice(db, tenant_id, invoice_number)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="FI not found")
    try:
        return purchase_suggest.suggest(db, tenant_id, invoice, nominal=nominal)
    except Exception:
        logger.exception(f"Failed to build suggestion for FI {invoice_number}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected error occurred.")


@router.get("/options", response_model=PurchaseInputOptions)
def get_options(db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_purchase_input.options(db, tenant_id)


@router.post("/", response_model=CashVoucher, status_code=status.HTTP_201_CREATED)
def store(
    payload: PurchaseInputCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    invoice = crud_purchase_input.get_invoice(db, tenant_id, payload.invoice_number)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="FI not found")
    try:
        return crud_purchase_input.store(db, invoice, payload, tenant_id, user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception:
        logger.exception(f"Failed to journal FI {payload.invoice_number}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected error occurred.")
