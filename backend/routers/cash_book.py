from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from database import get_db
from crud import cash_book as crud_cash_book
from schemas.cash_book import (
    CashBookOptions,
    CashSuggestion,
    CashVoucherCreate,
    CashVoucherPage,
    CashVoucherStored,
)
from utils.tenancy import get_tenant_id, get_user_id

router = APIRouter(prefix="/cash-book", tags=["Cash Book"])
logger = logging.getLogger("cash_book")


@router.get("/rows", response_model=CashVoucherPage)
def get_rows(
    search: Optional[str] = None,
    account: Optional[str] = None,
    period: Optional[str] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    return crud_cash_book.list_rows(db, tenant_id, search=search, account=account, period=period)


@router.get("/options", response_model=CashBookOptions)
def get_options(db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_cash_book.options(db, tenant_id)


@router.get("/suggest", response_model=CashSuggestion)
def suggest(
    mode: str = "out",
    account: str = "",
    source: str = "",
    dest: str = "",
    nominal: float = 0,
    description: str = "",
    template_key: str = "",
    has_ppn: bool = False,
    ppn_amount: float = 0,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    """Suggest accounts, voucher type and DPP lines for a new cash mutation."""
    try:
        return crud_cash_book.suggest(
            db, tenant_id, mode, account=account, source=source, dest=dest, nominal=nominal,
            description=description, template_key=template_key, has_ppn=has_ppn, ppn_amount=ppn_amount,
        )
    except Exception:
        logger.exception("Failed to build cash-book suggestion")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected error occurred.")


@router.post("/", response_model=CashVoucherStored, status_code=status.HTTP_201_CREATED)
def store_voucher(
    payload: CashVoucherCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    try:
        vouchers = crud_cash_book.store_voucher(db, payload, tenant_id, user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception:
        logger.exception("Failed to store cash voucher")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected error occurred.")
    return {"vouchers": vouchers}
