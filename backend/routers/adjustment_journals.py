from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from datetime import date
import logging

from database import get_db
from crud import adjustment_journal as crud_adjustment
from crud import adjustment_suggest
from schemas.adjustment_journal import (
    AdjustmentDetails,
    AdjustmentDocumentPage,
    AdjustmentJournalCreate,
    AdjustmentJournalStored,
    AdjustmentOptions,
    AdjustmentSuggestion,
)
from utils.accounting import normalize_side_or
from utils.tenancy import get_tenant_id, get_user_id

router = APIRouter(prefix="/adjustment-journals", tags=["Adjustment Journals"])
logger = logging.getLogger("adjustment_journals")


@router.get("/options", response_model=AdjustmentOptions)
def get_options(db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_adjustment.options(db, tenant_id)


@router.get("/", response_model=AdjustmentDocumentPage)
def list_documents(
    period_type: str = "month",
    period: str = "",
    balance: str = Query("all", pattern="^(all|balanced|unbalanced)$"),
    search: str = "",
    sort_by: str = "period",
    sort_dir: str = "desc",
    page: int = Query(1, ge=1),
    page_size: str = "10",
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    try:
        return crud_adjustment.list_documents(
            db, tenant_id, period_type=period_type, period=period, balance=balance, search=search,
            sort_by=sort_by, sort_dir=sort_dir, page=page, page_size=page_size,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/details", response_model=AdjustmentDetails)
def get_details(
    journal_code: str = "",
    period: str = "",
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    journal_code = journal_code.strip()
    if not journal_code or not period.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="journal_code and period are required.")
    try:
        period_date = date.fromisoformat(period.strip())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid period. Use the YYYY-MM-DD format.")
    return crud_adjustment.get_document(db, tenant_id, journal_code, period_date)


@router.get("/suggest", response_model=AdjustmentSuggestion)
def suggest(
    remark: str = "",
    account_code: str = "",
    nominal: float = 0,
    side: str = "",
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    """Suggest up to four lines and a remark from past adjustment journals."""
    try:
        return adjustment_suggest.suggest(
            db, tenant_id, remark, seed_account=account_code,
            seed_side=normalize_side_or(side, ""), nominal=nominal,
        )
    except Exception:
        logger.exception("Failed to build adjustment suggestion")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected error occurred.")


@router.post("/", response_model=AdjustmentJournalStored, status_code=status.HTTP_201_CREATED)
def create_document(
    payload: AdjustmentJournalCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    try:
        return crud_adjustment.create_document(db, payload, tenant_id, user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception:
        logger.exception("Failed to store adjustment journal")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected error occurred.")
