from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from openpyxl.styles import Font
from typing import List
from io import BytesIO
import logging

import pandas as pd

from database import get_db
from schemas.financial_reports import ProfitAndLoss, WorksheetLine, WorksheetLineCreate
from crud import financial_reports as crud_financial_reports
from utils.tenancy import get_tenant_id, get_user_id

router = APIRouter(
    prefix="/financial-reports",
    tags=["Financial Reports"],
)
logger = logging.getLogger("financial_reports")

ROW_COLUMNS = {
    "account_code": "Account Code",
    "account_name": "Account Name",
    "group": "Group",
    "subgroup": "Subgroup",
    "pl_debit": "P&L Debit",
    "pl_credit": "P&L Credit",
    "net": "Net",
    "amount": "Amount",
    "is_anomaly": "Anomaly",
}


@router.get("/profit-and-loss", response_model=ProfitAndLoss)
def get_profit_and_loss(
    search: str = "",
    sort_by: str = Query("account_code", pattern="^(account_code|account_name|amount)$"),
    sort_dir: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: str = "10",
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return crud_financial_reports.get_profit_and_loss(
        db=db,
        tenant_id=tenant_id,
        search=search,
        sort_by=sort_by,
        sort_dir=sort_dir,
        page=page,
        page_size=page_size,
    )


@router.get("/profit-and-loss/export")
def export_profit_and_loss(
    search: str = "",
    sort_by: str = Query("account_code", pattern="^(account_code|account_name|amount)$"),
    sort_dir: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    report = crud_financial_reports.get_profit_and_loss(
        db=db, tenant_id=tenant_id, search=search, sort_by=sort_by, sort_dir=sort_dir, page_size="all"
    )

    rows_df = pd.DataFrame(report["rows"], columns=list(ROW_COLUMNS)).rename(columns=ROW_COLUMNS)
    summary_df = pd.DataFrame(
        [(key, value) for key, value in {**report["summary"], **report["kpis"]}.items()],
        columns=["Metric", "Value"],
    )

    # Create an in-memory Excel file
    excel_file = BytesIO()
    with pd.ExcelWriter(excel_file, engine="openpyxl") as writer:
        rows_df.to_excel(writer, index=False, sheet_name="Rows")
        summary_df.to_excel(writer, index=False, sheet_name="Summary")
        for sheet in writer.sheets.values():
            for cell in sheet[1]:
                cell.font = Font(bold=True)
    excel_file.seek(0)

    logger.info(f"Profit and loss exported with {len(report['rows'])} rows for tenant {tenant_id}")
    headers = {
        'Content-Disposition': f'attachment; filename="profit_and_loss_{tenant_id}.xlsx"'
    }
    return StreamingResponse(excel_file, media_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet', headers=headers)


@router.get("/worksheet", response_model=List[WorksheetLine])
def get_worksheet(db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_financial_reports.get_worksheet(db, tenant_id)


@router.put("/worksheet", response_model=List[WorksheetLine])
def replace_worksheet(
    lines: List[WorksheetLineCreate],
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    """Replace the tenant's trial-balance worksheet with the posted lines."""
    try:
        return crud_financial_reports.replace_worksheet(db, lines, tenant_id, user_id)
    except Exception:
        logger.exception("Failed to replace worksheet")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected error occurred.")
