from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import date
from decimal import Decimal

from schemas.chart_of_accounts import AccountOption


class AdjustmentOptions(BaseModel):
    period_options: List[str]
    default_period: Optional[str] = None
    year_options: List[str]
    default_year: Optional[str] = None
    active_book_month: str
    period_default: date
    posting_date_default: date
    gl_account_options: List[AccountOption]


class AdjustmentDocument(BaseModel):
    journal_code: str
    period: date
    posting_date: Optional[date] = None
    remark: str = ""
    total_debit: float
    total_credit: float
    lines: int
    is_balanced: bool


class AdjustmentSummary(BaseModel):
    total_documents: int = 0
    sum_debit: float = 0
    sum_credit: float = 0
    balanced_count: int = 0
    unbalanced_count: int = 0
    sum_abs_difference: float = 0


class AdjustmentDocumentPage(BaseModel):
    rows: List[AdjustmentDocument]
    total: int
    summary: AdjustmentSummary


class AdjustmentLine(BaseModel):
    id: int
    account_code: str
    account_name: Optional[str] = None
    debit: Decimal
    credit: Decimal
    remark: Optional[str] = None
    posting_date: Optional[date] = None

    class Config:
        from_attributes = True


class AdjustmentTotals(BaseModel):
    total_debit: float
    total_credit: float
    is_balanced: bool


class AdjustmentDetails(BaseModel):
    journal_code: str
    period: date
    details: List[AdjustmentLine]
    totals: AdjustmentTotals


class SuggestedAdjustmentLine(BaseModel):
    account_code: str
    side: str


class AdjustmentSuggestion(BaseModel):
    lines: List[SuggestedAdjustmentLine] = []
    remark_suggest: str = ""
    confidence: Dict[str, float] = {}
    evidence: List[Dict[str, Any]] = []


class AdjustmentLineCreate(BaseModel):
    account_code: str = Field(..., min_length=1)
    side: str
    amount: Decimal = Field(..., gt=0)


class AdjustmentJournalCreate(BaseModel):
    period: date
    posting_date: Optional[date] = None
    remark: str = Field(..., min_length=1)
    lines: List[AdjustmentLineCreate] = Field(..., min_length=2, max_length=4)


class AdjustmentJournalStored(BaseModel):
    journal_code: str
    period: date
    lines: List[AdjustmentLine]
