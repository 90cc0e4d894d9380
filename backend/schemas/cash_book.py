from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Literal, Optional
from datetime import date
from decimal import Decimal

from schemas.chart_of_accounts import AccountOption


class CashVoucher(BaseModel):
    id: int
    voucher_code: str
    account_code: str
    voucher_date: date
    created_date: Optional[date] = None
    description: Optional[str] = None
    cash_mutation: Decimal
    balance: Decimal
    account_1: Optional[str] = None
    amount_1: Optional[Decimal] = None
    side_1: Optional[str] = None
    account_2: Optional[str] = None
    amount_2: Optional[Decimal] = None
    side_2: Optional[str] = None
    account_3: Optional[str] = None
    amount_3: Optional[Decimal] = None
    side_3: Optional[str] = None

    class Config:
        from_attributes = True


class CashVoucherPage(BaseModel):
    rows: List[CashVoucher]
    total: int


class CashTemplate(BaseModel):
    key: str
    label: str
    count: int
    pos: int
    neg: int
    example: str
    default_mode: Literal["in", "out"]


class CashBookOptions(BaseModel):
    account_options: List[AccountOption]
    default_account: Optional[str] = None
    gl_account_options: List[AccountOption]
    templates: List[CashTemplate] = []


class SuggestedLine(BaseModel):
    account_code: str
    side: str
    amount: float


class CashSuggestion(BaseModel):
    mode: Literal["in", "out", "transfer"]
    account_code: str = ""
    source: str = ""
    dest: str = ""
    voucher_type: str
    description: str
    ppn_account: str = ""
    ppn_side: str
    lines: List[SuggestedLine] = []
    confidence: Dict[str, float] = {}
    evidence: List[Dict[str, Any]] = []


class CounterLine(BaseModel):
    account_code: str
    side: Optional[str] = None
    amount: Decimal = Field(..., ge=0)

    @field_validator('account_code')
    @classmethod
    def strip_account(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Counter account is required.")
        return v


class CashVoucherCreate(BaseModel):
    mode: Literal["in", "out", "transfer"]
    account_code: Optional[str] = None
    source: Optional[str] = None
    dest: Optional[str] = None
    voucher_date: date
    voucher_type: Optional[str] = None
    nominal: Decimal = Field(..., gt=0)
    description: Optional[str] = None
    has_ppn: bool = False
    ppn_account: Optional[str] = None
    ppn_amount: Decimal = Field(Decimal(0), ge=0)
    lines: List[CounterLine] = Field(default_factory=list, max_length=3)


class CashVoucherStored(BaseModel):
    vouchers: List[CashVoucher]
