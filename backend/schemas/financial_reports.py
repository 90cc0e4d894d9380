from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from decimal import Decimal


class ProfitAndLossRow(BaseModel):
    account_code: str
    account_name: str = ""
    pl_debit: float
    pl_credit: float
    net: float
    group: str
    subgroup: Optional[str] = None
    amount: float
    is_anomaly: bool = False


class ProfitAndLossSummary(BaseModel):
    total_revenue: float = 0
    total_cogs: float = 0
    gross_profit: float = 0
    total_operating_expense: float = 0
    operating_profit: float = 0
    total_other_income: float = 0
    total_other_expense: float = 0
    other_net: float = 0
    net_profit: float = 0


class ProfitAndLossKpis(BaseModel):
    gross_margin: float = 0
    operating_margin: float = 0
    net_margin: float = 0
    cogs_ratio: float = 0
    opex_ratio: float = 0


class ProfitAndLoss(BaseModel):
    rows: List[ProfitAndLossRow]
    total: int
    summary: ProfitAndLossSummary
    kpis: ProfitAndLossKpis
    drivers: Dict[str, List[ProfitAndLossRow]] = {}


class WorksheetLineBase(BaseModel):
    account_code: str = Field(..., min_length=1)
    account_name: Optional[str] = None
    tb_debit: Decimal = Decimal(0)
    tb_credit: Decimal = Decimal(0)
    adj_debit: Decimal = Decimal(0)
    adj_credit: Decimal = Decimal(0)
    pl_debit: Decimal = Decimal(0)
    pl_credit: Decimal = Decimal(0)
    bs_debit: Decimal = Decimal(0)
    bs_credit: Decimal = Decimal(0)


class WorksheetLineCreate(WorksheetLineBase):
    pass


class WorksheetLine(WorksheetLineBase):
    id: int

    class Config:
        from_attributes = True
