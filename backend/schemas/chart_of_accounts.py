from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class ChartOfAccountsBase(BaseModel):
    account_code: str
    account_name: str
    description: Optional[str] = None
    is_active: bool = True

    @field_validator('account_code')
    @classmethod
    def validate_account_code(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("account_code is required")
        return v


class ChartOfAccountsCreate(ChartOfAccountsBase):
    pass


class ChartOfAccountsUpdate(BaseModel):
    account_name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ChartOfAccounts(ChartOfAccountsBase):
    id: int
    tenant_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AccountOption(BaseModel):
    value: str
    label: str


class BalanceRecapIn(BaseModel):
    recap_code: str
    account_code: str
    balance: Decimal


class BalanceRecap(BalanceRecapIn):
    id: int

    class Config:
        from_attributes = True


class BalanceRecapBulk(BaseModel):
    recaps: List[BalanceRecapIn]
