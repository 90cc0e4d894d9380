from pydantic import BaseModel, Field, model_validator
from decimal import Decimal


class JournalItemBase(BaseModel):
    account_code: str = Field(..., min_length=1)
    debit: Decimal = Field(..., ge=0, decimal_places=2)
    credit: Decimal = Field(..., ge=0, decimal_places=2)


class JournalItemCreate(JournalItemBase):
    @model_validator(mode='after')
    def check_single_side(self):
        if self.debit > 0 and self.credit > 0:
            raise ValueError('A journal line is either a debit or a credit, not both.')
        return self


class JournalItem(JournalItemBase):
    id: int
    journal_entry_id: int

    class Config:
        from_attributes = True
