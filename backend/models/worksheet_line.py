from sqlalchemy import Column, Integer, String, Numeric
from database import Base
from models.audit_mixin import TimestampMixin


class WorksheetLine(Base, TimestampMixin):
    """One account row of the trial-balance worksheet (neraca lajur)."""
    __tablename__ = "worksheet_lines"

    id = Column(Integer, primary_key=True, index=True)
    account_code = Column(String(20), nullable=False, index=True)
    account_name = Column(String(150), nullable=True)
    tb_debit = Column(Numeric(18, 2), default=0)
    tb_credit = Column(Numeric(18, 2), default=0)
    adj_debit = Column(Numeric(18, 2), default=0)
    adj_credit = Column(Numeric(18, 2), default=0)
    pl_debit = Column(Numeric(18, 2), default=0)
    pl_credit = Column(Numeric(18, 2), default=0)
    bs_debit = Column(Numeric(18, 2), default=0)
    bs_credit = Column(Numeric(18, 2), default=0)
    tenant_id = Column(String, index=True)
