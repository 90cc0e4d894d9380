from sqlalchemy import Column, Integer, String, Date, Numeric, Text
from database import Base
from models.audit_mixin import TimestampMixin


class AdjustmentJournalLine(Base, TimestampMixin):
    """One line of an adjustment journal (JP) document.

    A document is the set of lines sharing ``journal_code`` and ``period``.
    """
    __tablename__ = "adjustment_journal_lines"

    id = Column(Integer, primary_key=True, index=True)
    journal_code = Column(String(40), nullable=False, index=True)
    period = Column(Date, nullable=False, index=True)  # always the first day of a month
    posting_date = Column(Date, nullable=True)
    account_code = Column(String(20), nullable=False)
    account_name = Column(String(150), nullable=True)
    debit = Column(Numeric(18, 2), nullable=False, default=0)
    credit = Column(Numeric(18, 2), nullable=False, default=0)
    remark = Column(Text, nullable=True)
    tenant_id = Column(String, index=True)
