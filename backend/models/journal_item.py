from sqlalchemy import Column, Integer, Numeric, ForeignKey, CheckConstraint, String
from sqlalchemy.orm import relationship
from database import Base


class JournalItem(Base):
    __tablename__ = "journal_items"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)
    account_code = Column(String(20), nullable=False, index=True)
    debit = Column(Numeric(18, 2), CheckConstraint('debit >= 0'), nullable=False, default=0)
    credit = Column(Numeric(18, 2), CheckConstraint('credit >= 0'), nullable=False, default=0)

    # Relationships
    journal_entry = relationship("JournalEntry", back_populates="items")

    __table_args__ = (
        CheckConstraint(
            '(debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0) OR (debit = 0 AND credit = 0)',
            name='check_debit_or_credit_exclusive'
        ),
    )
