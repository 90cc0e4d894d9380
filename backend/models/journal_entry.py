from sqlalchemy import Column, Integer, String, Date, Text
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class JournalEntry(Base, TimestampMixin):
    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    journal_code = Column(String(40), nullable=False, index=True)
    journal_date = Column(Date, nullable=False, index=True)
    voucher_code = Column(String(40), nullable=True)
    remark = Column(Text, nullable=True)

    # Relationships
    items = relationship("JournalItem", back_populates="journal_entry", cascade="all, delete-orphan")
