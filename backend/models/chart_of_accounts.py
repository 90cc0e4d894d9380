from sqlalchemy import Column, Integer, String, Text, Boolean, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin


class ChartOfAccounts(Base, TimestampMixin):
    __tablename__ = "chart_of_accounts"

    id = Column(Integer, primary_key=True, index=True)
    # The first digit drives the income-statement group (4 revenue, 5 COGS, 6 opex, 7 other)
    account_code = Column(String(20), nullable=False, index=True)
    account_name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    tenant_id = Column(String, index=True)

    __table_args__ = (
        UniqueConstraint('tenant_id', 'account_code', name='_tenant_account_code_uc'),
    )
