from sqlalchemy import Column, Integer, String, Numeric, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin


class AccountBalanceRecap(Base, TimestampMixin):
    """Monthly closing balance per account.

    ``recap_code`` ends with the YYYYMM period it belongs to (e.g. ``NABB202401``).
    """
    __tablename__ = "account_balance_recaps"

    id = Column(Integer, primary_key=True, index=True)
    recap_code = Column(String(30), nullable=False, index=True)
    account_code = Column(String(20), nullable=False, index=True)
    balance = Column(Numeric(18, 2), nullable=False, default=0)
    tenant_id = Column(String, index=True)

    __table_args__ = (
        UniqueConstraint('tenant_id', 'recap_code', 'account_code', name='_tenant_recap_account_uc'),
    )
