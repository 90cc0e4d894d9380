from sqlalchemy import Column, Integer, String, Date, Numeric, Text
from database import Base
from models.audit_mixin import TimestampMixin


class CashVoucher(Base, TimestampMixin):
    """A cash/bank book mutation with up to three counter-account splits.

    Slot 2 carries the VAT (PPN) split whenever the voucher has tax; slots 1
    and 3 then hold the tax-base (DPP) lines.
    """
    __tablename__ = "cash_vouchers"

    id = Column(Integer, primary_key=True, index=True)
    voucher_code = Column(String(40), nullable=False, index=True)  # e.g. SJA/BV/00000012
    account_code = Column(String(20), nullable=False, index=True)
    voucher_date = Column(Date, nullable=False, index=True)
    created_date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)
    cash_mutation = Column(Numeric(18, 2), nullable=False, default=0)  # + in, - out
    balance = Column(Numeric(18, 2), nullable=False, default=0)
    account_1 = Column(String(20), nullable=True)
    amount_1 = Column(Numeric(18, 2), nullable=True)
    side_1 = Column(String(10), nullable=True)
    account_2 = Column(String(20), nullable=True)
    amount_2 = Column(Numeric(18, 2), nullable=True)
    side_2 = Column(String(10), nullable=True)
    account_3 = Column(String(20), nullable=True)
    amount_3 = Column(Numeric(18, 2), nullable=True)
    side_3 = Column(String(10), nullable=True)
    tenant_id = Column(String, index=True)

    def slots(self):
        """Return all three (index, account, amount, side) splits, blanks included."""
        out = []
        for idx in (1, 2, 3):
            account = (getattr(self, f"account_{idx}") or "").strip()
            amount = float(getattr(self, f"amount_{idx}") or 0)
            side = getattr(self, f"side_{idx}") or ""
            out.append((idx, account, amount, side))
        return out
