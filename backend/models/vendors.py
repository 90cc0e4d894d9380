from sqlalchemy import Column, Integer, String, Text, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin


class Vendor(Base, TimestampMixin):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    vendor_code = Column(String(30), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    tenant_id = Column(String, index=True)

    __table_args__ = (
        UniqueConstraint('tenant_id', 'vendor_code', name='_tenant_vendor_code_uc'),
    )
