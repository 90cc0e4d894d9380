from sqlalchemy import Column, Integer, String, Numeric, Date, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class PurchaseOrder(Base, TimestampMixin):
    __tablename__ = "purchase_orders"
    __table_args__ = (UniqueConstraint('tenant_id', 'po_number', name='_tenant_po_number_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    po_number = Column(String(40), nullable=False, index=True)
    vendor_name = Column(String, nullable=True)
    order_date = Column(Date, nullable=True)
    ppn = Column(Numeric(5, 2), default=0)  # VAT percentage, e.g. 11
    payment_terms = Column(String(50), nullable=True)
    tenant_id = Column(String, index=True)

    # Relationships
    items = relationship("PurchaseOrderItem", back_populates="purchase_order", cascade="all, delete-orphan")
