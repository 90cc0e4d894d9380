from sqlalchemy import Column, Integer, Numeric, ForeignKey, String, Boolean
from sqlalchemy.orm import relationship
from database import Base


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=False)
    material_code = Column(String(40), nullable=False, index=True)
    material = Column(String, nullable=True)
    quantity = Column(Numeric(14, 3), nullable=False, default=0)
    price = Column(Numeric(18, 2), nullable=False, default=0)
    # Quantity/value already received into the warehouse
    received_qty = Column(Numeric(14, 3), default=0)
    received_value = Column(Numeric(18, 2), default=0)
    invoice_closed = Column(Boolean, default=False)
    receipt_closed = Column(Boolean, default=False)
    tenant_id = Column(String, index=True)

    # Relationships
    purchase_order = relationship("PurchaseOrder", back_populates="items")
