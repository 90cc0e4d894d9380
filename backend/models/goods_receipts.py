from sqlalchemy import Column, Integer, String, Date, Numeric, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class GoodsReceipt(Base, TimestampMixin):
    __tablename__ = "goods_receipts"
    __table_args__ = (UniqueConstraint('tenant_id', 'receipt_number', name='_tenant_receipt_number_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    receipt_number = Column(String(40), nullable=False, index=True)
    po_number = Column(String(40), nullable=True, index=True)
    vendor_name = Column(String, nullable=True)
    posting_date = Column(Date, nullable=True)
    tenant_id = Column(String, index=True)

    items = relationship("GoodsReceiptItem", back_populates="goods_receipt", cascade="all, delete-orphan")


class GoodsReceiptItem(Base):
    __tablename__ = "goods_receipt_items"

    id = Column(Integer, primary_key=True, index=True)
    goods_receipt_id = Column(Integer, ForeignKey("goods_receipts.id"), nullable=False)
    material_code = Column(String(40), nullable=False, index=True)
    material = Column(String, nullable=True)
    quantity = Column(Numeric(14, 3), nullable=False, default=0)
    unit = Column(String(20), nullable=True)
    price = Column(Numeric(18, 2), nullable=False, default=0)
    total_price = Column(Numeric(18, 2), nullable=False, default=0)
    invoiced = Column(Boolean, default=False)
    tenant_id = Column(String, index=True)

    goods_receipt = relationship("GoodsReceipt", back_populates="items")
