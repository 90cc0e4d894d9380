from sqlalchemy import Column, Integer, String, Date, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class PurchaseInvoice(Base, TimestampMixin):
    """Incoming supplier invoice (FI document)."""
    __tablename__ = "purchase_invoices"
    __table_args__ = (UniqueConstraint('tenant_id', 'invoice_number', name='_tenant_invoice_number_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(20), nullable=False, index=True)  # FI########
    receipt_reference = Column(String(60), nullable=True)  # supplier's own document number
    po_number = Column(String(40), nullable=True, index=True)
    received_date = Column(Date, nullable=True)
    invoice_date = Column(Date, nullable=True)
    posting_date = Column(Date, nullable=True)
    payment_terms = Column(String(50), nullable=True)
    vendor_code = Column(String(30), nullable=True)
    vendor_name = Column(String, nullable=True, index=True)
    subtotal = Column(Numeric(18, 2), default=0)
    tax = Column(Numeric(18, 2), default=0)
    total = Column(Numeric(18, 2), default=0)
    paid_amount = Column(Numeric(18, 2), default=0)
    outstanding = Column(Numeric(18, 2), default=0)
    paid_date = Column(Date, nullable=True)
    payment_request_count = Column(Integer, default=0)
    # Cash voucher code once the invoice has been paid through the cash book
    journal_voucher = Column(String(40), nullable=True, index=True)
    tenant_id = Column(String, index=True)

    items = relationship(
        "PurchaseInvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="PurchaseInvoiceItem.line_no",
    )


class PurchaseInvoiceItem(Base):
    __tablename__ = "purchase_invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("purchase_invoices.id"), nullable=False)
    line_no = Column(Integer, nullable=False)
    material_code = Column(String(40), nullable=False)
    material = Column(String, nullable=True)
    quantity = Column(Numeric(14, 3), default=0)
    unit = Column(String(20), nullable=True)
    price = Column(Numeric(18, 2), default=0)
    total_price = Column(Numeric(18, 2), default=0)
    outstanding_po = Column(Numeric(14, 3), default=0)
    po_item_id = Column(Integer, nullable=True)
    receipt_item_id = Column(Integer, nullable=True)
    tenant_id = Column(String, index=True)

    invoice = relationship("PurchaseInvoice", back_populates="items")
