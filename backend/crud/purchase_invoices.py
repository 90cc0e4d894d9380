import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from crud.audit_log import record_change
from models.goods_receipts import GoodsReceipt, GoodsReceiptItem
from models.purchase_invoices import PurchaseInvoice, PurchaseInvoiceItem
from models.purchase_order_items import PurchaseOrderItem
from models.purchase_orders import PurchaseOrder
from models.vendors import Vendor
from schemas.purchase_invoices import PurchaseInvoiceCreate, PurchaseInvoiceUpdate
from utils import sqlalchemy_to_dict, to_float
from utils.accounting import next_code, round_money

logger = logging.getLogger("purchase_invoices")

INVOICE_PREFIX = "FI"


def unjournaled_filter():
    return or_(PurchaseInvoice.journal_voucher.is_(None), func.trim(PurchaseInvoice.journal_voucher) == "")


def _search_filter(search: str):
    like = f"%{search.strip()}%"
    return or_(
        PurchaseInvoice.invoice_number.like(like),
        PurchaseInvoice.po_number.like(like),
        PurchaseInvoice.vendor_name.like(like),
    )


def list_invoices(db: Session, tenant_id: str, search: str = None, status: str = "all"):
    """All invoices matching the filters, newest number first, plus the unbilled summary."""
    query = db.query(PurchaseInvoice).filter(PurchaseInvoice.tenant_id == tenant_id)
    if search and search.strip():
        query = query.filter(_search_filter(search))

    if status == "unpaid":
        query = query.filter(func.coalesce(PurchaseInvoice.paid_amount, 0) == 0)
    elif status == "outstanding":
        query = query.filter(func.coalesce(PurchaseInvoice.outstanding, 0) != 0)
    elif status == "unjournaled":
        query = query.filter(unjournaled_filter())

    invoices = query.order_by(PurchaseInvoice.invoice_number.desc()).all()

    unbilled_count, unbilled_total = db.query(
        func.count(PurchaseInvoice.id),
        func.coalesce(func.sum(PurchaseInvoice.outstanding), 0),
    ).filter(
        PurchaseInvoice.tenant_id == tenant_id,
        func.coalesce(PurchaseInvoice.paid_amount, 0) == 0,
    ).one()

    return {
        "invoices": invoices,
        "summary": {"unbilled_count": int(unbilled_count or 0), "unbilled_total": to_float(unbilled_total)},
    }


def get_invoice(db: Session, invoice_number: str, tenant_id: str) -> Optional[PurchaseInvoice]:
    return db.query(PurchaseInvoice).filter(
        PurchaseInvoice.invoice_number == invoice_number,
        PurchaseInvoice.tenant_id == tenant_id,
    ).options(selectinload(PurchaseInvoice.items)).first()


def warehouse_receipt_for(db: Session, po_number: Optional[str], tenant_id: str) -> Optional[str]:
    if not po_number:
        return None
    row = db.query(GoodsReceipt.receipt_number).filter(
        GoodsReceipt.po_number == po_number,
        GoodsReceipt.tenant_id == tenant_id,
    ).order_by(GoodsReceipt.receipt_number.asc()).first()
    return row[0] if row else None


def list_goods_receipts(db: Session, tenant_id: str, search: str = None, limit: Optional[int] = 10):
    query = db.query(GoodsReceipt).filter(GoodsReceipt.tenant_id == tenant_id)
    if search and search.strip():
        like = f"%{search.strip()}%"
        query = query.filter(or_(
            GoodsReceipt.receipt_number.like(like),
            GoodsReceipt.po_number.like(like),
            GoodsReceipt.vendor_name.like(like),
        ))
    query = query.order_by(GoodsReceipt.receipt_number.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_goods_receipt(db: Session, receipt_number: str, tenant_id: str) -> Optional[GoodsReceipt]:
    return db.query(GoodsReceipt).filter(
        GoodsReceipt.receipt_number == receipt_number,
        GoodsReceipt.tenant_id == tenant_id,
    ).options(selectinload(GoodsReceipt.items)).first()


def goods_receipt_lookup(db: Session, receipt_number: str, tenant_id: str) -> Optional[dict]:
    """Header data needed to start an invoice from a goods receipt."""
    receipt = get_goods_receipt(db, receipt_number, tenant_id)
    if not receipt:
        return None

    vendor_code = None
    if receipt.vendor_name:
        vendor = db.query(Vendor.vendor_code).filter(
            Vendor.name == receipt.vendor_name,
            Vendor.tenant_id == tenant_id,
        ).first()
        vendor_code = vendor[0] if vendor else None

    po = None
    if receipt.po_number:
        po = db.query(PurchaseOrder).filter(
            PurchaseOrder.po_number == receipt.po_number,
            PurchaseOrder.tenant_id == tenant_id,
        ).first()

    return {
        "receipt_number": receipt.receipt_number,
        "po_number": receipt.po_number,
        "vendor": receipt.vendor_name,
        "vendor_code": vendor_code,
        "payment_terms": po.payment_terms if po else None,
        "ppn": to_float(po.ppn) if po else 0.0,
    }


def _po_item(db: Session, po_number: str, material_code: str, tenant_id: str) -> Optional[PurchaseOrderItem]:
    return db.query(PurchaseOrderItem).join(PurchaseOrder).filter(
        PurchaseOrder.po_number == po_number,
        PurchaseOrder.tenant_id == tenant_id,
        PurchaseOrderItem.material_code == material_code,
    ).first()


def _receipt_item(db: Session, receipt_number: str, material_code: str, tenant_id: str) -> Optional[GoodsReceiptItem]:
    return db.query(GoodsReceiptItem).join(GoodsReceipt).filter(
        GoodsReceipt.receipt_number == receipt_number,
        GoodsReceipt.tenant_id == tenant_id,
        GoodsReceiptItem.material_code == material_code,
    ).first()


def next_invoice_number(db: Session, tenant_id: str) -> str:
    last = db.query(func.max(PurchaseInvoice.invoice_number)).filter(
        PurchaseInvoice.tenant_id == tenant_id,
        PurchaseInvoice.invoice_number.like(f"{INVOICE_PREFIX}%"),
    ).scalar()
    return next_code(last, INVOICE_PREFIX)


def create_invoice(db: Session, payload: PurchaseInvoiceCreate, tenant_id: str, user_id: str) -> PurchaseInvoice:
    """Register an incoming invoice against a goods receipt.

    The subtotal is recomputed from the lines; tax and total are taken as
    invoiced by the supplier but must agree with the subtotal.
    """
    subtotal = sum((Decimal(item.price) * Decimal(item.quantity) for item in payload.items), Decimal(0))
    if round_money(subtotal + payload.tax) != round_money(payload.total):
        raise ValueError(
            f"Subtotal ({round_money(subtotal)}) plus tax ({round_money(payload.tax)}) "
            f"must equal total ({round_money(payload.total)})."
        )

    try:
        invoice = PurchaseInvoice(
            invoice_number=next_invoice_number(db, tenant_id),
            receipt_reference=payload.receipt_reference,
            po_number=payload.po_number,
            received_date=payload.received_date,
            invoice_date=payload.invoice_date,
            posting_date=date.today(),
            payment_terms=payload.payment_terms,
            vendor_code=payload.vendor_code,
            vendor_name=payload.vendor_name,
            subtotal=subtotal,
            tax=payload.tax,
            total=payload.total,
            paid_amount=Decimal(0),
            outstanding=payload.total,
            paid_date=None,
            payment_request_count=0,
            journal_voucher="",
            created_by=user_id,
            tenant_id=tenant_id,
        )
        db.add(invoice)
        db.flush()

        for line_no, item in enumerate(payload.items, start=1):
            po_item = _po_item(db, payload.po_number, item.material_code, tenant_id)
            receipt_item = _receipt_item(db, payload.warehouse_receipt, item.material_code, tenant_id)
            db.add(PurchaseInvoiceItem(
                invoice_id=invoice.id,
                line_no=line_no,
                material_code=item.material_code,
                material=item.material,
                quantity=item.quantity,
                unit=item.unit,
                price=item.price,
                total_price=item.total_price,
                outstanding_po=Decimal(0),
                po_item_id=po_item.id if po_item else None,
                receipt_item_id=receipt_item.id if receipt_item else None,
                tenant_id=tenant_id,
            ))
            if receipt_item:
                receipt_item.invoiced = True

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(invoice)
    logger.info(f"Invoice {invoice.invoice_number} created for PO {invoice.po_number} (tenant {tenant_id})")
    record_change(db, 'purchase_invoices', invoice.id, 'CREATE', user_id, tenant_id,
                  new_values=sqlalchemy_to_dict(invoice))
    return invoice


def update_invoice(db: Session, invoice_number: str, payload: PurchaseInvoiceUpdate, tenant_id: str,
                   user_id: str) -> Optional[PurchaseInvoice]:
    """Only the supplier reference and the two document dates are editable."""
    invoice = get_invoice(db, invoice_number, tenant_id)
    if not invoice:
        return None

    old_values = sqlalchemy_to_dict(invoice)
    invoice.receipt_reference = payload.receipt_reference
    invoice.received_date = payload.received_date
    invoice.invoice_date = payload.invoice_date
    invoice.updated_by = user_id
    db.commit()
    db.refresh(invoice)

    record_change(db, 'purchase_invoices', invoice.id, 'UPDATE', user_id, tenant_id,
                  old_values=old_values, new_values=sqlalchemy_to_dict(invoice))
    return invoice


def delete_invoice(db: Session, invoice_number: str, tenant_id: str, user_id: str,
                   po_number: Optional[str] = None) -> bool:
    """Delete an invoice and reopen its purchase-order lines."""
    invoice = get_invoice(db, invoice_number, tenant_id)
    if not invoice:
        return False

    old_values = sqlalchemy_to_dict(invoice)
    invoice_id = invoice.id
    ref_po = po_number or invoice.po_number

    try:
        if ref_po:
            po_items = db.query(PurchaseOrderItem).join(PurchaseOrder).filter(
                PurchaseOrder.po_number == ref_po,
                PurchaseOrder.tenant_id == tenant_id,
            ).all()
            for po_item in po_items:
                po_item.invoice_closed = False
                po_item.receipt_closed = False

            for item in invoice.items:
                po_item = _po_item(db, ref_po, item.material_code, tenant_id)
                if po_item:
                    po_item.received_qty = item.quantity or 0
                    po_item.received_value = item.total_price or 0

        db.delete(invoice)  # items go with the delete-orphan cascade
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Invoice {invoice_number} deleted (tenant {tenant_id})")
    record_change(db, 'purchase_invoices', invoice_id, 'DELETE', user_id, tenant_id, old_values=old_values)
    return True
