import logging
from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from crud import accounts as crud_accounts
from crud.audit_log import record_change
from crud.cash_book import assign_slots
from crud.purchase_invoices import unjournaled_filter
from crud.purchase_suggest import default_description
from models.cash_voucher import CashVoucher
from models.purchase_invoices import PurchaseInvoice
from models.purchase_orders import PurchaseOrder
from schemas.purchase_input import PurchaseInputCreate
from utils import sqlalchemy_to_dict, to_float
from utils.accounting import DEBIT, accept_voucher_type, compute_allocation, default_payment, guess_voucher_type, round_money
from utils.pagination import paginate
from utils.periods import period_range

logger = logging.getLogger("purchase_input")


def purchase_voucher_filter():
    """Cash vouchers that pay an incoming invoice: GV/BV codes with an FI in the remark."""
    return (
        or_(
            CashVoucher.voucher_code.like("%/GV/%"),
            CashVoucher.voucher_code.like("%/BV/%"),
            CashVoucher.voucher_code.like("GV%"),
            CashVoucher.voucher_code.like("BV%"),
        ),
        CashVoucher.description.like("%FI%"),
    )


def list_rows(db: Session, tenant_id: str, search: str = None, account: str = "all", period: str = None,
              page: int = 1, page_size: str = "10") -> dict:
    query = db.query(CashVoucher).filter(CashVoucher.tenant_id == tenant_id, *purchase_voucher_filter())
    date_range = period_range(period)
    if date_range:
        query = query.filter(CashVoucher.voucher_date.between(*date_range))
    if account and account != "all":
        query = query.filter(CashVoucher.account_code == account)
    if search and search.strip():
        like = f"%{search.strip()}%"
        query = query.filter(or_(CashVoucher.voucher_code.like(like), CashVoucher.description.like(like)))

    total = query.count()
    query = query.order_by(CashVoucher.voucher_date.desc(), CashVoucher.voucher_code.desc())
    return {"rows": paginate(query, page, page_size).all(), "total": total}


def list_invoices(db: Session, tenant_id: str, status: str = "unjournaled", search: str = None,
                  page: int = 1, page_size: str = "10") -> dict:
    query = db.query(PurchaseInvoice).filter(PurchaseInvoice.tenant_id == tenant_id)
    if search and search.strip():
        like = f"%{search.strip()}%"
        query = query.filter(or_(
            PurchaseInvoice.invoice_number.like(like),
            PurchaseInvoice.po_number.like(like),
            PurchaseInvoice.vendor_name.like(like),
        ))
    if status == "unjournaled":
        query = query.filter(unjournaled_filter())
    elif status == "journaled":
        query = query.filter(~unjournaled_filter())

    total = query.count()
    query = query.order_by(PurchaseInvoice.invoice_number.desc())
    return {"rows": paginate(query, page, page_size).all(), "total": total}


def get_invoice(db: Session, tenant_id: str, invoice_number: str) -> Optional[PurchaseInvoice]:
    return db.query(PurchaseInvoice).filter(
        PurchaseInvoice.tenant_id == tenant_id,
        PurchaseInvoice.invoice_number == invoice_number,
    ).first()


def ppn_percent(db: Session, tenant_id: str, po_number: Optional[str]) -> Optional[float]:
    if not (po_number or "").strip():
        return None
    value = db.query(PurchaseOrder.ppn).filter(
        PurchaseOrder.tenant_id == tenant_id,
        PurchaseOrder.po_number == po_number.strip(),
    ).scalar()
    return float(value) if value is not None else None


def options(db: Session, tenant_id: str) -> dict:
    account_options = crud_accounts.cash_account_options(db, tenant_id)
    return {
        "account_options": account_options,
        "default_account": crud_accounts.default_cash_account(db, tenant_id, account_options),
        "expense_account_options": crud_accounts.gl_account_options(db, tenant_id),
    }


def store(db: Session, invoice: PurchaseInvoice, payload: PurchaseInputCreate, tenant_id: str,
          user_id: str) -> CashVoucher:
    """Pay an incoming invoice from a cash/bank account and mark it journaled.

    A partial payment is split into DPP and VAT in proportion to the
    invoice, and the DPP lines must add up to the allocated DPP.
    """
    existing = (invoice.journal_voucher or "").strip()
    if existing:
        raise ValueError(f"FI already journaled: {existing}")

    nominal = to_float(payload.nominal) if payload.nominal is not None else default_payment(invoice.paid_amount, invoice.total)
    nominal = max(0.0, nominal)
    if nominal <= 0:
        raise ValueError("Nominal must be greater than zero.")
    invoice_total = round_money(invoice.total)
    if round_money(nominal) > invoice_total:
        raise ValueError(f"Nominal {round_money(nominal)} exceeds the invoice total {invoice_total}.")

    allocation = compute_allocation(invoice.total, invoice.tax, nominal)
    ppn_account = (payload.ppn_account or "").strip()
    if allocation["tax"] > 0 and not ppn_account:
        raise ValueError("A VAT account is required because the invoice carries VAT.")

    if not 1 <= len(payload.dpp_lines) <= 3:
        raise ValueError("Between 1 and 3 DPP lines are required.")
    lines = [
        {"account_code": (line.account_code or "").strip(), "side": line.side, "amount": to_float(line.amount)}
        for line in payload.dpp_lines
    ]
    if any(not line["account_code"] for line in lines):
        raise ValueError("Every DPP line needs a counter account.")
    line_total = round_money(sum(line["amount"] for line in lines))
    if line_total != round_money(allocation["dpp"]):
        raise ValueError(f"DPP lines total {line_total} but must equal the allocated DPP {allocation['dpp']}.")
    if allocation["tax"] > 0 and len(payload.dpp_lines) > 2:
        raise ValueError("With VAT at most 2 DPP lines are allowed; slot 2 holds the VAT.")

    account = payload.account_code.strip()
    voucher_type = accept_voucher_type(payload.voucher_type) or guess_voucher_type(account)
    description = (payload.description or "").strip() or default_description(invoice)

    try:
        code = crud_accounts.next_voucher_code(db, tenant_id, voucher_type)
        mutation = -abs(nominal)
        voucher = CashVoucher(
            voucher_code=code,
            account_code=account,
            voucher_date=payload.voucher_date,
            created_date=date.today(),
            description=description,
            cash_mutation=round_money(mutation),
            balance=round_money(crud_accounts.last_balance(db, tenant_id, account) + mutation),
            tenant_id=tenant_id,
            created_by=user_id,
        )
        assign_slots(
            voucher,
            lines,
            DEBIT,
            ppn_account=ppn_account,
            ppn_amount=allocation["tax"],
            ppn_side=DEBIT,
        )
        db.add(voucher)
        old_values = sqlalchemy_to_dict(invoice)
        invoice.journal_voucher = code
        invoice.updated_by = user_id
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(voucher)
    logger.info(f"FI {invoice.invoice_number} journaled as {code} (tenant {tenant_id})")
    record_change(db, 'cash_vouchers', voucher.id, 'CREATE', user_id, tenant_id,
                  new_values=sqlalchemy_to_dict(voucher))
    record_change(db, 'purchase_invoices', invoice.id, 'UPDATE', user_id, tenant_id,
                  old_values=old_values, new_values=sqlalchemy_to_dict(invoice))
    return voucher
