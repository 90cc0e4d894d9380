"""
Account suggestions for journaling an incoming invoice (FI) into the cash book.

Three sources are tried in order and the first that yields anything wins:

1. earlier invoices of the same vendor whose purchase orders share materials
   with this invoice's PO, weighted by the number of shared materials;
2. earlier journaled invoices of the same vendor;
3. cash-book rows whose remark looks like ``Pembelian/FI ... <vendor>``.

Whatever is still missing afterwards (VAT account, DPP lines, empty
accounts) is filled from tenant-wide defaults.
"""
import logging
import re
from collections import Counter, defaultdict
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud import accounts as crud_accounts
from crud.purchase_invoices import unjournaled_filter
from models.cash_voucher import CashVoucher
from models.purchase_invoices import PurchaseInvoice
from models.purchase_order_items import PurchaseOrderItem
from models.purchase_orders import PurchaseOrder
from utils import to_float
from utils.accounting import (
    DEBIT, compute_allocation, default_payment, normalize_side, rank_with_weights, split_by_ratios,
    split_evenly, top_key, voucher_type_in_code,
)

logger = logging.getLogger("purchase_suggest")

PURCHASE_PREFIX = "Pembelian/FI "
PO_HISTORY_LIMIT = 120
INVOICE_HISTORY_LIMIT = 160
CASH_HISTORY_LIMIT = 60
DEFAULT_LINES_ROWS = 800
DESCRIPTION_ROWS = 200

_FI_TOKEN = re.compile(r"\bFI\s*[-:]?\s*\d+\b", re.IGNORECASE)
_PO_TOKEN = re.compile(r"\bPO\s*[-:]?\s*[A-Z]*\d[A-Z0-9.\-/]*", re.IGNORECASE)


def vendor_key(vendor_name: Optional[str]) -> str:
    return " ".join((vendor_name or "").strip().lower().split())


def _dpp_slots(has_ppn: bool):
    # Slot 2 holds VAT on vouchers that carry it
    return (1, 3) if has_ppn else (1, 2, 3)


def _journaled_invoices(db: Session, tenant_id: str, key: str, limit: int, with_po: bool = False):
    query = db.query(PurchaseInvoice).filter(
        PurchaseInvoice.tenant_id == tenant_id,
        ~unjournaled_filter(),
    )
    if with_po:
        query = query.filter(PurchaseInvoice.po_number.isnot(None), func.trim(PurchaseInvoice.po_number) != "")
    if key:
        query = query.filter(func.lower(PurchaseInvoice.vendor_name).like(f"%{key}%"))
    return query.order_by(PurchaseInvoice.invoice_number.desc()).limit(limit).all()


def _vouchers_by_code(db: Session, tenant_id: str, codes) -> Dict[str, CashVoucher]:
    codes = [c for c in {(c or "").strip() for c in codes} if c]
    if not codes:
        return {}
    rows = db.query(CashVoucher).filter(
        CashVoucher.tenant_id == tenant_id,
        CashVoucher.voucher_code.in_(codes),
    ).all()
    return {row.voucher_code: row for row in rows}


def po_material_keys(db: Session, tenant_id: str, po_numbers) -> Dict[str, set]:
    po_numbers = [p for p in {(p or "").strip() for p in po_numbers} if p]
    if not po_numbers:
        return {}
    rows = db.query(PurchaseOrder.po_number, PurchaseOrderItem.material_code).join(
        PurchaseOrderItem, PurchaseOrderItem.purchase_order_id == PurchaseOrder.id
    ).filter(
        PurchaseOrder.tenant_id == tenant_id,
        PurchaseOrder.po_number.in_(po_numbers),
        PurchaseOrderItem.material_code.isnot(None),
    ).all()
    keys = defaultdict(set)
    for po_number, material_code in rows:
        material = (material_code or "").strip().lower()
        if material:
            keys[po_number].add(material)
    return keys


def _history_has_ppn(invoice: PurchaseInvoice, voucher: CashVoucher) -> bool:
    return to_float(invoice.tax) > 0 or to_float(voucher.amount_2) > 0


def _count_invoice_vouchers(invoices, vouchers, has_ppn: bool, weight_of) -> Optional[dict]:
    """Shared voting over (invoice, voucher) pairs; ``weight_of`` returns 0 to skip an invoice."""
    cash, types, ppn, dpp = Counter(), Counter(), Counter(), Counter()
    sides = {}
    for invoice in invoices:
        code = (invoice.journal_voucher or "").strip()
        voucher = vouchers.get(code)
        if not voucher:
            continue
        weight = weight_of(invoice)
        if weight <= 0:
            continue

        hist_ppn = _history_has_ppn(invoice, voucher)
        if voucher.account_code:
            cash[voucher.account_code.strip()] += weight
        vt = voucher_type_in_code(code)
        if vt:
            types[vt] += weight
        if has_ppn and hist_ppn:
            vat_account = (voucher.account_2 or "").strip()
            if vat_account:
                ppn[vat_account] += weight

        for idx, account, amount, side in voucher.slots():
            if idx not in _dpp_slots(hist_ppn) or not account or amount <= 0:
                continue
            dpp[account] += weight
            sides.setdefault(account, normalize_side(side))

    if not dpp:
        return None
    return {"cash": cash, "types": types, "ppn": ppn, "dpp": dpp, "sides": sides}


def _from_votes(votes: dict, weights: Dict[str, float], has_ppn: bool, dpp_target: float) -> dict:
    max_lines = 2 if has_ppn else 3
    accounts = rank_with_weights(votes["dpp"], weights, max_lines)
    ppn_account = ""
    if has_ppn and votes["ppn"]:
        ppn_account = rank_with_weights(votes["ppn"], weights, 1)[0]
    return {
        "account_code": top_key(votes["cash"]) or "",
        "voucher_type": top_key(votes["types"]) or "",
        "ppn_account": ppn_account,
        "dpp_lines": split_evenly(accounts, dpp_target, votes["sides"], DEBIT),
    }


def from_po_overlap(db: Session, tenant_id: str, invoice: PurchaseInvoice, key: str, has_ppn: bool,
                    dpp_target: float, weights: Dict[str, float]) -> Optional[dict]:
    """Vote with earlier invoices whose PO shares materials with this one."""
    po_number = (invoice.po_number or "").strip()
    own_keys = po_material_keys(db, tenant_id, [po_number]).get(po_number, set())
    if not own_keys:
        return None

    history = _journaled_invoices(db, tenant_id, key, PO_HISTORY_LIMIT, with_po=True)
    if not history:
        return None
    vouchers = _vouchers_by_code(db, tenant_id, [h.journal_voucher for h in history])
    history_keys = po_material_keys(db, tenant_id, [h.po_number for h in history])

    def overlap(h):
        return len(own_keys & history_keys.get((h.po_number or "").strip(), set()))

    votes = _count_invoice_vouchers(history, vouchers, has_ppn, overlap)
    if votes is None:
        return None
    return _from_votes(votes, weights, has_ppn, dpp_target)


def from_invoice_history(db: Session, tenant_id: str, key: str, has_ppn: bool, dpp_target: float,
                         weights: Dict[str, float]) -> Optional[dict]:
    history = _journaled_invoices(db, tenant_id, key, INVOICE_HISTORY_LIMIT)
    if not history:
        return None
    vouchers = _vouchers_by_code(db, tenant_id, [h.journal_voucher for h in history])
    votes = _count_invoice_vouchers(history, vouchers, has_ppn, lambda h: 1)
    if votes is None:
        return None
    return _from_votes(votes, weights, has_ppn, dpp_target)


def _pattern_lines(rows: List[CashVoucher], has_ppn: bool, dpp_target: float,
                   weights: Dict[str, float]) -> Optional[List[dict]]:
    """Best recurring split of DPP accounts with its average ratios."""
    patterns = {}
    for row in rows:
        slots = {idx: (account, amount, side) for idx, account, amount, side in row.slots()}
        if has_ppn:
            (a1, n1, s1), (_, n2, _), (a3, n3, s3) = slots[1], slots[2], slots[3]
            if not a1 or not a3 or n2 <= 0 or n1 + n3 <= 0:
                continue
            pattern = patterns.setdefault((a1, a3), {
                "count": 0, "bonus": 0.0, "ratios": [0.0, 0.0],
                "sides": [normalize_side(s1), normalize_side(s3)],
            })
            pattern["count"] += 1
            pattern["ratios"][0] += n1 / (n1 + n3)
            pattern["ratios"][1] += n3 / (n1 + n3)
            pattern["bonus"] += (0.25 if a1 in weights else 0.0) + (0.25 if a3 in weights else 0.0)
        else:
            present = [(a, n, s) for a, n, s in slots.values() if a and n > 0]
            total = sum(n for _, n, _ in present)
            if not present or total <= 0:
                continue
            pattern = patterns.setdefault(tuple(a for a, _, _ in present), {
                "count": 0, "bonus": 0.0, "ratios": [0.0] * len(present),
                "sides": [normalize_side(s) for _, _, s in present],
            })
            pattern["count"] += 1
            for idx, (_, amount, _) in enumerate(present):
                pattern["ratios"][idx] += amount / total

    if not patterns:
        return None
    accounts, best = max(patterns.items(), key=lambda item: item[1]["count"] + item[1]["bonus"])
    ratios = [r / best["count"] for r in best["ratios"]]
    if has_ppn:
        ratios = [ratios[0], 1 - ratios[0]]
    sides = dict(zip(accounts, best["sides"]))
    return split_by_ratios(list(accounts), ratios, dpp_target, sides, DEBIT)


def from_cash_history(db: Session, tenant_id: str, key: str, has_ppn: bool, dpp_target: float,
                      weights: Dict[str, float]) -> dict:
    """Majority votes over cash-book purchase rows that mention the vendor."""
    query = db.query(CashVoucher).filter(
        CashVoucher.tenant_id == tenant_id,
        CashVoucher.description.like(f"{PURCHASE_PREFIX}%"),
    )
    if key:
        query = query.filter(func.lower(CashVoucher.description).like(f"%{key}%"))
    rows = query.order_by(
        CashVoucher.voucher_date.desc(), CashVoucher.voucher_code.desc()
    ).limit(CASH_HISTORY_LIMIT).all()

    cash = Counter(r.account_code.strip() for r in rows if (r.account_code or "").strip())
    types = Counter(vt for vt in (voucher_type_in_code(r.voucher_code) for r in rows) if vt)
    result = {
        "account_code": top_key(cash) or "",
        "voucher_type": top_key(types) or "",
        "ppn_account": "",
        "dpp_lines": [],
    }

    if has_ppn:
        vat = Counter((r.account_2 or "").strip() for r in rows if (r.account_2 or "").strip() and to_float(r.amount_2) > 0)
        if vat:
            result["ppn_account"] = rank_with_weights(vat, weights, 1)[0]

    if dpp_target <= 0:
        return result

    lines = _pattern_lines(rows, has_ppn, dpp_target, weights)
    if lines is None:
        counts, sides = Counter(), {}
        for row in rows:
            for idx, account, amount, side in row.slots():
                if idx in _dpp_slots(has_ppn) and account and amount > 0:
                    counts[account] += 1
                    sides.setdefault(account, normalize_side(side))
        if counts:
            account = rank_with_weights(counts, weights, 1)[0]
            lines = [{"account_code": account, "side": sides.get(account, DEBIT), "amount": dpp_target}]
        else:
            lines = [{"account_code": "", "side": DEBIT, "amount": dpp_target}]
    result["dpp_lines"] = lines
    return result


def default_ppn_account(db: Session, tenant_id: str) -> str:
    count = func.count(CashVoucher.id)
    row = db.query(func.trim(CashVoucher.account_2), count).filter(
        CashVoucher.tenant_id == tenant_id,
        CashVoucher.account_2.isnot(None),
        func.trim(CashVoucher.account_2) != "",
        func.coalesce(CashVoucher.amount_2, 0) > 0,
    ).group_by(func.trim(CashVoucher.account_2)).order_by(count.desc()).first()
    return row[0] if row else ""


def default_dpp_lines(db: Session, tenant_id: str, has_ppn: bool, dpp_target: float) -> List[dict]:
    """Tenant-wide most frequent DPP accounts, topped up from journal debits."""
    if dpp_target <= 0:
        return []
    limit = 2 if has_ppn else 3

    rows = db.query(CashVoucher).filter(CashVoucher.tenant_id == tenant_id).order_by(
        CashVoucher.voucher_date.desc(), CashVoucher.voucher_code.desc()
    ).limit(DEFAULT_LINES_ROWS).all()
    purchases = [r for r in rows if (r.description or "").strip().startswith(PURCHASE_PREFIX)]

    counts, sides = Counter(), {}
    for row in purchases or rows:
        for idx, account, amount, side in row.slots():
            if idx in _dpp_slots(has_ppn) and account and amount > 0:
                counts[account] += 1
                sides.setdefault(account, normalize_side(side))
    if not counts:
        return [{"account_code": "", "side": DEBIT, "amount": dpp_target}]

    if len(counts) < limit:
        for account in crud_accounts.journal_top_debit_accounts(db, tenant_id, limit=limit):
            if account not in counts:
                counts[account] = 0
                sides[account] = DEBIT

    accounts = [a for a, _ in sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]]
    return split_evenly(accounts, dpp_target, sides, DEBIT)


def default_description(invoice: PurchaseInvoice) -> str:
    text = f"{PURCHASE_PREFIX}{invoice.invoice_number}"
    vendor = (invoice.vendor_name or "").strip()
    po_number = (invoice.po_number or "").strip()
    if vendor:
        text += f" - {vendor}"
    if po_number:
        text += f" (PO {po_number})"
    return text


def description_template(description: str) -> str:
    text = " ".join((description or "").split())
    if not text:
        return ""
    text = _FI_TOKEN.sub("{FI}", text)
    text = _PO_TOKEN.sub("PO {PO}", text)
    return text.strip()


def render_description(template: str, invoice: PurchaseInvoice) -> str:
    text = template or default_description(invoice)
    number = (invoice.invoice_number or "").strip()
    po_number = (invoice.po_number or "").strip()
    if number:
        text = text.replace("{FI}", number)
    if po_number:
        text = text.replace("{PO}", po_number)
    return " ".join(text.split())


def suggest_description(db: Session, tenant_id: str, invoice: PurchaseInvoice) -> str:
    """Reuse the remark shape that past payments to this vendor used."""
    key = vendor_key(invoice.vendor_name)
    po_number = (invoice.po_number or "").strip().lower()
    rows = db.query(CashVoucher.description).filter(
        CashVoucher.tenant_id == tenant_id,
        CashVoucher.description.like("%FI%"),
    ).order_by(
        CashVoucher.voucher_date.desc(), CashVoucher.voucher_code.desc()
    ).limit(DESCRIPTION_ROWS).all()

    best_template, best_score = "", -1
    for (description,) in rows:
        text = (description or "").strip()
        if not text:
            continue
        lower = text.lower()
        score = 0
        if key and key in lower:
            score += 3
        if po_number and po_number in lower:
            score += 3
        if "pembelian" in lower:
            score += 1
        template = description_template(text)
        if template and score > best_score:
            best_template, best_score = template, score

    rendered = render_description(best_template, invoice)
    number = (invoice.invoice_number or "").strip()
    if number and number.upper() not in rendered.upper():
        rendered = default_description(invoice)
    return rendered


def suggest(db: Session, tenant_id: str, invoice: PurchaseInvoice, nominal: Optional[float] = None) -> dict:
    if nominal is None:
        nominal = default_payment(invoice.paid_amount, invoice.total)
    allocation = compute_allocation(invoice.total, invoice.tax, nominal)
    has_ppn = allocation["tax"] > 0
    dpp_target = allocation["dpp"]
    key = vendor_key(invoice.vendor_name)
    weights = crud_accounts.balance_weights(db, tenant_id)

    result = None
    if (invoice.po_number or "").strip():
        result = from_po_overlap(db, tenant_id, invoice, key, has_ppn, dpp_target, weights)
        if result:
            logger.debug(f"FI {invoice.invoice_number}: accounts from PO material overlap")
    if result is None:
        result = from_invoice_history(db, tenant_id, key, has_ppn, dpp_target, weights)
    if result is None:
        result = from_cash_history(db, tenant_id, key, has_ppn, dpp_target, weights)

    if has_ppn and not result["ppn_account"]:
        result["ppn_account"] = default_ppn_account(db, tenant_id)

    lines = result["dpp_lines"]
    if not lines or any(not line["account_code"] for line in lines):
        lines = default_dpp_lines(db, tenant_id, has_ppn, dpp_target)

    fallback = crud_accounts.fallback_expense_account(db, tenant_id)
    if fallback:
        lines = [
            {
                "account_code": line["account_code"] or fallback,
                "side": normalize_side(line["side"]),
                "amount": float(line["amount"]),
            }
            for line in lines
        ]

    return {
        "allocation": allocation,
        "account_code": result["account_code"],
        "voucher_type": result["voucher_type"],
        "ppn_account": result["ppn_account"] if has_ppn else "",
        "dpp_lines": lines,
        "description": suggest_description(db, tenant_id, invoice),
    }
