import hashlib
import logging
import re
from collections import Counter
from datetime import date
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from crud import accounts as crud_accounts
from crud import cash_suggest
from crud.audit_log import record_change
from models.cash_voucher import CashVoucher
from schemas.cash_book import CashVoucherCreate
from utils import sqlalchemy_to_dict, to_float
from utils.accounting import (
    CREDIT, DEBIT, accept_voucher_type, guess_voucher_type, normalize_side_or, round_money,
)
from utils.periods import period_range

logger = logging.getLogger("cash_book")

ROW_LIMIT = 5000
TEMPLATE_SOURCE_ROWS = 600
TEMPLATE_LIMIT = 24
TRANSFER_ROWS = 220

DEFAULT_DESCRIPTIONS = {
    "in": "Mutasi/Kas Masuk",
    "out": "Mutasi/Kas Keluar",
    "transfer": "Mutasi/Transfer",
}

_WORD_STOPWORDS = {"dan", "atau", "ke", "dari", "yang", "untuk", "the", "a", "an", "of", "to", "in"}
_TEMPLATE_VOUCHER = re.compile(r"\b[A-Z]{2,5}/[GB]V/\d{4,}\b", re.IGNORECASE)
_TEMPLATE_NUMBER = re.compile(r"\b\d{4,}\b")


def list_rows(db: Session, tenant_id: str, search: str = None, account: str = None, period: str = None) -> dict:
    query = db.query(CashVoucher).filter(CashVoucher.tenant_id == tenant_id)
    if account and account.strip() and account.strip() != "all":
        query = query.filter(CashVoucher.account_code == account.strip())
    date_range = period_range(period)
    if date_range:
        query = query.filter(CashVoucher.voucher_date.between(*date_range))
    if search and search.strip():
        like = f"%{search.strip()}%"
        query = query.filter(or_(CashVoucher.voucher_code.like(like), CashVoucher.description.like(like)))

    rows = query.order_by(
        CashVoucher.voucher_date.desc(), CashVoucher.voucher_code.desc()
    ).limit(ROW_LIMIT).all()
    return {"rows": rows, "total": len(rows)}


def normalize_template_text(description: str) -> str:
    text = " ".join((description or "").split())
    text = _TEMPLATE_VOUCHER.sub("{VOUCHER}", text)
    text = _TEMPLATE_NUMBER.sub("{#}", text)
    return text.strip()


def template_options(db: Session, tenant_id: str) -> List[dict]:
    """Recurring remark shapes from the latest vouchers, most used first."""
    rows = db.query(CashVoucher.description, CashVoucher.cash_mutation).filter(
        CashVoucher.tenant_id == tenant_id
    ).order_by(
        CashVoucher.voucher_date.desc(), CashVoucher.voucher_code.desc()
    ).limit(TEMPLATE_SOURCE_ROWS).all()

    templates = {}
    for description, mutation in rows:
        example = (description or "").strip()
        label = normalize_template_text(example)
        if not label:
            continue
        key = hashlib.md5(label.encode("utf-8")).hexdigest()
        template = templates.setdefault(key, {
            "key": key, "label": label, "count": 0, "pos": 0, "neg": 0, "example": example,
        })
        template["count"] += 1
        amount = to_float(mutation)
        if amount > 0:
            template["pos"] += 1
        elif amount < 0:
            template["neg"] += 1

    ranked = sorted(templates.values(), key=lambda t: t["count"], reverse=True)[:TEMPLATE_LIMIT]
    for template in ranked:
        template["default_mode"] = "in" if template["pos"] >= template["neg"] else "out"
    return ranked


def options(db: Session, tenant_id: str) -> dict:
    account_options = crud_accounts.cash_account_options(db, tenant_id)
    return {
        "account_options": account_options,
        "default_account": crud_accounts.default_cash_account(db, tenant_id, account_options),
        "gl_account_options": crud_accounts.gl_account_options(db, tenant_id),
        "templates": template_options(db, tenant_id),
    }


def query_words(text: str) -> List[str]:
    words = re.sub(r"[^a-z0-9]+", " ", (text or "").strip().lower()).split()
    return list(dict.fromkeys(w for w in words if len(w) >= 3 and w not in _WORD_STOPWORDS))


def suggest_transfer_pair(db: Session, tenant_id: str, description: str) -> dict:
    """Most frequent (source, destination) pair among similar outgoing transfers."""
    words = query_words(description)
    if not words:
        return {"source": "", "dest": ""}

    rows = db.query(CashVoucher.account_code, CashVoucher.account_1).filter(
        CashVoucher.tenant_id == tenant_id,
        CashVoucher.cash_mutation < 0,
        CashVoucher.account_1.isnot(None),
        func.trim(CashVoucher.account_1) != "",
        or_(*[func.lower(CashVoucher.description).like(f"%{w}%") for w in words[:6]]),
    ).order_by(
        CashVoucher.voucher_date.desc(), CashVoucher.voucher_code.desc()
    ).limit(TRANSFER_ROWS).all()

    pairs = Counter()
    for source, dest in rows:
        source, dest = (source or "").strip(), (dest or "").strip()
        if source and dest and source != dest:
            pairs[(source, dest)] += 1
    if not pairs:
        return {"source": "", "dest": ""}
    source, dest = pairs.most_common(1)[0][0]
    return {"source": source, "dest": dest}


def suggest(db: Session, tenant_id: str, mode: str, account: str = "", source: str = "", dest: str = "",
            nominal: float = 0.0, description: str = "", template_key: str = "", has_ppn: bool = False,
            ppn_amount: float = 0.0) -> dict:
    mode = mode if mode in ("in", "out", "transfer") else "out"
    account, source, dest = (account or "").strip(), (source or "").strip(), (dest or "").strip()
    nominal = max(0.0, float(nominal or 0))
    ppn_amount = max(0.0, float(ppn_amount or 0))

    if not (description or "").strip() and template_key:
        template = next((t for t in template_options(db, tenant_id) if t["key"] == template_key), None)
        if template:
            description = template["example"]
    description = (description or "").strip()

    if mode == "transfer":
        pair = suggest_transfer_pair(db, tenant_id, description)
        source = pair["source"] or source
        dest = pair["dest"] or dest
        return {
            "mode": mode,
            "source": source,
            "dest": dest,
            "voucher_type": guess_voucher_type(source),
            "description": description or f"Mutasi/Transfer {source}→{dest}",
            "ppn_account": "",
            "ppn_side": DEBIT,
            "lines": [{"account_code": dest, "side": DEBIT, "amount": round_money(nominal)}],
        }

    result = cash_suggest.suggest(db, tenant_id, mode, description, nominal=nominal,
                                  has_ppn=has_ppn, ppn_amount=ppn_amount)
    default_side = CREDIT if mode == "in" else DEBIT
    max_lines = 2 if has_ppn and ppn_amount > 0 else 3
    lines = result["lines"][:max_lines]
    if not lines:
        dpp_target = max(0.0, nominal - (ppn_amount if has_ppn else 0.0))
        lines = [{"account_code": "", "side": default_side, "amount": round_money(dpp_target)}]

    return {
        "mode": mode,
        "account_code": result["account_code"] or account,
        "voucher_type": result["voucher_type"] or guess_voucher_type(account),
        "description": description or result["description"] or DEFAULT_DESCRIPTIONS[mode],
        "ppn_account": result["ppn_account"],
        "ppn_side": result["ppn_side"],
        "lines": lines,
        "confidence": result["confidence"],
        "evidence": result["evidence"],
    }


def assign_slots(voucher: CashVoucher, lines: List[dict], default_side: str,
                 ppn_account: Optional[str] = None, ppn_amount: float = 0.0, ppn_side: str = DEBIT):
    """Write DPP lines and the optional VAT split into the voucher's three slots.

    With VAT the DPP lines take slots 1 and 3 and the VAT takes slot 2;
    without it the lines fill slots 1 to 3 in order.
    """
    slots = (1, 3) if ppn_amount > 0 else (1, 2, 3)
    for slot, line in zip(slots, lines):
        setattr(voucher, f"account_{slot}", line["account_code"])
        setattr(voucher, f"amount_{slot}", round_money(line["amount"]))
        setattr(voucher, f"side_{slot}", normalize_side_or(line.get("side"), default_side))
    if ppn_amount > 0:
        voucher.account_2 = ppn_account
        voucher.amount_2 = round_money(ppn_amount)
        voucher.side_2 = ppn_side


def _new_voucher(db: Session, tenant_id: str, user_id: str, code: str, account: str, voucher_date: date,
                 description: str, mutation: float) -> CashVoucher:
    balance = crud_accounts.last_balance(db, tenant_id, account) + mutation
    return CashVoucher(
        voucher_code=code,
        account_code=account,
        voucher_date=voucher_date,
        created_date=date.today(),
        description=description,
        cash_mutation=round_money(mutation),
        balance=round_money(balance),
        tenant_id=tenant_id,
        created_by=user_id,
    )


def _transfer_vouchers(db: Session, payload: CashVoucherCreate, tenant_id: str, user_id: str,
                       nominal: float, description: str) -> List[CashVoucher]:
    source, dest = (payload.source or "").strip(), (payload.dest or "").strip()
    if not source or not dest:
        raise ValueError("Source and destination accounts are required.")
    if source == dest:
        raise ValueError("Source and destination accounts must differ.")

    voucher_type = accept_voucher_type(payload.voucher_type) or guess_voucher_type(source)
    code_out = crud_accounts.next_voucher_code(db, tenant_id, voucher_type, step=1)
    code_in = crud_accounts.next_voucher_code(db, tenant_id, voucher_type, step=2)
    if code_out not in description and code_in not in description:
        description = f"{description} - {code_out} / {code_in}"

    out_row = _new_voucher(db, tenant_id, user_id, code_out, source, payload.voucher_date, description, -nominal)
    out_row.account_1, out_row.amount_1, out_row.side_1 = dest, nominal, DEBIT
    in_row = _new_voucher(db, tenant_id, user_id, code_in, dest, payload.voucher_date, description, nominal)
    in_row.account_1, in_row.amount_1, in_row.side_1 = source, nominal, CREDIT
    return [out_row, in_row]


def _mutation_voucher(db: Session, payload: CashVoucherCreate, tenant_id: str, user_id: str,
                      nominal: float, description: str) -> CashVoucher:
    account = (payload.account_code or "").strip()
    if not account:
        raise ValueError("Cash/bank account is required.")

    default_side = CREDIT if payload.mode == "in" else DEBIT
    ppn_amount = round_money(payload.ppn_amount) if payload.has_ppn else 0.0
    ppn_account = (payload.ppn_account or "").strip() if payload.has_ppn else ""
    if ppn_amount > 0 and not ppn_account:
        raise ValueError("A VAT account is required when the VAT amount is greater than zero.")
    if ppn_amount > nominal:
        raise ValueError(f"VAT amount {ppn_amount} cannot exceed the nominal {nominal}.")

    if not payload.lines:
        raise ValueError("At least one counter-account (DPP) line is required.")
    dpp_target = round_money(nominal - ppn_amount)
    if dpp_target > 0 and any(round_money(line.amount) <= 0 for line in payload.lines):
        raise ValueError("Every DPP line needs an amount greater than zero.")
    line_total = round_money(sum(to_float(line.amount) for line in payload.lines))
    if line_total != round_money(dpp_target):
        raise ValueError(f"DPP lines total {line_total} but must equal the DPP target {round_money(dpp_target)}.")
    if ppn_amount > 0 and len(payload.lines) > 2:
        raise ValueError("With VAT at most 2 DPP lines are allowed; slot 2 holds the VAT.")

    voucher_type = accept_voucher_type(payload.voucher_type) or guess_voucher_type(account)
    code = crud_accounts.next_voucher_code(db, tenant_id, voucher_type)
    mutation = nominal if payload.mode == "in" else -nominal
    voucher = _new_voucher(db, tenant_id, user_id, code, account, payload.voucher_date, description, mutation)
    assign_slots(
        voucher,
        [{"account_code": line.account_code, "side": line.side, "amount": to_float(line.amount)}
         for line in payload.lines],
        default_side,
        ppn_account=ppn_account,
        ppn_amount=ppn_amount,
        ppn_side=default_side,
    )
    return voucher


def store_voucher(db: Session, payload: CashVoucherCreate, tenant_id: str, user_id: str) -> List[CashVoucher]:
    """Post a cash receipt, a cash payment or an account-to-account transfer."""
    nominal = abs(round_money(payload.nominal))
    if nominal <= 0:
        raise ValueError("Nominal must be greater than zero.")
    description = (payload.description or "").strip() or DEFAULT_DESCRIPTIONS[payload.mode]

    try:
        if payload.mode == "transfer":
            vouchers = _transfer_vouchers(db, payload, tenant_id, user_id, nominal, description)
        else:
            vouchers = [_mutation_voucher(db, payload, tenant_id, user_id, nominal, description)]
        db.add_all(vouchers)
        db.commit()
    except Exception:
        db.rollback()
        raise

    for voucher in vouchers:
        db.refresh(voucher)
        logger.info(f"Cash voucher {voucher.voucher_code} posted on {voucher.account_code} (tenant {tenant_id})")
        record_change(db, 'cash_vouchers', voucher.id, 'CREATE', user_id, tenant_id,
                      new_values=sqlalchemy_to_dict(voucher))
    return vouchers
