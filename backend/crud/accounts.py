"""Account lookups shared by the cash book, purchase input and adjustment journal screens."""
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud import app_config as crud_app_config
from crud.chart_of_accounts import get_account_names
from models.account_balance_recap import AccountBalanceRecap
from models.cash_voucher import CashVoucher
from models.chart_of_accounts import ChartOfAccounts
from models.journal_entry import JournalEntry
from models.journal_item import JournalItem
from utils import to_float
from utils.accounting import next_code
from utils.periods import months_ago
from utils.tenancy import database_code


def _label(code: str, names: Dict[str, str]) -> str:
    name = (names.get(code) or "").strip()
    return f"{code} - {name}" if name else code


def cash_account_options(db: Session, tenant_id: str) -> List[dict]:
    codes = [
        code for (code,) in db.query(CashVoucher.account_code).filter(
            CashVoucher.tenant_id == tenant_id,
            CashVoucher.account_code.isnot(None),
            CashVoucher.account_code != "",
        ).distinct().order_by(CashVoucher.account_code.asc()).all()
    ]
    names = get_account_names(db, tenant_id, codes)
    return [{"value": code, "label": _label(code, names)} for code in codes]


def default_cash_account(db: Session, tenant_id: str, options: Optional[List[dict]] = None) -> Optional[str]:
    if options is None:
        options = cash_account_options(db, tenant_id)
    available = {o["value"] for o in options}
    preferred = crud_app_config.get_config_value(db, tenant_id, "preferred_cash_accounts") or ""
    for code in [c.strip() for c in preferred.split(",") if c.strip()]:
        if code in available:
            return code
    return options[0]["value"] if options else None


def gl_account_options(db: Session, tenant_id: str, limit: int = 5000) -> List[dict]:
    rows = db.query(ChartOfAccounts.account_code, ChartOfAccounts.account_name).filter(
        ChartOfAccounts.tenant_id == tenant_id,
        ChartOfAccounts.is_active == True,  # noqa: E712
    ).order_by(ChartOfAccounts.account_code.asc()).limit(limit).all()
    if rows:
        return [{"value": code, "label": _label(code, {code: name})} for code, name in rows]
    return cash_account_options(db, tenant_id)


def balance_weights(db: Session, tenant_id: str, periods: Optional[int] = None) -> Dict[str, float]:
    """Sum of |balance| per account over the most recent recap periods.

    Accounts that actually carry balances get a small ranking bonus when
    suggestions tie on vote counts.
    """
    if periods is None:
        raw = crud_app_config.get_config_value(db, tenant_id, "nabb_weight_periods", "24")
        try:
            periods = int(raw)
        except (TypeError, ValueError):
            periods = 24
    periods = max(1, min(60, periods))

    rows = db.query(
        AccountBalanceRecap.recap_code, AccountBalanceRecap.account_code, AccountBalanceRecap.balance
    ).filter(AccountBalanceRecap.tenant_id == tenant_id).all()

    by_period = defaultdict(list)
    for recap_code, account_code, balance in rows:
        period = (recap_code or "").strip()[-6:]
        if len(period) == 6 and period.isdigit():
            by_period[period].append((account_code, balance))

    weights = defaultdict(float)
    for period in sorted(by_period, reverse=True)[:periods]:
        for account_code, balance in by_period[period]:
            weights[account_code] += abs(to_float(balance))
    return {k: v for k, v in weights.items() if k and v > 0}


def journal_top_debit_accounts(db: Session, tenant_id: str, limit: int = 3, years: int = 3) -> List[str]:
    since = months_ago(date.today(), years * 12)
    total = func.sum(JournalItem.debit)
    rows = db.query(JournalItem.account_code, total).join(JournalEntry).filter(
        JournalItem.tenant_id == tenant_id,
        JournalEntry.journal_date >= since,
        JournalItem.debit > 0,
    ).group_by(JournalItem.account_code).order_by(total.desc()).limit(limit).all()
    return [code for code, _ in rows if code]


def fallback_expense_account(db: Session, tenant_id: str) -> str:
    """Account used when no history suggests anything better."""
    first_non_cash = db.query(ChartOfAccounts.account_code).filter(
        ChartOfAccounts.tenant_id == tenant_id,
        ~ChartOfAccounts.account_code.like("11%"),
    ).order_by(ChartOfAccounts.account_code.asc()).first()
    if first_non_cash:
        return first_non_cash[0]
    any_account = db.query(ChartOfAccounts.account_code).filter(
        ChartOfAccounts.tenant_id == tenant_id
    ).order_by(ChartOfAccounts.account_code.asc()).first()
    if any_account:
        return any_account[0]
    top = journal_top_debit_accounts(db, tenant_id, limit=1)
    return top[0] if top else ""


def last_balance(db: Session, tenant_id: str, account_code: str) -> float:
    row = db.query(CashVoucher.balance).filter(
        CashVoucher.tenant_id == tenant_id,
        CashVoucher.account_code == account_code,
    ).order_by(CashVoucher.voucher_date.desc(), CashVoucher.voucher_code.desc()).first()
    return to_float(row[0]) if row else 0.0


def voucher_prefix(tenant_id: str, voucher_type: str) -> str:
    return f"{database_code(tenant_id)}/{voucher_type}/"


def next_voucher_code(db: Session, tenant_id: str, voucher_type: str, step: int = 1) -> str:
    prefix = voucher_prefix(tenant_id, voucher_type)
    last = db.query(func.max(CashVoucher.voucher_code)).filter(
        CashVoucher.tenant_id == tenant_id,
        CashVoucher.voucher_code.like(f"{prefix}%"),
    ).scalar()
    return next_code(last, prefix, step)
