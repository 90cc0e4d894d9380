import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from crud import accounts as crud_accounts
from crud.audit_log import record_change
from crud.chart_of_accounts import get_account_names
from models.adjustment_journal import AdjustmentJournalLine
from schemas.adjustment_journal import AdjustmentJournalCreate
from utils import sqlalchemy_to_dict, to_float
from utils.accounting import next_code, round_money
from utils.pagination import slice_page
from utils.periods import first_of_month, month_key, parse_period
from utils.tenancy import database_code

logger = logging.getLogger("adjustment_journals")

PERIOD_OPTION_LIMIT = 240

SORT_KEYS = {
    "period": lambda d: d["period"],
    "posting_date": lambda d: d["posting_date"] or date.min,
    "journal_code": lambda d: d["journal_code"],
    "total_debit": lambda d: d["total_debit"],
    "total_credit": lambda d: d["total_credit"],
    "lines": lambda d: d["lines"],
}


def period_options(db: Session, tenant_id: str) -> List[str]:
    periods = db.query(AdjustmentJournalLine.period).filter(
        AdjustmentJournalLine.tenant_id == tenant_id,
        AdjustmentJournalLine.period.isnot(None),
    ).distinct().all()
    months = sorted({month_key(p) for (p,) in periods}, reverse=True)
    return months[:PERIOD_OPTION_LIMIT]


def active_book_month(db: Session, tenant_id: str) -> str:
    """Latest month that holds adjustment lines, or the current month."""
    latest = db.query(func.max(AdjustmentJournalLine.period)).filter(
        AdjustmentJournalLine.tenant_id == tenant_id
    ).scalar()
    return month_key(latest) if latest else month_key(date.today())


def options(db: Session, tenant_id: str) -> dict:
    periods = period_options(db, tenant_id)
    years = list(dict.fromkeys(p[:4] for p in periods))
    active = active_book_month(db, tenant_id)
    return {
        "period_options": periods,
        "default_period": periods[0] if periods else None,
        "year_options": years,
        "default_year": years[0] if years else None,
        "active_book_month": active,
        "period_default": first_of_month(active),
        "posting_date_default": date.today(),
        "gl_account_options": crud_accounts.gl_account_options(db, tenant_id, limit=8000),
    }


def _empty_summary() -> dict:
    return {
        "total_documents": 0, "sum_debit": 0.0, "sum_credit": 0.0,
        "balanced_count": 0, "unbalanced_count": 0, "sum_abs_difference": 0.0,
    }


def list_documents(db: Session, tenant_id: str, period_type: str = "month", period: str = None,
                   balance: str = "all", search: str = None, sort_by: str = "period", sort_dir: str = "desc",
                   page: int = 1, page_size: str = "10") -> dict:
    """Adjustment documents of a month or year with balance checks.

    Raises ValueError when the period does not match ``period_type``.
    """
    period_type = period_type if period_type in ("month", "year") else "month"
    if not (period or "").strip():
        opts = period_options(db, tenant_id)
        period = opts[0] if opts else ""
        if period_type == "year":
            period = period[:4]
    start, end = parse_period(period_type, period)

    totals_debit = func.sum(func.coalesce(AdjustmentJournalLine.debit, 0))
    totals_credit = func.sum(func.coalesce(AdjustmentJournalLine.credit, 0))
    query = db.query(
        AdjustmentJournalLine.journal_code,
        AdjustmentJournalLine.period,
        totals_debit,
        totals_credit,
        func.count(AdjustmentJournalLine.id),
        func.max(AdjustmentJournalLine.posting_date),
        func.max(AdjustmentJournalLine.remark),
    ).filter(
        AdjustmentJournalLine.tenant_id == tenant_id,
        AdjustmentJournalLine.period.between(start, end),
    )
    if search and search.strip():
        like = f"%{search.strip()}%"
        query = query.filter(or_(
            AdjustmentJournalLine.journal_code.like(like),
            AdjustmentJournalLine.account_code.like(like),
            AdjustmentJournalLine.remark.like(like),
            AdjustmentJournalLine.account_name.like(like),
        ))
    grouped = query.group_by(AdjustmentJournalLine.journal_code, AdjustmentJournalLine.period).all()

    documents = []
    for code, doc_period, debit, credit, line_count, posting_date, remark in grouped:
        debit, credit = round_money(debit), round_money(credit)
        documents.append({
            "journal_code": code,
            "period": doc_period,
            "posting_date": posting_date,
            "remark": remark or "",
            "total_debit": debit,
            "total_credit": credit,
            "lines": int(line_count or 0),
            "is_balanced": debit == credit,
        })

    if balance == "balanced":
        documents = [d for d in documents if d["is_balanced"]]
    elif balance == "unbalanced":
        documents = [d for d in documents if not d["is_balanced"]]

    summary = _empty_summary()
    for d in documents:
        summary["total_documents"] += 1
        summary["sum_debit"] += d["total_debit"]
        summary["sum_credit"] += d["total_credit"]
        summary["balanced_count" if d["is_balanced"] else "unbalanced_count"] += 1
        summary["sum_abs_difference"] += abs(d["total_debit"] - d["total_credit"])
    for key in ("sum_debit", "sum_credit", "sum_abs_difference"):
        summary[key] = round_money(summary[key])

    # Tie-break order first; the stable primary sort keeps it for equal keys
    documents.sort(key=lambda d: (d["journal_code"], d["period"]))
    documents.sort(key=SORT_KEYS.get(sort_by, SORT_KEYS["period"]), reverse=(sort_dir != "asc"))

    return {
        "rows": slice_page(documents, page, page_size),
        "total": len(documents),
        "summary": summary,
    }


def get_document(db: Session, tenant_id: str, journal_code: str, period: date) -> dict:
    lines = db.query(AdjustmentJournalLine).filter(
        AdjustmentJournalLine.tenant_id == tenant_id,
        AdjustmentJournalLine.journal_code == journal_code,
        AdjustmentJournalLine.period == period,
    ).order_by(AdjustmentJournalLine.id.asc()).all()

    total_debit = sum(to_float(line.debit) for line in lines)
    total_credit = sum(to_float(line.credit) for line in lines)
    return {
        "journal_code": journal_code,
        "period": period,
        "details": lines,
        "totals": {
            "total_debit": total_debit,
            "total_credit": total_credit,
            "is_balanced": round_money(total_debit) == round_money(total_credit),
        },
    }


def next_journal_code(db: Session, tenant_id: str) -> str:
    prefix = f"{database_code(tenant_id)}/JP/"
    last = db.query(func.max(AdjustmentJournalLine.journal_code)).filter(
        AdjustmentJournalLine.tenant_id == tenant_id,
        AdjustmentJournalLine.journal_code.like(f"{prefix}%"),
    ).scalar()
    return next_code(last, prefix)


def create_document(db: Session, payload: AdjustmentJournalCreate, tenant_id: str,
                    user_id: str) -> dict:
    """Post a balanced adjustment journal into the active book month."""
    active = active_book_month(db, tenant_id)
    if month_key(payload.period) != active or payload.period.day != 1:
        raise ValueError(f"Period must be the first day of the active book month: {first_of_month(active).isoformat()}")

    clean = []
    for line in payload.lines:
        account = line.account_code.strip()
        side = (line.side or "").strip().upper()
        if not account:
            raise ValueError("Account code is required.")
        if side not in ("DEBIT", "KREDIT"):
            raise ValueError("Side must be Debit or Kredit.")
        amount = round_money(line.amount)
        clean.append((account, amount if side == "DEBIT" else 0.0, amount if side == "KREDIT" else 0.0))

    if round_money(sum(c[1] for c in clean)) != round_money(sum(c[2] for c in clean)):
        raise ValueError("Total debit must equal total credit.")

    posting_date: Optional[date] = payload.posting_date or date.today()
    remark = payload.remark.strip()

    try:
        code = next_journal_code(db, tenant_id)
        names = get_account_names(db, tenant_id, [c[0] for c in clean])
        lines = [
            AdjustmentJournalLine(
                journal_code=code,
                period=payload.period,
                posting_date=posting_date,
                account_code=account,
                account_name=names.get(account, ""),
                debit=debit,
                credit=credit,
                remark=remark,
                tenant_id=tenant_id,
                created_by=user_id,
            )
            for account, debit, credit in clean
        ]
        db.add_all(lines)
        db.commit()
    except Exception:
        db.rollback()
        raise

    for line in lines:
        db.refresh(line)
    logger.info(f"Adjustment journal {code} posted for {payload.period.isoformat()} (tenant {tenant_id})")
    record_change(db, 'adjustment_journal_lines', lines[0].id, 'CREATE', user_id, tenant_id,
                  new_values={"journal_code": code, "lines": [sqlalchemy_to_dict(line) for line in lines]})
    return {"journal_code": code, "period": payload.period, "lines": lines}
