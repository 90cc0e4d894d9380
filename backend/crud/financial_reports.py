import logging
from typing import Dict, List

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from crud.chart_of_accounts import get_account_names
from models.worksheet_line import WorksheetLine
from schemas.financial_reports import WorksheetLineCreate
from utils import to_float
from utils.pagination import slice_page

logger = logging.getLogger("financial_reports")

REVENUE = "pendapatan"
COGS = "hpp"
OPERATING_EXPENSE = "beban_operasional"
OTHER = "lain_lain"
UNGROUPED = "lainnya"
OTHER_INCOME = "pendapatan_lain"
OTHER_EXPENSE = "beban_lain"

DRIVER_LIMIT = 5

GROUP_BY_DIGIT = {
    "4": REVENUE,
    "5": COGS,
    "6": OPERATING_EXPENSE,
    "7": OTHER,
}

SORT_KEYS = {
    "account_code": lambda r: r["account_code"],
    "account_name": lambda r: r["account_name"].lower(),
    "amount": lambda r: r["net"],
}


def group_from_code(account_code: str) -> str:
    return GROUP_BY_DIGIT.get((account_code or "").strip()[:1], UNGROUPED)


def classify(account_code: str, account_name: str, pl_debit: float, pl_credit: float) -> dict:
    """Place one worksheet line in its income-statement bucket.

    Revenue shows the credit balance, COGS and operating expenses show the
    debit balance; a balance on the wrong side shows as zero and is flagged.
    Everything else splits into other income or other expense by sign.
    """
    net = pl_credit - pl_debit
    group = group_from_code(account_code)
    subgroup = None
    is_anomaly = False

    if group == REVENUE:
        amount = max(net, 0.0)
        is_anomaly = net < 0
    elif group in (COGS, OPERATING_EXPENSE):
        amount = max(-net, 0.0)
        is_anomaly = net > 0
    elif net >= 0:
        subgroup, amount = OTHER_INCOME, net
    else:
        subgroup, amount = OTHER_EXPENSE, -net

    return {
        "account_code": account_code,
        "account_name": account_name,
        "pl_debit": pl_debit,
        "pl_credit": pl_credit,
        "net": net,
        "group": group,
        "subgroup": subgroup,
        "amount": amount,
        "is_anomaly": is_anomaly,
    }


def bucket_of(row: dict) -> str:
    return row["subgroup"] or row["group"]


def summarize(rows: List[dict]) -> dict:
    sums = {REVENUE: 0.0, COGS: 0.0, OPERATING_EXPENSE: 0.0, OTHER_INCOME: 0.0, OTHER_EXPENSE: 0.0}
    for row in rows:
        sums[bucket_of(row)] += row["amount"]

    gross_profit = sums[REVENUE] - sums[COGS]
    operating_profit = gross_profit - sums[OPERATING_EXPENSE]
    other_net = sums[OTHER_INCOME] - sums[OTHER_EXPENSE]
    return {
        "total_revenue": sums[REVENUE],
        "total_cogs": sums[COGS],
        "gross_profit": gross_profit,
        "total_operating_expense": sums[OPERATING_EXPENSE],
        "operating_profit": operating_profit,
        "total_other_income": sums[OTHER_INCOME],
        "total_other_expense": sums[OTHER_EXPENSE],
        "other_net": other_net,
        "net_profit": operating_profit + other_net,
    }


def _ratio(value: float, base: float) -> float:
    return value / base if base else 0.0


def kpis(summary: dict) -> dict:
    revenue = summary["total_revenue"]
    return {
        "gross_margin": _ratio(summary["gross_profit"], revenue),
        "operating_margin": _ratio(summary["operating_profit"], revenue),
        "net_margin": _ratio(summary["net_profit"], revenue),
        "cogs_ratio": _ratio(summary["total_cogs"], revenue),
        "opex_ratio": _ratio(summary["total_operating_expense"], revenue),
    }


def drivers(rows: List[dict], limit: int = DRIVER_LIMIT) -> Dict[str, List[dict]]:
    """Largest accounts of every bucket."""
    result = {REVENUE: [], COGS: [], OPERATING_EXPENSE: [], OTHER_INCOME: [], OTHER_EXPENSE: []}
    for row in rows:
        result[bucket_of(row)].append(row)
    return {
        bucket: sorted(items, key=lambda r: r["amount"], reverse=True)[:limit]
        for bucket, items in result.items()
    }


def profit_and_loss_rows(db: Session, tenant_id: str, search: str = None) -> List[dict]:
    query = db.query(WorksheetLine).filter(
        WorksheetLine.tenant_id == tenant_id,
        or_(func.coalesce(WorksheetLine.pl_debit, 0) != 0, func.coalesce(WorksheetLine.pl_credit, 0) != 0),
    )
    lines = query.all()
    names = get_account_names(db, tenant_id, [line.account_code for line in lines])

    needle = (search or "").strip().lower()
    rows = []
    for line in lines:
        name = names.get(line.account_code) or line.account_name or ""
        if needle and needle not in line.account_code.lower() and needle not in name.lower():
            continue
        rows.append(classify(line.account_code, name, to_float(line.pl_debit), to_float(line.pl_credit)))
    return rows


def get_profit_and_loss(db: Session, tenant_id: str, search: str = None, sort_by: str = "account_code",
                        sort_dir: str = "asc", page: int = 1, page_size: str = "10") -> dict:
    rows = profit_and_loss_rows(db, tenant_id, search)
    summary = summarize(rows)

    rows.sort(key=SORT_KEYS.get(sort_by, SORT_KEYS["account_code"]), reverse=(sort_dir == "desc"))
    return {
        "rows": slice_page(rows, page, page_size),
        "total": len(rows),
        "summary": summary,
        "kpis": kpis(summary),
        "drivers": drivers(rows),
    }


def get_worksheet(db: Session, tenant_id: str) -> List[WorksheetLine]:
    return db.query(WorksheetLine).filter(
        WorksheetLine.tenant_id == tenant_id
    ).order_by(WorksheetLine.account_code.asc()).all()


def replace_worksheet(db: Session, lines: List[WorksheetLineCreate], tenant_id: str,
                      user_id: str = None) -> List[WorksheetLine]:
    """Swap the tenant's worksheet for ``lines`` in one transaction."""
    try:
        db.query(WorksheetLine).filter(WorksheetLine.tenant_id == tenant_id).delete(synchronize_session=False)
        db.add_all([
            WorksheetLine(**line.model_dump(), tenant_id=tenant_id, created_by=user_id)
            for line in lines
        ])
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Worksheet replaced with {len(lines)} lines for tenant {tenant_id}")
    return get_worksheet(db, tenant_id)
