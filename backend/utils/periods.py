import re
from calendar import monthrange
from datetime import date
from typing import Optional, Tuple

from dateutil.relativedelta import relativedelta


def period_range(period: Optional[str]) -> Optional[Tuple[date, date]]:
    """``YYYYMM`` -> that month, ``YYYY`` -> that year, anything else -> no filter."""
    value = (period or "").strip()
    if re.fullmatch(r"\d{6}", value):
        year, month = int(value[:4]), int(value[4:])
        if not 1 <= month <= 12:
            return None
        return date(year, month, 1), date(year, month, monthrange(year, month)[1])
    if re.fullmatch(r"\d{4}", value):
        year = int(value)
        return date(year, 1, 1), date(year, 12, 31)
    return None


def parse_period(period_type: str, period: str) -> Tuple[date, date]:
    """Strict variant of period_range used by the adjustment-journal listing."""
    period = (period or "").strip()
    if period_type == "year":
        if not re.fullmatch(r"\d{4}", period):
            raise ValueError("Invalid period. Use the YYYY format (e.g. 2018).")
        year = int(period)
        return date(year, 1, 1), date(year, 12, 31)

    if not re.fullmatch(r"\d{6}", period) or not 1 <= int(period[4:]) <= 12:
        raise ValueError("Invalid period. Use the YYYYMM format (e.g. 201812).")
    year, month = int(period[:4]), int(period[4:])
    start = date(year, month, 1)
    return start, start + relativedelta(months=1, days=-1)


def month_key(value: date) -> str:
    return value.strftime("%Y%m")


def first_of_month(ym: str) -> date:
    return date(int(ym[:4]), int(ym[4:6]), 1)


def months_ago(today: date, months: int) -> date:
    return today - relativedelta(months=months)
