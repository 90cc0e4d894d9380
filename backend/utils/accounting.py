"""Bookkeeping helpers shared by the cash book, purchase input and journals."""
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

DEBIT = "Debit"
CREDIT = "Kredit"

CODE_WIDTH = 8


def round_money(value) -> float:
    """Round half away from zero to 2 decimals, as ledgers do."""
    return float(Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def compute_allocation(total, tax, cash) -> Dict[str, float]:
    """Split a (possibly partial) payment of an invoice into DPP and PPN.

    The paid share of the invoice is applied proportionally to the tax base
    and the tax, so that ``dpp + tax == cash`` when the invoice itself obeys
    ``dpp + tax == total``.
    """
    total = float(total or 0)
    cash = float(cash or 0)
    tax = max(0.0, float(tax or 0))
    dpp = max(0.0, total - tax)

    ratio = clamp(cash / total) if total > 0 else 1.0

    return {
        "cash": max(0.0, cash),
        "dpp": round_money(dpp * ratio),
        "tax": round_money(tax * ratio),
    }


def default_payment(paid_amount, total) -> float:
    paid = float(paid_amount or 0)
    return paid if paid > 0 else float(total or 0)


def normalize_side(side: Optional[str]) -> str:
    value = (side or "").strip().lower()
    return CREDIT if value in ("kredit", "credit") else DEBIT


def normalize_side_or(side: Optional[str], default: str) -> str:
    """Like normalize_side but keeps ``default`` for anything unrecognised."""
    value = (side or "").strip().lower()
    if value == "debit":
        return DEBIT
    if value in ("kredit", "credit"):
        return CREDIT
    return default


def guess_voucher_type(account_code: Optional[str]) -> str:
    """Giro accounts (1101*) post GV vouchers, everything else BV."""
    return "GV" if (account_code or "").strip().startswith("1101") else "BV"


def accept_voucher_type(value: Optional[str]) -> Optional[str]:
    vt = (value or "").strip().upper()
    return vt if vt in ("GV", "BV") else None


def voucher_type_in_code(voucher_code: Optional[str]) -> Optional[str]:
    code = (voucher_code or "").upper()
    if "/GV/" in code or code.startswith("GV"):
        return "GV"
    if "/BV/" in code or code.startswith("BV"):
        return "BV"
    return None


def next_code(last_code: Optional[str], prefix: str, step: int = 1) -> str:
    """Continue a ``PREFIX########`` sequence from the highest code seen so far."""
    seq = 0
    if last_code:
        tail = last_code[len(prefix):] if last_code.startswith(prefix) else ""
        if re.fullmatch(r"\d{%d}" % CODE_WIDTH, tail):
            seq = int(tail)
    return f"{prefix}{seq + step:0{CODE_WIDTH}d}"


def split_evenly(accounts: List[str], total: float, sides: Optional[Dict[str, str]] = None,
                 default_side: str = DEBIT) -> List[dict]:
    """Spread ``total`` across accounts; the last line absorbs the rounding remainder."""
    accounts = [a for a in accounts if a]
    if not accounts:
        return []
    sides = sides or {}
    remaining = round_money(total)
    even = round_money(total / len(accounts))
    lines = []
    for idx, account in enumerate(accounts):
        amount = remaining if idx == len(accounts) - 1 else even
        remaining = round_money(remaining - amount)
        lines.append({
            "account_code": account,
            "side": normalize_side_or(sides.get(account), default_side),
            "amount": round_money(amount),
        })
    return lines


def split_by_ratios(accounts: List[str], ratios: List[float], total: float,
                    sides: Optional[Dict[str, str]] = None, default_side: str = DEBIT) -> List[dict]:
    """Allocate ``total`` by the given ratios, last line takes the remainder."""
    if not accounts:
        return []
    sides = sides or {}
    ratio_sum = sum(r for r in ratios if r > 0)
    if ratio_sum <= 0:
        ratios = [1.0] + [0.0] * (len(accounts) - 1)
        ratio_sum = 1.0

    lines = []
    used = 0.0
    for idx, account in enumerate(accounts):
        if total <= 0:
            amount = 0.0
        elif idx == len(accounts) - 1:
            amount = round_money(total - used)
        else:
            amount = round_money(total * max(0.0, ratios[idx]) / ratio_sum)
            used += amount
        lines.append({
            "account_code": account,
            "side": normalize_side_or(sides.get(account), default_side),
            "amount": amount,
        })
    return lines


def rank_with_weights(counts: Dict[str, float], weights: Dict[str, float], limit: int = 3) -> List[str]:
    """Order accounts by vote count with a small bonus for accounts that carry balance."""
    limit = max(1, min(10, int(limit)))
    scored = []
    for account, count in counts.items():
        if not account:
            continue
        bonus = 0.25 if weights.get(account, 0) > 0 else 0.0
        scored.append((account, float(count) + bonus))
    # sorted() is stable so equal scores keep first-seen order
    scored = sorted(scored, key=lambda item: item[1], reverse=True)
    return [account for account, _ in scored[:limit]]


def top_key(counts: Dict[str, float]) -> Optional[str]:
    best, best_score = None, None
    for key, score in counts.items():
        if not key:
            continue
        if best_score is None or score > best_score:
            best, best_score = key, score
    return best
