"""Line suggestions for adjustment journals, learned from earlier JP documents."""
import logging
import math
from collections import defaultdict
from typing import Dict, List

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from models.adjustment_journal import AdjustmentJournalLine
from utils import text_similarity as ts
from utils import to_float
from utils.accounting import CREDIT, DEBIT

logger = logging.getLogger("adjustment_suggest")

CANDIDATE_LIMIT = 800
TOP_K = 40
MAX_LINES = 4


def empty_result() -> dict:
    return {"lines": [], "remark_suggest": "", "confidence": {"overall": 0.0}, "evidence": []}


def _documents(db: Session, tenant_id: str, terms: List[str]):
    query = db.query(
        AdjustmentJournalLine.journal_code,
        AdjustmentJournalLine.period,
        func.max(AdjustmentJournalLine.remark),
    ).filter(AdjustmentJournalLine.tenant_id == tenant_id)
    if terms:
        query = query.filter(or_(*[func.lower(AdjustmentJournalLine.remark).like(f"%{t}%") for t in terms]))
    return query.group_by(
        AdjustmentJournalLine.journal_code, AdjustmentJournalLine.period
    ).order_by(
        AdjustmentJournalLine.period.desc(), AdjustmentJournalLine.journal_code.desc()
    ).limit(CANDIDATE_LIMIT).all()


def _document_lines(db: Session, tenant_id: str, keys) -> Dict[tuple, List[dict]]:
    codes = list({code for code, _ in keys})
    periods = list({period for _, period in keys})
    rows = db.query(AdjustmentJournalLine).filter(
        AdjustmentJournalLine.tenant_id == tenant_id,
        AdjustmentJournalLine.journal_code.in_(codes),
        AdjustmentJournalLine.period.in_(periods),
    ).order_by(AdjustmentJournalLine.id.asc()).all()

    by_doc = defaultdict(list)
    for row in rows:
        key = (row.journal_code, row.period)
        account = (row.account_code or "").strip()
        if key not in keys or not account:
            continue
        debit, credit = to_float(row.debit), to_float(row.credit)
        if debit > 0:
            by_doc[key].append({"account_code": account, "side": DEBIT, "amount": debit})
        elif credit > 0:
            by_doc[key].append({"account_code": account, "side": CREDIT, "amount": credit})
    return by_doc


def _seed_factor(lines: List[dict], seed_account: str, seed_side: str, nominal: float) -> float:
    """Favour documents whose seed-account line is close to the requested amount."""
    seed_amount = 0.0
    for line in lines:
        if line["account_code"] != seed_account:
            continue
        if seed_side and line["side"] != seed_side:
            continue
        seed_amount = line["amount"]
        break
    if seed_amount > 0:
        delta = abs(seed_amount - nominal) / max(nominal, 1.0)
        return 0.6 + 0.4 * max(0.0, min(1.0, math.exp(-2.0 * delta)))
    if seed_side:
        return 0.85
    return 1.0


def _ordered(votes: Dict[str, float]) -> List[str]:
    return [a for a, _ in sorted(votes.items(), key=lambda item: item[1], reverse=True)]


def suggest(db: Session, tenant_id: str, remark: str, seed_account: str = "", seed_side: str = "",
            nominal: float = 0.0) -> dict:
    remark = (remark or "").strip()
    seed_account = (seed_account or "").strip()
    seed_side = seed_side if seed_side in (DEBIT, CREDIT) else ""
    nominal = max(0.0, float(nominal or 0))
    if not remark:
        return empty_result()

    flavour = ts.ADJUSTMENT
    normalized_query = ts.normalize(remark, flavour)
    query_tf = ts.tokens(normalized_query, 16, flavour)
    query_trigrams = ts.trigrams(normalized_query, 60)

    terms = ts.prune_terms(query_tf)
    documents = _documents(db, tenant_id, terms)
    if not documents:
        documents = _documents(db, tenant_id, [])
    documents = [(code, period, text or "") for code, period, text in documents if code and period]
    if not documents:
        return empty_result()

    keys = {(code, period) for code, period, _ in documents}
    lines_by_doc = _document_lines(db, tenant_id, keys)

    if query_tf or query_trigrams:
        scores = ts.rank_documents(query_tf, query_trigrams,
                                   [ts.normalize(text, flavour) for _, _, text in documents], flavour)
    else:
        scores = [0.0] * len(documents)
    ranked = sorted(zip(documents, scores), key=lambda item: item[1], reverse=True)

    debit_votes, credit_votes = defaultdict(float), defaultdict(float)
    best_remark, best_score = "", -1.0
    evidence = []

    for (code, period, text), weight in ranked[:TOP_K]:
        if weight <= 0:
            continue
        lines = lines_by_doc.get((code, period), [])
        if seed_account and nominal > 0:
            weight *= _seed_factor(lines, seed_account, seed_side, nominal)

        if text and weight > best_score:
            best_remark, best_score = text, weight

        for line in lines:
            votes = debit_votes if line["side"] == DEBIT else credit_votes
            votes[line["account_code"]] += weight

        if len(evidence) < 3:
            evidence.append({
                "journal_code": code,
                "period": period.isoformat(),
                "remark": text,
                "score": round(weight, 4),
                "accounts_preview": [
                    {"account_code": line["account_code"], "side": line["side"]} for line in lines[:6]
                ],
            })

    top_debit, top_credit = _ordered(debit_votes), _ordered(credit_votes)
    suggested, used = [], set()

    if seed_account:
        side = seed_side or (DEBIT if debit_votes.get(seed_account, 0) >= credit_votes.get(seed_account, 0) else CREDIT)
        suggested.append({"account_code": seed_account, "side": side})
        used.add(seed_account)
        opposite = CREDIT if side == DEBIT else DEBIT
        for account in (top_credit if opposite == CREDIT else top_debit):
            if account not in used:
                suggested.append({"account_code": account, "side": opposite})
                used.add(account)
                break
    else:
        if top_debit:
            suggested.append({"account_code": top_debit[0], "side": DEBIT})
            used.add(top_debit[0])
        if top_credit and top_credit[0] not in used:
            suggested.append({"account_code": top_credit[0], "side": CREDIT})
            used.add(top_credit[0])

    merged = [(a, DEBIT, v) for a, v in debit_votes.items()] + [(a, CREDIT, v) for a, v in credit_votes.items()]
    for account, side, _ in sorted(merged, key=lambda item: item[2], reverse=True):
        if len(suggested) >= MAX_LINES:
            break
        if account not in used:
            suggested.append({"account_code": account, "side": side})
            used.add(account)

    sides = {line["side"] for line in suggested}
    if DEBIT not in sides and top_debit and top_debit[0] not in used:
        suggested.append({"account_code": top_debit[0], "side": DEBIT})
    if CREDIT not in sides and top_credit and top_credit[0] not in used:
        suggested.append({"account_code": top_credit[0], "side": CREDIT})

    return {
        "lines": suggested[:MAX_LINES],
        "remark_suggest": best_remark,
        "confidence": {"overall": round(ts.margin_confidence(scores), 4)},
        "evidence": evidence,
    }
