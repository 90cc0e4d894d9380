"""
Account suggestions for cash-book vouchers.

Given the remark typed for a new cash mutation, the engine proposes the
cash/bank account, the voucher type, the VAT account and up to three
counter-account (DPP) lines. Three signals are blended:

* kNN over similar historical vouchers (BM25 + trigram Jaccard),
* general-journal entries whose remark shares words with the query,
* a hashed multinomial naive Bayes model trained on the voucher history.

When the blended confidence is low and ``DSS_LLM_URL`` is configured, the
candidates are handed to an external reranker; its answer is optional and
any failure leaves the local suggestion untouched.
"""
import logging
import os
from collections import Counter, defaultdict
from datetime import date
from typing import Dict, List, Optional

import httpx
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from crud import app_config as crud_app_config
from models.cash_voucher import CashVoucher
from models.journal_entry import JournalEntry
from models.journal_item import JournalItem
from utils import text_similarity as ts
from utils import to_float
from utils.accounting import CREDIT, DEBIT, round_money, split_by_ratios
from utils.naive_bayes import NaiveBayesModel
from utils.periods import months_ago

logger = logging.getLogger("cash_suggest")

CANDIDATE_LIMIT = 800
TOP_K = 40
JOURNAL_LIMIT = 220
MODEL_ROWS = 20000
CASH_LABELS = 20
COUNTER_LABELS = 300

KNN_WEIGHT = 0.60
JOURNAL_WEIGHT = 0.15
NB_WEIGHT = 1.0 - KNN_WEIGHT - JOURNAL_WEIGHT


def voucher_type_for_account(account_code: str) -> str:
    code = (account_code or "").strip()
    if code.startswith("1101"):
        return "CV"
    if code.startswith("1102"):
        return "GV"
    if code.startswith("1103") or code.startswith("1104"):
        return "BV"
    return "BV"


def default_description(mode: str) -> str:
    return "Mutasi/Kas Masuk" if mode == "in" else "Mutasi/Kas Keluar"


def _mode_query(db: Session, tenant_id: str, mode: str):
    query = db.query(CashVoucher).filter(
        CashVoucher.tenant_id == tenant_id,
        CashVoucher.account_code.isnot(None),
        func.trim(CashVoucher.account_code) != "",
    )
    if mode == "in":
        return query.filter(CashVoucher.cash_mutation > 0)
    return query.filter(CashVoucher.cash_mutation < 0)


def _newest_first(query):
    return query.order_by(CashVoucher.voucher_date.desc(), CashVoucher.voucher_code.desc())


def candidate_vouchers(db: Session, tenant_id: str, mode: str, query_tf: Dict[str, int],
                       normalized_query: str) -> List[CashVoucher]:
    """Historical vouchers of the same direction that share a long word with the query."""
    base = _mode_query(db, tenant_id, mode)
    terms = ts.prune_terms(query_tf)
    query = base
    if terms:
        query = query.filter(or_(*[func.lower(CashVoucher.description).like(f"%{t}%") for t in terms]))
    rows = _newest_first(query).limit(CANDIDATE_LIMIT).all()
    if not rows and normalized_query:
        rows = _newest_first(base).limit(CANDIDATE_LIMIT).all()
    return rows


def journal_votes(db: Session, tenant_id: str, mode: str, description: str) -> dict:
    """Votes from the last 30 months of general journals with matching remarks."""
    empty = {"cash": {}, "counter": {}, "evidence": []}
    terms = list(ts.tokens_with_emphasis(description, 12))
    if not terms:
        return empty

    today = date.today()
    conditions = []
    for term in terms[:6]:
        like = f"%{term}%"
        conditions.append(func.lower(JournalEntry.remark).like(like))
        conditions.append(func.lower(JournalEntry.voucher_code).like(like))
        conditions.append(func.lower(JournalEntry.journal_code).like(like))

    entries = db.query(JournalEntry).filter(
        JournalEntry.tenant_id == tenant_id,
        JournalEntry.journal_date >= months_ago(today, 30),
        JournalEntry.journal_date <= today,
        or_(*conditions),
    ).order_by(JournalEntry.journal_date.desc(), JournalEntry.journal_code.desc()).limit(JOURNAL_LIMIT).all()
    if not entries:
        return empty

    weights = {}
    evidence = []
    for entry in entries:
        text = ts.normalize(f"{entry.remark or ''} {entry.voucher_code or ''} {entry.journal_code}")
        hits = sum(1 for t in terms if t and text and t in text)
        weight = max(0.2, min(3.0, 0.25 * hits))
        weights[entry.id] = weight
        if len(evidence) < 3:
            evidence.append({
                "journal_code": entry.journal_code,
                "journal_date": entry.journal_date.isoformat() if entry.journal_date else "",
                "voucher_code": entry.voucher_code or "",
                "remark": entry.remark or "",
                "score": round(weight, 4),
            })

    cash, counter = defaultdict(float), defaultdict(float)
    items = db.query(JournalItem).filter(
        JournalItem.tenant_id == tenant_id,
        JournalItem.journal_entry_id.in_(list(weights)),
    ).all()
    for item in items:
        weight = weights.get(item.journal_entry_id, 0.0)
        account = (item.account_code or "").strip()
        if weight <= 0 or not account:
            continue
        debit, credit = to_float(item.debit), to_float(item.credit)
        # Money out credits the cash account and debits the expense; money in is the mirror image
        cash_side, counter_side = (credit, debit) if mode == "out" else (debit, credit)
        if cash_side > 0:
            cash[account] += weight
        if counter_side > 0:
            counter[account] += weight
    return {"cash": dict(cash), "counter": dict(counter), "evidence": evidence}


def build_model(db: Session, tenant_id: str, mode: str, target: str) -> NaiveBayesModel:
    """Train the naive Bayes model for cash accounts (``cash``) or counter accounts (``counter``)."""
    rows = _newest_first(_mode_query(db, tenant_id, mode)).limit(MODEL_ROWS).all()

    cash_count, counter_count = Counter(), Counter()
    for row in rows:
        cash_count[row.account_code.strip()] += 1
        for idx, account, amount, _ in row.slots():
            # Slot 2 holds VAT whenever it carries an amount
            if idx == 2 or not account or amount <= 0:
                continue
            counter_count[account] += 1

    if target == "cash":
        labels = {a for a, _ in cash_count.most_common(CASH_LABELS)}
    else:
        labels = {a for a, _ in counter_count.most_common(COUNTER_LABELS)}

    def samples():
        for row in rows:
            text = ts.normalize(row.description or "")
            if not text:
                continue
            if target == "cash":
                label = row.account_code.strip()
                yield text, [label] if label in labels else []
            else:
                targets = []
                for idx, account, amount, _ in row.slots():
                    if idx in (1, 3) and account and amount > 0 and account in labels and account not in targets:
                        targets.append(account)
                yield text, targets

    return NaiveBayesModel().fit(samples())


def _blend(knn: Dict[str, float], journal: Dict[str, float], nb: Dict[str, float]) -> Dict[str, float]:
    knn, journal = ts.normalize_to_01(knn), ts.normalize_to_01(journal)
    keys = list(dict.fromkeys(list(knn) + list(journal) + list(nb)))
    blended = {
        k: KNN_WEIGHT * knn.get(k, 0.0) + JOURNAL_WEIGHT * journal.get(k, 0.0) + NB_WEIGHT * nb.get(k, 0.0)
        for k in keys
    }
    return dict(sorted(blended.items(), key=lambda item: item[1], reverse=True))


def _first_key(scores: Dict[str, float]) -> str:
    return next(iter(scores), "")


def _best_vote(votes: Dict[str, float]) -> str:
    if not votes:
        return ""
    return max(votes.items(), key=lambda item: item[1])[0]


def _llm_threshold(db: Session, tenant_id: str) -> float:
    raw = crud_app_config.get_config_value(
        db, tenant_id, "dss_llm_conf_threshold", os.getenv("DSS_LLM_CONF_THRESHOLD", "0.12")
    )
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.12


def rerank_with_llm(url: str, token: str, payload: dict) -> Optional[dict]:
    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    try:
        response = httpx.post(url, json=payload, headers=headers, timeout=2.0)
        response.raise_for_status()
        return response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Suggestion reranker unavailable: {e}")
        return None


def suggest(db: Session, tenant_id: str, mode: str, description: str, nominal: float = 0.0,
            has_ppn: bool = False, ppn_amount: float = 0.0, seed_account: str = "") -> dict:
    mode = mode if mode in ("in", "out") else "out"
    nominal = max(0.0, float(nominal or 0))
    ppn_amount = max(0.0, float(ppn_amount or 0))
    seed_account = (seed_account or "").strip()
    ppn_active = has_ppn and ppn_amount > 0
    ppn_side = CREDIT if mode == "in" else DEBIT

    normalized_query = ts.normalize(description)
    query_tf = ts.tokens_with_emphasis(description, 16)
    query_trigrams = ts.trigrams(normalized_query, 60)

    rows = candidate_vouchers(db, tenant_id, mode, query_tf, normalized_query)

    has_query = bool(normalized_query) and bool(query_tf or query_trigrams)
    if has_query and rows:
        scores = ts.rank_documents(query_tf, query_trigrams, [ts.normalize(r.description or "") for r in rows])
    else:
        scores = [0.0] * len(rows)
    ranked = sorted(zip(rows, scores), key=lambda item: item[1], reverse=True)[:TOP_K]

    cash_votes, voucher_votes, ppn_votes = defaultdict(float), defaultdict(float), defaultdict(float)
    counter_votes = defaultdict(float)
    side_votes = defaultdict(lambda: {DEBIT: 0.0, CREDIT: 0.0})
    ratio_sum, ratio_weight = defaultdict(float), defaultdict(float)
    best_description, best_score = "", 0.0
    evidence = []

    for row, weight in ranked:
        if weight <= 0:
            continue
        cash_account = (row.account_code or "").strip()
        if cash_account:
            cash_votes[cash_account] += weight
        vt = ts.extract_voucher_type(row.voucher_code)
        if vt:
            voucher_votes[vt] += weight
        text = (row.description or "").strip()
        if text and weight > best_score:
            best_description, best_score = text, weight

        slots = {idx: (account, amount, side) for idx, account, amount, side in row.slots()}
        vat_amount = slots[2][1]
        if vat_amount > 0 and slots[2][0]:
            ppn_votes[slots[2][0]] += weight

        dpp_slots = (1, 3) if vat_amount > 0 else (1, 2, 3)
        dpp_total = max(1.0, sum(slots[s][1] for s in dpp_slots))

        for slot in ((1, 3) if ppn_active else (1, 2, 3)):
            if slot == 2 and vat_amount > 0:
                continue
            account, amount, side = slots[slot]
            if not account or amount <= 0:
                continue
            counter_votes[account] += weight
            side_upper = (side or "").strip().upper()
            if side_upper in ("DEBIT", "KREDIT"):
                side_votes[account][DEBIT if side_upper == "DEBIT" else CREDIT] += weight
            ratio_sum[account] += weight * max(0.0, amount / dpp_total)
            ratio_weight[account] += weight

        if len(evidence) < 3:
            evidence.append({
                "voucher_code": row.voucher_code,
                "account_code": cash_account,
                "description": text,
                "score": round(weight, 4),
            })

    if seed_account:
        counter_votes[seed_account] += 3.0

    journal = journal_votes(db, tenant_id, mode, description)

    cash_model = build_model(db, tenant_id, mode, "cash")
    counter_model = build_model(db, tenant_id, mode, "counter")
    cash_final = _blend(cash_votes, journal["cash"], cash_model.predict_proba(normalized_query) if normalized_query else {})
    counter_final = _blend(counter_votes, journal["counter"],
                           counter_model.predict_proba(normalized_query) if normalized_query else {})

    cash_top = _first_key(cash_final) or _first_key(cash_votes)
    if not cash_top:
        most_frequent = cash_model.most_frequent(1)
        cash_top = most_frequent[0] if most_frequent else ""

    voucher_type = _best_vote(voucher_votes) or voucher_type_for_account(cash_top)
    ppn_account = _best_vote(ppn_votes) if ppn_active else ""

    max_lines = 2 if ppn_active else 3
    line_accounts = list(counter_final)[:max_lines]
    if not line_accounts and seed_account:
        line_accounts = [seed_account]
    if not line_accounts:
        line_accounts = counter_model.most_frequent(max_lines)

    default_side = CREDIT if mode == "in" else DEBIT
    dpp_target = max(0.0, nominal - (ppn_amount if has_ppn else 0.0))
    ratios = [
        max(0.0, ratio_sum[a] / ratio_weight[a]) if ratio_weight.get(a, 0) > 0 else 0.0
        for a in line_accounts
    ]
    sides = {}
    for account in line_accounts:
        if account in side_votes:
            votes = side_votes[account]
            sides[account] = DEBIT if votes[DEBIT] >= votes[CREDIT] else CREDIT
    lines = split_by_ratios(line_accounts, ratios, dpp_target, sides=sides, default_side=default_side)

    confidence = {
        "cash": ts.margin_confidence(list(cash_final.values())),
        "counter": ts.margin_confidence(list(counter_final.values())),
        "ppn": ts.margin_confidence(list(ppn_votes.values())) if ppn_active else 0.0,
    }
    confidence["overall"] = round(0.5 * confidence["cash"] + 0.5 * confidence["counter"], 4)

    llm_url = os.getenv("DSS_LLM_URL", "").strip()
    if llm_url and confidence["overall"] < _llm_threshold(db, tenant_id):
        answer = rerank_with_llm(llm_url, os.getenv("DSS_LLM_TOKEN", "").strip(), {
            "mode": mode,
            "description_normalized": normalized_query,
            "candidates_cash": list(cash_final)[:10],
            "candidates_counter": list(counter_final)[:15],
            "evidence": evidence,
        })
        if isinstance(answer, dict):
            cash_top = str(answer.get("account_code") or "").strip() or cash_top
            llm_vt = str(answer.get("voucher_type") or "").strip()
            if llm_vt in ("CV", "GV", "BV"):
                voucher_type = llm_vt
            llm_lines = answer.get("lines")
            if isinstance(llm_lines, list) and llm_lines:
                lines = []
                for line in llm_lines[:max_lines]:
                    if not isinstance(line, dict):
                        continue
                    account = str(line.get("account_code") or "").strip()
                    if not account:
                        continue
                    side = str(line.get("side") or default_side).strip().upper()
                    lines.append({
                        "account_code": account,
                        "side": CREDIT if side in ("KREDIT", "CREDIT") else DEBIT,
                        "amount": round_money(to_float(line.get("amount"))),
                    })

    return {
        "account_code": cash_top,
        "voucher_type": voucher_type,
        "ppn_account": ppn_account,
        "ppn_side": ppn_side,
        "description": best_description or default_description(mode),
        "lines": lines,
        "confidence": confidence,
        "evidence": (evidence + journal["evidence"])[:6],
    }
