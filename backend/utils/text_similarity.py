"""
Text normalisation and lexical similarity for voucher and journal remarks.

Remarks are short, noisy Indonesian strings full of document numbers
("Pembelian/FI 00001234 - CV Maju (PO 88123)"). Before comparing them,
numbers that identify a single document are collapsed into placeholders so
that two payments to the same supplier look alike. Scoring is BM25 over
term frequencies blended with trigram Jaccard similarity, which tolerates
typos and abbreviations.
"""
import math
import re
from collections import Counter
from typing import Dict, Iterable, List

CASH = "cash"
ADJUSTMENT = "adjustment"

BM25_K1 = 1.2
BM25_B = 0.75

_BASE_STOPWORDS = {
    "dan", "atau", "yang", "untuk", "dari", "ke", "di", "pada", "dengan", "tanpa",
    "pt", "cv", "gv", "bv", "sja", "the", "a", "an", "of", "to", "in",
}

STOPWORDS = {
    CASH: _BASE_STOPWORDS | {"pc"},
    ADJUSTMENT: _BASE_STOPWORDS | {"jp"},
}

_CASH_PATTERNS = [
    (re.compile(r"\b[a-z0-9]{2,8}/(cv|gv|bv)/\d{4,}\b"), "{voucher}"),
    (re.compile(r"\b[a-z0-9]{2,8}/pc/\d{4,}\b"), "{pay}"),
    (re.compile(r"\b(fi|inv|invoice|po|do|sj|bkp|bkj)[-/_ ]?\d{4,}\b"), "{doc}"),
]
_ADJUSTMENT_PATTERNS = [
    (re.compile(r"\b[a-z0-9]{2,8}/jp/\d{4,}\b"), "{jp}"),
]
_LONG_NUMBER = re.compile(r"\b\d{4,}\b")
_NON_WORD = re.compile(r"[^a-z0-9{}]+")
_PLACEHOLDER = re.compile(r"^\{[^}]+\}$")
_PARENTHESISED = re.compile(r"\(([^)]{1,120})\)")


def normalize(text: str, flavour: str = CASH) -> str:
    s = (text or "").strip().lower()
    if not s:
        return ""
    patterns = _CASH_PATTERNS if flavour == CASH else _ADJUSTMENT_PATTERNS
    for pattern, placeholder in patterns:
        s = pattern.sub(placeholder, s)
    s = _LONG_NUMBER.sub("{#}", s)
    s = _NON_WORD.sub(" ", s)
    return " ".join(s.split())


def is_placeholder(token: str) -> bool:
    return bool(_PLACEHOLDER.match(token))


def _top_terms(tf: Counter, limit: int) -> Dict[str, int]:
    if len(tf) <= limit:
        return dict(tf)
    # Counter preserves first-seen order and sorted() is stable
    ranked = sorted(tf.items(), key=lambda item: item[1], reverse=True)
    return dict(ranked[:limit])


def tokens(normalized: str, limit: int = 32, flavour: str = CASH) -> Dict[str, int]:
    """Term frequencies of a normalised remark, capped at ``limit`` terms."""
    limit = max(1, min(60, int(limit)))
    if not normalized:
        return {}
    stop = STOPWORDS[flavour]
    tf = Counter()
    for tok in normalized.split(" "):
        if len(tok) < 3 or tok in stop:
            continue
        if flavour == ADJUSTMENT and is_placeholder(tok):
            continue
        tf[tok] += 1
    return _top_terms(tf, limit)


def tokens_with_emphasis(raw: str, limit: int = 16, flavour: str = CASH) -> Dict[str, int]:
    """Like tokens(), but words in parentheses (usually a name) count three times."""
    limit = max(1, min(60, int(limit)))
    tf = Counter(tokens(normalize(raw, flavour), limit, flavour))
    emphasised = _PARENTHESISED.findall(raw or "")
    if emphasised:
        inner = normalize(" ".join(emphasised), flavour)
        for tok, count in tokens(inner, min(12, limit), flavour).items():
            tf[tok] += 2 * count
    return _top_terms(tf, limit)


def trigrams(normalized: str, limit: int = 60) -> List[str]:
    limit = max(1, min(200, int(limit)))
    s = re.sub(r"\s+", "", normalized or "")
    if len(s) < 3:
        return []
    seen = {}
    for i in range(len(s) - 2):
        seen.setdefault(s[i:i + 3], True)
        if len(seen) >= limit:
            break
    return list(seen)


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    set_a, set_b = set(a), set(b)
    if not set_a or not set_b:
        return 0.0
    union = len(set_a | set_b)
    return len(set_a & set_b) / union if union else 0.0


def inverse_document_frequency(query_tf: Dict[str, int], docs_tf: List[Dict[str, int]]) -> Dict[str, float]:
    n = max(1, len(docs_tf))
    idf = {}
    for term in query_tf:
        df = sum(1 for doc in docs_tf if term in doc)
        idf[term] = math.log((n - df + 0.5) / (df + 0.5) + 1.0)
    return idf


def bm25(query_tf: Dict[str, int], doc_tf: Dict[str, int], doc_len: int, avg_len: float,
         idf: Dict[str, float]) -> float:
    if doc_len <= 0:
        return 0.0
    score = 0.0
    for term, qtf in query_tf.items():
        tf = doc_tf.get(term, 0)
        if tf <= 0:
            continue
        den = tf + BM25_K1 * (1 - BM25_B + BM25_B * (doc_len / max(1.0, avg_len)))
        q_weight = 1.0 + math.log(1.0 + max(0, qtf))
        score += q_weight * idf.get(term, 0.0) * (tf * (BM25_K1 + 1)) / den
    return score


def rank_documents(query_tf: Dict[str, int], query_trigrams: List[str], docs_norm: List[str],
                   flavour: str = CASH) -> List[float]:
    """Score normalised documents: 0.7 * relative BM25 + 0.3 * trigram Jaccard."""
    docs_tf = [tokens(d, 40, flavour) for d in docs_norm]
    lengths = [sum(tf.values()) for tf in docs_tf]
    avg_len = (sum(lengths) / len(lengths)) if lengths else 1.0
    avg_len = avg_len or 1.0
    idf = inverse_document_frequency(query_tf, docs_tf)

    bm_scores = [bm25(query_tf, tf, ln, avg_len, idf) for tf, ln in zip(docs_tf, lengths)]
    max_bm = max(bm_scores) if bm_scores else 0.0

    scores = []
    for doc, bm in zip(docs_norm, bm_scores):
        bm_norm = bm / max_bm if max_bm > 0 else 0.0
        sim = jaccard(query_trigrams, trigrams(doc, 60))
        scores.append(0.7 * bm_norm + 0.3 * sim)
    return scores


def normalize_to_01(scores: Dict[str, float]) -> Dict[str, float]:
    if not scores:
        return {}
    top = max(scores.values())
    if top <= 0:
        return {k: 0.0 for k in scores}
    return {k: v / top for k, v in scores.items()}


def softmax(scores: Dict[str, float]) -> Dict[str, float]:
    if not scores:
        return {}
    top = max(scores.values())
    exps = {k: math.exp(v - top) for k, v in scores.items()}
    total = sum(exps.values()) or 1.0
    return {k: v / total for k, v in exps.items()}


def margin_confidence(scores: List[float]) -> float:
    """How clearly the best candidate beats the runner-up, in [0, 1]."""
    ordered = sorted(scores, reverse=True)
    s1 = ordered[0] if ordered else 0.0
    s2 = ordered[1] if len(ordered) > 1 else 0.0
    if abs(s1) < 1e-9:
        return 0.0
    return max(0.0, min(1.0, (s1 - s2) / max(abs(s1), 1.0)))


def extract_voucher_type(voucher_code: str) -> str:
    code = (voucher_code or "").upper()
    for vt in ("CV", "GV", "BV"):
        if f"/{vt}/" in code:
            return vt
    return ""


def prune_terms(query_tf: Dict[str, int], count: int = 6) -> List[str]:
    """Longest non-placeholder terms, used to pre-filter candidates with LIKE."""
    terms = [t for t in query_tf if not is_placeholder(t)]
    terms = sorted(terms, key=lambda t: (-len(t), -query_tf[t]))
    return terms[:count]
