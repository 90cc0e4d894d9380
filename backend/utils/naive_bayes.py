"""Multinomial naive Bayes over hashed text features of voucher remarks."""
import math
import zlib
from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Tuple

from utils import text_similarity as ts

BUCKETS = 4096


def _bucket(feature: str) -> int:
    return zlib.crc32(feature.encode("utf-8")) % BUCKETS


def featurize(normalized: str) -> Dict[int, float]:
    features = Counter()
    for tok, tf in ts.tokens(normalized, 28).items():
        features[_bucket(f"t:{tok}")] += tf
    for tri in ts.trigrams(normalized, 40):
        features[_bucket(f"g:{tri}")] += 1
    return dict(features)


class NaiveBayesModel:
    """Label -> bucket counts with Laplace smoothing over the hashed vocabulary."""

    def __init__(self):
        self.doc_count: Dict[str, int] = Counter()
        self.feature_counts: Dict[str, Dict[int, float]] = defaultdict(Counter)
        self.feature_totals: Dict[str, float] = Counter()
        self.total_docs = 0

    def fit(self, samples: Iterable[Tuple[str, List[str]]]):
        """``samples`` yields (normalized remark, labels) pairs."""
        for normalized, labels in samples:
            if not labels:
                continue
            features = featurize(normalized)
            for label in labels:
                self.doc_count[label] += 1
                self.total_docs += 1
                counts = self.feature_counts[label]
                for bucket, tf in features.items():
                    counts[bucket] += tf
                    self.feature_totals[label] += tf
        return self

    @property
    def is_empty(self) -> bool:
        return self.total_docs == 0

    def log_scores(self, normalized: str) -> Dict[str, float]:
        if self.is_empty:
            return {}
        features = featurize(normalized)
        scores = {}
        for label, dc in self.doc_count.items():
            score = math.log(dc / self.total_docs)
            counts = self.feature_counts[label]
            denominator = self.feature_totals[label] + BUCKETS
            for bucket, tf in features.items():
                score += tf * math.log((counts.get(bucket, 0) + 1) / denominator)
            scores[label] = score
        return scores

    def predict_proba(self, normalized: str) -> Dict[str, float]:
        return ts.softmax(self.log_scores(normalized))

    def most_frequent(self, limit: int = 1) -> List[str]:
        return [label for label, _ in Counter(self.doc_count).most_common(limit)]
