"""
Tests for remark normalisation, BM25 ranking and the naive Bayes model.

All tests are pure; no database, no session.
"""
import math

from utils import text_similarity as ts
from utils.naive_bayes import NaiveBayesModel


class TestNormalize:

    def test_document_numbers_become_placeholders(self):
        assert ts.normalize("Bayar FI 00001234 ke CV Maju") == "bayar {doc} ke cv maju"

    def test_voucher_codes_become_placeholders(self):
        assert ts.normalize("SJA/BV/00000012 transfer") == "{voucher} transfer"

    def test_adjustment_codes_and_long_numbers(self):
        normalized = ts.normalize("SJA/JP/00000003 penyusutan 2024", ts.ADJUSTMENT)
        assert normalized == "{jp} penyusutan {#}"

    def test_empty(self):
        assert ts.normalize("   ") == ""
        assert ts.normalize(None) == ""


class TestTokens:

    def test_stopwords_and_short_tokens_are_dropped(self):
        assert ts.tokens("bayar {doc} ke cv maju") == {"bayar": 1, "{doc}": 1, "maju": 1}

    def test_adjustment_tokens_skip_placeholders(self):
        assert ts.tokens("{jp} penyusutan {#}", flavour=ts.ADJUSTMENT) == {"penyusutan": 1}

    def test_parenthesised_words_are_emphasised(self):
        tf = ts.tokens_with_emphasis("Bayar listrik (PLN Samarinda)")
        assert tf["bayar"] == 1
        assert tf["listrik"] == 1
        assert tf["pln"] == 3
        assert tf["samarinda"] == 3

    def test_trigrams(self):
        assert ts.trigrams("ab") == []
        assert ts.trigrams("ab cd") == ["abc", "bcd"]

    def test_prune_terms_prefers_long_words(self):
        assert ts.prune_terms({"{doc}": 1, "pln": 1, "listrik": 2}) == ["listrik", "pln"]


class TestScoring:

    def test_rank_documents_prefers_matching_remark(self):
        query = ts.normalize("bayar listrik pln")
        scores = ts.rank_documents(
            ts.tokens(query), ts.trigrams(query),
            [ts.normalize("Bayar listrik PLN Januari"), ts.normalize("Beli solar truk")],
        )
        assert scores[0] > scores[1]
        assert 0.0 <= scores[1] <= 1.0

    def test_jaccard(self):
        assert ts.jaccard(["abc", "bcd"], ["abc"]) == 0.5
        assert ts.jaccard([], ["abc"]) == 0.0

    def test_softmax_sums_to_one(self):
        probs = ts.softmax({"a": 1.0, "b": 2.0, "c": -1.0})
        assert math.isclose(sum(probs.values()), 1.0)
        assert max(probs, key=probs.get) == "b"

    def test_normalize_to_01(self):
        assert ts.normalize_to_01({"a": 2.0, "b": 1.0}) == {"a": 1.0, "b": 0.5}
        assert ts.normalize_to_01({"a": 0.0}) == {"a": 0.0}

    def test_margin_confidence(self):
        assert ts.margin_confidence([1.0]) == 1.0
        assert ts.margin_confidence([0.5, 0.5]) == 0.0
        assert ts.margin_confidence([]) == 0.0

    def test_extract_voucher_type(self):
        assert ts.extract_voucher_type("SJA/GV/00000001") == "GV"
        assert ts.extract_voucher_type("SJA/JP/00000001") == ""


class TestNaiveBayes:

    def test_predicts_label_of_similar_text(self):
        model = NaiveBayesModel().fit([
            (ts.normalize("bayar listrik pln"), ["6101"]),
            (ts.normalize("bayar listrik kantor"), ["6101"]),
            (ts.normalize("beli solar truk"), ["6202"]),
        ])
        probs = model.predict_proba(ts.normalize("listrik pln maret"))
        assert max(probs, key=probs.get) == "6101"
        assert model.most_frequent(1) == ["6101"]

    def test_empty_model(self):
        model = NaiveBayesModel().fit([("bayar", [])])
        assert model.is_empty
        assert model.predict_proba("bayar") == {}
