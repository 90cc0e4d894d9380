"""
Tests for adjustment journals (JP): listing with balance checks, document
details, posting into the active book month and line suggestions.
"""
from datetime import date
from decimal import Decimal

import pytest

from models.adjustment_journal import AdjustmentJournalLine

TENANT = "dbsja"


@pytest.fixture
def add_document(db):
    def _add(code, period, remark, lines, tenant_id=TENANT):
        for account, debit, credit in lines:
            db.add(AdjustmentJournalLine(
                journal_code=code,
                period=period,
                posting_date=period,
                account_code=account,
                debit=Decimal(str(debit)),
                credit=Decimal(str(credit)),
                remark=remark,
                tenant_id=tenant_id,
            ))
        db.commit()
    return _add


@pytest.fixture
def seeded(add_document):
    add_document("SJA/JP/00000001", date(2024, 1, 1), "Penyusutan kendaraan Januari",
                 [("6301", 100, 0), ("1502", 0, 100)])
    add_document("SJA/JP/00000002", date(2024, 1, 1), "Koreksi persediaan pakan",
                 [("5101", 50, 0), ("1301", 0, 40)])
    add_document("SJA/JP/00000003", date(2024, 2, 1), "Penyusutan kendaraan Februari",
                 [("6301", 100, 0), ("1502", 0, 100)])


def _document(period, **overrides):
    payload = {
        "period": period.isoformat(),
        "remark": "Penyusutan kendaraan",
        "lines": [
            {"account_code": "6301", "side": "debit", "amount": 100},
            {"account_code": "1502", "side": "KREDIT", "amount": 100},
        ],
    }
    payload.update(overrides)
    return payload


class TestOptions:

    def test_periods_and_active_month(self, client, seeded):
        body = client.get("/adjustment-journals/options").json()
        assert body["period_options"] == ["202402", "202401"]
        assert body["default_period"] == "202402"
        assert body["year_options"] == ["2024"]
        assert body["active_book_month"] == "202402"
        assert body["period_default"] == "2024-02-01"

    def test_empty_book_uses_current_month(self, client):
        body = client.get("/adjustment-journals/options").json()
        assert body["period_options"] == []
        assert body["period_default"] == date.today().replace(day=1).isoformat()


class TestListing:

    def test_month_listing_with_summary(self, client, seeded):
        body = client.get("/adjustment-journals/", params={"period": "202401"}).json()
        assert body["total"] == 2
        assert [r["journal_code"] for r in body["rows"]] == ["SJA/JP/00000001", "SJA/JP/00000002"]
        assert body["summary"] == {
            "total_documents": 2,
            "sum_debit": 150.0,
            "sum_credit": 140.0,
            "balanced_count": 1,
            "unbalanced_count": 1,
            "sum_abs_difference": 10.0,
        }

    def test_balance_filter_and_sorting(self, client, seeded):
        body = client.get("/adjustment-journals/", params={"period": "202401", "balance": "unbalanced"}).json()
        assert [r["journal_code"] for r in body["rows"]] == ["SJA/JP/00000002"]
        assert body["rows"][0]["is_balanced"] is False

        body = client.get("/adjustment-journals/", params={
            "period_type": "year", "period": "2024", "sort_by": "total_debit", "sort_dir": "asc",
        }).json()
        assert body["total"] == 3
        assert [r["journal_code"] for r in body["rows"]] == [
            "SJA/JP/00000002", "SJA/JP/00000001", "SJA/JP/00000003",
        ]

    def test_missing_period_defaults_to_latest_month(self, client, seeded):
        body = client.get("/adjustment-journals/").json()
        assert [r["journal_code"] for r in body["rows"]] == ["SJA/JP/00000003"]

    def test_search_matches_remark(self, client, seeded):
        body = client.get("/adjustment-journals/", params={"period": "202401", "search": "pakan"}).json()
        assert [r["journal_code"] for r in body["rows"]] == ["SJA/JP/00000002"]

    def test_invalid_period(self, client, seeded):
        assert client.get("/adjustment-journals/", params={"period": "2024"}).status_code == 400
        assert client.get("/adjustment-journals/", params={"balance": "maybe"}).status_code == 422


class TestDetails:

    def test_document_lines_and_totals(self, client, seeded):
        body = client.get("/adjustment-journals/details", params={
            "journal_code": "SJA/JP/00000002", "period": "2024-01-01",
        }).json()
        assert [line["account_code"] for line in body["details"]] == ["5101", "1301"]
        assert body["totals"] == {"total_debit": 50.0, "total_credit": 40.0, "is_balanced": False}

    def test_parameters_are_required(self, client):
        assert client.get("/adjustment-journals/details", params={"period": "2024-01-01"}).status_code == 400
        response = client.get("/adjustment-journals/details", params={
            "journal_code": "SJA/JP/00000002", "period": "202401",
        })
        assert response.status_code == 400


class TestCreate:

    def test_posts_balanced_document_in_active_month(self, client, add_accounts):
        add_accounts(("6301", "Beban Penyusutan"), ("1502", "Akumulasi Penyusutan"))
        period = date.today().replace(day=1)
        response = client.post("/adjustment-journals/", json=_document(period))
        assert response.status_code == 201, response.text
        body = response.json()

        assert body["journal_code"] == "SJA/JP/00000001"
        assert body["period"] == period.isoformat()
        first, second = body["lines"]
        assert first["account_name"] == "Beban Penyusutan"
        assert float(first["debit"]) == 100.0 and float(first["credit"]) == 0.0
        assert float(second["credit"]) == 100.0
        assert first["posting_date"] == date.today().isoformat()

    def test_code_continues_sequence(self, client, seeded):
        response = client.post("/adjustment-journals/", json=_document(date(2024, 2, 1)))
        assert response.status_code == 201, response.text
        assert response.json()["journal_code"] == "SJA/JP/00000004"

    def test_period_must_be_first_day_of_active_month(self, client, seeded):
        response = client.post("/adjustment-journals/", json=_document(date(2024, 1, 1)))
        assert response.status_code == 400
        assert "2024-02-01" in response.json()["detail"]
        assert client.post("/adjustment-journals/", json=_document(date(2024, 2, 2))).status_code == 400

    def test_unbalanced_document_is_rejected(self, client):
        period = date.today().replace(day=1)
        response = client.post("/adjustment-journals/", json=_document(period, lines=[
            {"account_code": "6301", "side": "Debit", "amount": 100},
            {"account_code": "1502", "side": "Kredit", "amount": 90},
        ]))
        assert response.status_code == 400

    def test_unknown_side_is_rejected(self, client):
        period = date.today().replace(day=1)
        response = client.post("/adjustment-journals/", json=_document(period, lines=[
            {"account_code": "6301", "side": "Both", "amount": 100},
            {"account_code": "1502", "side": "Kredit", "amount": 100},
        ]))
        assert response.status_code == 400

    def test_needs_at_least_two_lines(self, client):
        period = date.today().replace(day=1)
        response = client.post("/adjustment-journals/", json=_document(period, lines=[
            {"account_code": "6301", "side": "Debit", "amount": 100},
        ]))
        assert response.status_code == 422


class TestSuggest:

    def test_lines_come_from_similar_documents(self, client, seeded):
        response = client.get("/adjustment-journals/suggest", params={"remark": "penyusutan kendaraan maret"})
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["lines"] == [
            {"account_code": "6301", "side": "Debit"},
            {"account_code": "1502", "side": "Kredit"},
        ]
        assert body["remark_suggest"].startswith("Penyusutan kendaraan")
        assert body["evidence"]

    def test_seed_account_leads(self, client, seeded):
        body = client.get("/adjustment-journals/suggest", params={
            "remark": "penyusutan kendaraan", "account_code": "1502", "side": "kredit", "nominal": 100,
        }).json()
        assert body["lines"][0] == {"account_code": "1502", "side": "Kredit"}
        assert body["lines"][1] == {"account_code": "6301", "side": "Debit"}

    def test_blank_remark(self, client, seeded):
        body = client.get("/adjustment-journals/suggest").json()
        assert body["lines"] == []
        assert body["confidence"] == {"overall": 0.0}
