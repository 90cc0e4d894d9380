"""
Tests for the worksheet upload and the profit and loss report built from it.
"""
from io import BytesIO

import pandas as pd
import pytest

from crud import financial_reports as fr

WORKSHEET = [
    {"account_code": "1101", "account_name": "Kas", "bs_debit": 5000},
    {"account_code": "4101", "account_name": "Penjualan", "pl_credit": 10000},
    {"account_code": "5101", "account_name": "HPP Pakan", "pl_debit": 6000},
    {"account_code": "6101", "account_name": "Beban Listrik", "pl_debit": 1500},
    {"account_code": "6102", "account_name": "Beban Gaji", "pl_credit": 200},
    {"account_code": "7101", "account_name": "Pendapatan Bunga", "pl_credit": 300},
    {"account_code": "8101", "account_name": "Beban Pajak", "pl_debit": 800},
]


@pytest.fixture
def worksheet(client):
    response = client.put("/financial-reports/worksheet", json=WORKSHEET)
    assert response.status_code == 200, response.text
    return response.json()


class TestClassify:

    def test_revenue_on_the_debit_side_is_an_anomaly(self):
        row = fr.classify("4102", "Retur", 50.0, 0.0)
        assert row["group"] == fr.REVENUE
        assert row["amount"] == 0.0
        assert row["is_anomaly"] is True

    def test_expense_shows_debit_balance(self):
        row = fr.classify("6101", "Listrik", 1500.0, 0.0)
        assert row["group"] == fr.OPERATING_EXPENSE
        assert row["amount"] == 1500.0
        assert row["is_anomaly"] is False

    def test_other_accounts_split_by_sign(self):
        assert fr.classify("7101", "Bunga", 0.0, 300.0)["subgroup"] == fr.OTHER_INCOME
        row = fr.classify("9101", "Rugi Kurs", 80.0, 0.0)
        assert row["group"] == fr.UNGROUPED
        assert row["subgroup"] == fr.OTHER_EXPENSE
        assert row["amount"] == 80.0

    def test_kpis_without_revenue_are_zero(self):
        summary = fr.summarize([fr.classify("6101", "Listrik", 100.0, 0.0)])
        assert summary["net_profit"] == -100.0
        assert fr.kpis(summary) == {
            "gross_margin": 0.0, "operating_margin": 0.0, "net_margin": 0.0,
            "cogs_ratio": 0.0, "opex_ratio": 0.0,
        }


class TestWorksheet:

    def test_put_replaces_previous_lines(self, client, worksheet):
        assert [line["account_code"] for line in worksheet][:2] == ["1101", "4101"]
        response = client.put("/financial-reports/worksheet", json=WORKSHEET[:2])
        assert [line["account_code"] for line in response.json()] == ["1101", "4101"]
        assert len(client.get("/financial-reports/worksheet").json()) == 2

    def test_worksheet_is_per_tenant(self, client, worksheet):
        response = client.get("/financial-reports/worksheet", headers={"X-Tenant-ID": "dbstg"})
        assert response.json() == []


class TestProfitAndLoss:

    def test_summary_and_kpis(self, client, worksheet):
        body = client.get("/financial-reports/profit-and-loss", params={"page_size": "all"}).json()

        assert body["total"] == 6
        assert body["summary"] == {
            "total_revenue": 10000.0,
            "total_cogs": 6000.0,
            "gross_profit": 4000.0,
            "total_operating_expense": 1500.0,
            "operating_profit": 2500.0,
            "total_other_income": 300.0,
            "total_other_expense": 800.0,
            "other_net": -500.0,
            "net_profit": 2000.0,
        }
        assert body["kpis"]["gross_margin"] == pytest.approx(0.4)
        assert body["kpis"]["net_margin"] == pytest.approx(0.2)
        assert body["kpis"]["cogs_ratio"] == pytest.approx(0.6)

        anomalies = [r["account_code"] for r in body["rows"] if r["is_anomaly"]]
        assert anomalies == ["6102"]

    def test_drivers_rank_each_bucket(self, client, worksheet):
        drivers = client.get("/financial-reports/profit-and-loss").json()["drivers"]
        assert [r["account_code"] for r in drivers[fr.OPERATING_EXPENSE]] == ["6101", "6102"]
        assert [r["account_code"] for r in drivers[fr.OTHER_EXPENSE]] == ["8101"]

    def test_sort_by_amount_and_page(self, client, worksheet):
        body = client.get("/financial-reports/profit-and-loss", params={
            "sort_by": "amount", "sort_dir": "desc", "page": 2, "page_size": "2",
        }).json()
        assert body["total"] == 6
        assert [r["account_code"] for r in body["rows"]] == ["6102", "8101"]

    def test_chart_name_wins_and_search(self, client, worksheet, add_accounts):
        add_accounts(("4101", "Penjualan Telur"))
        body = client.get("/financial-reports/profit-and-loss", params={"search": "telur"}).json()
        assert [r["account_name"] for r in body["rows"]] == ["Penjualan Telur"]
        assert body["summary"]["total_revenue"] == 10000.0

    def test_invalid_sort_key(self, client):
        response = client.get("/financial-reports/profit-and-loss", params={"sort_by": "net"})
        assert response.status_code == 422

    def test_export_writes_both_sheets(self, client, worksheet):
        response = client.get("/financial-reports/profit-and-loss/export")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert "profit_and_loss_dbsja.xlsx" in response.headers["content-disposition"]

        sheets = pd.read_excel(BytesIO(response.content), sheet_name=None)
        assert len(sheets["Rows"]) == 6
        summary = dict(zip(sheets["Summary"]["Metric"], sheets["Summary"]["Value"]))
        assert summary["net_profit"] == 2000.0
