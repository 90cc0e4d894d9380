"""
Tests for tenant resolution, per-tenant configuration and the chart of accounts.
"""


class TestTenants:

    def test_listing(self, client):
        tenants = client.get("/tenants/").json()
        assert [t["database"] for t in tenants] == ["dbsja", "dbbbbs", "dbstg", "dbarm", "dbati"]
        assert tenants[0]["company"]["name"] == "CV. SEMESTA JAYA ABADI"
        assert tenants[1]["company"] is None

    def test_current_tenant(self, client):
        body = client.get("/tenants/current", headers={"X-Tenant-ID": " DBSTG "}).json()
        assert body["database"] == "dbstg"
        assert body["database_code"] == "STG"
        assert body["label"] == "DB STG"

    def test_missing_header(self, client):
        response = client.get("/tenants/current", headers={"X-Tenant-ID": ""})
        assert response.status_code == 400
        assert "missing" in response.json()["detail"]

    def test_unknown_tenant(self, client):
        response = client.get("/tenants/current", headers={"X-Tenant-ID": "dbxyz"})
        assert response.status_code == 400


class TestConfigurations:

    def test_initialize_defaults_is_idempotent(self, client):
        assert client.get("/tenants/configs-initialized").json() == {"configs_initialized": False}

        body = client.post("/tenants/initialize-configs").json()
        assert body["new_configs"] == ["preferred_cash_accounts", "nabb_weight_periods", "dss_llm_conf_threshold"]
        assert client.get("/tenants/configs-initialized").json() == {"configs_initialized": True}

        assert client.post("/tenants/initialize-configs").json()["new_configs"] == []

    def test_create_get_and_update(self, client):
        response = client.post("/configurations/", json={"name": "nabb_weight_periods", "value": "12"})
        assert response.status_code == 201
        assert client.post("/configurations/", json={"name": "nabb_weight_periods", "value": "6"}).status_code == 400

        [config] = client.get("/configurations/", params={"name": "nabb_weight_periods"}).json()
        assert config["value"] == "12"
        assert config["tenant_id"] == "dbsja"

        response = client.patch("/configurations/nabb_weight_periods/", json={"value": "36"},
                                headers={"X-User-ID": "rina"})
        assert response.json()["value"] == "36"
        assert client.patch("/configurations/unknown/", json={"value": "1"}).status_code == 404

    def test_configurations_are_per_tenant(self, client):
        client.post("/configurations/", json={"name": "preferred_cash_accounts", "value": "1101AD"})
        other = client.get("/configurations/", headers={"X-Tenant-ID": "dbstg"}).json()
        assert other == []


class TestChartOfAccounts:

    def test_create_list_and_options(self, client):
        response = client.post("/chart-of-accounts/", json={"account_code": " 6101 ", "account_name": "Beban Listrik"})
        assert response.status_code == 201
        assert response.json()["account_code"] == "6101"
        assert client.post("/chart-of-accounts/", json={"account_code": "6101", "account_name": "Dup"}).status_code == 400

        accounts = client.get("/chart-of-accounts/", params={"search": "Listrik"}).json()
        assert [a["account_code"] for a in accounts] == ["6101"]
        options = client.get("/chart-of-accounts/options").json()
        assert options == [{"value": "6101", "label": "6101 - Beban Listrik"}]

    def test_account_in_use_cannot_be_deactivated(self, client):
        account_id = client.post("/chart-of-accounts/", json={"account_code": "6101", "account_name": "Listrik"}).json()["id"]
        client.post("/chart-of-accounts/", json={"account_code": "1101AD", "account_name": "Kas"})
        client.post("/journal-entries/", json={
            "journal_date": "2024-03-01",
            "items": [
                {"account_code": "6101", "debit": 100, "credit": 0},
                {"account_code": "1101AD", "debit": 0, "credit": 100},
            ],
        })
        assert client.delete(f"/chart-of-accounts/{account_id}").status_code == 400
        assert client.delete("/chart-of-accounts/999").status_code == 404

    def test_deactivated_account_is_hidden(self, client):
        account_id = client.post("/chart-of-accounts/", json={"account_code": "6101", "account_name": "Listrik"}).json()["id"]
        assert client.delete(f"/chart-of-accounts/{account_id}").status_code == 204
        assert client.get("/chart-of-accounts/").json() == []
        assert len(client.get("/chart-of-accounts/", params={"include_inactive": True}).json()) == 1

    def test_balance_recaps_upsert(self, client):
        payload = {"recaps": [{"recap_code": "202401", "account_code": "1101AD", "balance": 500}]}
        client.post("/chart-of-accounts/balance-recaps", json=payload)
        payload["recaps"][0]["balance"] = 750
        client.post("/chart-of-accounts/balance-recaps", json=payload)

        rows = client.get("/chart-of-accounts/balance-recaps").json()
        assert len(rows) == 1
        assert float(rows[0]["balance"]) == 750.0
