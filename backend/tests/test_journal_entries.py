"""
Tests for general journal entries (JU).
"""
import pytest

from crud.journal_entry import create_journal_entry
from models.journal_entry import JournalEntry
from models.journal_item import JournalItem
from schemas.journal_entry import JournalEntryCreate


def _entry(**overrides):
    payload = {
        "journal_date": "2024-03-01",
        "remark": "Setoran modal",
        "items": [
            {"account_code": "1101AD", "debit": 1000, "credit": 0},
            {"account_code": "3101", "debit": 0, "credit": 1000},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def accounts(add_accounts):
    add_accounts(("1101AD", "Kas Besar"), ("3101", "Modal"))


class TestCreate:

    def test_codes_follow_tenant_sequence(self, client, accounts):
        response = client.post("/journal-entries/", json=_entry())
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["journal_code"] == "SJA/JU/00000001"
        assert len(body["items"]) == 2

        assert client.post("/journal-entries/", json=_entry()).json()["journal_code"] == "SJA/JU/00000002"

    def test_unknown_account(self, client, accounts):
        response = client.post("/journal-entries/", json=_entry(items=[
            {"account_code": "1101AD", "debit": 1000, "credit": 0},
            {"account_code": "9999", "debit": 0, "credit": 1000},
        ]))
        assert response.status_code == 400
        assert "9999" in response.json()["detail"]

    def test_unbalanced_entry(self, client, accounts):
        response = client.post("/journal-entries/", json=_entry(items=[
            {"account_code": "1101AD", "debit": 1000, "credit": 0},
            {"account_code": "3101", "debit": 0, "credit": 900},
        ]))
        assert response.status_code == 422

    def test_line_cannot_hit_both_sides(self, client, accounts):
        response = client.post("/journal-entries/", json=_entry(items=[
            {"account_code": "1101AD", "debit": 1000, "credit": 1000},
        ]))
        assert response.status_code == 422


class TestRead:

    def test_list_filters_by_date(self, client, accounts):
        client.post("/journal-entries/", json=_entry(journal_date="2024-02-10"))
        client.post("/journal-entries/", json=_entry(journal_date="2024-03-10"))

        entries = client.get("/journal-entries/", params={"start_date": "2024-03-01"}).json()
        assert [e["journal_date"] for e in entries] == ["2024-03-10"]

    def test_get_by_id(self, client, accounts):
        entry_id = client.post("/journal-entries/", json=_entry()).json()["id"]
        assert client.get(f"/journal-entries/{entry_id}").json()["remark"] == "Setoran modal"
        assert client.get("/journal-entries/999").status_code == 404
        assert client.get(f"/journal-entries/{entry_id}", headers={"X-Tenant-ID": "dbstg"}).status_code == 404


class TestRollback:

    def test_failed_commit_leaves_no_partial_entry(self, db, accounts, monkeypatch):
        def failing_commit():
            raise RuntimeError("connection lost")
        monkeypatch.setattr(db, "commit", failing_commit)

        with pytest.raises(RuntimeError):
            create_journal_entry(db, JournalEntryCreate(**_entry()), "dbsja")

        monkeypatch.undo()
        assert db.query(JournalEntry).count() == 0
        assert db.query(JournalItem).count() == 0
