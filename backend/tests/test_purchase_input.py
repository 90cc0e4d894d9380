"""
Tests for journaling incoming invoices (FI) into the cash book.
"""
from datetime import date
from decimal import Decimal

import pytest

from models.audit_log import AuditLog
from models.purchase_invoices import PurchaseInvoice
from models.purchase_order_items import PurchaseOrderItem
from models.purchase_orders import PurchaseOrder

TENANT = "dbsja"


@pytest.fixture
def add_po_materials(db):
    def _add(po_number, *materials):
        db.add(PurchaseOrder(
            po_number=po_number,
            vendor_name="CV Maju Jaya",
            ppn=Decimal("11"),
            tenant_id=TENANT,
            items=[
                PurchaseOrderItem(material_code=code, quantity=1, price=1, tenant_id=TENANT)
                for code in materials
            ],
        ))
        db.commit()
    return _add


def _store(**overrides):
    payload = {
        "invoice_number": "FI00000001",
        "account_code": "1103AD",
        "voucher_date": "2024-02-10",
        "ppn_account": "1150",
        "dpp_lines": [{"account_code": "5101", "amount": 1000}],
    }
    payload.update(overrides)
    return payload


class TestInvoiceLookup:

    def test_unjournaled_listing(self, client, add_invoice):
        add_invoice()
        add_invoice(number="FI00000002", journal_voucher="SJA/BV/00000009")

        body = client.get("/purchase-input/invoices").json()
        assert body["total"] == 1
        assert body["rows"][0]["invoice_number"] == "FI00000001"

        body = client.get("/purchase-input/invoices", params={"status": "journaled"}).json()
        assert [r["invoice_number"] for r in body["rows"]] == ["FI00000002"]

    def test_invoice_carries_po_vat_percent(self, client, add_invoice, add_purchase_order):
        add_purchase_order()
        add_invoice()
        body = client.get("/purchase-input/invoices/FI00000001").json()
        assert body["header"]["vendor_name"] == "CV Maju Jaya"
        assert body["ppn_percent"] == 11.0

    def test_unknown_invoice(self, client):
        assert client.get("/purchase-input/invoices/FI404").status_code == 404
        assert client.get("/purchase-input/invoices/FI404/suggest").status_code == 404


class TestStore:

    def test_full_payment_posts_vat_in_slot_two(self, client, db, add_invoice):
        add_invoice()
        response = client.post("/purchase-input/", json=_store())
        assert response.status_code == 201, response.text
        voucher = response.json()

        assert voucher["voucher_code"] == "SJA/BV/00000001"
        assert float(voucher["cash_mutation"]) == -1110.0
        assert voucher["account_1"] == "5101"
        assert float(voucher["amount_1"]) == 1000.0
        assert voucher["account_2"] == "1150"
        assert float(voucher["amount_2"]) == 110.0
        assert voucher["description"] == "Pembelian/FI FI00000001 - CV Maju Jaya (PO PO001)"

        invoice = db.query(PurchaseInvoice).one()
        assert invoice.journal_voucher == "SJA/BV/00000001"
        tables = sorted(row.table_name for row in db.query(AuditLog).all())
        assert tables == ["cash_vouchers", "purchase_invoices"]

    def test_partial_payment_is_split_proportionally(self, client, add_invoice):
        add_invoice()
        response = client.post("/purchase-input/", json=_store(
            nominal=555, dpp_lines=[{"account_code": "5101", "amount": 500}],
        ))
        assert response.status_code == 201, response.text
        voucher = response.json()
        assert float(voucher["cash_mutation"]) == -555.0
        assert float(voucher["amount_1"]) == 500.0
        assert float(voucher["amount_2"]) == 55.0

    def test_cannot_journal_twice(self, client, add_invoice):
        add_invoice()
        client.post("/purchase-input/", json=_store())
        response = client.post("/purchase-input/", json=_store())
        assert response.status_code == 400
        assert "FI already journaled" in response.json()["detail"]

    def test_vat_account_is_required(self, client, add_invoice):
        add_invoice()
        assert client.post("/purchase-input/", json=_store(ppn_account="")).status_code == 400

    def test_dpp_lines_must_match_allocation(self, client, add_invoice):
        add_invoice()
        response = client.post("/purchase-input/", json=_store(dpp_lines=[{"account_code": "5101", "amount": 900}]))
        assert response.status_code == 400
        assert "DPP" in response.json()["detail"]

    def test_missing_invoice(self, client):
        assert client.post("/purchase-input/", json=_store(invoice_number="FI404")).status_code == 404

    def test_payment_above_invoice_total_is_rejected(self, client, db, add_invoice):
        add_invoice()
        response = client.post("/purchase-input/", json=_store(
            nominal=2000, dpp_lines=[{"account_code": "5101", "amount": 1000}],
        ))
        assert response.status_code == 400
        assert "exceeds the invoice total" in response.json()["detail"]
        assert db.query(PurchaseInvoice).one().journal_voucher == ""

    def test_missing_invoice_is_reported_before_line_accounts(self, client, add_invoice):
        blank_line = [{"account_code": " ", "amount": 1000}]
        response = client.post("/purchase-input/", json=_store(invoice_number="FI404", dpp_lines=blank_line))
        assert response.status_code == 404

        add_invoice()
        response = client.post("/purchase-input/", json=_store(dpp_lines=blank_line))
        assert response.status_code == 400
        assert "counter account" in response.json()["detail"]

    def test_rows_list_invoice_payments(self, client, add_invoice, add_voucher):
        add_invoice()
        add_voucher("SJA/BV/00000001", "1103AD", -100, "Bayar listrik")
        client.post("/purchase-input/", json=_store())

        body = client.get("/purchase-input/rows").json()
        assert body["total"] == 1
        assert body["rows"][0]["voucher_code"] == "SJA/BV/00000002"


class TestSuggest:

    def test_accounts_come_from_vendor_history(self, client, add_invoice, add_voucher):
        add_voucher("SJA/BV/00000001", "1103AD", -1110, "Pembelian/FI FI00000001 - CV Maju Jaya (PO PO001)",
                    slots=[("5101", 1000, "Debit"), ("1150", 110, "Debit")])
        add_invoice(journal_voucher="SJA/BV/00000001")
        add_invoice(number="FI00000002", po_number="PO002")

        response = client.get("/purchase-input/invoices/FI00000002/suggest", params={"nominal": 555})
        assert response.status_code == 200, response.text
        body = response.json()

        assert body["allocation"] == {"cash": 555.0, "dpp": 500.0, "tax": 55.0}
        assert body["account_code"] == "1103AD"
        assert body["voucher_type"] == "BV"
        assert body["ppn_account"] == "1150"
        assert body["dpp_lines"] == [{"account_code": "5101", "side": "Debit", "amount": 500.0}]
        assert body["description"] == "Pembelian/FI FI00000002 - CV Maju Jaya (PO PO002)"

    def test_no_history_falls_back_to_blank_line(self, client, add_invoice):
        add_invoice(tax="0", total="1000")
        body = client.get("/purchase-input/invoices/FI00000001/suggest").json()
        assert body["allocation"]["dpp"] == 1000.0
        assert body["ppn_account"] == ""
        assert body["dpp_lines"] == [{"account_code": "", "side": "Debit", "amount": 1000.0}]
        assert body["description"] == "Pembelian/FI FI00000001 - CV Maju Jaya (PO PO001)"

    def test_po_material_overlap_wins_over_vendor_history(self, client, add_invoice, add_voucher,
                                                          add_po_materials):
        add_voucher("SJA/BV/00000001", "1103AD", -1110, "Pembelian/FI FI00000001 - CV Maju Jaya (PO PO001)",
                    slots=[("5101", 1000, "Debit"), ("1150", 110, "Debit")])
        add_voucher("SJA/BV/00000002", "1103AD", -1110, "Pembelian/FI FI00000002 - CV Maju Jaya (PO PO002)",
                    slots=[("5201", 1000, "Debit"), ("1150", 110, "Debit")])
        add_invoice(journal_voucher="SJA/BV/00000001")
        add_invoice(number="FI00000002", po_number="PO002", journal_voucher="SJA/BV/00000002")
        add_invoice(number="FI00000003", po_number="PO003")
        add_po_materials("PO001", "MAT-A", "MAT-B")
        add_po_materials("PO002", "MAT-X")
        add_po_materials("PO003", "MAT-A")

        body = client.get("/purchase-input/invoices/FI00000003/suggest").json()
        assert body["allocation"] == {"cash": 1110.0, "dpp": 1000.0, "tax": 110.0}
        assert body["ppn_account"] == "1150"
        assert body["dpp_lines"] == [{"account_code": "5101", "side": "Debit", "amount": 1000.0}]

    def test_cash_history_reuses_the_recurring_split(self, client, add_invoice, add_voucher):
        add_voucher("SJA/GV/00000001", "1102AD", -1000, "Pembelian/FI FI00000101 CV Maju Jaya",
                    slots=[("5101", 750, "Debit"), ("5102", 250, "Debit")])
        add_voucher("SJA/GV/00000002", "1102AD", -2000, "Pembelian/FI FI00000102 CV Maju Jaya",
                    slots=[("5101", 1500, "Debit"), ("5102", 500, "Debit")])
        add_voucher("SJA/GV/00000003", "1102AD", -400, "Pembelian/FI FI00000103 CV Maju Jaya",
                    slots=[("5103", 400, "Debit")])
        add_invoice(tax="0", total="1000")

        body = client.get("/purchase-input/invoices/FI00000001/suggest").json()
        assert body["account_code"] == "1102AD"
        assert body["voucher_type"] == "GV"
        assert body["dpp_lines"] == [
            {"account_code": "5101", "side": "Debit", "amount": 750.0},
            {"account_code": "5102", "side": "Debit", "amount": 250.0},
        ]

    def test_description_follows_the_vendor_remark_shape(self, client, add_invoice, add_voucher):
        add_voucher("SJA/BV/00000001", "1103AD", -1110, "Bayar FI00000001 CV Maju Jaya untuk PO-PO001 via transfer")
        add_invoice(number="FI00000002", po_number="PO002")

        body = client.get("/purchase-input/invoices/FI00000002/suggest").json()
        assert body["description"] == "Bayar FI00000002 CV Maju Jaya untuk PO PO002 via transfer"

    def test_recap_balances_break_ties_between_accounts(self, client, add_invoice, add_voucher):
        add_voucher("SJA/BV/00000001", "1103AD", -1000, "Pembelian/FI FI00000001 - CV Maju Jaya",
                    slots=[("5101", 1000, "Debit")])
        add_voucher("SJA/BV/00000002", "1103AD", -1000, "Pembelian/FI FI00000002 - CV Maju Jaya",
                    slots=[("5102", 1000, "Debit")])
        add_invoice(tax="0", total="1000", journal_voucher="SJA/BV/00000001")
        add_invoice(number="FI00000002", tax="0", total="1000", po_number="PO002", journal_voucher="SJA/BV/00000002")
        add_invoice(number="FI00000003", tax="0", total="1000", po_number="PO003")

        lines = client.get("/purchase-input/invoices/FI00000003/suggest").json()["dpp_lines"]
        assert [line["account_code"] for line in lines] == ["5102", "5101"]

        client.post("/chart-of-accounts/balance-recaps", json={
            "recaps": [{"recap_code": "202401", "account_code": "5101", "balance": 2500}],
        })
        lines = client.get("/purchase-input/invoices/FI00000003/suggest").json()["dpp_lines"]
        assert [line["account_code"] for line in lines] == ["5101", "5102"]
        assert [line["amount"] for line in lines] == [500.0, 500.0]

    def test_default_lines_are_topped_up_from_journal_debits(self, client, add_invoice, add_voucher, add_accounts):
        add_accounts(("1101AD", "Kas Besar"), ("6101", "Beban Listrik"))
        add_voucher("SJA/BV/00000001", "1103AD", -100, "Bayar listrik", slots=[("5101", 100, "Debit")])
        client.post("/journal-entries/", json={
            "journal_date": date.today().isoformat(),
            "items": [
                {"account_code": "6101", "debit": 100, "credit": 0},
                {"account_code": "1101AD", "debit": 0, "credit": 100},
            ],
        })
        add_invoice(tax="0", total="1000", vendor_name="PT Baru")

        body = client.get("/purchase-input/invoices/FI00000001/suggest").json()
        assert body["dpp_lines"] == [
            {"account_code": "5101", "side": "Debit", "amount": 500.0},
            {"account_code": "6101", "side": "Debit", "amount": 500.0},
        ]
