"""
Tests for invoice intake: purchase order, goods receipt, then the FI itself.
"""
from models.goods_receipts import GoodsReceiptItem
from models.purchase_order_items import PurchaseOrderItem


def _seed_purchase(client):
    response = client.post("/purchase-orders/", json={
        "po_number": "PO001",
        "vendor_name": "CV Maju Jaya",
        "order_date": "2024-01-20",
        "ppn": 11,
        "payment_terms": "30 days",
        "items": [{"material_code": "M1", "material": "Pakan", "quantity": 10, "price": 100}],
    })
    assert response.status_code == 201, response.text
    response = client.post("/goods-receipts/", json={
        "receipt_number": "GR001",
        "po_number": "PO001",
        "vendor_name": "CV Maju Jaya",
        "posting_date": "2024-02-01",
        "items": [{"material_code": "M1", "material": "Pakan", "quantity": 10, "unit": "kg", "price": 100}],
    })
    assert response.status_code == 201, response.text


def _invoice(**overrides):
    payload = {
        "po_number": "PO001",
        "received_date": "2024-02-02",
        "invoice_date": "2024-02-01",
        "payment_terms": "30 days",
        "vendor_name": "CV Maju Jaya",
        "tax": 110,
        "total": 1110,
        "receipt_reference": "INV-77",
        "warehouse_receipt": "GR001",
        "items": [{
            "material_code": "M1", "material": "Pakan", "quantity": 10,
            "unit": "kg", "price": 100, "total_price": 1000,
        }],
    }
    payload.update(overrides)
    return payload


class TestGoodsReceiptLookup:

    def test_lookup_carries_po_terms_and_vat(self, client):
        _seed_purchase(client)
        body = client.get("/purchase-invoices/goods-receipts/GR001").json()
        assert body["po_number"] == "PO001"
        assert body["vendor"] == "CV Maju Jaya"
        assert body["payment_terms"] == "30 days"
        assert body["ppn"] == 11.0

    def test_unknown_receipt(self, client):
        assert client.get("/purchase-invoices/goods-receipts/GR404").status_code == 404

    def test_receipt_listing_and_materials(self, client):
        _seed_purchase(client)
        rows = client.get("/purchase-invoices/goods-receipts", params={"search": "Maju"}).json()
        assert [r["receipt_number"] for r in rows] == ["GR001"]
        materials = client.get("/purchase-invoices/goods-receipts/GR001/materials").json()
        assert materials[0]["material_code"] == "M1"
        assert float(materials[0]["total_price"]) == 1000.0


class TestCreateInvoice:

    def test_create_numbers_and_links_lines(self, client, db):
        _seed_purchase(client)
        response = client.post("/purchase-invoices/", json=_invoice())
        assert response.status_code == 201, response.text
        body = response.json()

        assert body["invoice_number"] == "FI00000001"
        assert float(body["subtotal"]) == 1000.0
        assert float(body["outstanding"]) == 1110.0
        assert body["journal_voucher"] == ""
        assert body["items"][0]["line_no"] == 1
        assert body["items"][0]["po_item_id"] is not None
        assert body["items"][0]["receipt_item_id"] is not None
        assert db.query(GoodsReceiptItem).one().invoiced is True

        second = client.post("/purchase-invoices/", json=_invoice(receipt_reference="INV-78")).json()
        assert second["invoice_number"] == "FI00000002"

    def test_subtotal_plus_tax_must_equal_total(self, client):
        _seed_purchase(client)
        response = client.post("/purchase-invoices/", json=_invoice(total=1200))
        assert response.status_code == 400
        assert "must equal total" in response.json()["detail"]

    def test_invoice_needs_items(self, client):
        assert client.post("/purchase-invoices/", json=_invoice(items=[])).status_code == 422


class TestInvoiceLifecycle:

    def test_list_update_and_delete(self, client, db):
        _seed_purchase(client)
        client.post("/purchase-invoices/", json=_invoice())

        listing = client.get("/purchase-invoices/", params={"status": "unjournaled"}).json()
        assert [i["invoice_number"] for i in listing["invoices"]] == ["FI00000001"]
        assert listing["summary"] == {"unbilled_count": 1, "unbilled_total": 1110.0}

        detail = client.get("/purchase-invoices/FI00000001").json()
        assert detail["warehouse_receipt"] == "GR001"
        assert detail["header"]["vendor_name"] == "CV Maju Jaya"

        response = client.patch("/purchase-invoices/FI00000001", json={
            "received_date": "2024-02-03", "invoice_date": "2024-02-01", "receipt_reference": "INV-77A",
        })
        assert response.status_code == 200
        assert response.json()["receipt_reference"] == "INV-77A"

        assert client.delete("/purchase-invoices/FI00000001").status_code == 204
        assert client.get("/purchase-invoices/FI00000001").status_code == 404

        po_item = db.query(PurchaseOrderItem).one()
        assert po_item.invoice_closed is False
        assert float(po_item.received_qty) == 10.0

    def test_delete_unknown_invoice(self, client):
        assert client.delete("/purchase-invoices/FI99999999").status_code == 404


class TestMasterData:

    def test_vendor_code_is_unique_per_tenant(self, client):
        vendor = {"vendor_code": "V001", "name": "CV Maju Jaya", "phone": "0541-1"}
        response = client.post("/vendors/", json=vendor)
        assert response.status_code == 201
        assert client.post("/vendors/", json=vendor).status_code == 400
        assert client.post("/vendors/", json=vendor, headers={"X-Tenant-ID": "dbstg"}).status_code == 201

        vendor_id = response.json()["id"]
        assert client.get(f"/vendors/{vendor_id}").json()["name"] == "CV Maju Jaya"
        assert [v["vendor_code"] for v in client.get("/vendors/", params={"search": "Maju"}).json()] == ["V001"]

    def test_receipt_lookup_resolves_vendor_code(self, client):
        client.post("/vendors/", json={"vendor_code": "V001", "name": "CV Maju Jaya"})
        _seed_purchase(client)
        assert client.get("/purchase-invoices/goods-receipts/GR001").json()["vendor_code"] == "V001"

    def test_purchase_order_by_number(self, client):
        _seed_purchase(client)
        body = client.get("/purchase-orders/PO001").json()
        assert body["vendor_name"] == "CV Maju Jaya"
        assert body["items"][0]["material_code"] == "M1"
        assert client.get("/purchase-orders/PO404").status_code == 404
        assert client.get("/goods-receipts/GR001").json()["po_number"] == "PO001"
