"""
Invoice tests.

Verifies:
- Invoice and receipt numbers are allocated together per year
- Totals are derived on the server from the line items
- The next-number preview never reserves a number
"""

from decimal import Decimal

from quark.models import Invoice
from quark.services.invoice_service import compute_totals, parse_items


INVOICE_PAYLOAD = {
    "customer_name": "Bangkok Auto Parts Co., Ltd.",
    "customer_address": "99 Rama IV Rd, Bangkok",
    "customer_tax_id": "0105551234567",
    "invoice_date": "2026-05-10",
    "credit_days": 30,
    "discount": 100,
    "deposit": 400,
    "items": [
        {"description": "Car mat set, Honda Civic 2022, black", "qty": 2, "unit_price": 1500},
        {"description": "Trunk mat", "qty": 1, "unit_price": 500},
    ],
}


class TestTotals:
    def test_compute_totals(self):
        items = parse_items(INVOICE_PAYLOAD["items"])
        totals = compute_totals(
            items,
            discount=Decimal("100"),
            deposit=Decimal("400"),
            vat_rate=Decimal("0.07"),
        )
        assert totals.total_amount == Decimal("3500.00")
        assert totals.after_discount == Decimal("3400.00")
        assert totals.net_amount == Decimal("3000.00")
        assert totals.vat_amount == Decimal("210.00")
        assert totals.grand_total == Decimal("3210.00")

    def test_vat_is_rounded_to_cents(self):
        items = parse_items([{"description": "Clip", "qty": 1, "unit_price": "10.15"}])
        totals = compute_totals(items, discount=Decimal("0"), deposit=Decimal("0"), vat_rate=Decimal("0.07"))
        assert totals.vat_amount == Decimal("0.71")
        assert totals.grand_total == Decimal("10.86")


class TestInvoiceApi:
    def test_create_allocates_paired_numbers(self, client, manager_headers):
        resp = client.post("/api/invoices", json=INVOICE_PAYLOAD, headers=manager_headers)
        assert resp.status_code == 201, resp.get_json()
        invoice = resp.get_json()["invoice"]

        assert invoice["invoice_no"] == "IV260001"
        assert invoice["receipt_no"] == "RE260001"
        assert invoice["due_date"] == "2026-06-09"
        assert invoice["grand_total"] == 3210
        assert [item["item_no"] for item in invoice["items"]] == [1, 2]
        assert invoice["items"][0]["total"] == 3000

        second = client.post("/api/invoices", json=INVOICE_PAYLOAD, headers=manager_headers).get_json()["invoice"]
        assert second["invoice_no"] == "IV260002"
        assert second["receipt_no"] == "RE260002"

    def test_client_supplied_totals_rejected(self, client, manager_headers):
        payload = dict(INVOICE_PAYLOAD, totals={"grand": 1})
        resp = client.post("/api/invoices", json=payload, headers=manager_headers)
        assert resp.status_code == 400

    def test_empty_items_rejected(self, client, manager_headers, db_session):
        resp = client.post(
            "/api/invoices",
            json=dict(INVOICE_PAYLOAD, items=[]),
            headers=manager_headers,
        )
        assert resp.status_code == 400
        assert db_session.query(Invoice).count() == 0

    def test_failed_create_consumes_no_number(self, client, manager_headers):
        client.post(
            "/api/invoices",
            json=dict(INVOICE_PAYLOAD, discount=999999),
            headers=manager_headers,
        )
        resp = client.post("/api/invoices", json=INVOICE_PAYLOAD, headers=manager_headers)
        assert resp.get_json()["invoice"]["invoice_no"] == "IV260001"

    def test_preview_does_not_reserve(self, client, manager_headers):
        first = client.get("/api/invoices/next-number", headers=manager_headers).get_json()
        again = client.get("/api/invoices/next-number", headers=manager_headers).get_json()
        assert first == again
        assert first["invoice_no"].startswith("IV")
        assert first["invoice_no"].endswith("0001")

    def test_get_and_list(self, client, manager_headers, staff_headers):
        created = client.post("/api/invoices", json=INVOICE_PAYLOAD, headers=manager_headers).get_json()["invoice"]

        resp = client.get(f"/api/invoices/{created['id']}", headers=manager_headers)
        assert resp.status_code == 200
        assert len(resp.get_json()["invoice"]["items"]) == 2

        resp = client.get("/api/invoices", headers=manager_headers)
        assert resp.get_json()["total"] == 1

        assert client.get("/api/invoices/9999", headers=manager_headers).status_code == 404
        assert client.get("/api/invoices", headers=staff_headers).status_code == 403
