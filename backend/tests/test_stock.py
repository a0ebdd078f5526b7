import pytest

from quark.models import StockEntry
from quark.models.orders import CANCELLED, INTAKE
from quark.services import order_service, stock_service
from quark.services.stock_service import StockError


STOCK_PAYLOAD = {
    "car_model": "Isuzu D-Max",
    "car_year": "2021",
    "material_type": "leather",
    "material_color": "beige",
    "quantity": 2,
}


class TestStockApi:
    def test_add_and_list(self, client, manager_headers):
        resp = client.post("/api/stock", json=STOCK_PAYLOAD, headers=manager_headers)
        assert resp.status_code == 201
        entry = resp.get_json()["stock"]
        assert entry["car_model"] == "Isuzu D-Max"
        assert entry["stock_out_date"] is None

        resp = client.get("/api/stock", headers=manager_headers)
        assert [e["id"] for e in resp.get_json()["stock"]] == [entry["id"]]

    def test_take_out_once(self, client, manager_headers):
        entry = client.post("/api/stock", json=STOCK_PAYLOAD, headers=manager_headers).get_json()["stock"]

        resp = client.put(f"/api/stock/{entry['id']}/take-out", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.get_json()["stock"]["stock_out_date"] is not None

        resp = client.put(f"/api/stock/{entry['id']}/take-out", headers=manager_headers)
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "stock_error"

        resp = client.get("/api/stock?in_stock=1", headers=manager_headers)
        assert resp.get_json()["stock"] == []

    def test_take_out_missing(self, client, manager_headers):
        resp = client.put("/api/stock/9999/take-out", headers=manager_headers)
        assert resp.status_code == 404

    def test_invalid_quantity(self, client, manager_headers):
        resp = client.post("/api/stock", json=dict(STOCK_PAYLOAD, quantity=-1), headers=manager_headers)
        assert resp.status_code == 400

    def test_staff_can_view_but_not_manage(self, client, staff_headers):
        assert client.get("/api/stock", headers=staff_headers).status_code == 200
        assert client.post("/api/stock", json=STOCK_PAYLOAD, headers=staff_headers).status_code == 403


class TestReconciler:
    def test_only_cancelled_orders_are_reconciled(self, db_session, manager_user):
        order = order_service.create_order(dict(STOCK_PAYLOAD), user_id=manager_user.id)
        assert order.production_status == INTAKE

        with pytest.raises(StockError):
            stock_service.reconcile_cancelled_order(order, user_id=manager_user.id)

    def test_reconcile_copies_descriptor(self, db_session, manager_user):
        order = order_service.create_order(dict(STOCK_PAYLOAD), user_id=manager_user.id)
        order.production_status = CANCELLED

        entry = stock_service.reconcile_cancelled_order(order, user_id=manager_user.id)

        assert entry.source_order_id == order.id
        assert entry.car_model == "Isuzu D-Max"
        assert entry.quantity == 2
        assert entry.note == f"Returned from cancelled order {order.order_no} (#{order.id})"

        # Reconciliation never commits on its own
        db_session.rollback()
        assert db_session.query(StockEntry).count() == 0
