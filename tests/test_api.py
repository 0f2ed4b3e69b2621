# tests/test_api.py
"""HTTP-level tests: tenant headers, error mapping and the booking → delivery flow."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from fastapi.testclient import TestClient
from washdesk.database import get_db
from washdesk.main import app
from factories import make_account, make_customer, make_product, make_service, make_tenant, make_vehicle


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def staff(tenant, role="ATTENDANT"):
    return {"X-Tenant-Id": str(tenant.id), "X-User-Role": role}


@pytest.fixture
def walk_in(db):
    tenant = make_tenant(db)
    customer = make_customer(db, tenant)
    vehicle = make_vehicle(db, tenant, customer)
    service = make_service(db, tenant, price="50.00")
    return tenant, customer, vehicle, service


def create_order(client, walk_in):
    tenant, customer, vehicle, service = walk_in
    resp = client.post("/api/v1/orders", headers=staff(tenant), json={
        "customer_id": customer.id, "vehicle_id": vehicle.id, "service_ids": [service.id],
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestAuth:
    def test_missing_tenant_headers(self, client):
        resp = client.get("/api/v1/orders")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Not authenticated"

    def test_unknown_role(self, client, walk_in):
        resp = client.get("/api/v1/orders", headers={"X-Tenant-Id": str(walk_in[0].id), "X-User-Role": "GUEST"})
        assert resp.status_code == 401

    def test_only_owner_deletes_orders(self, client, walk_in):
        order = create_order(client, walk_in)
        tenant = walk_in[0]

        resp = client.delete(f"/api/v1/orders/{order['id']}", headers=staff(tenant, "MANAGER"))
        assert resp.status_code == 403

        resp = client.delete(f"/api/v1/orders/{order['id']}", headers=staff(tenant, "OWNER"))
        assert resp.status_code == 200
        assert client.get(f"/api/v1/orders/{order['id']}", headers=staff(tenant)).status_code == 404


class TestOrders:
    def test_create_returns_snapshot(self, client, walk_in):
        order = create_order(client, walk_in)
        assert order["sequential_code"] == 1
        assert order["status"] == "AWAITING"
        assert Decimal(order["total"]) == Decimal("50.00")

    def test_other_tenant_cannot_see_or_move_order(self, client, db, walk_in):
        order = create_order(client, walk_in)
        other = make_tenant(db, name="Other")

        assert client.get(f"/api/v1/orders/{order['id']}", headers=staff(other)).status_code == 404
        resp = client.patch(f"/api/v1/orders/{order['id']}", headers=staff(other), json={"status": "READY"})
        assert resp.status_code == 404

        resp = client.get(f"/api/v1/orders/{order['id']}", headers=staff(walk_in[0]))
        assert resp.json()["status"] == "AWAITING"

    def test_invalid_status(self, client, walk_in):
        order = create_order(client, walk_in)
        resp = client.patch(f"/api/v1/orders/{order['id']}", headers=staff(walk_in[0]), json={"status": "PARKED"})
        assert resp.status_code == 422
        assert "PARKED" in resp.json()["detail"]

    def test_empty_service_list(self, client, walk_in):
        tenant, customer, vehicle, _ = walk_in
        resp = client.post("/api/v1/orders", headers=staff(tenant), json={
            "customer_id": customer.id, "vehicle_id": vehicle.id, "service_ids": [],
        })
        assert resp.status_code == 422

    def test_patch_checklist_only(self, client, walk_in):
        order = create_order(client, walk_in)
        resp = client.patch(f"/api/v1/orders/{order['id']}", headers=staff(walk_in[0]),
                            json={"checklist": {"scratches": ["rear bumper"]}})
        assert resp.status_code == 200
        assert resp.json()["status"] == "AWAITING"
        assert resp.json()["checklist"] == '{"scratches": ["rear bumper"]}'

    def test_order_cost(self, client, db, walk_in):
        tenant = walk_in[0]
        wax = make_product(db, tenant, name="Wax", quantity="5", cost="12.00")
        service = make_service(db, tenant, name="Wax job", price="80.00", recipe=[(wax, "0.5")])
        resp = client.post("/api/v1/orders", headers=staff(tenant), json={
            "customer_id": walk_in[1].id, "vehicle_id": walk_in[2].id, "service_ids": [service.id],
        })

        cost = client.get(f"/api/v1/orders/{resp.json()['id']}/cost", headers=staff(tenant)).json()

        assert Decimal(cost["product_cost"]) == Decimal("6.00")
        assert Decimal(cost["margin"]) == Decimal("74.00")


class TestLoyalty:
    def test_redeem_without_points(self, client, walk_in):
        tenant, customer, _, _ = walk_in
        resp = client.post(f"/api/v1/customers/{customer.id}/loyalty", headers=staff(tenant),
                           json={"action": "redeem"})
        assert resp.status_code == 409

    def test_add_stamp(self, client, walk_in):
        tenant, customer, _, _ = walk_in
        resp = client.post(f"/api/v1/customers/{customer.id}/loyalty", headers=staff(tenant),
                           json={"action": "add"})
        assert resp.status_code == 200
        assert resp.json()["points"] == 1
        assert resp.json()["stamps"] == 1

    def test_delete_customer_with_orders(self, client, walk_in):
        create_order(client, walk_in)
        tenant, customer, _, _ = walk_in
        resp = client.delete(f"/api/v1/customers/{customer.id}", headers=staff(tenant))
        assert resp.status_code == 409


class TestBookingFlow:
    def test_booking_to_delivery(self, client, db):
        tenant = make_tenant(db)
        shampoo = make_product(db, tenant, quantity="10", reorder_point="2")
        service = make_service(db, tenant, name="Full wash", price="120.00", recipe=[(shampoo, "1.5")])
        account, account_vehicle = make_account(db)
        tenant_id, service_id = tenant.id, service.id

        resp = client.post("/api/v1/public/appointments", headers={"X-Customer-Id": str(account.id)}, json={
            "tenant_id": tenant_id,
            "vehicle_id": account_vehicle.id,
            "service_ids": [service_id],
            "scheduled_at": (datetime.utcnow() + timedelta(hours=2)).isoformat(),
            "notes": "white SUV",
        })
        assert resp.status_code == 201, resp.text
        appointment = resp.json()
        assert appointment["status"] == "PENDING"
        assert Decimal(appointment["estimated_total"]) == Decimal("120.00")

        headers = staff(tenant)
        resp = client.patch(f"/api/v1/appointments/{appointment['id']}", headers=headers,
                            json={"status": "IN_PROGRESS"})
        assert resp.status_code == 200
        order_id = resp.json()["linked_order_id"]
        assert order_id is not None

        order = client.get(f"/api/v1/orders/{order_id}", headers=headers).json()
        assert order["status"] == "WASHING"
        assert order["observations"] == "white SUV"

        for status in ("FINISHING", "READY"):
            resp = client.patch(f"/api/v1/orders/{order_id}", headers=headers, json={"status": status})
            assert resp.status_code == 200

        appointment = client.get(f"/api/v1/appointments/{appointment['id']}", headers=headers).json()
        assert appointment["status"] == "COMPLETED"

        resp = client.patch(f"/api/v1/orders/{order_id}", headers=headers, json={"status": "DELIVERED"})
        assert resp.json()["completed_at"] is not None

        db.refresh(shampoo)
        assert shampoo.quantity == Decimal("8.5")
        loyalty = client.get(f"/api/v1/customers/{resp.json()['customer_id']}/loyalty", headers=headers).json()
        assert loyalty["points"] == 12

    def test_booking_inside_lead_time(self, client, db):
        tenant = make_tenant(db, min_booking_lead_minutes=120)
        service = make_service(db, tenant)
        account, account_vehicle = make_account(db)

        resp = client.post("/api/v1/public/appointments", headers={"X-Customer-Id": str(account.id)}, json={
            "tenant_id": tenant.id,
            "vehicle_id": account_vehicle.id,
            "service_ids": [service.id],
            "scheduled_at": (datetime.utcnow() + timedelta(minutes=30)).isoformat(),
        })
        assert resp.status_code == 422

    def test_booking_someone_elses_vehicle(self, client, db):
        tenant = make_tenant(db)
        service = make_service(db, tenant)
        _, vehicle = make_account(db)
        intruder, _ = make_account(db, email="eve@example.com", phone="+55 11 96666-0000", plate="EVE0E00")

        resp = client.post("/api/v1/public/appointments", headers={"X-Customer-Id": str(intruder.id)}, json={
            "tenant_id": tenant.id,
            "vehicle_id": vehicle.id,
            "service_ids": [service.id],
            "scheduled_at": (datetime.utcnow() + timedelta(hours=2)).isoformat(),
        })
        assert resp.status_code == 404


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["database"] == "ok"
        assert resp.json()["notifications"] == "log-only"
