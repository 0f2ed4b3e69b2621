# tests/test_inventory_service.py
"""Unit tests for the inventory ledger."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from decimal import Decimal
from washdesk.models import Product, ServiceConsumption
from washdesk.services import inventory_service, order_service
from factories import make_customer, make_product, make_service, make_tenant, make_vehicle


def open_order(db, tenant, services):
    customer = make_customer(db, tenant)
    vehicle = make_vehicle(db, tenant, customer)
    return order_service.create_order(db, tenant.id, customer.id, vehicle.id, [s.id for s in services])


def quantity(db, product):
    return db.query(Product.quantity).filter(Product.id == product.id).scalar()


class TestApply:
    def test_consumption_accumulates_across_items(self, db):
        tenant = make_tenant(db)
        shampoo = make_product(db, tenant, quantity="10")
        wash = make_service(db, tenant, recipe=[(shampoo, "1")])
        full = make_service(db, tenant, name="Full", price="90.00", recipe=[(shampoo, "2.5")])
        order = open_order(db, tenant, [wash, full])

        inventory_service.apply(db, order)
        db.commit()

        assert quantity(db, shampoo) == Decimal("6.5")

    def test_stock_can_go_negative(self, db):
        tenant = make_tenant(db)
        p = make_product(db, tenant, name="P", quantity="5")
        q = make_product(db, tenant, name="Q", quantity="1")
        service = make_service(db, tenant, recipe=[(p, "2"), (q, "3")])
        order = open_order(db, tenant, [service])

        low = inventory_service.apply(db, order)
        db.commit()

        assert quantity(db, p) == Decimal("3")
        assert quantity(db, q) == Decimal("-2")
        assert [prod.name for prod in low] == ["Q"]

    def test_recipe_is_read_when_applied(self, db):
        tenant = make_tenant(db)
        shampoo = make_product(db, tenant, quantity="10")
        service = make_service(db, tenant, recipe=[(shampoo, "1")])
        order = open_order(db, tenant, [service])

        db.query(ServiceConsumption).filter(ServiceConsumption.service_id == service.id).update(
            {"quantity": Decimal("4")}
        )
        db.commit()

        inventory_service.apply(db, order)
        db.commit()

        assert quantity(db, shampoo) == Decimal("6")

    def test_service_without_recipe(self, db):
        tenant = make_tenant(db)
        shampoo = make_product(db, tenant, quantity="10")
        order = open_order(db, tenant, [make_service(db, tenant)])

        assert inventory_service.apply(db, order) == []
        assert quantity(db, shampoo) == Decimal("10")


class TestReports:
    def test_low_stock_only_lists_own_tenant(self, db):
        tenant = make_tenant(db)
        other = make_tenant(db, name="Other")
        make_product(db, tenant, name="Wax", quantity="1", reorder_point="2")
        make_product(db, tenant, name="Shampoo", quantity="10", reorder_point="2")
        make_product(db, other, name="Foreign wax", quantity="0", reorder_point="2")

        assert [p.name for p in inventory_service.low_stock(db, tenant.id)] == ["Wax"]

    def test_order_cost(self, db):
        tenant = make_tenant(db)
        shampoo = make_product(db, tenant, quantity="10", cost="12.50")
        wax = make_product(db, tenant, name="Wax", quantity="10", cost="40.00")
        service = make_service(db, tenant, price="110.00", recipe=[(shampoo, "1"), (wax, "0.25")])
        order = open_order(db, tenant, [service])

        assert inventory_service.order_cost(db, order) == Decimal("22.50")
