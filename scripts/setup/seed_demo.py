# scripts/setup/seed_demo.py
"""
Seed a demo wash business: catalog, stock, one staff-side customer and one
online customer account with a vehicle, ready for simulate_order_flow.py.
Usage: python scripts/setup/seed_demo.py [--name "Lava Rápido Centro"]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from datetime import datetime
from decimal import Decimal
from washdesk.database import SessionLocal, create_tables
from washdesk.models import (
    AccountCustomer, AccountVehicle, Customer, Product, Service, ServiceConsumption, Tenant, Vehicle,
)


def main(name: str):
    create_tables()
    db = SessionLocal()
    try:
        tenant = Tenant(name=name, slug=name.lower().replace(" ", "-"), phone="+55 11 90000-0000",
                        active=True, accepts_bookings=True, min_booking_lead_minutes=30,
                        loyalty_enabled=True, loyalty_goal=10, last_order_code=0,
                        created_at=datetime.utcnow())
        db.add(tenant)
        db.flush()

        shampoo = Product(tenant_id=tenant.id, name="Car shampoo", quantity=Decimal("20"),
                          reorder_point=Decimal("5"), unit="L", cost_per_unit=Decimal("12.50"))
        wax = Product(tenant_id=tenant.id, name="Liquid wax", quantity=Decimal("8"),
                      reorder_point=Decimal("2"), unit="L", cost_per_unit=Decimal("40.00"))
        db.add_all([shampoo, wax])
        db.flush()

        simple = Service(tenant_id=tenant.id, name="Simple wash", price=Decimal("40.00"), estimated_minutes=30)
        full = Service(tenant_id=tenant.id, name="Full wash + wax", price=Decimal("110.00"), estimated_minutes=90)
        db.add_all([simple, full])
        db.flush()
        db.add_all([
            ServiceConsumption(service_id=simple.id, product_id=shampoo.id, quantity=Decimal("0.5")),
            ServiceConsumption(service_id=full.id, product_id=shampoo.id, quantity=Decimal("1")),
            ServiceConsumption(service_id=full.id, product_id=wax.id, quantity=Decimal("0.25")),
        ])

        customer = Customer(tenant_id=tenant.id, name="Walk-in Customer", phone="+55 11 91111-1111",
                            created_at=datetime.utcnow())
        db.add(customer)
        db.flush()
        vehicle = Vehicle(tenant_id=tenant.id, plate="ABC1D23", model="Onix", color="White",
                          customer_id=customer.id, created_at=datetime.utcnow())

        account = AccountCustomer(name="Online Customer", email=f"online+{tenant.id}@example.com",
                                  phone="+55 11 92222-2222", created_at=datetime.utcnow())
        db.add_all([vehicle, account])
        db.flush()
        account_vehicle = AccountVehicle(account_customer_id=account.id, plate="XYZ9A87", model="HB20", color="Silver")
        db.add(account_vehicle)
        db.commit()

        print(f"✅ Tenant {tenant.id} ({tenant.name}) seeded")
        print(f"   services: simple={simple.id} full={full.id}")
        print(f"   walk-in customer={customer.id} vehicle={vehicle.id}")
        print(f"   online account={account.id} vehicle={account_vehicle.id}")
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed a demo wash business")
    parser.add_argument("--name", default="Demo Wash")
    args = parser.parse_args()
    main(args.name)
