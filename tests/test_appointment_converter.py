# tests/test_appointment_converter.py
"""Appointment → service order conversion when the car arrives."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import patch
from washdesk.models import Customer, ServiceOrder, Vehicle
from washdesk.services import appointment_converter, appointment_service, order_service
from washdesk.services.order_state_machine import patch_order
from washdesk.services.errors import BusinessRuleError, NoServicesSelected, TenantUnavailable
from factories import (
    make_account, make_appointment, make_customer, make_service, make_tenant, make_vehicle,
)


@pytest.fixture
def booking(db):
    tenant = make_tenant(db)
    wash = make_service(db, tenant, name="Simple wash", price="50.00", minutes=40)
    wax = make_service(db, tenant, name="Wax", price="30.00", minutes=20)
    account, account_vehicle = make_account(db, plate="xyz9a87")
    appointment = make_appointment(db, tenant, account, account_vehicle, [wash, wax],
                                   notes="please vacuum the trunk")
    return tenant, wash, wax, account, appointment


class TestConvert:
    def test_creates_washing_order_with_current_prices(self, db, booking):
        tenant, wash, _, account, appointment = booking
        wash.price = Decimal("55.00")
        db.commit()

        before = datetime.utcnow()
        order = appointment_converter.convert(db, tenant.id, appointment)
        db.commit()

        assert order.status == "WASHING"
        assert order.sequential_code == 1
        assert order.total == Decimal("85.00")
        assert order.observations == "please vacuum the trunk"
        assert before + timedelta(minutes=59) <= order.estimated_ready_at <= datetime.utcnow() + timedelta(minutes=61)
        assert order.customer.phone == account.phone
        assert order.vehicle.plate == "XYZ9A87"

    def test_links_both_ways(self, db, booking):
        tenant, _, _, _, appointment = booking

        order = appointment_converter.convert(db, tenant.id, appointment)
        db.commit()
        db.refresh(appointment)

        assert appointment.linked_order_id == order.id
        assert order.linked_appointment_id == appointment.id

    def test_second_call_returns_same_order(self, db, booking):
        tenant, _, _, _, appointment = booking

        first = appointment_converter.convert(db, tenant.id, appointment)
        db.commit()
        second = appointment_converter.convert(db, tenant.id, appointment)
        db.commit()

        assert first.id == second.id
        assert db.query(ServiceOrder).count() == 1

    def test_missing_minutes_default_to_thirty(self, db):
        tenant = make_tenant(db)
        service = make_service(db, tenant, minutes=None)
        account, account_vehicle = make_account(db)
        appointment = make_appointment(db, tenant, account, account_vehicle, [service])

        before = datetime.utcnow()
        order = appointment_converter.convert(db, tenant.id, appointment)

        assert order.estimated_ready_at >= before + timedelta(minutes=30)
        assert order.estimated_ready_at <= datetime.utcnow() + timedelta(minutes=30)


class TestUpserts:
    def test_reuses_customer_matched_by_phone(self, db, booking):
        tenant, _, _, account, appointment = booking
        existing = make_customer(db, tenant, name="Bruno S.", phone=account.phone)

        order = appointment_converter.convert(db, tenant.id, appointment)

        assert order.customer_id == existing.id
        assert db.query(Customer).filter(Customer.tenant_id == tenant.id).count() == 1

    def test_reuses_customer_matched_by_email(self, db, booking):
        tenant, _, _, account, appointment = booking
        existing = make_customer(db, tenant, phone="+55 11 90000-1111", email=account.email)

        order = appointment_converter.convert(db, tenant.id, appointment)

        assert order.customer_id == existing.id

    def test_reuses_vehicle_matched_by_plate(self, db, booking):
        tenant, _, _, _, appointment = booking
        owner = make_customer(db, tenant, phone="+55 11 90000-2222")
        existing = make_vehicle(db, tenant, owner, plate="XYZ9A87")

        order = appointment_converter.convert(db, tenant.id, appointment)

        assert order.vehicle_id == existing.id
        assert db.query(Vehicle).filter(Vehicle.tenant_id == tenant.id).count() == 1

    def test_other_tenant_customer_is_not_reused(self, db, booking):
        tenant, _, _, account, appointment = booking
        other = make_tenant(db, name="Other")
        foreign = make_customer(db, other, phone=account.phone)

        order = appointment_converter.convert(db, tenant.id, appointment)

        assert order.customer_id != foreign.id


class TestRejections:
    def test_inactive_tenant(self, db, booking):
        tenant, _, _, _, appointment = booking
        tenant.active = False
        db.commit()

        with pytest.raises(TenantUnavailable):
            appointment_converter.convert(db, tenant.id, appointment)

    def test_appointment_without_services(self, db):
        tenant = make_tenant(db)
        account, account_vehicle = make_account(db)
        appointment = make_appointment(db, tenant, account, account_vehicle, [])

        with pytest.raises(NoServicesSelected):
            appointment_converter.convert(db, tenant.id, appointment)
        db.rollback()
        assert db.query(ServiceOrder).count() == 0


class TestDeactivatedServices:
    def test_booked_service_deactivated_later_is_still_washed(self, db, booking):
        tenant, wash, wax, _, appointment = booking
        wax.active = False
        db.commit()

        order = appointment_converter.convert(db, tenant.id, appointment)
        db.commit()

        assert sorted(i.service_id for i in order.items) == sorted([wash.id, wax.id])
        assert order.total == Decimal("80.00")

    def test_all_booked_services_deactivated(self, db, booking):
        tenant, wash, wax, _, appointment = booking
        wash.active = False
        wax.active = False
        db.commit()

        updated = appointment_service.update_status(db, tenant.id, appointment.id, "IN_PROGRESS")

        assert updated.status == "IN_PROGRESS"
        assert db.query(ServiceOrder).count() == 1


class TestConcurrentConversion:
    def test_same_account_started_together_yields_one_customer(self, db, session_factory):
        tenant = make_tenant(db)
        service = make_service(db, tenant)
        account, account_vehicle = make_account(db)
        appointments = [make_appointment(db, tenant, account, account_vehicle, [service]) for _ in range(4)]
        tenant_id, phone = tenant.id, account.phone
        appointment_ids = [a.id for a in appointments]

        # Every thread has resolved its services before any of them upserts
        real_resolve = order_service.resolve_services
        barrier = threading.Barrier(len(appointment_ids), timeout=10)

        def resolve_together(*args, **kwargs):
            services = real_resolve(*args, **kwargs)
            barrier.wait()
            return services

        def start(appointment_id):
            session = session_factory()
            try:
                appointment_service.update_status(session, tenant_id, appointment_id, "IN_PROGRESS")
                return session.query(ServiceOrder.sequential_code).filter(
                    ServiceOrder.linked_appointment_id == appointment_id
                ).scalar()
            finally:
                session.close()

        with patch.object(order_service, "resolve_services", new=resolve_together):
            with ThreadPoolExecutor(max_workers=len(appointment_ids)) as pool:
                codes = list(pool.map(start, appointment_ids))

        assert sorted(codes) == [1, 2, 3, 4]
        assert db.query(Customer).filter(Customer.tenant_id == tenant_id, Customer.phone == phone).count() == 1
        assert db.query(Vehicle).filter(Vehicle.tenant_id == tenant_id).count() == 1


class TestStatusUpdate:
    def test_double_in_progress_creates_one_order(self, db, booking):
        tenant, _, _, _, appointment = booking

        appointment_service.update_status(db, tenant.id, appointment.id, "IN_PROGRESS")
        appointment_service.update_status(db, tenant.id, appointment.id, "IN_PROGRESS")

        assert db.query(ServiceOrder).count() == 1
        db.refresh(tenant)
        assert tenant.last_order_code == 1

    def test_canceled_appointment_cannot_start(self, db, booking):
        tenant, _, _, _, appointment = booking
        appointment_service.update_status(db, tenant.id, appointment.id, "CANCELED", cancel_reason="no-show")

        with pytest.raises(BusinessRuleError):
            appointment_service.update_status(db, tenant.id, appointment.id, "IN_PROGRESS")
        assert db.query(ServiceOrder).count() == 0

    def test_confirm_does_not_convert(self, db, booking):
        tenant, _, _, _, appointment = booking
        updated = appointment_service.update_status(db, tenant.id, appointment.id, "CONFIRMED")
        assert updated.linked_order_id is None
        assert db.query(ServiceOrder).count() == 0

    def test_restarting_delivered_order_keeps_appointment_completed(self, db, booking):
        tenant, _, _, _, appointment = booking
        appointment_service.update_status(db, tenant.id, appointment.id, "IN_PROGRESS")
        db.refresh(appointment)
        patch_order(db, tenant.id, appointment.linked_order_id, status="DELIVERED")

        updated = appointment_service.update_status(db, tenant.id, appointment.id, "IN_PROGRESS")

        assert updated.status == "COMPLETED"
        assert db.query(ServiceOrder).count() == 1

    def test_linked_appointment_cannot_be_moved_by_hand(self, db, booking):
        tenant, _, _, _, appointment = booking
        appointment_service.update_status(db, tenant.id, appointment.id, "IN_PROGRESS")

        with pytest.raises(BusinessRuleError):
            appointment_service.update_status(db, tenant.id, appointment.id, "CONFIRMED")
        db.refresh(appointment)
        assert appointment.status == "IN_PROGRESS"
