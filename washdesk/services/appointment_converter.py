# washdesk/services/appointment_converter.py
"""
Turns an online booking into a tenant service order when the car arrives
(appointment → IN_PROGRESS).

Steps, all inside the caller's transaction:
  1. resolve the booked services, including ones deactivated since booking
  2. reserve the next order code from Tenant.last_order_code; the tenant row
     stays locked until commit
  3. upsert the tenant Customer (dedup key: email OR phone)
  4. upsert the tenant Vehicle (dedup key: plate)
  5. estimate the ready time as now + Σ estimated minutes
  6. snapshot current prices into OrderItem.price_snapshot
  7. create the order in WASHING and link it both ways

Idempotent: the appointment row is locked and an existing linked_order_id
short-circuits the whole thing, so a double-submitted PATCH never yields two
orders. appointments.linked_order_id is also UNIQUE.
"""

from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from washdesk.models.appointment import Appointment
from washdesk.models.customer import Customer
from washdesk.models.service_order import OrderStatus, ServiceOrder
from washdesk.models.tenant import Tenant
from washdesk.models.vehicle import Vehicle
from washdesk.services import order_service
from washdesk.services.errors import NotFound, TenantUnavailable
from washdesk.utils.logger import get_logger

logger = get_logger(__name__)


def upsert_customer(db: Session, tenant_id: int, name: str, phone: str, email: str = None) -> Customer:
    """Find the tenant customer by email OR phone, or create it."""
    keys = [Customer.phone == phone]
    if email:
        keys.append(Customer.email == email)

    customer = (
        db.query(Customer)
        .filter(Customer.tenant_id == tenant_id, or_(*keys))
        .order_by(Customer.id)
        .first()
    )
    if customer:
        return customer

    customer = Customer(tenant_id=tenant_id, name=name, phone=phone, email=email,
                        loyalty_points=0, created_at=datetime.utcnow())
    db.add(customer)
    db.flush()
    logger.info(f"[Convert] Tenant {tenant_id}: new customer {customer.id} ({name})")
    return customer


def upsert_vehicle(db: Session, tenant_id: int, customer: Customer, plate: str, model: str,
                   color: str = None) -> Vehicle:
    """Find the tenant vehicle by plate, or create it under the customer."""
    plate = plate.strip().upper()
    vehicle = db.query(Vehicle).filter(Vehicle.tenant_id == tenant_id, Vehicle.plate == plate).first()
    if vehicle:
        return vehicle

    vehicle = Vehicle(tenant_id=tenant_id, plate=plate, model=model, color=color,
                      customer_id=customer.id, created_at=datetime.utcnow())
    db.add(vehicle)
    db.flush()
    logger.info(f"[Convert] Tenant {tenant_id}: new vehicle {plate} for customer {customer.id}")
    return vehicle


def convert(db: Session, tenant_id: int, appointment: Appointment) -> ServiceOrder:
    """Return the service order for this appointment, creating it once. Does not commit."""
    appointment = (
        db.query(Appointment)
        .filter(Appointment.id == appointment.id, Appointment.tenant_id == tenant_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not appointment:
        raise NotFound("Appointment not found")

    if appointment.linked_order_id:
        order = db.query(ServiceOrder).filter(
            ServiceOrder.id == appointment.linked_order_id,
            ServiceOrder.tenant_id == tenant_id,
        ).first()
        if order:
            logger.info(f"[Convert] Appointment {appointment.id} already linked to #{order.sequential_code}")
            return order

    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant or not tenant.active:
        raise TenantUnavailable()

    services = order_service.resolve_services(
        db, tenant_id, [i.service_id for i in appointment.items], only_active=False
    )

    # Reserving the code locks the tenant row until commit: conversions of
    # one tenant run their upserts one at a time.
    code = order_service.next_sequential_code(db, tenant_id)

    account, account_vehicle = appointment.customer, appointment.vehicle
    customer = upsert_customer(db, tenant_id, account.name, account.phone, account.email)
    vehicle = upsert_vehicle(db, tenant_id, customer, account_vehicle.plate,
                             account_vehicle.model, account_vehicle.color)

    order = order_service.build_order(
        db, tenant_id, customer.id, vehicle.id, services,
        status=OrderStatus.WASHING,
        code=code,
        observations=appointment.notes,
        estimated_ready_at=order_service.estimate_ready_at(services),
        linked_appointment_id=appointment.id,
    )
    db.flush()
    appointment.linked_order_id = order.id

    logger.info(
        f"[Convert] Appointment {appointment.id} → order #{order.sequential_code} "
        f"({len(services)} services, total={order.total})"
    )
    return order
