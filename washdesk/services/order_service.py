# washdesk/services/order_service.py
"""
Service order creation and lookup.

Order numbers come from Tenant.last_order_code, bumped with one
UPDATE ... RETURNING inside the creating transaction. The row lock taken by
that UPDATE serialises concurrent creators for the same tenant, and the
unique (tenant_id, sequential_code) constraint backs it up.
"""

import json
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from washdesk.config import settings
from washdesk.models.appointment import Appointment
from washdesk.models.catalog import Service
from washdesk.models.customer import Customer
from washdesk.models.service_order import OrderItem, OrderStatus, ServiceOrder
from washdesk.models.tenant import Tenant
from washdesk.models.vehicle import Vehicle
from washdesk.services import notification_service
from washdesk.services.errors import NoServicesSelected, NotFound, TenantUnavailable, ValidationError
from washdesk.utils.logger import get_logger

logger = get_logger(__name__)


def next_sequential_code(db: Session, tenant_id: int) -> int:
    """Atomically reserve the next order number for a tenant. Does not commit."""
    code = db.execute(
        update(Tenant)
        .where(Tenant.id == tenant_id, Tenant.active.is_(True))
        .values(last_order_code=Tenant.last_order_code + 1)
        .returning(Tenant.last_order_code)
        .execution_options(synchronize_session=False)
    ).scalar_one_or_none()
    if code is None:
        raise TenantUnavailable()
    return code


def resolve_services(db: Session, tenant_id: int, service_ids, only_active: bool = True) -> list:
    """
    Load the requested services of this tenant, in request order.
    New bookings and walk-ins only see active services; an appointment
    that is already booked keeps services deactivated since (only_active=False).
    Raises instead of silently dropping ids that do not resolve.
    """
    ids = list(dict.fromkeys(service_ids or []))
    if not ids:
        raise NoServicesSelected()

    q = db.query(Service).filter(Service.tenant_id == tenant_id, Service.id.in_(ids))
    if only_active:
        q = q.filter(Service.active.is_(True))
    found = {s.id: s for s in q}
    if not found:
        raise NoServicesSelected()

    missing = [i for i in ids if i not in found]
    if missing:
        raise ValidationError(f"Services not available: {', '.join(str(i) for i in missing)}")
    return [found[i] for i in ids]


def estimate_ready_at(services, start: Optional[datetime] = None) -> datetime:
    minutes = sum(s.estimated_minutes or settings.DEFAULT_SERVICE_MINUTES for s in services)
    return (start or datetime.utcnow()) + timedelta(minutes=minutes)


def build_order(db: Session, tenant_id: int, customer_id: int, vehicle_id: int, services,
                status: OrderStatus = OrderStatus.AWAITING, code: Optional[int] = None,
                **fields) -> ServiceOrder:
    """
    Snapshot prices, reserve a code (unless the caller already did) and
    stage the order. Does not commit.
    """
    if code is None:
        code = next_sequential_code(db, tenant_id)
    items = [OrderItem(service_id=s.id, price_snapshot=s.price) for s in services]
    order = ServiceOrder(
        tenant_id=tenant_id,
        sequential_code=code,
        customer_id=customer_id,
        vehicle_id=vehicle_id,
        status=status.value,
        total=sum((Decimal(s.price) for s in services), Decimal("0.00")),
        entered_at=datetime.utcnow(),
        items=items,
        **fields,
    )
    db.add(order)
    return order


def get_order(db: Session, tenant_id: int, order_id: int, for_update: bool = False) -> ServiceOrder:
    """Tenant-scoped lookup. Another tenant's order is reported as missing."""
    q = db.query(ServiceOrder).filter(ServiceOrder.id == order_id, ServiceOrder.tenant_id == tenant_id)
    if for_update:
        q = q.with_for_update().populate_existing()
    order = q.first()
    if not order:
        raise NotFound("Order not found")
    return order


def list_orders(db: Session, tenant_id: int, status: Optional[str] = None, limit: int = 100) -> list:
    q = (
        db.query(ServiceOrder)
        .options(selectinload(ServiceOrder.items))
        .filter(ServiceOrder.tenant_id == tenant_id)
    )
    if status:
        q = q.filter(ServiceOrder.status == status)
    return q.order_by(ServiceOrder.entered_at.desc()).limit(limit).all()


def create_order(db: Session, tenant_id: int, customer_id: int, vehicle_id: int, service_ids,
                 observations: Optional[str] = None, checklist=None,
                 estimated_ready_at: Optional[datetime] = None) -> ServiceOrder:
    """Walk-in order from the staff panel. Starts in AWAITING. Commits."""
    customer = db.query(Customer).filter(Customer.id == customer_id, Customer.tenant_id == tenant_id).first()
    if not customer:
        raise NotFound("Customer not found")
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id, Vehicle.tenant_id == tenant_id).first()
    if not vehicle:
        raise NotFound("Vehicle not found")

    services = resolve_services(db, tenant_id, service_ids)

    order = build_order(
        db, tenant_id, customer.id, vehicle.id, services,
        observations=observations,
        checklist=json.dumps(checklist) if checklist is not None else None,
        estimated_ready_at=estimated_ready_at,
    )
    db.commit()
    db.refresh(order)
    logger.info(f"[Order] Tenant {tenant_id}: created #{order.sequential_code} total={order.total}")

    try:
        notification_service.notify_order_received(order)
    except Exception as e:
        logger.error(f"[Order] #{order.sequential_code}: received message failed: {e}", exc_info=True)
    return order


def delete_order(db: Session, tenant_id: int, order_id: int):
    """Administrative removal outside the fulfillment flow. Commits."""
    order = get_order(db, tenant_id, order_id)
    code = order.sequential_code
    db.query(Appointment).filter(
        Appointment.tenant_id == tenant_id, Appointment.linked_order_id == order.id
    ).update({"linked_order_id": None}, synchronize_session=False)
    db.delete(order)
    db.commit()
    logger.warning(f"[Order] Tenant {tenant_id}: order #{code} deleted by administrator")
