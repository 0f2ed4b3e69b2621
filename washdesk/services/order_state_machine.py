# washdesk/services/order_state_machine.py
"""
Fulfillment workflow of a service order:

    AWAITING → WASHING → FINISHING → READY → DELIVERED

The Kanban board can drop a card on any column, so any target status is
accepted. Checkpoint side effects fire only on FIRST ENTRY into a status,
judged against the status persisted in the database:

    FINISHING  → deduct consumed products (inventory_service.apply)
    READY      → "your car is ready" message
    DELIVERED  → completed_at, spend-based loyalty points, "thank you" message

The status write is a compare-and-swap (UPDATE ... WHERE status = :previous)
in the same transaction as the stock / loyalty deltas. A request that loses
the race re-reads and re-evaluates, so a double-submitted patch deducts
stock once. Messages go out only after commit and never fail the request.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from washdesk.config import settings
from washdesk.models.appointment import Appointment, AppointmentStatus
from washdesk.models.service_order import OrderStatus, ServiceOrder
from washdesk.models.tenant import Tenant
from washdesk.services import inventory_service, loyalty_service, notification_service, order_service
from washdesk.services.errors import InvalidStatus, StatusRace
from washdesk.utils.logger import get_logger

logger = get_logger(__name__)

# Order status → status pushed onto the linked appointment
APPOINTMENT_STATUS_FOR = {
    OrderStatus.AWAITING: AppointmentStatus.IN_PROGRESS,
    OrderStatus.WASHING: AppointmentStatus.IN_PROGRESS,
    OrderStatus.FINISHING: AppointmentStatus.IN_PROGRESS,
    OrderStatus.READY: AppointmentStatus.COMPLETED,
    OrderStatus.DELIVERED: AppointmentStatus.COMPLETED,
}

# Plain fields a patch may carry alongside (or instead of) a status
PATCHABLE_FIELDS = ("observations", "checklist", "estimated_ready_at")


@dataclass
class TransitionOutcome:
    order: ServiceOrder
    previous: OrderStatus
    current: OrderStatus
    stock_deducted: bool = False
    points_credited: int = 0
    low_stock: list = field(default_factory=list)

    @property
    def entered(self) -> Optional[OrderStatus]:
        return self.current if self.current != self.previous else None


def parse_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidStatus(f"Invalid status: {value}")


def appointment_status_for(status: OrderStatus) -> Optional[AppointmentStatus]:
    return APPOINTMENT_STATUS_FOR.get(status)


def sync_appointment(db: Session, order: ServiceOrder) -> Optional[AppointmentStatus]:
    """Push the order status onto its appointment, only when it differs."""
    if not order.linked_appointment_id:
        return None
    target = appointment_status_for(OrderStatus(order.status))
    if target is None:
        return None

    appointment = db.query(Appointment).filter(
        Appointment.id == order.linked_appointment_id,
        Appointment.tenant_id == order.tenant_id,
    ).first()
    if not appointment or appointment.status == target.value:
        return None

    logger.info(f"[Order] Appointment {appointment.id}: {appointment.status} → {target.value}")
    appointment.status = target.value
    return target


def _apply_fields(order: ServiceOrder, fields: dict):
    for name in PATCHABLE_FIELDS:
        if name not in fields:
            continue
        value = fields[name]
        if name == "checklist" and value is not None and not isinstance(value, str):
            value = json.dumps(value)
        setattr(order, name, value)


def _compare_and_swap(db: Session, order: ServiceOrder, previous: OrderStatus, target: OrderStatus) -> bool:
    values = {"status": target.value}
    if target == OrderStatus.DELIVERED:
        values["completed_at"] = datetime.utcnow()
    result = db.execute(
        update(ServiceOrder)
        .where(
            ServiceOrder.id == order.id,
            ServiceOrder.tenant_id == order.tenant_id,
            ServiceOrder.status == previous.value,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _transition(db: Session, tenant_id: int, order_id: int, target: Optional[OrderStatus],
                fields: dict) -> Optional[TransitionOutcome]:
    """One attempt. Returns None when the status moved underneath us."""
    order = order_service.get_order(db, tenant_id, order_id, for_update=True)
    previous = OrderStatus(order.status)
    outcome = TransitionOutcome(order=order, previous=previous, current=previous)

    _apply_fields(order, fields)

    if target is not None and target != previous:
        db.flush()
        if not _compare_and_swap(db, order, previous, target):
            db.rollback()
            return None
        outcome.current = target

        if target == OrderStatus.FINISHING:
            outcome.low_stock = inventory_service.apply(db, order)
            outcome.stock_deducted = True
        elif target == OrderStatus.DELIVERED:
            outcome.points_credited = loyalty_service.credit_on_delivery(
                db, tenant_id, order.customer_id, order.total
            )

        db.refresh(order)
        sync_appointment(db, order)

    db.commit()
    db.refresh(order)
    return outcome


def patch_order(db: Session, tenant_id: int, order_id: int, status=None, **fields) -> TransitionOutcome:
    """
    Apply a Kanban patch. `status` may be omitted to only update fields.
    Commits, then sends the checkpoint messages.
    """
    target = parse_status(status) if status is not None else None

    for attempt in range(settings.STATUS_WRITE_RETRIES):
        outcome = _transition(db, tenant_id, order_id, target, fields)
        if outcome is not None:
            break
        logger.info(f"[Order] {order_id}: status changed concurrently, retrying ({attempt + 1})")
    else:
        raise StatusRace()

    order = outcome.order
    if outcome.entered:
        logger.info(f"[Order] #{order.sequential_code}: {outcome.previous.value} → {outcome.current.value}")
    _dispatch_notifications(db, outcome)
    return outcome


def _dispatch_notifications(db: Session, outcome: TransitionOutcome):
    """Fire-and-forget; the transition is already committed."""
    order = outcome.order
    try:
        if outcome.entered == OrderStatus.READY:
            notification_service.notify_order_ready(order)
        elif outcome.entered == OrderStatus.DELIVERED:
            notification_service.notify_order_delivered(order, outcome.points_credited)

        if outcome.low_stock:
            tenant = db.query(Tenant).filter(Tenant.id == order.tenant_id).first()
            notification_service.notify_low_stock(tenant.phone if tenant else None, outcome.low_stock)
    except Exception as e:
        logger.error(f"[Order] #{order.sequential_code}: notification failed: {e}", exc_info=True)
