# washdesk/services/appointment_service.py
"""
Appointment handling for both sides of the booking:
  - public side: an end customer books a slot at one wash business
  - staff side: list, confirm, cancel, and mark "car arrived" (IN_PROGRESS),
    which hands the appointment to appointment_converter.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from washdesk.models.account import AccountVehicle
from washdesk.models.appointment import Appointment, AppointmentItem, AppointmentStatus
from washdesk.models.service_order import OrderStatus
from washdesk.models.tenant import Tenant
from washdesk.services import appointment_converter, order_service, order_state_machine
from washdesk.services.errors import BusinessRuleError, InvalidStatus, NotFound, ValidationError
from washdesk.utils.logger import get_logger

logger = get_logger(__name__)


def parse_status(value) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise InvalidStatus(f"Invalid appointment status: {value}")


def list_appointments(db: Session, tenant_id: int, status: Optional[str] = None) -> list:
    q = (
        db.query(Appointment)
        .options(selectinload(Appointment.items).selectinload(AppointmentItem.service))
        .filter(Appointment.tenant_id == tenant_id)
    )
    if status:
        q = q.filter(Appointment.status == parse_status(status).value)
    return q.order_by(Appointment.scheduled_at.asc()).all()


def get_appointment(db: Session, tenant_id: int, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(
        Appointment.id == appointment_id, Appointment.tenant_id == tenant_id
    ).first()
    if not appointment:
        raise NotFound("Appointment not found")
    return appointment


def update_status(db: Session, tenant_id: int, appointment_id: int, status,
                  cancel_reason: Optional[str] = None) -> Appointment:
    """
    Staff status change. Moving to IN_PROGRESS converts the appointment into
    a service order (once). Once linked, the appointment's status follows
    its order. Commits.
    """
    target = parse_status(status)
    appointment = get_appointment(db, tenant_id, appointment_id)

    if appointment.linked_order_id and target != AppointmentStatus.IN_PROGRESS:
        raise BusinessRuleError("Appointment is linked to a service order and follows its status")

    order = None
    if target == AppointmentStatus.IN_PROGRESS:
        if appointment.status == AppointmentStatus.CANCELED.value:
            raise BusinessRuleError("A canceled appointment cannot be started")
        order = appointment_converter.convert(db, tenant_id, appointment)
        target = order_state_machine.appointment_status_for(OrderStatus(order.status)) or target

    appointment.status = target.value
    if cancel_reason:
        appointment.cancel_reason = cancel_reason
    db.commit()
    db.refresh(appointment)
    logger.info(f"[Appointment] {appointment.id}: → {target.value}")

    if order is not None:
        logger.info(f"[Appointment] {appointment.id}: linked to order #{order.sequential_code}")
    return appointment


def book(db: Session, account_customer_id: int, tenant_id: int, vehicle_id: int, service_ids,
         scheduled_at: datetime, notes: Optional[str] = None) -> Appointment:
    """Public booking by an end customer. Commits."""
    if scheduled_at.tzinfo is not None:
        scheduled_at = scheduled_at.astimezone(timezone.utc).replace(tzinfo=None)

    vehicle = db.query(AccountVehicle).filter(
        AccountVehicle.id == vehicle_id, AccountVehicle.account_customer_id == account_customer_id
    ).first()
    if not vehicle:
        raise NotFound("Vehicle not found")

    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant or not tenant.active:
        raise NotFound("Wash business not found")
    if not tenant.accepts_bookings:
        raise BusinessRuleError("This wash business does not accept online bookings")

    now = datetime.utcnow()
    if scheduled_at < now:
        raise ValidationError("Appointment date is in the past")
    earliest = now + timedelta(minutes=tenant.min_booking_lead_minutes or 0)
    if scheduled_at < earliest:
        raise ValidationError(
            f"Appointments must be booked at least {tenant.min_booking_lead_minutes} minutes in advance"
        )

    services = order_service.resolve_services(db, tenant_id, service_ids)

    appointment = Appointment(
        tenant_id=tenant_id,
        account_customer_id=account_customer_id,
        account_vehicle_id=vehicle.id,
        scheduled_at=scheduled_at,
        status=AppointmentStatus.PENDING.value,
        estimated_total=sum((Decimal(s.price) for s in services), Decimal("0.00")),
        notes=notes,
        created_at=now,
        items=[AppointmentItem(service_id=s.id, price_at_booking=s.price) for s in services],
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    logger.info(f"[Appointment] Tenant {tenant_id}: booked {appointment.id} for {scheduled_at:%Y-%m-%d %H:%M}")
    return appointment
