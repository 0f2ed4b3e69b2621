# washdesk/services/customer_service.py
"""
Customer and vehicle helpers used by the customers / vehicles routers.
Deletion is refused while a service order still points at the row.
"""

from sqlalchemy.orm import Session
from washdesk.models.customer import Customer
from washdesk.models.service_order import ServiceOrder
from washdesk.models.vehicle import Vehicle
from washdesk.services.errors import NotFound, ReferencedEntity
from washdesk.utils.logger import get_logger

logger = get_logger(__name__)


def get_customer(db: Session, tenant_id: int, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id, Customer.tenant_id == tenant_id).first()
    if not customer:
        raise NotFound("Customer not found")
    return customer


def get_vehicle(db: Session, tenant_id: int, vehicle_id: int) -> Vehicle:
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id, Vehicle.tenant_id == tenant_id).first()
    if not vehicle:
        raise NotFound("Vehicle not found")
    return vehicle


def lookup_vehicle_by_plate(db: Session, tenant_id: int, plate: str):
    """Find a tenant vehicle by plate. Returns None if not found."""
    return db.query(Vehicle).filter(
        Vehicle.tenant_id == tenant_id, Vehicle.plate == plate.strip().upper()
    ).first()


def delete_customer(db: Session, tenant_id: int, customer_id: int):
    customer = get_customer(db, tenant_id, customer_id)
    orders = db.query(ServiceOrder).filter(
        ServiceOrder.tenant_id == tenant_id, ServiceOrder.customer_id == customer.id
    ).count()
    if orders:
        raise ReferencedEntity("Cannot delete a customer with service orders")

    vehicles = db.query(Vehicle).filter(Vehicle.tenant_id == tenant_id, Vehicle.customer_id == customer.id).all()
    for vehicle in vehicles:
        db.delete(vehicle)
    db.delete(customer)
    db.commit()
    logger.info(f"[Customer] Tenant {tenant_id}: customer {customer_id} deleted ({len(vehicles)} vehicles)")


def delete_vehicle(db: Session, tenant_id: int, vehicle_id: int):
    vehicle = get_vehicle(db, tenant_id, vehicle_id)
    orders = db.query(ServiceOrder).filter(
        ServiceOrder.tenant_id == tenant_id, ServiceOrder.vehicle_id == vehicle.id
    ).count()
    if orders:
        raise ReferencedEntity("Cannot delete a vehicle with service orders")
    db.delete(vehicle)
    db.commit()
    logger.info(f"[Vehicle] Tenant {tenant_id}: vehicle {vehicle.plate} deleted")
