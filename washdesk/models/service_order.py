# washdesk/models/service_order.py
"""
Service orders (the Kanban cards) and their line items.
sequential_code is the human-facing order number; it is unique per tenant
and assigned from Tenant.last_order_code, never from MAX(sequential_code).
"""

import enum
from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from washdesk.database import Base


class OrderStatus(str, enum.Enum):
    AWAITING = "AWAITING"
    WASHING = "WASHING"
    FINISHING = "FINISHING"
    READY = "READY"
    DELIVERED = "DELIVERED"


class ServiceOrder(Base):
    __tablename__ = "service_orders"
    __table_args__ = (
        UniqueConstraint("tenant_id", "sequential_code", name="uq_service_orders_tenant_code"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    sequential_code = Column(Integer, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    status = Column(String(20), default=OrderStatus.AWAITING.value, nullable=False, index=True)
    total = Column(Numeric(10, 2), default=0, nullable=False)
    observations = Column(Text)
    checklist = Column(Text)                  # JSON-encoded entry checklist
    entered_at = Column(DateTime, nullable=False, index=True)
    estimated_ready_at = Column(DateTime)
    completed_at = Column(DateTime)
    linked_appointment_id = Column(Integer, ForeignKey("appointments.id"))

    customer = relationship("Customer")
    vehicle = relationship("Vehicle")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<ServiceOrder #{self.sequential_code} tenant={self.tenant_id} status={self.status}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("service_orders.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    price_snapshot = Column(Numeric(10, 2), nullable=False)

    order = relationship("ServiceOrder", back_populates="items")
    service = relationship("Service")
