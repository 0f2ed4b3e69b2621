# washdesk/models/appointment.py
"""
Appointments booked by end customers against one tenant's catalog.
Status moves independently of service orders, except that
order_state_machine pushes IN_PROGRESS / COMPLETED back onto it.
"""

import enum
from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Text
from sqlalchemy.orm import relationship
from washdesk.database import Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    account_customer_id = Column(Integer, ForeignKey("account_customers.id"), nullable=False, index=True)
    account_vehicle_id = Column(Integer, ForeignKey("account_vehicles.id"), nullable=False)
    scheduled_at = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), default=AppointmentStatus.PENDING.value, nullable=False, index=True)
    estimated_total = Column(Numeric(10, 2), default=0, nullable=False)
    notes = Column(Text)
    cancel_reason = Column(Text)
    linked_order_id = Column(Integer, ForeignKey("service_orders.id", use_alter=True), unique=True)
    created_at = Column(DateTime)

    customer = relationship("AccountCustomer")
    vehicle = relationship("AccountVehicle")
    items = relationship("AppointmentItem", back_populates="appointment",
                         cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Appointment {self.id} tenant={self.tenant_id} status={self.status}>"


class AppointmentItem(Base):
    __tablename__ = "appointment_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    price_at_booking = Column(Numeric(10, 2), nullable=False)

    appointment = relationship("Appointment", back_populates="items")
    service = relationship("Service")
