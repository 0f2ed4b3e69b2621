# washdesk/models/vehicle.py
"""
Tenant-scoped vehicles. Plate is unique within a tenant and is the
dedup key used by the appointment converter.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from washdesk.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"
    __table_args__ = (
        UniqueConstraint("tenant_id", "plate", name="uq_vehicles_tenant_plate"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    plate = Column(String(20), nullable=False, index=True)
    model = Column(String(120), nullable=False)
    color = Column(String(50))
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    created_at = Column(DateTime)

    customer = relationship("Customer")

    @property
    def description(self) -> str:
        return f"{self.model} {self.color or ''}".strip()

    def __repr__(self):
        return f"<Vehicle {self.plate} tenant={self.tenant_id} customer={self.customer_id}>"
