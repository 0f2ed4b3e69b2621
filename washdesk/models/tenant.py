# washdesk/models/tenant.py
"""
Tenants table — one row per wash business (operator).
Also holds the per-tenant loyalty settings and the order-code counter
used by order_service.next_sequential_code().
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from washdesk.database import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(120), unique=True, index=True)
    phone = Column(String(40))                        # receives stock alerts
    active = Column(Boolean, default=True, nullable=False)
    accepts_bookings = Column(Boolean, default=True, nullable=False)
    min_booking_lead_minutes = Column(Integer, default=60, nullable=False)
    loyalty_enabled = Column(Boolean, default=True, nullable=False)
    loyalty_goal = Column(Integer, default=10, nullable=False)   # stamps per free wash
    last_order_code = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<Tenant {self.id} name={self.name} active={self.active}>"
