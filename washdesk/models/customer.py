# washdesk/models/customer.py
"""
Tenant-scoped customers. Created through CRUD or lazily by the
appointment converter (dedup key: email OR phone within the tenant).
loyalty_points is only ever changed with atomic UPDATEs (loyalty_service).
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, CheckConstraint
from washdesk.database import Base


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (
        CheckConstraint("loyalty_points >= 0", name="ck_customers_points_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    phone = Column(String(40), nullable=False, index=True)
    email = Column(String(200), index=True)
    loyalty_points = Column(Integer, default=0, nullable=False)
    loyalty_member = Column(Boolean, default=True, nullable=False)
    monthly_plan = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<Customer {self.id} tenant={self.tenant_id} points={self.loyalty_points}>"
