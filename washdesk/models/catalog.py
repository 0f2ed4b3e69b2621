# washdesk/models/catalog.py
"""
Catalog tables: services offered by a tenant, products kept in stock,
and the per-service consumption recipe linking the two.

Product.quantity is only decremented through inventory_service (atomic
UPDATE); it may go negative when stock was not registered in time.
"""

from sqlalchemy import Column, Integer, String, Numeric, Boolean, ForeignKey, Text
from sqlalchemy.orm import relationship
from washdesk.database import Base


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)
    estimated_minutes = Column(Integer)
    active = Column(Boolean, default=True, nullable=False)

    consumption = relationship("ServiceConsumption", back_populates="service",
                               cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Service {self.id} name={self.name} price={self.price}>"


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    quantity = Column(Numeric(12, 3), default=0, nullable=False)
    reorder_point = Column(Numeric(12, 3), default=0, nullable=False)
    unit = Column(String(20), default="un", nullable=False)   # un | L | ml | kg
    cost_per_unit = Column(Numeric(10, 2), default=0, nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Product {self.id} name={self.name} qty={self.quantity}{self.unit}>"


class ServiceConsumption(Base):
    __tablename__ = "service_consumption"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Numeric(12, 3), nullable=False)

    service = relationship("Service", back_populates="consumption")
    product = relationship("Product")

    def __repr__(self):
        return f"<ServiceConsumption service={self.service_id} product={self.product_id} qty={self.quantity}>"
