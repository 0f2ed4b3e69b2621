# washdesk/models/account.py
"""
Cross-tenant end-customer accounts used by the public booking flow.
An account is not a tenant Customer; the appointment converter
materialises one per tenant when the car actually arrives.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from washdesk.database import Base


class AccountCustomer(Base):
    __tablename__ = "account_customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(200), unique=True, index=True)
    phone = Column(String(40), nullable=False)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<AccountCustomer {self.id} name={self.name}>"


class AccountVehicle(Base):
    __tablename__ = "account_vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_customer_id = Column(Integer, ForeignKey("account_customers.id"), nullable=False, index=True)
    plate = Column(String(20), nullable=False)
    model = Column(String(120), nullable=False)
    color = Column(String(50))

    owner = relationship("AccountCustomer")

    def __repr__(self):
        return f"<AccountVehicle {self.plate} owner={self.account_customer_id}>"
