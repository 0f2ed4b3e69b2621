# washdesk/schemas/appointment.py
from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional


class ServiceSummary(BaseModel):
    id: int
    name: str
    price: Decimal
    estimated_minutes: Optional[int]

    class Config:
        from_attributes = True


class AppointmentItemOut(BaseModel):
    service_id: int
    price_at_booking: Decimal
    service: Optional[ServiceSummary]

    class Config:
        from_attributes = True


class AccountCustomerSummary(BaseModel):
    id: int
    name: str
    email: Optional[str]
    phone: str

    class Config:
        from_attributes = True


class AccountVehicleSummary(BaseModel):
    id: int
    plate: str
    model: str
    color: Optional[str]

    class Config:
        from_attributes = True


class AppointmentOut(BaseModel):
    id: int
    tenant_id: int
    scheduled_at: datetime
    status: str
    estimated_total: Decimal
    notes: Optional[str]
    cancel_reason: Optional[str]
    linked_order_id: Optional[int]
    customer: Optional[AccountCustomerSummary]
    vehicle: Optional[AccountVehicleSummary]
    items: list[AppointmentItemOut] = []

    class Config:
        from_attributes = True


class AppointmentStatusUpdate(BaseModel):
    status: str
    cancel_reason: Optional[str] = None


class AppointmentCreate(BaseModel):
    tenant_id: int
    vehicle_id: int
    service_ids: list[int]
    scheduled_at: datetime
    notes: Optional[str] = None
