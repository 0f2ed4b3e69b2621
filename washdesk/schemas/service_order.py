# washdesk/schemas/service_order.py
from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional


class OrderItemOut(BaseModel):
    service_id: int
    price_snapshot: Decimal

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: int
    tenant_id: int
    sequential_code: int
    customer_id: int
    vehicle_id: int
    status: str
    total: Decimal
    observations: Optional[str]
    checklist: Optional[str]
    entered_at: datetime
    estimated_ready_at: Optional[datetime]
    completed_at: Optional[datetime]
    linked_appointment_id: Optional[int]
    items: list[OrderItemOut] = []

    class Config:
        from_attributes = True


class OrderCreate(BaseModel):
    customer_id: int
    vehicle_id: int
    service_ids: list[int]
    observations: Optional[str] = None
    checklist: Optional[Any] = None
    estimated_ready_at: Optional[datetime] = None


class OrderPatch(BaseModel):
    status: Optional[str] = None
    observations: Optional[str] = None
    checklist: Optional[Any] = None
    estimated_ready_at: Optional[datetime] = None
