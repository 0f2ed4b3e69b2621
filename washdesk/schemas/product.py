# washdesk/schemas/product.py
from pydantic import BaseModel
from decimal import Decimal


class LowStockOut(BaseModel):
    id: int
    name: str
    quantity: Decimal
    reorder_point: Decimal
    unit: str

    class Config:
        from_attributes = True
