# washdesk/routers/products.py
"""Stock read-outs fed by the inventory ledger."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from washdesk.database import get_db
from washdesk.schemas.product import LowStockOut
from washdesk.services import inventory_service, order_service
from washdesk.utils.tenant import TenantContext, get_tenant_context

router = APIRouter()


@router.get("/products/low-stock", response_model=list[LowStockOut], summary="Products to restock")
def get_low_stock(ctx: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    return inventory_service.low_stock(db, ctx.tenant_id)


@router.get("/orders/{order_id}/cost", summary="Product cost of an order")
def get_order_cost(order_id: int, ctx: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    order = order_service.get_order(db, ctx.tenant_id, order_id)
    cost = inventory_service.order_cost(db, order)
    return {"order_id": order.id, "sequential_code": order.sequential_code,
            "total": str(order.total), "product_cost": str(cost), "margin": str(order.total - cost)}
