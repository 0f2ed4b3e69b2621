# washdesk/routers/orders.py
"""
Service order endpoints used by the staff panel and the Kanban board.
PATCH drives the fulfillment state machine.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional
from washdesk.database import get_db
from washdesk.schemas.service_order import OrderCreate, OrderOut, OrderPatch
from washdesk.services import order_service, order_state_machine
from washdesk.utils.tenant import TenantContext, get_tenant_context, require_owner

router = APIRouter()


@router.get("/orders", response_model=list[OrderOut], summary="List service orders")
def list_orders(status: Optional[str] = None, limit: int = 100,
                ctx: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    if status:
        order_state_machine.parse_status(status)
    return order_service.list_orders(db, ctx.tenant_id, status=status, limit=limit)


@router.post("/orders", response_model=OrderOut, status_code=status.HTTP_201_CREATED,
             summary="Create a walk-in service order")
def create_order(body: OrderCreate, ctx: TenantContext = Depends(get_tenant_context),
                 db: Session = Depends(get_db)):
    return order_service.create_order(
        db, ctx.tenant_id,
        customer_id=body.customer_id,
        vehicle_id=body.vehicle_id,
        service_ids=body.service_ids,
        observations=body.observations,
        checklist=body.checklist,
        estimated_ready_at=body.estimated_ready_at,
    )


@router.get("/orders/{order_id}", response_model=OrderOut, summary="Get one service order")
def get_order(order_id: int, ctx: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    return order_service.get_order(db, ctx.tenant_id, order_id)


@router.patch("/orders/{order_id}", response_model=OrderOut, summary="Move an order on the Kanban")
def patch_order(order_id: int, body: OrderPatch, ctx: TenantContext = Depends(get_tenant_context),
                db: Session = Depends(get_db)):
    """
    Any target status is accepted. Stock, loyalty and customer messages are
    triggered only the first time the order enters FINISHING / READY / DELIVERED.
    """
    fields = body.model_dump(exclude_unset=True)
    new_status = fields.pop("status", None)
    outcome = order_state_machine.patch_order(db, ctx.tenant_id, order_id, new_status, **fields)
    return outcome.order


@router.delete("/orders/{order_id}", summary="Remove an order (owner only)")
def delete_order(order_id: int, ctx: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    require_owner(ctx)
    order_service.delete_order(db, ctx.tenant_id, order_id)
    return {"id": order_id, "status": "deleted"}
