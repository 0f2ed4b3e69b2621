# washdesk/routers/customers.py
"""Loyalty card + guarded delete endpoints for customers and vehicles."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from washdesk.database import get_db
from washdesk.models.tenant import Tenant
from washdesk.schemas.loyalty import LoyaltyAction, LoyaltyOut
from washdesk.services import customer_service, loyalty_service
from washdesk.services.errors import NotFound
from washdesk.utils.tenant import TenantContext, get_tenant_context

router = APIRouter()


def _tenant(db: Session, ctx: TenantContext) -> Tenant:
    tenant = db.query(Tenant).filter(Tenant.id == ctx.tenant_id).first()
    if not tenant:
        raise NotFound("Wash business not found")
    return tenant


def _out(result: loyalty_service.LoyaltyResult) -> LoyaltyOut:
    return LoyaltyOut(points=result.points, stamps=result.stamps, goal=result.goal,
                      rewards_available=result.rewards_available,
                      completed=result.completed, message=result.message)


@router.get("/customers/{customer_id}/loyalty", response_model=LoyaltyOut, summary="Loyalty card status")
def loyalty_status(customer_id: int, ctx: TenantContext = Depends(get_tenant_context),
                   db: Session = Depends(get_db)):
    return _out(loyalty_service.status(db, _tenant(db, ctx), customer_id))


@router.post("/customers/{customer_id}/loyalty", response_model=LoyaltyOut, summary="Add or redeem a stamp")
def loyalty_action(customer_id: int, body: LoyaltyAction, ctx: TenantContext = Depends(get_tenant_context),
                   db: Session = Depends(get_db)):
    tenant = _tenant(db, ctx)
    if body.action == "add":
        return _out(loyalty_service.add_stamp(db, tenant, customer_id))
    return _out(loyalty_service.redeem(db, tenant, customer_id))


@router.delete("/customers/{customer_id}", summary="Delete a customer without orders")
def delete_customer(customer_id: int, ctx: TenantContext = Depends(get_tenant_context),
                    db: Session = Depends(get_db)):
    customer_service.delete_customer(db, ctx.tenant_id, customer_id)
    return {"id": customer_id, "status": "deleted"}


@router.delete("/vehicles/{vehicle_id}", summary="Delete a vehicle without orders")
def delete_vehicle(vehicle_id: int, ctx: TenantContext = Depends(get_tenant_context),
                   db: Session = Depends(get_db)):
    customer_service.delete_vehicle(db, ctx.tenant_id, vehicle_id)
    return {"id": vehicle_id, "status": "deleted"}


@router.get("/vehicles/lookup/{plate}", summary="Look up a plate number")
def lookup_vehicle(plate: str, ctx: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    vehicle = customer_service.lookup_vehicle_by_plate(db, ctx.tenant_id, plate)
    if not vehicle:
        return {"plate": plate, "status": "unknown", "registered": False}
    return {"plate": vehicle.plate, "status": "known", "registered": True,
            "vehicle_id": vehicle.id, "customer_id": vehicle.customer_id, "model": vehicle.description}
