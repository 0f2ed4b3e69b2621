# washdesk/routers/appointments.py
"""Staff-side appointment endpoints. Marking IN_PROGRESS opens the service order."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from washdesk.database import get_db
from washdesk.schemas.appointment import AppointmentOut, AppointmentStatusUpdate
from washdesk.services import appointment_service
from washdesk.utils.tenant import TenantContext, get_tenant_context

router = APIRouter()


@router.get("/appointments", response_model=list[AppointmentOut], summary="List appointments")
def list_appointments(status: Optional[str] = None, ctx: TenantContext = Depends(get_tenant_context),
                      db: Session = Depends(get_db)):
    """Appointments of the caller's wash business, soonest first. Filter by status."""
    return appointment_service.list_appointments(db, ctx.tenant_id, status)


@router.get("/appointments/{appointment_id}", response_model=AppointmentOut)
def get_appointment(appointment_id: int, ctx: TenantContext = Depends(get_tenant_context),
                    db: Session = Depends(get_db)):
    return appointment_service.get_appointment(db, ctx.tenant_id, appointment_id)


@router.patch("/appointments/{appointment_id}", response_model=AppointmentOut,
              summary="Confirm, cancel or start an appointment")
def update_appointment(appointment_id: int, body: AppointmentStatusUpdate,
                       ctx: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    return appointment_service.update_status(db, ctx.tenant_id, appointment_id, body.status, body.cancel_reason)
