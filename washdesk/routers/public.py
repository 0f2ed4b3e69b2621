# washdesk/routers/public.py
"""Customer-facing booking endpoint (customer session, no tenant session)."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from washdesk.database import get_db
from washdesk.schemas.appointment import AppointmentCreate, AppointmentOut
from washdesk.services import appointment_service
from washdesk.utils.tenant import get_customer_account_id

router = APIRouter()


@router.post("/public/appointments", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED,
             summary="Book an appointment at a wash business")
def book_appointment(body: AppointmentCreate, account_id: int = Depends(get_customer_account_id),
                     db: Session = Depends(get_db)):
    return appointment_service.book(
        db, account_id,
        tenant_id=body.tenant_id,
        vehicle_id=body.vehicle_id,
        service_ids=body.service_ids,
        scheduled_at=body.scheduled_at,
        notes=body.notes,
    )
