# washdesk/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + messaging gateway configuration.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from washdesk.database import get_db
from washdesk.config import settings
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "notifications": "configured" if settings.WHATSAPP_API_URL and settings.WHATSAPP_API_KEY else "log-only",
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
