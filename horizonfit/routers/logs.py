# horizonfit/routers/logs.py - audit trail for administrators
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from .. import crud, schemas, models
from ..database import get_db
from ..security import require_admin

router = APIRouter(
    prefix="/logs",
    tags=["Logs"],
    dependencies=[Depends(require_admin)],
    responses={404: {"description": "Not found"}},
)

@router.get("", response_model=List[schemas.AuditLogResponse])
def read_audit_logs(
    skip: int = 0,
    limit: int = Query(100, ge=1, le=1000),
    user_id: Optional[int] = None,
    category: Optional[str] = None,
    action: Optional[models.AuditAction] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db)
):
    """Newest first. `category` is e.g. PROGRESSION, METRICS, ZONE_VIDEO."""
    return crud.get_audit_logs(
        db, skip=skip, limit=limit, user_id=user_id, category=category,
        action=action, start_date=start_date, end_date=end_date
    )

@router.get("/patients/{patient_id}", response_model=List[schemas.AuditLogResponse])
def read_patient_audit_trail(
    patient_id: int,
    action: Optional[models.AuditAction] = None,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    """Promotions, overrides and metrics submissions recorded against one patient."""
    crud.require_patient(db, patient_id)
    return crud.get_audit_logs(
        db, limit=limit, action=action, resource_type="patient", resource_id=patient_id
    )
