# horizonfit/routers/doctor.py - patient monitoring and overrides for doctors
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import schemas, security, models
from ..database import get_db
from ..services import doctor_service

router = APIRouter(
    prefix="/doctor",
    tags=["Doctor"],
    dependencies=[Depends(security.require_doctor)],
    responses={404: {"description": "Not found"}},
)


@router.get("/patients", response_model=List[schemas.PatientSummary])
def read_patients(
    skip: int = 0,
    limit: int = Query(100, ge=1, le=500),
    patient_status: Optional[models.PatientStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    """Patients with zone, weeks, compliance rate and recent activity."""
    return doctor_service.list_patient_summaries(db, skip=skip, limit=limit, status=patient_status)

@router.get("/patients/{patient_id}", response_model=schemas.PatientDetail)
def read_patient_detail(patient_id: int, db: Session = Depends(get_db)):
    return doctor_service.get_patient_detail(db, patient_id)

@router.get("/patients/{patient_id}/trends", response_model=schemas.PatientTrends)
def read_patient_trends(
    patient_id: int,
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db)
):
    return doctor_service.patient_trends(db, patient_id, days=days)

@router.put("/patients/{patient_id}/status", response_model=schemas.PatientResponse)
def update_patient_status(
    patient_id: int,
    status_update: schemas.PatientStatusUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.require_doctor)
):
    return doctor_service.update_status(db, patient_id, status_update, actor=current_user)

@router.post("/patients/{patient_id}/notes", response_model=schemas.DoctorNoteResponse, status_code=status.HTTP_201_CREATED)
def add_doctor_note(
    patient_id: int,
    note: schemas.DoctorNoteCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.require_doctor)
):
    return doctor_service.add_note(db, patient_id, note, actor=current_user)

@router.put("/patients/{patient_id}/zone", response_model=schemas.PatientResponse)
def override_patient_zone(
    patient_id: int,
    zone_override: schemas.ZoneOverride,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.require_doctor)
):
    """Move a patient to another zone. The reason is kept as a doctor note."""
    return doctor_service.override_zone(db, patient_id, zone_override, actor=current_user)

@router.put("/patients/{patient_id}/recommendations", response_model=schemas.RecommendationOverrideResult)
def override_patient_recommendations(
    patient_id: int,
    overrides: schemas.RecommendationOverrideUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.require_doctor)
):
    return doctor_service.override_recommendations(db, patient_id, overrides, actor=current_user)

@router.get("/reports/daily-activity", response_model=schemas.DailyActivityReport)
def read_daily_activity_report(db: Session = Depends(get_db)):
    return doctor_service.daily_activity_report(db)
