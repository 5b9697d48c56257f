# horizonfit/routers/normal_plan.py - patient-facing zone progression endpoints
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import crud, schemas, security, models
from ..database import get_db
from ..exceptions import ValidationError
from ..zones import is_valid_zone, MAX_ZONE
from ..services import (
    daily_log_service,
    metrics_gate,
    progress_service,
    video_gate,
    weekly_log_service,
)

router = APIRouter(
    prefix="/normal-plan",
    tags=["Normal Plan"],
    dependencies=[Depends(security.get_current_patient)],
    responses={404: {"description": "Not found"}},
)


# ==================== PROGRESS ====================

@router.get("/progress", response_model=schemas.ProgressView)
def read_progress(
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    """Zones, videos, tasks, metrics and recommendations in one view."""
    return progress_service.get_progress(db, patient.id)


# ==================== VIDEOS ====================

@router.get("/zones/{zone_number}/videos", response_model=List[schemas.ZoneVideoWithStatus])
def read_zone_videos(
    zone_number: int,
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    if not is_valid_zone(zone_number):
        raise ValidationError(f"Zone must be between 1 and {MAX_ZONE}")
    progress = crud.get_zone_progress(db, patient.id, zone_number)
    watched = set(progress.watched_video_ids or []) if progress else set()
    return [
        schemas.ZoneVideoWithStatus.model_validate(video).model_copy(update={"is_watched": video.id in watched})
        for video in crud.list_zone_videos(db, zone_number=zone_number)
    ]

@router.post("/videos/{video_id}/watched", response_model=schemas.VideoWatchResult)
def mark_video_watched(
    video_id: int,
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    return video_gate.mark_watched(db, patient.id, video_id)

@router.get("/check-videos", response_model=schemas.VideoCompletionStatus)
def check_videos(
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    """Whether the current zone's required videos are done."""
    eligibility = metrics_gate.can_submit(db, patient.id)
    return schemas.VideoCompletionStatus(
        current_zone=patient.current_zone,
        videos_completed=video_gate.is_zone_videos_completed(db, patient.id, patient.current_zone),
        can_enter_metrics=eligibility.allowed,
    )


# ==================== BODY METRICS ====================

@router.get("/metrics/eligibility", response_model=schemas.MetricsEligibility)
def read_metrics_eligibility(
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    return metrics_gate.can_submit(db, patient.id)

@router.post("/metrics", response_model=schemas.MetricsResult, status_code=status.HTTP_201_CREATED)
def submit_metrics(
    metrics: schemas.MetricsSubmit,
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    """Weight, body fat and visceral fat, at most once every seven days."""
    return metrics_gate.submit(
        db, patient.id,
        weight=metrics.weight,
        body_fat_percentage=metrics.body_fat_percentage,
        visceral_fat=metrics.visceral_fat,
    )

@router.get("/metrics/history", response_model=List[schemas.BodyMetricsEntryResponse])
def read_metrics_history(
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    return crud.get_metrics_history(db, patient.id)

@router.get("/recommendations", response_model=Optional[schemas.Recommendations])
def read_recommendations(
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    return progress_service.current_recommendations(db, patient.id)


# ==================== WEEKLY LOGS ====================

@router.post("/weekly-log", response_model=schemas.WeeklyLogResult, status_code=status.HTTP_201_CREATED)
def submit_weekly_log(
    log_data: schemas.WeeklyLogCreate,
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    return weekly_log_service.submit_weekly_log(db, patient.id, log_data.zone_number, log_data)

@router.get("/weekly-logs", response_model=List[schemas.WeeklyLogResponse])
def read_weekly_logs(
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    return crud.get_weekly_logs(db, patient.id, limit=limit)


# ==================== DIY TASKS & DAILY LOGS ====================

@router.get("/diy-tasks", response_model=schemas.DIYTaskList)
def read_diy_tasks(
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    return daily_log_service.get_diy_tasks(db, patient.id)

@router.post("/daily-log", response_model=schemas.DailyLogSubmitResult)
def submit_daily_log(
    log_data: schemas.DailyLogCreate,
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    return daily_log_service.submit_daily_log(db, patient.id, log_data)

@router.get("/daily-log/today", response_model=Optional[schemas.DailyLogResponse])
def read_today_log(
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    return daily_log_service.get_today_log(db, patient.id)

@router.get("/daily-logs", response_model=List[schemas.DailyLogResponse])
def read_daily_logs(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    patient: models.Patient = Depends(security.get_current_patient)
):
    return daily_log_service.get_recent_logs(db, patient.id, days=days)
