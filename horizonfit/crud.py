# horizonfit/crud.py - persistence helpers for the normal plan
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, date, timezone
from typing import Optional, List, Dict, Any
import logging

from . import models, schemas
from .exceptions import PersistenceError, NotFoundError
from .zones import MAX_ZONE, weeks_required
from .compliance_logger import compliance_logger

logger = logging.getLogger(__name__)

# Functions marked "Does NOT commit" run inside a caller-owned transaction
# (see services.concurrency.run_in_transaction). The rest commit on their own.


# ==================== USER / PATIENT ====================

def get_user(db: Session, user_id: int) -> Optional[models.User]:
    """Get user by ID with error handling."""
    try:
        return db.query(models.User).filter(models.User.id == user_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching user {user_id}: {str(e)}")
        raise PersistenceError(f"Database error: {str(e)}")

def get_user_by_identifier(db: Session, identifier: str) -> Optional[models.User]:
    """Get user by username OR email."""
    try:
        return db.query(models.User).filter(
            (models.User.username == identifier) | (models.User.email == identifier)
        ).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching user by identifier '{identifier}': {str(e)}")
        raise PersistenceError(f"Database error: {str(e)}")

def get_users(db: Session, skip: int = 0, limit: int = 100) -> List[models.User]:
    try:
        return db.query(models.User).order_by(models.User.id).offset(skip).limit(limit).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching users: {str(e)}")
        raise PersistenceError(f"Database error: {str(e)}")

def create_user(db: Session, user: schemas.UserCreate, password_hash: str, now: Optional[datetime] = None) -> models.User:
    """Create a login; patient accounts are enrolled in zone 1 in the same commit."""
    try:
        db_user = models.User(
            username=user.username,
            email=user.email,
            full_name=user.full_name,
            mobile_number=user.mobile_number,
            role=user.role,
            password_hash=password_hash,
            is_active=True,
        )
        db.add(db_user)
        db.flush()
        if db_user.role == models.UserRole.patient:
            enroll_patient(db, db_user, now or datetime.now(timezone.utc))
        db.commit()
        db.refresh(db_user)
        logger.info(f"Created user {db_user.id} ({db_user.username}) with role {db_user.role.value}")
        return db_user
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating user '{user.username}': {e}")
        raise PersistenceError("A database error occurred while creating the user.")

def enroll_patient(db: Session, user: models.User, now: datetime) -> models.Patient:
    """Create the Patient row and unlock zone 1. Does NOT commit."""
    patient = models.Patient(
        user_id=user.id,
        current_zone=1,
        total_weeks_completed=0,
        program_completed=False,
        status=models.PatientStatus.active,
        program_start_date=now,
    )
    db.add(patient)
    db.flush()
    db.add(models.ZoneProgress(
        patient_id=patient.id,
        zone_number=1,
        is_unlocked=True,
        watched_video_ids=[],
        weeks_in_zone=0,
        started_at=now,
    ))
    db.flush()
    return patient

def get_patient(db: Session, patient_id: int) -> Optional[models.Patient]:
    try:
        return db.query(models.Patient).options(joinedload(models.Patient.user)).filter(models.Patient.id == patient_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching patient {patient_id}: {e}")
        raise PersistenceError("A database error occurred while fetching the patient.")

def require_patient(db: Session, patient_id: int) -> models.Patient:
    patient = get_patient(db, patient_id)
    if patient is None:
        raise NotFoundError(f"Patient {patient_id} not found")
    return patient

def get_patient_by_user_id(db: Session, user_id: int) -> Optional[models.Patient]:
    try:
        return db.query(models.Patient).filter(models.Patient.user_id == user_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching patient for user {user_id}: {e}")
        raise PersistenceError("A database error occurred while fetching the patient.")

def get_patients(db: Session, skip: int = 0, limit: int = 100, status: Optional[models.PatientStatus] = None) -> List[models.Patient]:
    try:
        query = db.query(models.Patient).options(joinedload(models.Patient.user))
        if status is not None:
            query = query.filter(models.Patient.status == status)
        return query.order_by(models.Patient.created_at.desc(), models.Patient.id.desc()).offset(skip).limit(limit).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching patients: {e}")
        raise PersistenceError("A database error occurred while fetching patients.")

def add_doctor_note(db: Session, patient_id: int, author_id: Optional[int], note: str) -> models.DoctorNote:
    """Does NOT commit."""
    db_note = models.DoctorNote(patient_id=patient_id, author_id=author_id, note=note)
    db.add(db_note)
    return db_note


# ==================== ZONE PROGRESS ====================

def get_zone_progress(db: Session, patient_id: int, zone_number: int) -> Optional[models.ZoneProgress]:
    return db.query(models.ZoneProgress).filter(
        models.ZoneProgress.patient_id == patient_id,
        models.ZoneProgress.zone_number == zone_number,
    ).first()

def get_zone_progress_for_patient(db: Session, patient_id: int) -> List[models.ZoneProgress]:
    try:
        return db.query(models.ZoneProgress).filter(
            models.ZoneProgress.patient_id == patient_id
        ).order_by(models.ZoneProgress.zone_number).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching zone progress for patient {patient_id}: {e}")
        raise PersistenceError("A database error occurred while fetching zone progress.")

def get_or_create_zone_progress(db: Session, patient_id: int, zone_number: int, now: datetime, **defaults) -> models.ZoneProgress:
    """
    Returns the (patient, zone) row, inserting it when absent.
    Does NOT commit. A concurrent insert surfaces as IntegrityError on flush,
    which the transaction runner retries; the retry then finds the row.
    """
    progress = get_zone_progress(db, patient_id, zone_number)
    if progress is not None:
        return progress
    values = {
        "is_unlocked": True,
        "is_completed": False,
        "videos_completed": False,
        "watched_video_ids": [],
        "weeks_in_zone": 0,
        "started_at": now,
    }
    values.update(defaults)
    progress = models.ZoneProgress(patient_id=patient_id, zone_number=zone_number, **values)
    db.add(progress)
    db.flush()
    return progress

def open_zone(db: Session, patient_id: int, zone_number: int, now: datetime, reset: bool) -> models.ZoneProgress:
    """
    Unlock a zone for the patient. With reset=True the row restarts from zero weeks
    (promotion); otherwise only the unlock and start date are touched (doctor override).
    Does NOT commit.
    """
    progress = get_or_create_zone_progress(db, patient_id, zone_number, now)
    progress.is_unlocked = True
    progress.started_at = now
    if reset:
        progress.weeks_in_zone = 0
        progress.is_completed = False
        progress.completed_at = None
    return progress

def raise_video_flags(db: Session, zone_number: int, patient_id: Optional[int] = None) -> List[models.ZoneProgress]:
    """
    Set videos_completed on the zone's rows whose watched list now covers every
    required active video (a zone with none is covered). The flag is never cleared.
    Does NOT commit. Returns the rows that changed.
    """
    required = {video.id for video in list_required_active_videos(db, zone_number)}
    query = db.query(models.ZoneProgress).filter(
        models.ZoneProgress.zone_number == zone_number,
        models.ZoneProgress.videos_completed.is_(False),
    )
    if patient_id is not None:
        query = query.filter(models.ZoneProgress.patient_id == patient_id)
    raised = []
    for progress in query.all():
        if required <= set(progress.watched_video_ids or []):
            progress.videos_completed = True
            raised.append(progress)
    return raised


# ==================== ZONE VIDEOS ====================

def get_zone_video(db: Session, video_id: int) -> Optional[models.ZoneVideo]:
    try:
        return db.query(models.ZoneVideo).filter(models.ZoneVideo.id == video_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching zone video {video_id}: {e}")
        raise PersistenceError("A database error occurred while fetching the video.")

def list_zone_videos(db: Session, zone_number: Optional[int] = None, active_only: bool = True) -> List[models.ZoneVideo]:
    try:
        query = db.query(models.ZoneVideo)
        if zone_number is not None:
            query = query.filter(models.ZoneVideo.zone_number == zone_number)
        if active_only:
            query = query.filter(models.ZoneVideo.is_active.is_(True))
        return query.order_by(models.ZoneVideo.zone_number, models.ZoneVideo.order, models.ZoneVideo.id).all()
    except SQLAlchemyError as e:
        logger.error(f"Error listing zone videos: {e}")
        raise PersistenceError("A database error occurred while listing videos.")

def list_required_active_videos(db: Session, zone_number: Optional[int] = None) -> List[models.ZoneVideo]:
    """Required and active videos for a zone, or for every zone when zone_number is None."""
    try:
        query = db.query(models.ZoneVideo).filter(
            models.ZoneVideo.is_required.is_(True),
            models.ZoneVideo.is_active.is_(True),
        )
        if zone_number is not None:
            query = query.filter(models.ZoneVideo.zone_number == zone_number)
        return query.order_by(models.ZoneVideo.zone_number, models.ZoneVideo.order, models.ZoneVideo.id).all()
    except SQLAlchemyError as e:
        logger.error(f"Error listing required videos for zone {zone_number}: {e}")
        raise PersistenceError("A database error occurred while listing required videos.")

def create_zone_video(db: Session, video: schemas.ZoneVideoCreate, actor: Optional[models.User] = None) -> models.ZoneVideo:
    try:
        db_video = models.ZoneVideo(**video.dict(), is_active=True)
        if db_video.duration is None and db_video.pdf_url and not db_video.video_url:
            db_video.duration = "N/A"
        db.add(db_video)
        db.flush()
        compliance_logger.record(
            db, models.AuditAction.CREATE, "ZONE_VIDEO", user=actor,
            resource_type="zone_video", resource_id=db_video.id,
            details=f"Created zone {db_video.zone_number} video '{db_video.title}'",
        )
        db.commit()
        db.refresh(db_video)
        return db_video
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating zone video: {e}")
        raise PersistenceError("A database error occurred while creating the video.")

def update_zone_video(db: Session, video_id: int, video_update: schemas.ZoneVideoUpdate, actor: Optional[models.User] = None) -> models.ZoneVideo:
    db_video = get_zone_video(db, video_id)
    if db_video is None:
        raise NotFoundError("Video not found")
    try:
        previous_zone = db_video.zone_number
        update_data = video_update.dict(exclude_unset=True)
        for key, value in update_data.items():
            setattr(db_video, key, value)
        db.flush()
        # Dropping a requirement or moving the video out can complete the old zone
        raise_video_flags(db, previous_zone)
        compliance_logger.record(
            db, models.AuditAction.UPDATE, "ZONE_VIDEO", user=actor,
            resource_type="zone_video", resource_id=video_id, new_values=jsonable(update_data),
        )
        db.commit()
        db.refresh(db_video)
        return db_video
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating zone video {video_id}: {e}")
        raise PersistenceError("A database error occurred while updating the video.")

def deactivate_zone_video(db: Session, video_id: int, actor: Optional[models.User] = None) -> models.ZoneVideo:
    """Videos are soft-deleted so existing watch history keeps its references."""
    db_video = get_zone_video(db, video_id)
    if db_video is None:
        raise NotFoundError("Video not found")
    try:
        db_video.is_active = False
        db.flush()
        raise_video_flags(db, db_video.zone_number)
        compliance_logger.record(
            db, models.AuditAction.DELETE, "ZONE_VIDEO", user=actor,
            resource_type="zone_video", resource_id=video_id,
            details=f"Deactivated video '{db_video.title}'",
        )
        db.commit()
        db.refresh(db_video)
        return db_video
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deactivating zone video {video_id}: {e}")
        raise PersistenceError("A database error occurred while deleting the video.")


# ==================== BODY METRICS ====================

def get_latest_metrics_entry(db: Session, patient_id: int) -> Optional[models.BodyMetricsEntry]:
    return db.query(models.BodyMetricsEntry).filter(
        models.BodyMetricsEntry.patient_id == patient_id
    ).order_by(models.BodyMetricsEntry.date_recorded.desc(), models.BodyMetricsEntry.id.desc()).first()

def get_latest_metric_value(db: Session, patient_id: int, metric_type: models.MetricType) -> Optional[float]:
    entry = db.query(models.BodyMetricsEntry).filter(
        models.BodyMetricsEntry.patient_id == patient_id,
        models.BodyMetricsEntry.metric_type == metric_type,
    ).order_by(models.BodyMetricsEntry.date_recorded.desc(), models.BodyMetricsEntry.id.desc()).first()
    return entry.value if entry else None

def get_latest_metrics_snapshot(db: Session, patient_id: int) -> Optional[schemas.MetricsSnapshot]:
    """The three values of the most recent submission (entries share one timestamp)."""
    latest = get_latest_metrics_entry(db, patient_id)
    if latest is None:
        return None
    entries = db.query(models.BodyMetricsEntry).filter(
        models.BodyMetricsEntry.patient_id == patient_id,
        models.BodyMetricsEntry.date_recorded == latest.date_recorded,
    ).all()
    values = {entry.metric_type.value: entry.value for entry in entries}
    return schemas.MetricsSnapshot(date_recorded=latest.date_recorded, **values)

def add_body_metrics(db: Session, patient_id: int, values: Dict[models.MetricType, float], recorded_at: datetime) -> List[models.BodyMetricsEntry]:
    """One append-only row per measured quantity, all stamped identically. Does NOT commit."""
    entries = []
    for metric_type, value in values.items():
        entry = models.BodyMetricsEntry(
            patient_id=patient_id,
            metric_type=metric_type,
            value=float(value),
            unit=metric_type.unit,
            date_recorded=recorded_at,
        )
        db.add(entry)
        entries.append(entry)
    return entries

def get_metrics_history(db: Session, patient_id: int, since: Optional[datetime] = None) -> List[models.BodyMetricsEntry]:
    try:
        query = db.query(models.BodyMetricsEntry).filter(models.BodyMetricsEntry.patient_id == patient_id)
        if since is not None:
            query = query.filter(models.BodyMetricsEntry.date_recorded >= since)
        return query.order_by(models.BodyMetricsEntry.date_recorded.desc(), models.BodyMetricsEntry.id).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching metrics history for patient {patient_id}: {e}")
        raise PersistenceError("A database error occurred while fetching metrics.")


# ==================== RECOMMENDATIONS ====================

def get_recommendations(db: Session, patient_id: int) -> Optional[models.RecommendationsCache]:
    return db.query(models.RecommendationsCache).filter(models.RecommendationsCache.patient_id == patient_id).first()

def replace_recommendations(db: Session, patient_id: int, recommendations: Dict[str, Any], metrics_recorded_at: datetime, now: datetime) -> models.RecommendationsCache:
    """Overwrite every computed field of the patient's cache row. Does NOT commit."""
    cache = get_recommendations(db, patient_id)
    if cache is None:
        cache = models.RecommendationsCache(patient_id=patient_id)
        db.add(cache)
    for key, value in recommendations.items():
        setattr(cache, key, value)
    cache.metrics_recorded_at = metrics_recorded_at
    cache.calculated_at = now
    return cache

def get_recommendation_override(db: Session, patient_id: int) -> Optional[models.RecommendationOverride]:
    return db.query(models.RecommendationOverride).filter(models.RecommendationOverride.patient_id == patient_id).first()

def upsert_recommendation_override(db: Session, patient_id: int, overrides: Dict[str, Any], updated_by: Optional[int]) -> models.RecommendationOverride:
    """Field-level patch: only the keys present in `overrides` change. Does NOT commit."""
    db_override = get_recommendation_override(db, patient_id)
    if db_override is None:
        db_override = models.RecommendationOverride(patient_id=patient_id)
        db.add(db_override)
    for key, value in overrides.items():
        setattr(db_override, key, value)
    db_override.updated_by = updated_by
    return db_override


# ==================== WEEKLY LOGS ====================

def add_weekly_log(db: Session, patient_id: int, zone_number: int, week_number: int, log_data: schemas.WeeklyLogCreate, submitted_at: datetime) -> models.WeeklyLog:
    """Does NOT commit."""
    db_log = models.WeeklyLog(
        patient_id=patient_id,
        zone_number=zone_number,
        week_number=week_number,
        metrics=log_data.metrics,
        compliance=log_data.compliance,
        completed_tasks=log_data.completed_tasks,
        total_tasks=log_data.total_tasks,
        notes=log_data.notes,
        submitted_at=submitted_at,
    )
    db.add(db_log)
    return db_log

def get_weekly_logs(db: Session, patient_id: int, limit: Optional[int] = None) -> List[models.WeeklyLog]:
    try:
        query = db.query(models.WeeklyLog).filter(
            models.WeeklyLog.patient_id == patient_id
        ).order_by(models.WeeklyLog.submitted_at.desc(), models.WeeklyLog.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching weekly logs for patient {patient_id}: {e}")
        raise PersistenceError("A database error occurred while fetching weekly logs.")


# ==================== DIY TASKS ====================

def get_diy_task(db: Session, task_id: int) -> Optional[models.DIYTaskTemplate]:
    return db.query(models.DIYTaskTemplate).filter(models.DIYTaskTemplate.id == task_id).first()

def list_diy_tasks(db: Session, zone_number: Optional[int] = None, active_only: bool = False) -> List[models.DIYTaskTemplate]:
    try:
        query = db.query(models.DIYTaskTemplate)
        if zone_number is not None:
            query = query.filter(models.DIYTaskTemplate.zone_number == zone_number)
        if active_only:
            query = query.filter(models.DIYTaskTemplate.is_active.is_(True))
        return query.order_by(models.DIYTaskTemplate.zone_number, models.DIYTaskTemplate.order, models.DIYTaskTemplate.id).all()
    except SQLAlchemyError as e:
        logger.error(f"Error listing DIY tasks: {e}")
        raise PersistenceError("A database error occurred while listing tasks.")

def create_diy_task(db: Session, task: schemas.DIYTaskTemplateCreate, actor: Optional[models.User] = None) -> models.DIYTaskTemplate:
    try:
        db_task = models.DIYTaskTemplate(**task.dict(), is_active=True)
        db.add(db_task)
        db.flush()
        compliance_logger.record(
            db, models.AuditAction.CREATE, "DIY_TASK", user=actor,
            resource_type="diy_task", resource_id=db_task.id,
            details=f"Created zone {db_task.zone_number} task '{db_task.title}'",
        )
        db.commit()
        db.refresh(db_task)
        return db_task
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating DIY task: {e}")
        raise PersistenceError("A database error occurred while creating the task.")

def update_diy_task(db: Session, task_id: int, task_update: schemas.DIYTaskTemplateUpdate, actor: Optional[models.User] = None) -> models.DIYTaskTemplate:
    db_task = get_diy_task(db, task_id)
    if db_task is None:
        raise NotFoundError("Task not found")
    try:
        update_data = task_update.dict(exclude_unset=True)
        for key, value in update_data.items():
            setattr(db_task, key, value)
        compliance_logger.record(
            db, models.AuditAction.UPDATE, "DIY_TASK", user=actor,
            resource_type="diy_task", resource_id=task_id, new_values=jsonable(update_data),
        )
        db.commit()
        db.refresh(db_task)
        return db_task
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating DIY task {task_id}: {e}")
        raise PersistenceError("A database error occurred while updating the task.")

def delete_diy_task(db: Session, task_id: int, actor: Optional[models.User] = None) -> bool:
    db_task = get_diy_task(db, task_id)
    if db_task is None:
        return False
    try:
        db.delete(db_task)
        compliance_logger.record(
            db, models.AuditAction.DELETE, "DIY_TASK", user=actor,
            resource_type="diy_task", resource_id=task_id,
            details=f"Deleted task '{db_task.title}'",
        )
        db.commit()
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting DIY task {task_id}: {e}")
        raise PersistenceError("A database error occurred while deleting the task.")


# ==================== DAILY LOGS ====================

def get_daily_log(db: Session, patient_id: int, log_date: date) -> Optional[models.DailyLog]:
    return db.query(models.DailyLog).filter(
        models.DailyLog.patient_id == patient_id,
        models.DailyLog.log_date == log_date,
    ).first()

def get_daily_logs_since(db: Session, patient_id: int, since: date) -> List[models.DailyLog]:
    try:
        return db.query(models.DailyLog).filter(
            models.DailyLog.patient_id == patient_id,
            models.DailyLog.log_date >= since,
        ).order_by(models.DailyLog.log_date.desc()).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching daily logs for patient {patient_id}: {e}")
        raise PersistenceError("A database error occurred while fetching daily logs.")

def get_last_daily_log(db: Session, patient_id: int) -> Optional[models.DailyLog]:
    return db.query(models.DailyLog).filter(
        models.DailyLog.patient_id == patient_id
    ).order_by(models.DailyLog.log_date.desc()).first()


# ==================== AUDIT LOGS ====================

def get_audit_logs(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    user_id: Optional[int] = None,
    category: Optional[str] = None,
    action: Optional[models.AuditAction] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
) -> List[models.AuditLog]:
    try:
        query = db.query(models.AuditLog)
        if resource_type:
            query = query.filter(models.AuditLog.resource_type == resource_type)
        if resource_id is not None:
            query = query.filter(models.AuditLog.resource_id == resource_id)
        if user_id is not None:
            query = query.filter(models.AuditLog.user_id == user_id)
        if category:
            query = query.filter(models.AuditLog.category == category)
        if action is not None:
            query = query.filter(models.AuditLog.action == action)
        if start_date:
            query = query.filter(models.AuditLog.timestamp >= datetime.combine(start_date, datetime.min.time()))
        if end_date:
            query = query.filter(models.AuditLog.timestamp <= datetime.combine(end_date, datetime.max.time()))
        return query.order_by(models.AuditLog.timestamp.desc(), models.AuditLog.id.desc()).offset(skip).limit(limit).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching audit logs: {e}")
        raise PersistenceError("A database error occurred while fetching audit logs.")


# ==================== HEALTH CHECK FUNCTIONS ====================

def run_consistency_checks(db: Session) -> Dict[str, Any]:
    """Reports zone-progress rows that break the progression invariants."""
    report = {
        "checked_at": datetime.now(timezone.utc),
        "zone_out_of_range": [],
        "current_zone_out_of_range": [],
        "video_flag_mismatches": [],
        "premature_completions": [],
    }

    # Check 1: progress rows outside 1..MAX_ZONE
    for progress in db.query(models.ZoneProgress).filter(
        (models.ZoneProgress.zone_number < 1) | (models.ZoneProgress.zone_number > MAX_ZONE)
    ).all():
        report["zone_out_of_range"].append({
            "patient_id": progress.patient_id,
            "zone_number": progress.zone_number,
            "issue": f"Zone progress row for zone {progress.zone_number} is outside 1..{MAX_ZONE}.",
        })

    # Check 2: patients whose current zone is outside 1..MAX_ZONE
    for patient in db.query(models.Patient).filter(
        (models.Patient.current_zone < 1) | (models.Patient.current_zone > MAX_ZONE)
    ).all():
        report["current_zone_out_of_range"].append({
            "patient_id": patient.id,
            "zone_number": patient.current_zone,
            "issue": f"Patient current zone {patient.current_zone} is outside 1..{MAX_ZONE}.",
        })

    # Check 3: every required video watched (or none required) but the flag is down
    required_by_zone: Dict[int, set] = {}
    for video in list_required_active_videos(db):
        required_by_zone.setdefault(video.zone_number, set()).add(video.id)
    for progress in db.query(models.ZoneProgress).filter(models.ZoneProgress.videos_completed.is_(False)).all():
        required = required_by_zone.get(progress.zone_number, set())
        watched = set(progress.watched_video_ids or [])
        if required <= watched:
            report["video_flag_mismatches"].append({
                "patient_id": progress.patient_id,
                "zone_number": progress.zone_number,
                "issue": "All required videos are watched but videos_completed is false.",
            })

    # Check 4: zones marked complete before the weekly requirement was met
    for progress in db.query(models.ZoneProgress).filter(models.ZoneProgress.is_completed.is_(True)).all():
        if 1 <= progress.zone_number <= MAX_ZONE and progress.weeks_in_zone < weeks_required(progress.zone_number):
            report["premature_completions"].append({
                "patient_id": progress.patient_id,
                "zone_number": progress.zone_number,
                "issue": f"Zone completed with {progress.weeks_in_zone} of {weeks_required(progress.zone_number)} weeks logged.",
            })

    return report


def jsonable(values: Dict[str, Any]) -> Dict[str, Any]:
    """Enum members to their values so the dict fits a JSON column."""
    return {key: getattr(value, "value", value) for key, value in values.items()}
