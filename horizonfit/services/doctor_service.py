# horizonfit/services/doctor_service.py - patient monitoring and doctor overrides
from datetime import datetime, timedelta
from typing import List, Optional

import structlog
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..compliance_logger import compliance_logger
from ..exceptions import ValidationError
from ..zones import MAX_ZONE, is_valid_zone
from .clock import utcnow
from .concurrency import run_in_transaction
from .progress_service import current_recommendations, get_progress
from .recommendations import round_half_up

logger = structlog.get_logger(__name__)

AT_RISK_DAYS = 3


def compliance_rate(weekly_logs: List[models.WeeklyLog]) -> int:
    """Mean compliance score over all weekly logs, 0 when there are none."""
    if not weekly_logs:
        return 0
    total = sum(log.compliance.score for log in weekly_logs)
    return round_half_up(total / len(weekly_logs))


def _days_since_daily_log(db: Session, patient_id: int, now: datetime) -> Optional[int]:
    last_log = crud.get_last_daily_log(db, patient_id)
    if last_log is None:
        return None
    return (now.date() - last_log.log_date).days


def build_summary(db: Session, patient: models.Patient, now: datetime) -> schemas.PatientSummary:
    weekly_logs = crud.get_weekly_logs(db, patient.id)
    user = patient.user
    return schemas.PatientSummary(
        id=patient.id,
        name=user.full_name or user.username,
        email=user.email,
        mobile=user.mobile_number,
        current_zone=patient.current_zone,
        total_weeks_completed=patient.total_weeks_completed,
        program_completed=patient.program_completed,
        status=patient.status,
        program_start_date=patient.program_start_date,
        last_log_date=patient.last_weekly_log_date,
        days_since_last_daily_log=_days_since_daily_log(db, patient.id, now),
        compliance_rate=compliance_rate(weekly_logs),
        latest_weight=crud.get_latest_metric_value(db, patient.id, models.MetricType.weight),
    )


def list_patient_summaries(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    status: Optional[models.PatientStatus] = None,
    now: Optional[datetime] = None,
) -> List[schemas.PatientSummary]:
    now = now or utcnow()
    return [build_summary(db, patient, now) for patient in crud.get_patients(db, skip=skip, limit=limit, status=status)]


def get_patient_detail(db: Session, patient_id: int, now: Optional[datetime] = None) -> schemas.PatientDetail:
    now = now or utcnow()
    progress = get_progress(db, patient_id, now)
    patient = crud.require_patient(db, patient_id)
    override = crud.get_recommendation_override(db, patient.id)
    return schemas.PatientDetail(
        patient=build_summary(db, patient, now),
        progress=progress,
        metrics_history=[schemas.BodyMetricsEntryResponse.model_validate(m) for m in crud.get_metrics_history(db, patient.id)],
        doctor_notes=[schemas.DoctorNoteResponse.model_validate(n) for n in patient.doctor_notes],
        recommendation_override=schemas.RecommendationOverrideUpdate.model_validate(override) if override else None,
    )


def daily_activity_report(db: Session, now: Optional[datetime] = None) -> schemas.DailyActivityReport:
    """Active patients only; at risk after three days without a daily log."""
    now = now or utcnow()
    today = now.date()
    entries = []
    for patient in crud.get_patients(db, limit=None, status=models.PatientStatus.active):
        today_log = crud.get_daily_log(db, patient.id, today)
        days_since = _days_since_daily_log(db, patient.id, now)
        entries.append(schemas.DailyActivityEntry(
            patient_id=patient.id,
            name=patient.user.full_name or patient.user.username,
            email=patient.user.email,
            current_zone=patient.current_zone,
            has_logged_today=today_log is not None,
            today_completed_tasks=len(today_log.completed_task_ids or []) if today_log else 0,
            days_since_last_log=days_since,
            is_at_risk=days_since is not None and days_since >= AT_RISK_DAYS,
        ))
    return schemas.DailyActivityReport(
        report_date=today,
        total_patients=len(entries),
        active_today=sum(1 for entry in entries if entry.has_logged_today),
        at_risk=sum(1 for entry in entries if entry.is_at_risk),
        patients=entries,
    )


def patient_trends(db: Session, patient_id: int, days: int = 30, now: Optional[datetime] = None) -> schemas.PatientTrends:
    now = now or utcnow()
    patient = crud.require_patient(db, patient_id)
    since = now - timedelta(days=days)

    points = {}
    for entry in crud.get_metrics_history(db, patient.id, since=since):
        point = points.setdefault(entry.date_recorded, {"date_recorded": entry.date_recorded})
        point[entry.metric_type.value] = entry.value
    metrics_history = [schemas.MetricsTrendPoint(**points[key]) for key in sorted(points)]

    daily_activity = [
        schemas.DailyActivityPoint(day=log.log_date, tasks_completed=len(log.completed_task_ids or []))
        for log in sorted(crud.get_daily_logs_since(db, patient.id, since.date()), key=lambda log: log.log_date)
    ]
    return schemas.PatientTrends(
        patient_id=patient.id,
        days=days,
        metrics_history=metrics_history,
        daily_activity=daily_activity,
    )


def override_zone(
    db: Session,
    patient_id: int,
    zone_override: schemas.ZoneOverride,
    actor: Optional[models.User] = None,
    now: Optional[datetime] = None,
) -> models.Patient:
    """Move the patient to any zone, recording the reason as a doctor note."""
    zone_number = zone_override.zone_number
    if not is_valid_zone(zone_number):
        raise ValidationError(f"Zone must be between 1 and {MAX_ZONE}")
    now = now or utcnow()

    def operation(session: Session) -> models.Patient:
        patient = crud.require_patient(session, patient_id)
        previous_zone = patient.current_zone
        patient.current_zone = zone_number
        patient.program_completed = False
        if patient.status == models.PatientStatus.completed:
            patient.status = models.PatientStatus.active
        crud.open_zone(session, patient.id, zone_number, now, reset=False)
        crud.add_doctor_note(
            session, patient.id, actor.id if actor else None,
            f"Zone manually changed to {zone_number}. Reason: {zone_override.reason}",
        )
        compliance_logger.record(
            session, models.AuditAction.ZONE_OVERRIDE, "PROGRESSION",
            user=actor, resource_type="patient", resource_id=patient.id,
            details=zone_override.reason,
            new_values={"from_zone": previous_zone, "to_zone": zone_number},
        )
        return patient

    patient = run_in_transaction(db, operation, "zone_override")
    logger.info("zone_override", patient_id=patient_id, zone_number=zone_number, by=actor.username if actor else None)
    return patient


def override_recommendations(
    db: Session,
    patient_id: int,
    update: schemas.RecommendationOverrideUpdate,
    actor: Optional[models.User] = None,
) -> schemas.RecommendationOverrideResult:
    """Patch the stored override. Only fields sent in the request change."""
    changes = update.model_dump(exclude_unset=True)

    def operation(session: Session) -> models.RecommendationOverride:
        patient = crud.require_patient(session, patient_id)
        db_override = crud.upsert_recommendation_override(session, patient.id, changes, actor.id if actor else None)
        compliance_logger.record(
            session, models.AuditAction.RECOMMENDATION_OVERRIDE, "RECOMMENDATIONS",
            user=actor, resource_type="patient", resource_id=patient.id, new_values=changes,
        )
        return db_override

    db_override = run_in_transaction(db, operation, "recommendation_override")
    return schemas.RecommendationOverrideResult(
        override=schemas.RecommendationOverrideUpdate.model_validate(db_override),
        recommendations=current_recommendations(db, patient_id),
    )


def update_status(
    db: Session,
    patient_id: int,
    status_update: schemas.PatientStatusUpdate,
    actor: Optional[models.User] = None,
) -> models.Patient:
    def operation(session: Session) -> models.Patient:
        patient = crud.require_patient(session, patient_id)
        patient.status = status_update.status
        if status_update.note:
            crud.add_doctor_note(session, patient.id, actor.id if actor else None, status_update.note)
        compliance_logger.record(
            session, models.AuditAction.UPDATE, "PATIENT",
            user=actor, resource_type="patient", resource_id=patient.id,
            new_values={"status": status_update.status.value},
        )
        return patient

    return run_in_transaction(db, operation, "status_update")


def add_note(db: Session, patient_id: int, note: schemas.DoctorNoteCreate, actor: Optional[models.User] = None) -> models.DoctorNote:
    def operation(session: Session) -> models.DoctorNote:
        patient = crud.require_patient(session, patient_id)
        db_note = crud.add_doctor_note(session, patient.id, actor.id if actor else None, note.note)
        session.flush()
        return db_note

    return run_in_transaction(db, operation, "doctor_note")
