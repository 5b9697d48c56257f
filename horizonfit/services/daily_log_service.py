# horizonfit/services/daily_log_service.py - DIY task checklist and daily logs
from datetime import date, datetime, timedelta
from typing import List, Optional

import structlog
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from .clock import utcnow
from .concurrency import run_in_transaction

logger = structlog.get_logger(__name__)


def _today(now: Optional[datetime]) -> date:
    return (now or utcnow()).date()


def get_diy_tasks(db: Session, patient_id: int, now: Optional[datetime] = None) -> schemas.DIYTaskList:
    """Active tasks of the current zone, flagged when ticked in today's log."""
    patient = crud.require_patient(db, patient_id)
    today_log = crud.get_daily_log(db, patient.id, _today(now))
    done = set(today_log.completed_task_ids or []) if today_log else set()
    tasks = [
        schemas.DIYTaskWithStatus.model_validate(task).model_copy(update={"is_completed": task.id in done})
        for task in crud.list_diy_tasks(db, zone_number=patient.current_zone, active_only=True)
    ]
    return schemas.DIYTaskList(current_zone=patient.current_zone, tasks=tasks)


def submit_daily_log(db: Session, patient_id: int, log_data: schemas.DailyLogCreate, now: Optional[datetime] = None) -> schemas.DailyLogSubmitResult:
    """One log per patient per UTC day; a second submission the same day replaces its contents."""
    log_date = _today(now)

    def operation(session: Session) -> schemas.DailyLogSubmitResult:
        patient = crud.require_patient(session, patient_id)
        db_log = crud.get_daily_log(session, patient.id, log_date)
        updated = db_log is not None
        if db_log is None:
            db_log = models.DailyLog(patient_id=patient.id, log_date=log_date)
            session.add(db_log)
        db_log.zone_number = patient.current_zone
        db_log.completed_task_ids = list(dict.fromkeys(log_data.completed_task_ids))
        db_log.notes = log_data.notes
        db_log.mood = log_data.mood
        session.flush()
        return schemas.DailyLogSubmitResult(log=schemas.DailyLogResponse.model_validate(db_log), updated=updated)

    result = run_in_transaction(db, operation, "daily_log_submit")
    logger.info(
        "daily_log_submitted",
        patient_id=patient_id,
        log_date=log_date.isoformat(),
        completed_tasks=len(result.log.completed_task_ids),
        updated=result.updated,
    )
    return result


def get_today_log(db: Session, patient_id: int, now: Optional[datetime] = None) -> Optional[models.DailyLog]:
    crud.require_patient(db, patient_id)
    return crud.get_daily_log(db, patient_id, _today(now))


def get_recent_logs(db: Session, patient_id: int, days: int = 30, now: Optional[datetime] = None) -> List[models.DailyLog]:
    crud.require_patient(db, patient_id)
    return crud.get_daily_logs_since(db, patient_id, _today(now) - timedelta(days=days))
