# horizonfit/services/weekly_log_service.py - weekly check-ins and zone promotion
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..compliance_logger import compliance_logger
from ..exceptions import PreconditionError, ValidationError
from ..schemas import GateReason, WeeklyLogAction
from ..zones import MAX_ZONE, get_zone, is_valid_zone, weeks_required
from .clock import utcnow
from .concurrency import run_in_transaction

logger = structlog.get_logger(__name__)


def _promote(session: Session, patient: models.Patient, zone_number: int, now: datetime) -> schemas.WeeklyLogResult:
    """Open the next zone, or finish the program when the last zone is done. Does NOT commit."""
    next_zone = zone_number + 1

    if next_zone > MAX_ZONE:
        patient.program_completed = True
        patient.status = models.PatientStatus.completed
        compliance_logger.record(
            session, models.AuditAction.PROGRAM_COMPLETED, "PROGRESSION",
            user=patient.user, resource_type="patient", resource_id=patient.id,
            details=f"Completed zone {zone_number}, the final zone",
        )
        return schemas.WeeklyLogResult(
            action=WeeklyLogAction.PROGRAM_COMPLETED,
            message="Congratulations! You have completed the program.",
        )

    patient.current_zone = next_zone
    crud.open_zone(session, patient.id, next_zone, now, reset=True)
    compliance_logger.record(
        session, models.AuditAction.ZONE_UPGRADE, "PROGRESSION",
        user=patient.user, resource_type="patient", resource_id=patient.id,
        details=f"Zone {zone_number} completed, moved to zone {next_zone}",
        new_values={"from_zone": zone_number, "to_zone": next_zone},
    )
    return schemas.WeeklyLogResult(
        action=WeeklyLogAction.ZONE_UPGRADE,
        new_zone=next_zone,
        message=f"Congratulations! You've been promoted to Zone {next_zone}: {get_zone(next_zone).name}.",
    )


def submit_weekly_log(
    db: Session,
    patient_id: int,
    zone_number: int,
    log_data: schemas.WeeklyLogCreate,
    now: Optional[datetime] = None,
) -> schemas.WeeklyLogResult:
    """
    Append a weekly log and advance the zone's week counter.

    The log, the counter, any promotion and its audit rows commit together.
    The counter update is version-checked, so two concurrent logs for the same
    zone each count exactly once.
    """
    if not is_valid_zone(zone_number):
        raise ValidationError(f"Zone must be between 1 and {MAX_ZONE}")
    now = now or utcnow()

    def operation(session: Session) -> schemas.WeeklyLogResult:
        patient = crud.require_patient(session, patient_id)
        if patient.program_completed:
            raise PreconditionError(GateReason.program_completed, "The program is already completed.")
        if zone_number > patient.current_zone:
            raise PreconditionError(GateReason.zone_locked, f"Zone {zone_number} is not unlocked yet.")

        progress = crud.get_or_create_zone_progress(session, patient.id, zone_number, now)
        if progress.is_completed:
            raise PreconditionError(GateReason.zone_completed, f"Zone {zone_number} is already completed.")

        progress.weeks_in_zone = progress.weeks_in_zone + 1
        weeks_in_zone = progress.weeks_in_zone
        crud.add_weekly_log(session, patient.id, zone_number, weeks_in_zone, log_data, now)

        patient.total_weeks_completed = models.Patient.total_weeks_completed + 1
        patient.last_weekly_log_date = now

        if weeks_in_zone < weeks_required(zone_number):
            return schemas.WeeklyLogResult(
                action=WeeklyLogAction.CONTINUE_ZONE,
                current_weeks=weeks_in_zone,
                message=f"Week {weeks_in_zone} of {weeks_required(zone_number)} logged for Zone {zone_number}.",
            )

        progress.is_completed = True
        progress.completed_at = now
        return _promote(session, patient, zone_number, now)

    result = run_in_transaction(db, operation, "weekly_log_submit")
    logger.info(
        "weekly_log_submitted",
        patient_id=patient_id,
        zone_number=zone_number,
        action=result.action.value,
        current_weeks=result.current_weeks,
    )
    if result.action == WeeklyLogAction.ZONE_UPGRADE:
        logger.info("zone_upgrade", patient_id=patient_id, from_zone=zone_number, to_zone=result.new_zone)
    elif result.action == WeeklyLogAction.PROGRAM_COMPLETED:
        logger.info("program_completed", patient_id=patient_id, final_zone=zone_number)
    return result
