# horizonfit/services/metrics_gate.py
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..compliance_logger import compliance_logger
from ..exceptions import PreconditionError, ValidationError
from ..schemas import GateReason
from ..zones import METRICS_INTERVAL_DAYS
from . import recommendations as calculator
from .clock import as_utc, utcnow, whole_days_between
from .concurrency import run_in_transaction
from .video_gate import is_zone_videos_completed

logger = structlog.get_logger(__name__)


def _evaluate(db: Session, patient: models.Patient, now: datetime) -> schemas.MetricsEligibility:
    # The interval fields are filled in whichever rule blocks
    latest = crud.get_latest_metrics_entry(db, patient.id)
    last_entry_date = as_utc(latest.date_recorded) if latest is not None else None
    days_since = whole_days_between(last_entry_date, now) if last_entry_date is not None else None
    days_remaining = None
    if days_since is not None and days_since < METRICS_INTERVAL_DAYS:
        days_remaining = METRICS_INTERVAL_DAYS - days_since

    interval = dict(days_remaining=days_remaining, days_since_last=days_since, last_entry_date=last_entry_date)

    # Rule order matters: the video requirement is reported before the interval
    if not is_zone_videos_completed(db, patient.id, patient.current_zone):
        return schemas.MetricsEligibility(
            allowed=False,
            reason=GateReason.videos_incomplete,
            message="Please complete all required videos for your current zone first.",
            **interval,
        )

    if days_remaining is not None:
        return schemas.MetricsEligibility(
            allowed=False,
            reason=GateReason.weekly_limit,
            message=f"You can enter metrics again in {days_remaining} day(s).",
            **interval,
        )

    return schemas.MetricsEligibility(allowed=True, message="You can enter your metrics.", **interval)


def can_submit(db: Session, patient_id: int, now: Optional[datetime] = None) -> schemas.MetricsEligibility:
    """Gate decision as data. Only a missing patient raises."""
    patient = crud.require_patient(db, patient_id)
    return _evaluate(db, patient, now or utcnow())


def submit(
    db: Session,
    patient_id: int,
    weight: Optional[float],
    body_fat_percentage: Optional[float],
    visceral_fat: Optional[float],
    now: Optional[datetime] = None,
) -> schemas.MetricsResult:
    """
    Store one entry per measurement, refresh the recommendations cache and
    stamp Patient.last_metrics_date, all in one transaction.

    The Patient row's version guards the interval rule: of two concurrent
    submissions only one commits, the other is retried and then rejected.
    """
    values = {
        models.MetricType.weight: weight,
        models.MetricType.body_fat_percentage: body_fat_percentage,
        models.MetricType.visceral_fat: visceral_fat,
    }
    missing = [metric_type.value for metric_type, value in values.items() if value is None]
    if missing:
        raise ValidationError(f"Missing required metrics: {', '.join(missing)}")

    now = now or utcnow()

    def operation(session: Session) -> schemas.MetricsResult:
        patient = crud.require_patient(session, patient_id)
        eligibility = _evaluate(session, patient, now)
        if not eligibility.allowed:
            days_remaining = eligibility.days_remaining if eligibility.reason == GateReason.weekly_limit else None
            raise PreconditionError(eligibility.reason, eligibility.message, days_remaining)

        crud.add_body_metrics(session, patient.id, values, now)

        computed = calculator.calculate_recommendations(weight, body_fat_percentage, visceral_fat)
        crud.replace_recommendations(session, patient.id, calculator.cache_values(computed), now, now)
        patient.last_metrics_date = now

        compliance_logger.record(
            session, models.AuditAction.METRICS_SUBMITTED, "METRICS",
            user=patient.user,
            resource_type="patient",
            resource_id=patient.id,
            new_values={metric_type.value: value for metric_type, value in values.items()},
        )

        merged = calculator.apply_overrides(
            computed.model_copy(update={"calculated_at": now}),
            crud.get_recommendation_override(session, patient.id),
        )
        return schemas.MetricsResult(
            metrics=schemas.MetricsSnapshot(
                weight=weight,
                body_fat_percentage=body_fat_percentage,
                visceral_fat=visceral_fat,
                date_recorded=now,
            ),
            recommendations=merged,
            next_entry_date=now + timedelta(days=METRICS_INTERVAL_DAYS),
        )

    result = run_in_transaction(db, operation, "metrics_submit")
    logger.info(
        "metrics_submitted",
        patient_id=patient_id,
        weight=weight,
        body_fat_percentage=body_fat_percentage,
        visceral_fat=visceral_fat,
        daily_calories=result.recommendations.daily_calories,
    )
    return result
