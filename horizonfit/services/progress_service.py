# horizonfit/services/progress_service.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..zones import ZONES
from . import recommendations as calculator
from .clock import utcnow
from .concurrency import run_in_transaction
from .metrics_gate import can_submit


def ensure_first_zone(db: Session, patient_id: int, now: datetime) -> None:
    """First access creates the zone-1 row and touches nothing else."""
    if crud.get_zone_progress(db, patient_id, 1) is not None:
        return
    run_in_transaction(
        db,
        lambda session: crud.get_or_create_zone_progress(session, patient_id, 1, now, is_unlocked=True),
        "zone_bootstrap",
    )


def current_recommendations(db: Session, patient_id: int) -> Optional[schemas.Recommendations]:
    return calculator.apply_overrides(
        calculator.cached_recommendations(crud.get_recommendations(db, patient_id)),
        crud.get_recommendation_override(db, patient_id),
    )


def _sync_video_flags(db: Session, patient_id: int, zone_numbers: List[int]) -> None:
    """Raise stored flags that lag behind the catalogue, so the view agrees with the gate."""
    run_in_transaction(
        db,
        lambda session: [crud.raise_video_flags(session, zone_number, patient_id) for zone_number in zone_numbers],
        "video_flag_sync",
    )


def get_progress(db: Session, patient_id: int, now: Optional[datetime] = None) -> schemas.ProgressView:
    now = now or utcnow()
    patient = crud.require_patient(db, patient_id)
    ensure_first_zone(db, patient.id, now)

    progress_by_zone = {row.zone_number: row for row in crud.get_zone_progress_for_patient(db, patient.id)}
    videos_by_zone = {}
    for video in crud.list_required_active_videos(db):
        videos_by_zone.setdefault(video.zone_number, []).append(video)

    lagging = [
        zone_number for zone_number, row in progress_by_zone.items()
        if not row.videos_completed
        and {video.id for video in videos_by_zone.get(zone_number, [])} <= set(row.watched_video_ids or [])
    ]
    if lagging:
        _sync_video_flags(db, patient.id, lagging)

    current_tasks = crud.list_diy_tasks(db, zone_number=patient.current_zone, active_only=True)

    zones = []
    for zone_number, info in ZONES.items():
        progress: Optional[models.ZoneProgress] = progress_by_zone.get(zone_number)
        watched = set(progress.watched_video_ids or []) if progress else set()
        required_videos = [
            schemas.ZoneVideoWithStatus.model_validate(video).model_copy(update={"is_watched": video.id in watched})
            for video in videos_by_zone.get(zone_number, [])
        ]
        tasks = current_tasks if zone_number == patient.current_zone else []
        zones.append(schemas.ZoneView(
            zone_number=zone_number,
            zone_name=info.name,
            zone_description=info.description,
            is_unlocked=progress.is_unlocked if progress else False,
            is_completed=progress.is_completed if progress else False,
            videos_completed=progress.videos_completed if progress else False,
            required_videos=required_videos,
            diy_tasks=[schemas.DIYTaskTemplateResponse.model_validate(task) for task in tasks],
            weeks_in_zone=progress.weeks_in_zone if progress else 0,
            min_weeks_required=info.weeks_required,
        ))

    eligibility = can_submit(db, patient.id, now)

    return schemas.ProgressView(
        patient_id=patient.id,
        current_zone=patient.current_zone,
        zones=zones,
        latest_metrics=crud.get_latest_metrics_snapshot(db, patient.id),
        recommendations=current_recommendations(db, patient.id),
        weekly_logs=[schemas.WeeklyLogResponse.model_validate(log) for log in crud.get_weekly_logs(db, patient.id)],
        total_weeks_completed=patient.total_weeks_completed,
        program_completed=patient.program_completed,
        can_enter_metrics=eligibility.allowed,
        metrics_blocked_reason=eligibility.reason,
        days_since_last_metrics=eligibility.days_since_last,
        days_until_next_metrics=eligibility.days_remaining or 0,
    )
