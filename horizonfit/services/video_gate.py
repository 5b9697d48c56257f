# horizonfit/services/video_gate.py - required-video completion per (patient, zone)
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..exceptions import NotFoundError
from .clock import utcnow
from .concurrency import run_in_transaction

logger = structlog.get_logger(__name__)


def _required_video_ids(db: Session, zone_number: int) -> set:
    return {video.id for video in crud.list_required_active_videos(db, zone_number)}


def mark_watched(db: Session, patient_id: int, video_id: int, now: Optional[datetime] = None) -> schemas.VideoWatchResult:
    """
    Record that the patient watched a video and refresh the zone's completion flag.

    The video's own zone is used; watching it again changes nothing. Once the
    flag is set it stays set, even if the catalogue later gains required videos.
    """
    now = now or utcnow()
    crud.require_patient(db, patient_id)

    def operation(session: Session) -> schemas.VideoWatchResult:
        video = crud.get_zone_video(session, video_id)
        if video is None or not video.is_active:
            raise NotFoundError(f"Video {video_id} not found")

        progress = crud.get_or_create_zone_progress(session, patient_id, video.zone_number, now)
        watched = list(progress.watched_video_ids or [])
        if video.id not in watched:
            watched.append(video.id)
            # New list so the JSON column is seen as modified
            progress.watched_video_ids = watched

        required = _required_video_ids(session, video.zone_number)
        if not progress.videos_completed and required.issubset(watched):
            progress.videos_completed = True

        return schemas.VideoWatchResult(
            videos_completed=progress.videos_completed,
            watched_count=len(watched),
            total_required=len(required),
        )

    result = run_in_transaction(db, operation, "mark_watched")
    logger.info(
        "video_watched",
        patient_id=patient_id,
        video_id=video_id,
        videos_completed=result.videos_completed,
        watched_count=result.watched_count,
        total_required=result.total_required,
    )
    return result


def is_zone_videos_completed(db: Session, patient_id: int, zone_number: int) -> bool:
    """Read-only: True when the stored flag is set or every required active video is watched."""
    progress = crud.get_zone_progress(db, patient_id, zone_number)
    if progress is not None and progress.videos_completed:
        return True
    watched = set(progress.watched_video_ids or []) if progress is not None else set()
    return _required_video_ids(db, zone_number).issubset(watched)
