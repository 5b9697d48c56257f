# tests/test_video_gate.py
import pytest
from sqlalchemy import event

from horizonfit import crud, models, schemas
from horizonfit.exceptions import NotFoundError
from horizonfit.services import metrics_gate, progress_service, video_gate


def test_watching_every_required_video_completes_zone(db, patient, make_video, now):
    first, second = make_video(1), make_video(1)

    partial = video_gate.mark_watched(db, patient.id, first.id, now=now)
    assert partial.videos_completed is False
    assert partial.watched_count == 1
    assert partial.total_required == 2

    result = video_gate.mark_watched(db, patient.id, second.id, now=now)
    assert result.videos_completed is True
    assert result.watched_count == 2
    assert result.total_required == 2
    assert video_gate.is_zone_videos_completed(db, patient.id, 1) is True


def test_watching_same_video_twice_is_idempotent(db, patient, make_video, now):
    video = make_video(1)
    make_video(1)

    once = video_gate.mark_watched(db, patient.id, video.id, now=now)
    twice = video_gate.mark_watched(db, patient.id, video.id, now=now)

    assert once.watched_count == twice.watched_count == 1
    progress = crud.get_zone_progress(db, patient.id, 1)
    assert progress.watched_video_ids == [video.id]


def test_optional_videos_do_not_count_towards_completion(db, patient, make_video, now):
    required = make_video(1)
    optional = make_video(1, is_required=False)

    result = video_gate.mark_watched(db, patient.id, optional.id, now=now)
    assert result.videos_completed is False
    assert result.total_required == 1

    result = video_gate.mark_watched(db, patient.id, required.id, now=now)
    assert result.videos_completed is True
    assert result.watched_count == 2


def test_video_zone_is_taken_from_catalog(db, patient, make_video, now):
    zone_three_video = make_video(3)

    video_gate.mark_watched(db, patient.id, zone_three_video.id, now=now)

    progress = crud.get_zone_progress(db, patient.id, 3)
    assert progress is not None
    assert progress.is_unlocked is True
    assert progress.watched_video_ids == [zone_three_video.id]
    assert crud.get_zone_progress(db, patient.id, 1).watched_video_ids == []


def test_unknown_video_is_not_found(db, patient, now):
    with pytest.raises(NotFoundError):
        video_gate.mark_watched(db, patient.id, 9999, now=now)


def test_inactive_video_is_not_found(db, patient, make_video, now):
    video = make_video(1, is_active=False)
    with pytest.raises(NotFoundError):
        video_gate.mark_watched(db, patient.id, video.id, now=now)


def test_completion_is_not_revoked_when_catalog_grows(db, patient, make_video, now):
    video = make_video(1)
    assert video_gate.mark_watched(db, patient.id, video.id, now=now).videos_completed is True

    added_later = make_video(1)
    other = make_video(1)
    result = video_gate.mark_watched(db, patient.id, other.id, now=now)

    assert result.videos_completed is True
    assert result.total_required == 3
    assert added_later.id not in crud.get_zone_progress(db, patient.id, 1).watched_video_ids
    assert video_gate.is_zone_videos_completed(db, patient.id, 1) is True


def test_zone_without_required_videos_counts_as_completed(db, patient):
    assert video_gate.is_zone_videos_completed(db, patient.id, 2) is True


def test_zone_with_unwatched_videos_is_incomplete(db, patient, make_video):
    make_video(1)
    assert video_gate.is_zone_videos_completed(db, patient.id, 1) is False


def test_deactivating_last_unwatched_video_completes_zone(db, patient, doctor, make_video, now):
    watched, pending = make_video(1), make_video(1)
    video_gate.mark_watched(db, patient.id, watched.id, now=now)

    crud.deactivate_zone_video(db, pending.id, actor=doctor)

    assert crud.get_zone_progress(db, patient.id, 1).videos_completed is True
    assert metrics_gate.can_submit(db, patient.id, now=now).allowed is True


def test_dropping_a_requirement_completes_zone(db, patient, make_video, now):
    watched, pending = make_video(1), make_video(1)
    video_gate.mark_watched(db, patient.id, watched.id, now=now)

    crud.update_zone_video(db, pending.id, schemas.ZoneVideoUpdate(is_required=False))

    assert crud.get_zone_progress(db, patient.id, 1).videos_completed is True


def test_moving_a_video_out_completes_its_old_zone(db, patient, make_video, now):
    watched, pending = make_video(1), make_video(1)
    video_gate.mark_watched(db, patient.id, watched.id, now=now)

    crud.update_zone_video(db, pending.id, schemas.ZoneVideoUpdate(zone_number=2))

    assert crud.get_zone_progress(db, patient.id, 1).videos_completed is True


def test_lagging_flag_is_reported_until_progress_is_read(db, patient, now):
    mismatches = crud.run_consistency_checks(db)["video_flag_mismatches"]
    assert [(issue["patient_id"], issue["zone_number"]) for issue in mismatches] == [(patient.id, 1)]

    progress_service.get_progress(db, patient.id, now=now)

    assert crud.run_consistency_checks(db)["video_flag_mismatches"] == []


def test_concurrent_watches_of_different_videos_keep_both(file_sessions, enroll_on, now):
    session = file_sessions()
    other = file_sessions()
    patient_id = enroll_on(session)
    first = models.ZoneVideo(title="Breathing basics", video_url="https://videos.example.com/a.mp4", zone_number=1)
    second = models.ZoneVideo(title="Posture check", video_url="https://videos.example.com/b.mp4", zone_number=1)
    session.add_all([first, second])
    session.commit()
    first_id, second_id = first.id, second.id

    @event.listens_for(session, "before_flush", once=True)
    def concurrent_watch(flushing_session, flush_context, instances):
        row = crud.get_zone_progress(other, patient_id, 1)
        row.watched_video_ids = list(row.watched_video_ids or []) + [second_id]
        other.commit()

    result = video_gate.mark_watched(session, patient_id, first_id, now=now)

    assert result.watched_count == 2
    assert result.videos_completed is True
    session.expire_all()
    progress = crud.get_zone_progress(session, patient_id, 1)
    assert sorted(progress.watched_video_ids) == sorted([first_id, second_id])
    assert progress.videos_completed is True
