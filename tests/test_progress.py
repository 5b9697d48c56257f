# tests/test_progress.py
from datetime import timedelta

from horizonfit import crud, models, schemas
from horizonfit.schemas import GateReason
from horizonfit.services import (
    daily_log_service,
    doctor_service,
    metrics_gate,
    progress_service,
    video_gate,
    weekly_log_service,
)
from horizonfit.zones import MAX_ZONE


def test_new_patient_sees_only_zone_one_open(db, patient, now):
    view = progress_service.get_progress(db, patient.id, now=now)

    assert view.current_zone == 1
    assert [zone.zone_number for zone in view.zones] == list(range(1, MAX_ZONE + 1))
    assert view.zones[0].is_unlocked is True
    assert all(not zone.is_unlocked for zone in view.zones[1:])
    assert all(zone.min_weeks_required == 3 for zone in view.zones)
    assert view.recommendations is None
    assert view.latest_metrics is None
    assert view.weekly_logs == []

    rows = crud.get_zone_progress_for_patient(db, patient.id)
    assert [(row.zone_number, row.weeks_in_zone) for row in rows] == [(1, 0)]


def test_first_access_recreates_missing_zone_one(db, patient, now):
    db.query(models.ZoneProgress).filter(models.ZoneProgress.patient_id == patient.id).delete()
    db.commit()

    view = progress_service.get_progress(db, patient.id, now=now)
    progress_service.get_progress(db, patient.id, now=now)

    assert view.zones[0].is_unlocked is True
    rows = crud.get_zone_progress_for_patient(db, patient.id)
    assert len(rows) == 1
    assert rows[0].zone_number == 1
    assert rows[0].is_unlocked is True
    assert rows[0].is_completed is False


def test_videos_are_flagged_per_zone(db, patient, make_video, now):
    watched = make_video(1)
    unwatched = make_video(1)
    make_video(2)
    make_video(1, is_required=False)
    video_gate.mark_watched(db, patient.id, watched.id, now=now)

    view = progress_service.get_progress(db, patient.id, now=now)

    zone_one = view.zones[0]
    assert {video.id: video.is_watched for video in zone_one.required_videos} == {watched.id: True, unwatched.id: False}
    assert zone_one.videos_completed is False
    assert len(view.zones[1].required_videos) == 1


def test_tasks_are_listed_for_current_zone_only(db, patient, make_task, now):
    current = make_task(1)
    make_task(1, is_active=False)
    make_task(2)

    view = progress_service.get_progress(db, patient.id, now=now)

    assert [task.id for task in view.zones[0].diy_tasks] == [current.id]
    assert all(zone.diy_tasks == [] for zone in view.zones[1:])


def test_metrics_flag_agrees_with_gate(db, patient, make_video, now):
    video = make_video(1)

    blocked = progress_service.get_progress(db, patient.id, now=now)
    assert blocked.can_enter_metrics is False
    assert blocked.metrics_blocked_reason == GateReason.videos_incomplete
    assert blocked.days_until_next_metrics == 0

    video_gate.mark_watched(db, patient.id, video.id, now=now)
    metrics_gate.submit(db, patient.id, weight=75, body_fat_percentage=22, visceral_fat=8, now=now)

    later = now + timedelta(days=2)
    view = progress_service.get_progress(db, patient.id, now=later)
    gate = metrics_gate.can_submit(db, patient.id, now=later)
    assert gate.allowed is False
    assert view.can_enter_metrics is gate.allowed
    assert view.metrics_blocked_reason == GateReason.weekly_limit
    assert view.days_until_next_metrics == 5
    assert view.days_since_last_metrics == 2
    assert view.latest_metrics.weight == 75
    assert view.recommendations.daily_calories == 2532


def test_doctor_override_shows_in_progress(db, patient, doctor, make_video, now):
    video = make_video(1)
    video_gate.mark_watched(db, patient.id, video.id, now=now)
    metrics_gate.submit(db, patient.id, weight=75, body_fat_percentage=22, visceral_fat=8, now=now)

    result = doctor_service.override_recommendations(
        db, patient.id, schemas.RecommendationOverrideUpdate(daily_calories=1900, custom_notes="Less rice"), actor=doctor,
    )
    assert result.recommendations.daily_calories == 1900

    metrics_gate.submit(db, patient.id, weight=80, body_fat_percentage=32, visceral_fat=14, now=now + timedelta(days=7))
    view = progress_service.get_progress(db, patient.id, now=now + timedelta(days=7))

    assert view.recommendations.daily_calories == 1900
    assert view.recommendations.custom_notes == "Less rice"
    assert view.recommendations.sleep_duration == 8


def test_override_zone_opens_zone_and_leaves_a_note(db, patient, doctor, now):
    doctor_service.override_zone(db, patient.id, schemas.ZoneOverride(zone_number=4, reason="Clinical review"), actor=doctor, now=now)

    db.refresh(patient)
    assert patient.current_zone == 4
    zone_four = crud.get_zone_progress(db, patient.id, 4)
    assert zone_four.is_unlocked is True
    assert [note.note for note in patient.doctor_notes] == ["Zone manually changed to 4. Reason: Clinical review"]

    view = progress_service.get_progress(db, patient.id, now=now)
    assert view.current_zone == 4
    assert view.zones[3].is_unlocked is True


def test_override_zone_reopens_a_completed_program(db, patient, doctor, now):
    patient.program_completed = True
    patient.status = models.PatientStatus.completed
    db.commit()

    doctor_service.override_zone(db, patient.id, schemas.ZoneOverride(zone_number=5, reason="Repeat final zone"), actor=doctor, now=now)

    db.refresh(patient)
    assert patient.program_completed is False
    assert patient.status == models.PatientStatus.active


def test_compliance_rate_rounds_mean_score(db, patient, weekly_log, now):
    for level in (models.ComplianceLevel.excellent, models.ComplianceLevel.good, models.ComplianceLevel.poor):
        weekly_log_service.submit_weekly_log(db, patient.id, 1, weekly_log(1, compliance=level), now=now)

    summary = doctor_service.build_summary(db, crud.get_patient(db, patient.id), now)
    assert summary.compliance_rate == 68
    assert doctor_service.compliance_rate([]) == 0


def test_daily_log_is_one_per_day(db, patient, make_task, now):
    first, second = make_task(1), make_task(1)

    created = daily_log_service.submit_daily_log(db, patient.id, schemas.DailyLogCreate(completed_task_ids=[first.id]), now=now)
    replaced = daily_log_service.submit_daily_log(
        db, patient.id, schemas.DailyLogCreate(completed_task_ids=[second.id, first.id, second.id], mood=models.Mood.good), now=now,
    )

    assert created.updated is False
    assert replaced.updated is True
    assert replaced.log.id == created.log.id
    assert replaced.log.completed_task_ids == [second.id, first.id]

    checklist = daily_log_service.get_diy_tasks(db, patient.id, now=now)
    assert all(task.is_completed for task in checklist.tasks)
    assert daily_log_service.get_diy_tasks(db, patient.id, now=now + timedelta(days=1)).tasks[0].is_completed is False


def test_activity_report_flags_patients_at_risk(db, make_patient, now):
    quiet = make_patient()
    busy = make_patient()
    daily_log_service.submit_daily_log(db, quiet.id, schemas.DailyLogCreate(), now=now - timedelta(days=4))
    daily_log_service.submit_daily_log(db, busy.id, schemas.DailyLogCreate(), now=now)

    report = doctor_service.daily_activity_report(db, now=now)
    by_patient = {entry.patient_id: entry for entry in report.patients}

    assert report.report_date == now.date()
    assert by_patient[quiet.id].is_at_risk is True
    assert by_patient[quiet.id].days_since_last_log == 4
    assert by_patient[busy.id].has_logged_today is True
    assert by_patient[busy.id].is_at_risk is False
    assert report.active_today == 1
    assert report.at_risk == 1


def test_zone_without_required_videos_is_reported_completed(db, patient, now):
    view = progress_service.get_progress(db, patient.id, now=now)

    assert view.zones[0].videos_completed is True
    assert view.can_enter_metrics is True
    assert crud.get_zone_progress(db, patient.id, 1).videos_completed is True


def test_view_agrees_with_gate_after_a_video_is_retired(db, patient, make_video, now):
    watched, retired = make_video(1), make_video(1)
    video_gate.mark_watched(db, patient.id, watched.id, now=now)
    # Retired behind the catalogue API, so only the read can catch the flag up
    retired.is_active = False
    db.commit()

    view = progress_service.get_progress(db, patient.id, now=now)

    assert view.zones[0].videos_completed is True
    assert view.can_enter_metrics is True
    assert [video.id for video in view.zones[0].required_videos] == [watched.id]


def test_metrics_countdown_survives_promotion_to_unwatched_zone(db, patient, make_video, weekly_log, now):
    make_video(2)
    metrics_gate.submit(db, patient.id, weight=75, body_fat_percentage=22, visceral_fat=8, now=now)
    for _ in range(3):
        weekly_log_service.submit_weekly_log(db, patient.id, 1, weekly_log(1), now=now)

    view = progress_service.get_progress(db, patient.id, now=now + timedelta(days=2))

    assert view.current_zone == 2
    assert view.can_enter_metrics is False
    assert view.metrics_blocked_reason == GateReason.videos_incomplete
    assert view.days_since_last_metrics == 2
    assert view.days_until_next_metrics == 5
    assert view.zones[1].videos_completed is False
