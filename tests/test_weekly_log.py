# tests/test_weekly_log.py
from datetime import timedelta

import pytest
from sqlalchemy import event

from horizonfit import crud, models, schemas
from horizonfit.exceptions import ConflictError, PreconditionError, ValidationError
from horizonfit.schemas import GateReason, WeeklyLogAction
from horizonfit.services import doctor_service, weekly_log_service
from horizonfit.services.clock import as_utc
from horizonfit.services.concurrency import CONFLICT_RETRY_ATTEMPTS
from horizonfit.zones import MAX_ZONE


def submit(db, patient_id, zone_number, weekly_log, now):
    return weekly_log_service.submit_weekly_log(db, patient_id, zone_number, weekly_log(zone_number), now=now)


def test_zone_completes_on_third_log(db, patient, weekly_log, now):
    first = submit(db, patient.id, 1, weekly_log, now)
    assert first.action == WeeklyLogAction.CONTINUE_ZONE
    assert first.current_weeks == 1
    assert crud.get_zone_progress(db, patient.id, 1).is_completed is False

    second = submit(db, patient.id, 1, weekly_log, now)
    assert second.action == WeeklyLogAction.CONTINUE_ZONE
    assert second.current_weeks == 2
    assert crud.get_zone_progress(db, patient.id, 1).is_completed is False

    third = submit(db, patient.id, 1, weekly_log, now)
    assert third.action == WeeklyLogAction.ZONE_UPGRADE
    assert third.new_zone == 2
    progress = crud.get_zone_progress(db, patient.id, 1)
    assert progress.is_completed is True
    assert progress.completed_at is not None


def test_upgrade_from_zone_two(db, patient, weekly_log, now):
    patient.current_zone = 2
    db.add(models.ZoneProgress(patient_id=patient.id, zone_number=2, is_unlocked=True, weeks_in_zone=2, watched_video_ids=[]))
    db.commit()

    result = submit(db, patient.id, 2, weekly_log, now)

    assert result.action == WeeklyLogAction.ZONE_UPGRADE
    assert result.new_zone == 3
    db.refresh(patient)
    assert patient.current_zone == 3
    zone_three = crud.get_zone_progress(db, patient.id, 3)
    assert zone_three.weeks_in_zone == 0
    assert zone_three.is_unlocked is True
    assert zone_three.is_completed is False
    assert crud.get_zone_progress(db, patient.id, 2).is_completed is True


def test_promotion_resets_an_existing_next_zone_row(db, patient, weekly_log, now):
    db.add(models.ZoneProgress(patient_id=patient.id, zone_number=2, is_unlocked=False, weeks_in_zone=1, watched_video_ids=[]))
    db.commit()

    for _ in range(3):
        submit(db, patient.id, 1, weekly_log, now)

    zone_two = crud.get_zone_progress(db, patient.id, 2)
    assert zone_two.is_unlocked is True
    assert zone_two.weeks_in_zone == 0
    assert db.query(models.ZoneProgress).filter_by(patient_id=patient.id, zone_number=2).count() == 1


def test_finishing_last_zone_completes_the_program(db, patient, weekly_log, now):
    patient.current_zone = MAX_ZONE
    db.add(models.ZoneProgress(patient_id=patient.id, zone_number=MAX_ZONE, is_unlocked=True, weeks_in_zone=2, watched_video_ids=[]))
    db.commit()

    result = submit(db, patient.id, MAX_ZONE, weekly_log, now)

    assert result.action == WeeklyLogAction.PROGRAM_COMPLETED
    assert result.new_zone is None
    db.refresh(patient)
    assert patient.current_zone == MAX_ZONE
    assert patient.program_completed is True
    assert patient.status == models.PatientStatus.completed
    assert db.query(models.ZoneProgress).filter(models.ZoneProgress.zone_number > MAX_ZONE).count() == 0
    assert crud.get_zone_progress(db, patient.id, MAX_ZONE).is_completed is True

    with pytest.raises(PreconditionError) as excinfo:
        submit(db, patient.id, MAX_ZONE, weekly_log, now)
    assert excinfo.value.reason == GateReason.program_completed


def test_log_for_locked_zone_is_rejected(db, patient, weekly_log, now):
    with pytest.raises(PreconditionError) as excinfo:
        submit(db, patient.id, 2, weekly_log, now)
    assert excinfo.value.reason == GateReason.zone_locked
    assert crud.get_weekly_logs(db, patient.id) == []


def test_log_for_completed_zone_is_rejected(db, patient, weekly_log, now):
    for _ in range(3):
        submit(db, patient.id, 1, weekly_log, now)

    with pytest.raises(PreconditionError) as excinfo:
        submit(db, patient.id, 1, weekly_log, now)

    assert excinfo.value.reason == GateReason.zone_completed
    assert crud.get_zone_progress(db, patient.id, 1).weeks_in_zone == 3
    assert len(crud.get_weekly_logs(db, patient.id)) == 3


@pytest.mark.parametrize("zone_number", [0, MAX_ZONE + 1])
def test_zone_outside_range_is_a_validation_error(db, patient, now, zone_number):
    log_data = schemas.WeeklyLogCreate(zone_number=1, compliance=models.ComplianceLevel.fair)
    with pytest.raises(ValidationError):
        weekly_log_service.submit_weekly_log(db, patient.id, zone_number, log_data, now=now)


def test_log_rows_and_counters_are_recorded(db, patient, weekly_log, now):
    for _ in range(4):
        submit(db, patient.id, patient.current_zone, weekly_log, now)
        db.refresh(patient)

    logs = crud.get_weekly_logs(db, patient.id)
    assert len(logs) == 4
    assert sorted((log.zone_number, log.week_number) for log in logs) == [(1, 1), (1, 2), (1, 3), (2, 1)]
    db.refresh(patient)
    assert patient.total_weeks_completed == 4
    assert patient.last_weekly_log_date is not None

    upgrades = db.query(models.AuditLog).filter(models.AuditLog.action == models.AuditAction.ZONE_UPGRADE).all()
    assert len(upgrades) == 1
    assert upgrades[0].new_values == {"from_zone": 1, "to_zone": 2}


def test_logs_are_counted_without_a_time_gate(db, patient, weekly_log, now):
    actions = [submit(db, patient.id, 1, weekly_log, now + timedelta(minutes=minute)).action for minute in range(3)]

    assert actions == [WeeklyLogAction.CONTINUE_ZONE, WeeklyLogAction.CONTINUE_ZONE, WeeklyLogAction.ZONE_UPGRADE]
    db.refresh(patient)
    assert as_utc(patient.last_weekly_log_date) == now + timedelta(minutes=2)
    summary = doctor_service.build_summary(db, patient, now + timedelta(days=1))
    assert as_utc(summary.last_log_date) == now + timedelta(minutes=2)


def _bump_zone_one_from(other_session, patient_id):
    row = crud.get_zone_progress(other_session, patient_id, 1)
    row.weeks_in_zone = row.weeks_in_zone + 1
    other_session.commit()


def test_concurrent_increment_is_retried(file_sessions, enroll_on, weekly_log, now):
    session = file_sessions()
    other = file_sessions()
    patient_id = enroll_on(session)

    @event.listens_for(session, "before_flush", once=True)
    def concurrent_writer(flushing_session, flush_context, instances):
        _bump_zone_one_from(other, patient_id)

    result = submit(session, patient_id, 1, weekly_log, now)

    assert result.action == WeeklyLogAction.CONTINUE_ZONE
    assert result.current_weeks == 2
    session.expire_all()
    assert crud.get_zone_progress(session, patient_id, 1).weeks_in_zone == 2
    assert len(crud.get_weekly_logs(session, patient_id)) == 1


def test_persistent_conflict_raises_conflict_error(file_sessions, enroll_on, weekly_log, now):
    session = file_sessions()
    other = file_sessions()
    patient_id = enroll_on(session)

    @event.listens_for(session, "before_flush")
    def concurrent_writer(flushing_session, flush_context, instances):
        _bump_zone_one_from(other, patient_id)

    with pytest.raises(ConflictError):
        submit(session, patient_id, 1, weekly_log, now)

    event.remove(session, "before_flush", concurrent_writer)
    session.expire_all()
    assert crud.get_weekly_logs(session, patient_id) == []
    assert crud.get_zone_progress(session, patient_id, 1).weeks_in_zone == CONFLICT_RETRY_ATTEMPTS
