# tests/conftest.py
import os

# Settings are read on first import; these must be in place before horizonfit loads
os.environ["SECRET_KEY"] = "test-secret-key-for-horizonfit-suite-0123456789"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("SUPER_ADMIN_PASSWORD", None)

from datetime import datetime, timezone
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from horizonfit import crud, models, schemas, security
from horizonfit.database import create_tables, drop_tables, get_db
from horizonfit.main import app

PASSWORD = "Passw0rd!"

_sequence = count(1)


@pytest.fixture(scope="session")
def user_password():
    return PASSWORD


@pytest.fixture(scope="session")
def password_hash():
    return security.get_password_hash(PASSWORD)


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=test_engine)
    yield test_engine
    drop_tables(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def now():
    return datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_user(db, password_hash):
    def _make_user(role=models.UserRole.patient, username=None, full_name=None):
        n = next(_sequence)
        username = username or f"{role.value}{n}"
        user_in = schemas.UserCreate(
            username=username,
            email=f"{username}@example.com",
            full_name=full_name or username.title(),
            role=role,
            password=PASSWORD,
        )
        return crud.create_user(db, user_in, password_hash=password_hash)
    return _make_user


@pytest.fixture
def make_patient(db, make_user):
    def _make_patient(**kwargs):
        user = make_user(role=models.UserRole.patient, **kwargs)
        return crud.get_patient_by_user_id(db, user.id)
    return _make_patient


@pytest.fixture
def patient(make_patient):
    return make_patient()


@pytest.fixture
def doctor(make_user):
    return make_user(role=models.UserRole.doctor)


@pytest.fixture
def admin(make_user):
    return make_user(role=models.UserRole.admin)


@pytest.fixture
def make_video(db):
    def _make_video(zone_number=1, is_required=True, is_active=True, title=None):
        video = models.ZoneVideo(
            title=title or f"Zone {zone_number} lesson {next(_sequence)}",
            video_url="https://videos.example.com/lesson.mp4",
            zone_number=zone_number,
            is_required=is_required,
            is_active=is_active,
        )
        db.add(video)
        db.commit()
        db.refresh(video)
        return video
    return _make_video


@pytest.fixture
def make_task(db):
    def _make_task(zone_number=1, category=models.TaskCategory.nutrition, title=None, is_active=True):
        task = models.DIYTaskTemplate(
            zone_number=zone_number,
            category=category,
            title=title or f"Task {next(_sequence)}",
            is_active=is_active,
        )
        db.add(task)
        db.commit()
        db.refresh(task)
        return task
    return _make_task


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {security.create_access_token(user)}"}
    return _auth_headers


@pytest.fixture
def file_sessions(tmp_path):
    """Independent sessions on one SQLite file, to play concurrent writers."""
    file_engine = create_engine(f"sqlite:///{tmp_path / 'progress.db'}", connect_args={"check_same_thread": False})
    create_tables(bind=file_engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    sessions = []

    def _open():
        session = Session()
        sessions.append(session)
        return session

    yield _open
    for session in sessions:
        session.close()
    drop_tables(bind=file_engine)
    file_engine.dispose()


@pytest.fixture
def enroll_on(password_hash):
    """Enrol a patient through the given session and return the patient id."""
    def _enroll_on(session, username="racer"):
        user = crud.create_user(
            session,
            schemas.UserCreate(username=username, email=f"{username}@example.com", password=PASSWORD),
            password_hash=password_hash,
        )
        return crud.get_patient_by_user_id(session, user.id).id
    return _enroll_on


@pytest.fixture
def weekly_log():
    def _weekly_log(zone_number, compliance=models.ComplianceLevel.good):
        return schemas.WeeklyLogCreate(zone_number=zone_number, compliance=compliance, completed_tasks=3, total_tasks=5)
    return _weekly_log
