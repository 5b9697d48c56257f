# horizonfit/models.py
from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Text, Date, Float,
    Enum as SQLAlchemyEnum, Boolean, JSON, Index, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base
from .zones import MAX_ZONE
import enum


class UserRole(str, enum.Enum):
    patient = "patient"
    doctor = "doctor"
    admin = "admin"


class PatientStatus(str, enum.Enum):
    active = "active"
    at_risk = "at-risk"
    paused = "paused"
    completed = "completed"


class MetricType(str, enum.Enum):
    weight = "weight"
    body_fat_percentage = "body_fat_percentage"
    visceral_fat = "visceral_fat"

    @property
    def unit(self) -> str:
        return {"weight": "kg", "body_fat_percentage": "%", "visceral_fat": "level"}[self.value]


class ComplianceLevel(str, enum.Enum):
    excellent = "excellent"
    good = "good"
    fair = "fair"
    poor = "poor"

    @property
    def score(self) -> int:
        return {"excellent": 95, "good": 80, "fair": 60, "poor": 30}[self.value]


class Mood(str, enum.Enum):
    great = "great"
    good = "good"
    okay = "okay"
    bad = "bad"
    terrible = "terrible"


class TaskCategory(str, enum.Enum):
    nutrition = "nutrition"
    exercise = "exercise"
    hydration = "hydration"
    sleep = "sleep"
    mindset = "mindset"


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    METRICS_SUBMITTED = "METRICS_SUBMITTED"
    ZONE_UPGRADE = "ZONE_UPGRADE"
    PROGRAM_COMPLETED = "PROGRAM_COMPLETED"
    ZONE_OVERRIDE = "ZONE_OVERRIDE"
    RECOMMENDATION_OVERRIDE = "RECOMMENDATION_OVERRIDE"


_zone_range = f"BETWEEN 1 AND {MAX_ZONE}"


# ==================== Accounts ====================
class User(Base):
    """Login identity for patients, doctors and administrators."""
    __tablename__ = "users"
    __table_args__ = (
        Index('idx_users_role_active', 'role', 'is_active'),
    )

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(120), nullable=True)
    mobile_number = Column(String(20), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLAlchemyEnum(UserRole, name='user_role'), default=UserRole.patient, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    patient = relationship("Patient", back_populates="user", uselist=False)


class Patient(Base):
    """Normal-plan enrolment of a patient account. Holds the zone-related fields."""
    __tablename__ = "patients"
    __table_args__ = (
        CheckConstraint(f"current_zone {_zone_range}", name="ck_patients_current_zone"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    current_zone = Column(Integer, nullable=False, default=1)
    total_weeks_completed = Column(Integer, nullable=False, default=0)
    program_completed = Column(Boolean, nullable=False, default=False)
    status = Column(SQLAlchemyEnum(PatientStatus, name='patient_status', values_callable=lambda e: [m.value for m in e]),
                    default=PatientStatus.active, nullable=False)
    program_start_date = Column(DateTime(timezone=True), nullable=True)
    last_metrics_date = Column(DateTime(timezone=True), nullable=True)
    last_weekly_log_date = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="patient")
    zone_progress = relationship("ZoneProgress", back_populates="patient", order_by="ZoneProgress.zone_number")
    doctor_notes = relationship("DoctorNote", back_populates="patient", order_by="DoctorNote.created_at.desc()")

    __mapper_args__ = {"version_id_col": version}


class DoctorNote(Base):
    __tablename__ = "doctor_notes"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    note = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    patient = relationship("Patient", back_populates="doctor_notes")
    author = relationship("User")


# ==================== Zone progression ====================
class ZoneProgress(Base):
    """One row per (patient, zone) the patient has touched. Never deleted."""
    __tablename__ = "patient_zone_progress"
    __table_args__ = (
        UniqueConstraint('patient_id', 'zone_number', name='uq_zone_progress_patient_zone'),
        CheckConstraint(f"zone_number {_zone_range}", name="ck_zone_progress_zone_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    zone_number = Column(Integer, nullable=False)
    is_unlocked = Column(Boolean, nullable=False, default=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    videos_completed = Column(Boolean, nullable=False, default=False)
    watched_video_ids = Column(JSON, nullable=False, default=list)
    weeks_in_zone = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    patient = relationship("Patient", back_populates="zone_progress")

    # Every UPDATE is guarded by the version read in the same session
    __mapper_args__ = {"version_id_col": version}


class ZoneVideo(Base):
    """Doctor-curated educational content attached to a zone."""
    __tablename__ = "zone_videos"
    __table_args__ = (
        Index('idx_zone_videos_zone_active', 'zone_number', 'is_active'),
        CheckConstraint(f"zone_number {_zone_range}", name="ck_zone_videos_zone_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    video_url = Column(String(500), nullable=True)
    pdf_url = Column(String(500), nullable=True)
    thumbnail_url = Column(String(500), nullable=True)
    duration = Column(String(20), nullable=True)
    zone_number = Column(Integer, nullable=False)
    order = Column(Integer, nullable=False, default=0)
    is_required = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class BodyMetricsEntry(Base):
    """Append-only single measurement. A submission writes one row per MetricType."""
    __tablename__ = "body_metrics"
    __table_args__ = (
        Index('idx_body_metrics_patient_date', 'patient_id', 'date_recorded'),
    )

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    metric_type = Column(SQLAlchemyEnum(MetricType, name='metric_type'), nullable=False)
    value = Column(Float, nullable=False)
    unit = Column(String(10), nullable=False)
    date_recorded = Column(DateTime(timezone=True), nullable=False)


class WeeklyLog(Base):
    __tablename__ = "weekly_logs"
    __table_args__ = (
        Index('idx_weekly_logs_patient_zone', 'patient_id', 'zone_number'),
        CheckConstraint(f"zone_number {_zone_range}", name="ck_weekly_logs_zone_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    zone_number = Column(Integer, nullable=False)
    week_number = Column(Integer, nullable=False)
    metrics = Column(JSON, nullable=True)
    compliance = Column(SQLAlchemyEnum(ComplianceLevel, name='compliance_level'), nullable=False)
    completed_tasks = Column(Integer, nullable=False, default=0)
    total_tasks = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=False)


class RecommendationsCache(Base):
    """Latest computed recommendations. Replaced on every accepted metrics submission."""
    __tablename__ = "recommendations_cache"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, unique=True)
    daily_calories = Column(Integer, nullable=False)
    water_intake = Column(Float, nullable=False)
    sleep_duration = Column(Float, nullable=False)
    sleep_bed_time = Column(String(5), nullable=True)
    sleep_wake_time = Column(String(5), nullable=True)
    exercise_minutes = Column(Integer, nullable=False)
    exercise_type = Column(String(255), nullable=True)
    meditation_minutes = Column(Integer, nullable=False)
    mindset_tip = Column(Text, nullable=True)
    metrics_recorded_at = Column(DateTime(timezone=True), nullable=False)
    calculated_at = Column(DateTime(timezone=True), nullable=False)


class RecommendationOverride(Base):
    """Doctor field-level patch, kept apart from the cache so recalculation never loses it."""
    __tablename__ = "recommendation_overrides"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, unique=True)
    daily_calories = Column(Integer, nullable=True)
    water_intake = Column(Float, nullable=True)
    sleep_duration = Column(Float, nullable=True)
    exercise_minutes = Column(Integer, nullable=True)
    exercise_type = Column(String(255), nullable=True)
    meditation_minutes = Column(Integer, nullable=True)
    custom_notes = Column(Text, nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class DIYTaskTemplate(Base):
    __tablename__ = "diy_task_templates"
    __table_args__ = (
        Index('idx_diy_tasks_zone_active', 'zone_number', 'is_active'),
        CheckConstraint(f"zone_number {_zone_range}", name="ck_diy_tasks_zone_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    zone_number = Column(Integer, nullable=False)
    category = Column(SQLAlchemyEnum(TaskCategory, name='task_category'), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(50), nullable=True)
    order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class DailyLog(Base):
    __tablename__ = "daily_logs"
    __table_args__ = (
        UniqueConstraint('patient_id', 'log_date', name='uq_daily_logs_patient_date'),
    )

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    zone_number = Column(Integer, nullable=False)
    log_date = Column(Date, nullable=False)
    completed_task_ids = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    mood = Column(SQLAlchemyEnum(Mood, name='mood'), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


# ==================== Audit ====================
class AuditLog(Base):
    """Audit trail of progression and administrative events."""
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index('idx_audit_user_date', 'user_id', 'timestamp'),
        Index('idx_audit_action_date', 'action', 'timestamp'),
        Index('idx_audit_resource', 'resource_type', 'resource_id'),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    username = Column(String(50), nullable=True)  # Denormalized for audit integrity
    action = Column(SQLAlchemyEnum(AuditAction, name='audit_action'), nullable=False)
    category = Column(String(50), nullable=False, default="GENERAL", index=True)
    severity = Column(String(20), default="INFO", index=True)
    resource_type = Column(String(50), nullable=True)
    resource_id = Column(Integer, nullable=True)
    details = Column(Text, nullable=True)
    new_values = Column(JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    user = relationship("User")
