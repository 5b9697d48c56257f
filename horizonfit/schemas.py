# horizonfit/schemas.py
from datetime import datetime, date
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, EmailStr, field_validator, model_validator
from enum import Enum

from .models import UserRole, PatientStatus, ComplianceLevel, Mood, TaskCategory, MetricType, AuditAction
from .zones import MAX_ZONE


# --- Outcome Enums ---
class GateReason(str, Enum):
    videos_incomplete = "videos_incomplete"
    weekly_limit = "weekly_limit"
    zone_completed = "zone_completed"
    zone_locked = "zone_locked"
    program_completed = "program_completed"


class WeeklyLogAction(str, Enum):
    CONTINUE_ZONE = "CONTINUE_ZONE"
    ZONE_UPGRADE = "ZONE_UPGRADE"
    PROGRAM_COMPLETED = "PROGRAM_COMPLETED"


# --- Base Schemas ---
class BaseSchema(BaseModel):
    class Config:
        from_attributes = True


# --- User Schemas ---
class UserBase(BaseSchema):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    full_name: Optional[str] = Field(None, max_length=120)
    mobile_number: Optional[str] = Field(None, max_length=20)
    role: UserRole = UserRole.patient


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if not any(char.isdigit() for char in v):
            raise ValueError('Password must contain at least one digit')
        if not any(char.isupper() for char in v):
            raise ValueError('Password must contain at least one uppercase letter')
        return v


class UserResponse(UserBase):
    id: int
    is_active: bool
    created_at: Optional[datetime] = None


class TokenResponse(BaseSchema):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# --- Patient Schemas ---
class PatientResponse(BaseSchema):
    id: int
    user_id: int
    current_zone: int
    total_weeks_completed: int
    program_completed: bool
    status: PatientStatus
    program_start_date: Optional[datetime] = None
    last_metrics_date: Optional[datetime] = None
    last_weekly_log_date: Optional[datetime] = None


class PatientStatusUpdate(BaseSchema):
    status: PatientStatus
    note: Optional[str] = None


class DoctorNoteCreate(BaseSchema):
    note: str = Field(..., min_length=1)


class DoctorNoteResponse(BaseSchema):
    id: int
    note: str
    author_id: Optional[int] = None
    created_at: Optional[datetime] = None


class ZoneOverride(BaseSchema):
    zone_number: int
    reason: str = Field(..., min_length=1)


# --- Zone Video Schemas ---
class ZoneVideoBase(BaseSchema):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    video_url: Optional[str] = None
    pdf_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[str] = None
    zone_number: int = Field(..., ge=1, le=MAX_ZONE)
    order: int = 0
    is_required: bool = True


class ZoneVideoCreate(ZoneVideoBase):

    @model_validator(mode='after')
    def require_media(self):
        if not self.video_url and not self.pdf_url:
            raise ValueError('Either a video URL or a PDF URL is required')
        return self


class ZoneVideoUpdate(BaseSchema):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    video_url: Optional[str] = None
    pdf_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[str] = None
    zone_number: Optional[int] = Field(None, ge=1, le=MAX_ZONE)
    order: Optional[int] = None
    is_required: Optional[bool] = None
    is_active: Optional[bool] = None


class ZoneVideoResponse(ZoneVideoBase):
    id: int
    is_active: bool


class ZoneVideoWithStatus(ZoneVideoResponse):
    is_watched: bool = False


class VideoWatchResult(BaseSchema):
    videos_completed: bool
    watched_count: int
    total_required: int


class VideoCompletionStatus(BaseSchema):
    current_zone: int
    videos_completed: bool
    can_enter_metrics: bool


# --- Metrics Schemas ---
class MetricsSubmit(BaseSchema):
    # Presence is enforced by the metrics gate; ranges only here
    weight: Optional[float] = Field(None, gt=0, le=500)
    body_fat_percentage: Optional[float] = Field(None, ge=0, le=80)
    visceral_fat: Optional[float] = Field(None, ge=0, le=60)


class MetricsSnapshot(BaseSchema):
    weight: Optional[float] = None
    body_fat_percentage: Optional[float] = None
    visceral_fat: Optional[float] = None
    date_recorded: Optional[datetime] = None


class BodyMetricsEntryResponse(BaseSchema):
    id: int
    metric_type: MetricType
    value: float
    unit: str
    date_recorded: datetime


class MetricsEligibility(BaseSchema):
    allowed: bool
    reason: Optional[GateReason] = None
    days_remaining: Optional[int] = None
    days_since_last: Optional[int] = None
    last_entry_date: Optional[datetime] = None
    message: str = ""


class Recommendations(BaseSchema):
    daily_calories: int
    water_intake: float
    sleep_duration: float
    sleep_bed_time: Optional[str] = None
    sleep_wake_time: Optional[str] = None
    exercise_minutes: int
    exercise_type: Optional[str] = None
    meditation_minutes: int
    mindset_tip: Optional[str] = None
    custom_notes: Optional[str] = None
    calculated_at: Optional[datetime] = None


class RecommendationOverrideUpdate(BaseSchema):
    daily_calories: Optional[int] = Field(None, ge=0)
    water_intake: Optional[float] = Field(None, ge=0)
    sleep_duration: Optional[float] = Field(None, ge=0, le=24)
    exercise_minutes: Optional[int] = Field(None, ge=0)
    exercise_type: Optional[str] = None
    meditation_minutes: Optional[int] = Field(None, ge=0)
    custom_notes: Optional[str] = None


class MetricsResult(BaseSchema):
    metrics: MetricsSnapshot
    recommendations: Recommendations
    next_entry_date: datetime


# --- Weekly Log Schemas ---
class WeeklyLogCreate(BaseSchema):
    zone_number: int
    compliance: ComplianceLevel
    completed_tasks: int = Field(0, ge=0)
    total_tasks: int = Field(0, ge=0)
    notes: Optional[str] = None
    metrics: Optional[Dict[str, float]] = None

    @model_validator(mode='after')
    def check_task_counts(self):
        if self.completed_tasks > self.total_tasks:
            raise ValueError('completed_tasks cannot exceed total_tasks')
        return self


class WeeklyLogResponse(BaseSchema):
    id: int
    zone_number: int
    week_number: int
    compliance: ComplianceLevel
    completed_tasks: int
    total_tasks: int
    notes: Optional[str] = None
    metrics: Optional[Dict[str, Any]] = None
    submitted_at: datetime


class WeeklyLogResult(BaseSchema):
    action: WeeklyLogAction
    new_zone: Optional[int] = None
    current_weeks: Optional[int] = None
    message: str = ""


# --- DIY Task Schemas ---
class DIYTaskTemplateBase(BaseSchema):
    zone_number: int = Field(..., ge=1, le=MAX_ZONE)
    category: TaskCategory
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = None
    order: int = 0


class DIYTaskTemplateCreate(DIYTaskTemplateBase):
    pass


class DIYTaskTemplateUpdate(BaseSchema):
    zone_number: Optional[int] = Field(None, ge=1, le=MAX_ZONE)
    category: Optional[TaskCategory] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None


class DIYTaskTemplateResponse(DIYTaskTemplateBase):
    id: int
    is_active: bool


class DIYTaskWithStatus(DIYTaskTemplateResponse):
    is_completed: bool = False


class DIYTaskList(BaseSchema):
    current_zone: int
    tasks: List[DIYTaskWithStatus]


# --- Daily Log Schemas ---
class DailyLogCreate(BaseSchema):
    completed_task_ids: List[int] = Field(default_factory=list)
    notes: Optional[str] = None
    mood: Optional[Mood] = None


class DailyLogResponse(BaseSchema):
    id: int
    zone_number: int
    log_date: date
    completed_task_ids: List[int]
    notes: Optional[str] = None
    mood: Optional[Mood] = None


class DailyLogSubmitResult(BaseSchema):
    log: DailyLogResponse
    updated: bool


# --- Progress Schemas ---
class ZoneView(BaseSchema):
    zone_number: int
    zone_name: str
    zone_description: str
    is_unlocked: bool
    is_completed: bool
    videos_completed: bool
    required_videos: List[ZoneVideoWithStatus]
    diy_tasks: List[DIYTaskTemplateResponse]
    weeks_in_zone: int
    min_weeks_required: int


class ProgressView(BaseSchema):
    patient_id: int
    current_zone: int
    zones: List[ZoneView]
    latest_metrics: Optional[MetricsSnapshot] = None
    recommendations: Optional[Recommendations] = None
    weekly_logs: List[WeeklyLogResponse]
    total_weeks_completed: int
    program_completed: bool
    can_enter_metrics: bool
    metrics_blocked_reason: Optional[GateReason] = None
    days_since_last_metrics: Optional[int] = None
    days_until_next_metrics: int


# --- Doctor Monitoring Schemas ---
class PatientSummary(BaseSchema):
    id: int
    name: Optional[str] = None
    email: str
    mobile: Optional[str] = None
    current_zone: int
    total_weeks_completed: int
    program_completed: bool
    status: PatientStatus
    program_start_date: Optional[datetime] = None
    last_log_date: Optional[datetime] = None
    days_since_last_daily_log: Optional[int] = None
    compliance_rate: int
    latest_weight: Optional[float] = None


class PatientDetail(BaseSchema):
    patient: PatientSummary
    progress: ProgressView
    metrics_history: List[BodyMetricsEntryResponse]
    doctor_notes: List[DoctorNoteResponse]
    recommendation_override: Optional[RecommendationOverrideUpdate] = None


class DailyActivityEntry(BaseSchema):
    patient_id: int
    name: Optional[str] = None
    email: str
    current_zone: int
    has_logged_today: bool
    today_completed_tasks: int
    days_since_last_log: Optional[int] = None
    is_at_risk: bool


class DailyActivityReport(BaseSchema):
    report_date: date
    total_patients: int
    active_today: int
    at_risk: int
    patients: List[DailyActivityEntry]


class MetricsTrendPoint(BaseSchema):
    date_recorded: datetime
    weight: Optional[float] = None
    body_fat_percentage: Optional[float] = None
    visceral_fat: Optional[float] = None


class DailyActivityPoint(BaseSchema):
    day: date
    tasks_completed: int


class PatientTrends(BaseSchema):
    patient_id: int
    days: int
    metrics_history: List[MetricsTrendPoint]
    daily_activity: List[DailyActivityPoint]


# --- Audit / Health Schemas ---
class AuditLogResponse(BaseSchema):
    id: int
    user_id: Optional[int] = None
    username: Optional[str] = None
    action: AuditAction
    category: str
    severity: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[int] = None
    details: Optional[str] = None
    new_values: Optional[Dict[str, Any]] = None
    timestamp: Optional[datetime] = None


class ConsistencyIssue(BaseSchema):
    patient_id: int
    zone_number: Optional[int] = None
    issue: str


class ConsistencyReport(BaseSchema):
    checked_at: datetime
    zone_out_of_range: List[ConsistencyIssue]
    current_zone_out_of_range: List[ConsistencyIssue]
    video_flag_mismatches: List[ConsistencyIssue]
    premature_completions: List[ConsistencyIssue]


class RecommendationOverrideResult(BaseSchema):
    override: RecommendationOverrideUpdate
    recommendations: Optional[Recommendations] = None
