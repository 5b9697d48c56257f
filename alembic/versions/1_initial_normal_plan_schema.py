"""initial normal plan schema

Revision ID: 1
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1'
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum('patient', 'doctor', 'admin', name='user_role')
patient_status = sa.Enum('active', 'at-risk', 'paused', 'completed', name='patient_status')
metric_type = sa.Enum('weight', 'body_fat_percentage', 'visceral_fat', name='metric_type')
compliance_level = sa.Enum('excellent', 'good', 'fair', 'poor', name='compliance_level')
task_category = sa.Enum('nutrition', 'exercise', 'hydration', 'sleep', 'mindset', name='task_category')
mood = sa.Enum('great', 'good', 'okay', 'bad', 'terrible', name='mood')
audit_action = sa.Enum(
    'CREATE', 'UPDATE', 'DELETE', 'LOGIN', 'METRICS_SUBMITTED', 'ZONE_UPGRADE',
    'PROGRAM_COMPLETED', 'ZONE_OVERRIDE', 'RECOMMENDATION_OVERRIDE',
    name='audit_action',
)


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(120), nullable=True),
        sa.Column('mobile_number', sa.String(20), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('idx_users_role_active', 'users', ['role', 'is_active'])

    op.create_table(
        'patients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, unique=True),
        sa.Column('current_zone', sa.Integer(), nullable=False),
        sa.Column('total_weeks_completed', sa.Integer(), nullable=False),
        sa.Column('program_completed', sa.Boolean(), nullable=False),
        sa.Column('status', patient_status, nullable=False),
        sa.Column('program_start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_metrics_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_weekly_log_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('current_zone BETWEEN 1 AND 5', name='ck_patients_current_zone'),
    )

    op.create_table(
        'doctor_notes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('author_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_doctor_notes_patient_id', 'doctor_notes', ['patient_id'])

    op.create_table(
        'patient_zone_progress',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('zone_number', sa.Integer(), nullable=False),
        sa.Column('is_unlocked', sa.Boolean(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False),
        sa.Column('videos_completed', sa.Boolean(), nullable=False),
        sa.Column('watched_video_ids', sa.JSON(), nullable=False),
        sa.Column('weeks_in_zone', sa.Integer(), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.UniqueConstraint('patient_id', 'zone_number', name='uq_zone_progress_patient_zone'),
        sa.CheckConstraint('zone_number BETWEEN 1 AND 5', name='ck_zone_progress_zone_number'),
    )
    op.create_index('ix_patient_zone_progress_patient_id', 'patient_zone_progress', ['patient_id'])

    op.create_table(
        'zone_videos',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('video_url', sa.String(500), nullable=True),
        sa.Column('pdf_url', sa.String(500), nullable=True),
        sa.Column('thumbnail_url', sa.String(500), nullable=True),
        sa.Column('duration', sa.String(20), nullable=True),
        sa.Column('zone_number', sa.Integer(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('is_required', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('zone_number BETWEEN 1 AND 5', name='ck_zone_videos_zone_number'),
    )
    op.create_index('idx_zone_videos_zone_active', 'zone_videos', ['zone_number', 'is_active'])

    op.create_table(
        'body_metrics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('metric_type', metric_type, nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(10), nullable=False),
        sa.Column('date_recorded', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_body_metrics_patient_date', 'body_metrics', ['patient_id', 'date_recorded'])

    op.create_table(
        'weekly_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('zone_number', sa.Integer(), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('metrics', sa.JSON(), nullable=True),
        sa.Column('compliance', compliance_level, nullable=False),
        sa.Column('completed_tasks', sa.Integer(), nullable=False),
        sa.Column('total_tasks', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('zone_number BETWEEN 1 AND 5', name='ck_weekly_logs_zone_number'),
    )
    op.create_index('idx_weekly_logs_patient_zone', 'weekly_logs', ['patient_id', 'zone_number'])

    op.create_table(
        'recommendations_cache',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id'), nullable=False, unique=True),
        sa.Column('daily_calories', sa.Integer(), nullable=False),
        sa.Column('water_intake', sa.Float(), nullable=False),
        sa.Column('sleep_duration', sa.Float(), nullable=False),
        sa.Column('sleep_bed_time', sa.String(5), nullable=True),
        sa.Column('sleep_wake_time', sa.String(5), nullable=True),
        sa.Column('exercise_minutes', sa.Integer(), nullable=False),
        sa.Column('exercise_type', sa.String(255), nullable=True),
        sa.Column('meditation_minutes', sa.Integer(), nullable=False),
        sa.Column('mindset_tip', sa.Text(), nullable=True),
        sa.Column('metrics_recorded_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('calculated_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'recommendation_overrides',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id'), nullable=False, unique=True),
        sa.Column('daily_calories', sa.Integer(), nullable=True),
        sa.Column('water_intake', sa.Float(), nullable=True),
        sa.Column('sleep_duration', sa.Float(), nullable=True),
        sa.Column('exercise_minutes', sa.Integer(), nullable=True),
        sa.Column('exercise_type', sa.String(255), nullable=True),
        sa.Column('meditation_minutes', sa.Integer(), nullable=True),
        sa.Column('custom_notes', sa.Text(), nullable=True),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'diy_task_templates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('zone_number', sa.Integer(), nullable=False),
        sa.Column('category', task_category, nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('icon', sa.String(50), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('zone_number BETWEEN 1 AND 5', name='ck_diy_tasks_zone_number'),
    )
    op.create_index('idx_diy_tasks_zone_active', 'diy_task_templates', ['zone_number', 'is_active'])

    op.create_table(
        'daily_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('zone_number', sa.Integer(), nullable=False),
        sa.Column('log_date', sa.Date(), nullable=False),
        sa.Column('completed_task_ids', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('mood', mood, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('patient_id', 'log_date', name='uq_daily_logs_patient_date'),
    )
    op.create_index('ix_daily_logs_patient_id', 'daily_logs', ['patient_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('username', sa.String(50), nullable=True),
        sa.Column('action', audit_action, nullable=False),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('severity', sa.String(20), nullable=True),
        sa.Column('resource_type', sa.String(50), nullable=True),
        sa.Column('resource_id', sa.Integer(), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_audit_user_date', 'audit_logs', ['user_id', 'timestamp'])
    op.create_index('idx_audit_action_date', 'audit_logs', ['action', 'timestamp'])
    op.create_index('idx_audit_resource', 'audit_logs', ['resource_type', 'resource_id'])
    op.create_index('ix_audit_logs_category', 'audit_logs', ['category'])
    op.create_index('ix_audit_logs_severity', 'audit_logs', ['severity'])
    op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])


def downgrade():
    for table in (
        'audit_logs', 'daily_logs', 'diy_task_templates', 'recommendation_overrides',
        'recommendations_cache', 'weekly_logs', 'body_metrics', 'zone_videos',
        'patient_zone_progress', 'doctor_notes', 'patients', 'users',
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for enum_type in (audit_action, mood, task_category, compliance_level, metric_type, patient_status, user_role):
        enum_type.drop(bind, checkfirst=True)
