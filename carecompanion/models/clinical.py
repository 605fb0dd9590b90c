"""
CareCompanion - Clinical tracking models

Patient-scoped record collections consumed by the dashboard aggregation
rules: safety alerts, functional (ADL) assessments, caregiver status, mood and
behavior logs, goals, tasks, medications, appointments and sleep.
"""

import enum
import uuid

from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    Boolean,
    Date,
    DateTime,
    Time,
    Text,
    JSON,
    ForeignKey,
    Index,
    UniqueConstraint,
    CheckConstraint,
    Uuid
)
from sqlalchemy.orm import relationship

from carecompanion.core.config import AppConstants
from carecompanion.core.database import Base
from carecompanion.models.patient import enum_column_type
from carecompanion.utils.timeutils import utcnow


class AlertCategoryEnum(str, enum.Enum):
    """Closed set of safety tiers"""
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"


class SafetyAlertTypeEnum(str, enum.Enum):
    FALL = "fall"
    WANDERING = "wandering"
    MEDICATION_REFUSAL = "medication_refusal"
    SUNDOWNING = "sundowning"
    SLEEP_DISTURBANCE = "sleep_disturbance"
    APPETITE_CHANGE = "appetite_change"
    STABLE_PERIOD = "stable_period"
    POSITIVE_ENGAGEMENT = "positive_engagement"
    CAREGIVER_COPING = "caregiver_coping"


class TimeOfDayEnum(str, enum.Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class SeverityEnum(str, enum.Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class StressLevelEnum(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SupportStrengthEnum(str, enum.Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


class BurnoutRiskEnum(str, enum.Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class GoalCategoryEnum(str, enum.Enum):
    FUNCTIONAL = "functional"
    COGNITIVE = "cognitive"
    EMOTIONAL = "emotional"
    PHYSICAL = "physical"


class GoalStatusEnum(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class TaskStatusEnum(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class MedicationFormEnum(str, enum.Enum):
    PILL = "pill"
    LIQUID = "liquid"
    INJECTION = "injection"
    PATCH = "patch"
    INHALER = "inhaler"


class MedicationLogStatusEnum(str, enum.Enum):
    TAKEN = "taken"
    MISSED = "missed"
    PENDING = "pending"
    SKIPPED = "skipped"


class SleepQualityEnum(str, enum.Enum):
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    EXCELLENT = "excellent"


TIME_OF_DAY_TYPE = enum_column_type(TimeOfDayEnum, "time_of_day")


def _patient_fk():
    return Column(Uuid, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)


class SafetyAlert(Base):
    """One detected safety-relevant pattern for a patient"""

    __tablename__ = "safety_alerts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = _patient_fk()

    type = Column(enum_column_type(SafetyAlertTypeEnum, "safety_alert_type"), nullable=False)
    category = Column(enum_column_type(AlertCategoryEnum, "alert_category"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    count = Column(Integer, nullable=False, default=1)
    last_occurred = Column(DateTime(timezone=True))
    recommended_action = Column(Text)

    is_resolved = Column(Boolean, nullable=False, default=False)
    resolved_at = Column(DateTime(timezone=True))
    resolved_by = Column(Uuid)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("count >= 0", name="check_alert_count_non_negative"),
        Index("idx_safety_alert_patient_created", "patient_id", "created_at"),
    )

    def __repr__(self):
        return f"<SafetyAlert(id='{self.id}', category='{self.category}', resolved={self.is_resolved})>"


def _adl_score_column():
    return Column(Integer, nullable=False)


def _adl_range_check(field: str) -> CheckConstraint:
    return CheckConstraint(
        f"{field} >= {AppConstants.ADL_MIN_SCORE} AND {field} <= {AppConstants.ADL_MAX_SCORE}",
        name=f"check_adl_{field}_range",
    )


class ADLAssessment(Base):
    """Clinician functional assessment; 1 = independent, 5 = fully dependent"""

    __tablename__ = "adl_assessments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = _patient_fk()
    date = Column(Date, nullable=False)
    assessed_by = Column(Uuid, nullable=False)

    # Basic ADLs
    dressing = _adl_score_column()
    eating = _adl_score_column()
    bathing = _adl_score_column()
    toileting = _adl_score_column()
    transferring = _adl_score_column()
    continence = _adl_score_column()

    # Instrumental ADLs
    meal_preparation = _adl_score_column()
    medication_management = _adl_score_column()
    phone_use = _adl_score_column()
    finances = _adl_score_column()
    transportation = _adl_score_column()
    shopping = _adl_score_column()

    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = tuple(
        _adl_range_check(field)
        for field in AppConstants.BASIC_ADL_FIELDS + AppConstants.INSTRUMENTAL_ADL_FIELDS
    ) + (
        Index("idx_adl_patient_date", "patient_id", "date"),
    )

    @property
    def basic_total(self) -> int:
        return sum(getattr(self, field) for field in AppConstants.BASIC_ADL_FIELDS)

    def __repr__(self):
        return f"<ADLAssessment(patient_id='{self.patient_id}', date='{self.date}', total={self.basic_total})>"


class CaregiverStatus(Base):
    """Current caregiver strain snapshot, one row per (caregiver, patient)"""

    __tablename__ = "caregiver_statuses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    caregiver_id = Column(Uuid, nullable=False)
    patient_id = _patient_fk()

    stress_level = Column(enum_column_type(StressLevelEnum, "stress_level"), nullable=False)
    support_system_strength = Column(enum_column_type(SupportStrengthEnum, "support_strength"), nullable=False)
    hours_of_care_this_week = Column(Float, nullable=False, default=0.0)
    nights_interrupted_sleep = Column(Integer, nullable=False, default=0)
    emergency_calls_made = Column(Integer, nullable=False, default=0)
    last_respite_break = Column(DateTime(timezone=True))
    last_check_in = Column(DateTime(timezone=True))

    # Externally assigned by a clinician or rules engine
    burnout_risk = Column(enum_column_type(BurnoutRiskEnum, "burnout_risk"), nullable=False)
    recommended_actions = Column(JSON, nullable=False, default=list)

    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("caregiver_id", "patient_id", name="uq_caregiver_status_pair"),
        CheckConstraint("hours_of_care_this_week >= 0", name="check_care_hours_non_negative"),
        CheckConstraint("nights_interrupted_sleep >= 0 AND nights_interrupted_sleep <= 7", name="check_interrupted_nights"),
        CheckConstraint("emergency_calls_made >= 0", name="check_emergency_calls_non_negative"),
    )


class MoodEntry(Base):
    __tablename__ = "mood_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = _patient_fk()
    # Open vocabulary; classification treats unknown moods as positive
    mood = Column(String(32), nullable=False)
    intensity = Column(Integer)
    note = Column(Text)
    triggers = Column(JSON, default=list)
    time_of_day = Column(TIME_OF_DAY_TYPE)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    recorded_by = Column(Uuid, nullable=False)

    __table_args__ = (
        CheckConstraint("intensity IS NULL OR (intensity >= 1 AND intensity <= 10)", name="check_mood_intensity"),
        Index("idx_mood_patient_timestamp", "patient_id", "timestamp"),
    )


class BehaviorLog(Base):
    __tablename__ = "behavior_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = _patient_fk()
    behavior = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    severity = Column(enum_column_type(SeverityEnum, "behavior_severity"), nullable=False)
    triggers = Column(JSON, default=list)
    interventions = Column(JSON, default=list)
    outcome = Column(Text)
    duration_minutes = Column(Integer)
    time_of_day = Column(TIME_OF_DAY_TYPE)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    recorded_by = Column(Uuid, nullable=False)

    __table_args__ = (
        CheckConstraint("duration_minutes IS NULL OR duration_minutes >= 0", name="check_behavior_duration"),
        Index("idx_behavior_patient_timestamp", "patient_id", "timestamp"),
    )


class Goal(Base):
    """Therapeutic objective; progress is clinician-entered"""

    __tablename__ = "goals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = _patient_fk()
    title = Column(String(200), nullable=False)
    description = Column(Text)
    category = Column(enum_column_type(GoalCategoryEnum, "goal_category"), nullable=False)
    status = Column(enum_column_type(GoalStatusEnum, "goal_status"), nullable=False, default=GoalStatusEnum.ACTIVE)
    progress = Column(Integer, nullable=False, default=0)
    target_date = Column(Date)
    created_by = Column(Uuid, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    milestones = relationship(
        "GoalMilestone",
        back_populates="goal",
        order_by="GoalMilestone.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="check_goal_progress_range"),
    )

    @property
    def milestone_completion_ratio(self) -> float:
        if not self.milestones:
            return 0.0
        completed = sum(1 for m in self.milestones if m.completed)
        return completed / len(self.milestones)


class GoalMilestone(Base):
    __tablename__ = "goal_milestones"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    goal_id = Column(Uuid, ForeignKey("goals.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    title = Column(String(200), nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True))

    goal = relationship("Goal", back_populates="milestones")

    __table_args__ = (
        UniqueConstraint("goal_id", "position", name="uq_goal_milestone_position"),
    )


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = _patient_fk()
    title = Column(String(200), nullable=False)
    description = Column(Text)
    icon = Column(String(50))
    time_of_day = Column(TIME_OF_DAY_TYPE, nullable=False)
    scheduled_time = Column(String(20))
    scheduled_for = Column(Date)
    status = Column(enum_column_type(TaskStatusEnum, "task_status"), nullable=False, default=TaskStatusEnum.PENDING)
    completed_at = Column(DateTime(timezone=True))
    is_recurring = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Medication(Base):
    __tablename__ = "medications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = _patient_fk()
    name = Column(String(200), nullable=False)
    generic_name = Column(String(200))
    dosage = Column(String(100), nullable=False)
    form = Column(enum_column_type(MedicationFormEnum, "medication_form"), nullable=False)
    instructions = Column(Text, nullable=False, default="")
    prescribed_by = Column(String(200))
    side_effects = Column(JSON, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    logs = relationship("MedicationLog", back_populates="medication", cascade="all, delete-orphan")


class MedicationLog(Base):
    __tablename__ = "medication_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    medication_id = Column(Uuid, ForeignKey("medications.id", ondelete="CASCADE"), nullable=False)
    patient_id = _patient_fk()
    scheduled_time = Column(String(20), nullable=False)
    taken_time = Column(DateTime(timezone=True))
    status = Column(
        enum_column_type(MedicationLogStatusEnum, "medication_log_status"),
        nullable=False,
        default=MedicationLogStatusEnum.PENDING,
    )
    notes = Column(Text)
    date = Column(Date, nullable=False)
    recorded_by = Column(Uuid, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    medication = relationship("Medication", back_populates="logs")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = _patient_fk()
    title = Column(String(200), nullable=False)
    provider = Column(String(200), nullable=False)
    location = Column(String(300))
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    notes = Column(Text)
    reminder_set = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class SleepEntry(Base):
    __tablename__ = "sleep_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = _patient_fk()
    date = Column(Date, nullable=False)
    bed_time = Column(String(20))
    wake_time = Column(String(20))
    duration_hours = Column(Float, nullable=False)
    quality = Column(enum_column_type(SleepQualityEnum, "sleep_quality"), nullable=False)
    interruptions = Column(Integer, nullable=False, default=0)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("duration_hours >= 0 AND duration_hours <= 24", name="check_sleep_duration"),
    )
