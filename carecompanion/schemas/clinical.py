"""
Request and response schemas for patient-scoped clinical records.

Response schemas double as the boundary check for rows read back from the
database (see ``carecompanion.services.records``).
"""

import datetime as dt
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from carecompanion.core.config import AppConstants
from carecompanion.models.clinical import (
    AlertCategoryEnum,
    SafetyAlertTypeEnum,
    TimeOfDayEnum,
    SeverityEnum,
    StressLevelEnum,
    SupportStrengthEnum,
    BurnoutRiskEnum,
    GoalCategoryEnum,
    GoalStatusEnum,
    TaskStatusEnum,
    MedicationFormEnum,
    MedicationLogStatusEnum,
    SleepQualityEnum
)


ADLScore = Annotated[int, Field(ge=AppConstants.ADL_MIN_SCORE, le=AppConstants.ADL_MAX_SCORE)]
Percent = Annotated[int, Field(ge=0, le=100)]


class OrmSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Safety alerts

class SafetyAlertCreate(BaseModel):
    type: SafetyAlertTypeEnum
    category: AlertCategoryEnum
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    count: int = Field(1, ge=0)
    last_occurred: Optional[dt.datetime] = None
    recommended_action: Optional[str] = Field(None, max_length=2000)

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "type": "fall",
                "category": "red",
                "title": "Fall detected in bathroom",
                "description": "Found on floor at 06:10, no visible injury",
                "count": 1,
                "recommended_action": "Install grab bars and schedule PT review",
            }
        },
    )


class SafetyAlertResponse(OrmSchema):
    id: UUID
    patient_id: UUID
    type: SafetyAlertTypeEnum
    category: AlertCategoryEnum
    title: str
    description: str
    count: int
    last_occurred: Optional[dt.datetime] = None
    recommended_action: Optional[str] = None
    is_resolved: bool
    resolved_at: Optional[dt.datetime] = None
    resolved_by: Optional[UUID] = None
    created_at: dt.datetime


# ADL assessments

class ADLAssessmentCreate(BaseModel):
    """Scores run 1 (independent) to 5 (fully dependent)"""

    date: dt.date
    dressing: ADLScore
    eating: ADLScore
    bathing: ADLScore
    toileting: ADLScore
    transferring: ADLScore
    continence: ADLScore
    meal_preparation: ADLScore
    medication_management: ADLScore
    phone_use: ADLScore
    finances: ADLScore
    transportation: ADLScore
    shopping: ADLScore
    notes: Optional[str] = Field(None, max_length=5000)

    model_config = ConfigDict(extra="forbid")


class ADLAssessmentResponse(OrmSchema):
    id: UUID
    patient_id: UUID
    date: dt.date
    assessed_by: UUID
    dressing: ADLScore
    eating: ADLScore
    bathing: ADLScore
    toileting: ADLScore
    transferring: ADLScore
    continence: ADLScore
    meal_preparation: ADLScore
    medication_management: ADLScore
    phone_use: ADLScore
    finances: ADLScore
    transportation: ADLScore
    shopping: ADLScore
    notes: Optional[str] = None
    created_at: dt.datetime


# Caregiver status

class CaregiverStatusUpdate(BaseModel):
    """Full re-assessment; replaces the stored snapshot"""

    stress_level: StressLevelEnum
    support_system_strength: SupportStrengthEnum
    hours_of_care_this_week: float = Field(0.0, ge=0, le=168)
    nights_interrupted_sleep: int = Field(0, ge=0, le=7)
    emergency_calls_made: int = Field(0, ge=0)
    last_respite_break: Optional[dt.datetime] = None
    last_check_in: Optional[dt.datetime] = None
    burnout_risk: BurnoutRiskEnum
    recommended_actions: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class CaregiverStatusResponse(OrmSchema):
    caregiver_id: UUID
    patient_id: UUID
    stress_level: StressLevelEnum
    support_system_strength: SupportStrengthEnum
    hours_of_care_this_week: float
    nights_interrupted_sleep: int
    emergency_calls_made: int
    last_respite_break: Optional[dt.datetime] = None
    last_check_in: Optional[dt.datetime] = None
    burnout_risk: BurnoutRiskEnum
    recommended_actions: List[str] = Field(default_factory=list)
    updated_at: dt.datetime


# Mood and behavior

class MoodEntryCreate(BaseModel):
    mood: str = Field(..., min_length=1, max_length=32, description="Free-form mood label, e.g. happy, anxious")
    intensity: Optional[int] = Field(None, ge=1, le=10)
    note: Optional[str] = Field(None, max_length=2000)
    triggers: List[str] = Field(default_factory=list)
    time_of_day: Optional[TimeOfDayEnum] = None
    timestamp: Optional[dt.datetime] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("mood")
    @classmethod
    def normalize_mood(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("mood must not be blank")
        return v


class MoodEntryResponse(OrmSchema):
    id: UUID
    patient_id: UUID
    mood: str
    intensity: Optional[int] = Field(None, ge=1, le=10)
    note: Optional[str] = None
    triggers: Optional[List[str]] = None
    time_of_day: Optional[TimeOfDayEnum] = None
    timestamp: dt.datetime
    recorded_by: UUID


class BehaviorLogCreate(BaseModel):
    behavior: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    severity: SeverityEnum
    triggers: List[str] = Field(default_factory=list)
    interventions: List[str] = Field(default_factory=list)
    outcome: Optional[str] = Field(None, max_length=2000)
    duration_minutes: Optional[int] = Field(None, ge=0)
    time_of_day: Optional[TimeOfDayEnum] = None
    timestamp: Optional[dt.datetime] = None

    model_config = ConfigDict(extra="forbid")


class BehaviorLogResponse(OrmSchema):
    id: UUID
    patient_id: UUID
    behavior: str
    description: str
    severity: SeverityEnum
    triggers: Optional[List[str]] = None
    interventions: Optional[List[str]] = None
    outcome: Optional[str] = None
    duration_minutes: Optional[int] = None
    time_of_day: Optional[TimeOfDayEnum] = None
    timestamp: dt.datetime
    recorded_by: UUID


# Goals

class GoalCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    category: GoalCategoryEnum
    status: GoalStatusEnum = GoalStatusEnum.ACTIVE
    progress: Percent = 0
    target_date: Optional[dt.date] = None
    milestones: List[str] = Field(default_factory=list, description="Milestone titles, in order")

    model_config = ConfigDict(extra="forbid")


class GoalProgressUpdate(BaseModel):
    progress: Percent
    status: Optional[GoalStatusEnum] = None

    model_config = ConfigDict(extra="forbid")


class MilestoneUpdate(BaseModel):
    completed: bool

    model_config = ConfigDict(extra="forbid")


class MilestoneResponse(OrmSchema):
    id: UUID
    position: int
    title: str
    completed: bool
    completed_at: Optional[dt.datetime] = None


class GoalResponse(OrmSchema):
    id: UUID
    patient_id: UUID
    title: str
    description: Optional[str] = None
    category: GoalCategoryEnum
    status: GoalStatusEnum
    progress: Percent
    target_date: Optional[dt.date] = None
    created_by: UUID
    created_at: dt.datetime
    milestones: List[MilestoneResponse] = Field(default_factory=list)
    milestone_completion_ratio: float = Field(0.0, ge=0.0, le=1.0)


# Tasks

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    icon: Optional[str] = Field(None, max_length=50)
    time_of_day: TimeOfDayEnum
    scheduled_time: Optional[str] = Field(None, max_length=20)
    scheduled_for: Optional[dt.date] = None
    is_recurring: bool = True

    model_config = ConfigDict(extra="forbid")


class TaskStatusUpdate(BaseModel):
    status: TaskStatusEnum

    model_config = ConfigDict(extra="forbid")


class TaskResponse(OrmSchema):
    id: UUID
    patient_id: UUID
    title: str
    description: Optional[str] = None
    icon: Optional[str] = None
    time_of_day: TimeOfDayEnum
    scheduled_time: Optional[str] = None
    scheduled_for: Optional[dt.date] = None
    status: TaskStatusEnum
    completed_at: Optional[dt.datetime] = None
    is_recurring: bool
    is_active: bool


# Medications

class MedicationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    generic_name: Optional[str] = Field(None, max_length=200)
    dosage: str = Field(..., min_length=1, max_length=100)
    form: MedicationFormEnum
    instructions: str = Field("", max_length=2000)
    prescribed_by: Optional[str] = Field(None, max_length=200)
    side_effects: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class MedicationResponse(OrmSchema):
    id: UUID
    patient_id: UUID
    name: str
    generic_name: Optional[str] = None
    dosage: str
    form: MedicationFormEnum
    instructions: str
    prescribed_by: Optional[str] = None
    side_effects: Optional[List[str]] = None
    is_active: bool


class MedicationLogCreate(BaseModel):
    medication_id: UUID
    scheduled_time: str = Field(..., min_length=1, max_length=20)
    status: MedicationLogStatusEnum = MedicationLogStatusEnum.PENDING
    taken_time: Optional[dt.datetime] = None
    notes: Optional[str] = Field(None, max_length=2000)
    date: Optional[dt.date] = Field(None, description="Defaults to today (UTC)")

    model_config = ConfigDict(extra="forbid")


class MedicationLogUpdate(BaseModel):
    status: MedicationLogStatusEnum
    taken_time: Optional[dt.datetime] = None
    notes: Optional[str] = Field(None, max_length=2000)

    model_config = ConfigDict(extra="forbid")


class MedicationLogResponse(OrmSchema):
    id: UUID
    medication_id: UUID
    patient_id: UUID
    scheduled_time: str
    taken_time: Optional[dt.datetime] = None
    status: MedicationLogStatusEnum
    notes: Optional[str] = None
    date: dt.date
    recorded_by: UUID


# Appointments and sleep

CLOCK_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p", "%I %p")


def parse_clock_time(value):
    """Accept ``datetime.time`` or a wall-clock string such as "09:30" or "9:30 AM"."""
    if not isinstance(value, str):
        return value
    text = " ".join(value.strip().upper().split())
    for fmt in CLOCK_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"unrecognised time of day: {value!r}")


ClockTime = Annotated[dt.time, BeforeValidator(parse_clock_time)]


class AppointmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    provider: str = Field(..., min_length=1, max_length=200)
    location: Optional[str] = Field(None, max_length=300)
    date: dt.date
    time: ClockTime
    notes: Optional[str] = Field(None, max_length=2000)
    reminder_set: bool = False

    model_config = ConfigDict(extra="forbid")


class AppointmentResponse(OrmSchema):
    id: UUID
    patient_id: UUID
    title: str
    provider: str
    location: Optional[str] = None
    date: dt.date
    time: ClockTime
    notes: Optional[str] = None
    reminder_set: bool


class SleepEntryCreate(BaseModel):
    date: dt.date
    bed_time: Optional[str] = Field(None, max_length=20)
    wake_time: Optional[str] = Field(None, max_length=20)
    duration_hours: float = Field(..., ge=0, le=24)
    quality: SleepQualityEnum
    interruptions: int = Field(0, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)

    model_config = ConfigDict(extra="forbid")


class SleepEntryResponse(OrmSchema):
    id: UUID
    patient_id: UUID
    date: dt.date
    bed_time: Optional[str] = None
    wake_time: Optional[str] = None
    duration_hours: float
    quality: SleepQualityEnum
    interruptions: int
    notes: Optional[str] = None
    created_at: dt.datetime


__all__ = [
    "SafetyAlertCreate",
    "SafetyAlertResponse",
    "ADLAssessmentCreate",
    "ADLAssessmentResponse",
    "CaregiverStatusUpdate",
    "CaregiverStatusResponse",
    "MoodEntryCreate",
    "MoodEntryResponse",
    "BehaviorLogCreate",
    "BehaviorLogResponse",
    "GoalCreate",
    "GoalProgressUpdate",
    "MilestoneUpdate",
    "MilestoneResponse",
    "GoalResponse",
    "TaskCreate",
    "TaskStatusUpdate",
    "TaskResponse",
    "MedicationCreate",
    "MedicationResponse",
    "MedicationLogCreate",
    "MedicationLogUpdate",
    "MedicationLogResponse",
    "ClockTime",
    "parse_clock_time",
    "AppointmentCreate",
    "AppointmentResponse",
    "SleepEntryCreate",
    "SleepEntryResponse",
]
