"""
Response schemas for the derived views: safety triage, ADL decline,
caregiver status with burnout estimate, and dashboard roll-ups.
"""

import datetime as dt
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from carecompanion.models.clinical import (
    BurnoutRiskEnum,
    GoalStatusEnum,
    SleepQualityEnum
)
from carecompanion.models.patient import MoodTrendEnum
from carecompanion.schemas.clinical import (
    ADLAssessmentResponse,
    CaregiverStatusResponse,
    SafetyAlertResponse,
    AppointmentResponse
)


class StatusIndicatorEnum(str, Enum):
    NEEDS_ATTENTION = "needs_attention"
    MONITOR = "monitor"
    STABLE = "stable"


class AlertTierCounts(BaseModel):
    urgent: int = 0
    monitor: int = 0
    stable: int = 0
    resolved: int = 0
    total: int = 0


class SafetyTriageResponse(BaseModel):
    """Alerts partitioned into display tiers, newest first within each"""

    patient_id: UUID
    urgent: List[SafetyAlertResponse] = Field(default_factory=list)
    monitor: List[SafetyAlertResponse] = Field(default_factory=list)
    stable: List[SafetyAlertResponse] = Field(default_factory=list)
    resolved: List[SafetyAlertResponse] = Field(default_factory=list, description="Resolved red/yellow alerts")
    counts: AlertTierCounts
    status_indicator: StatusIndicatorEnum


class ADLConcern(BaseModel):
    field: str
    previous: int
    latest: int


class ADLDeclineResponse(BaseModel):
    patient_id: UUID
    assessment_count: int
    latest: Optional[ADLAssessmentResponse] = None
    previous: Optional[ADLAssessmentResponse] = None
    latest_total: Optional[int] = Field(None, description="Sum of basic ADL scores, 6-30")
    previous_total: Optional[int] = None
    latest_iadl_total: Optional[int] = Field(None, description="Informational only")
    decline: int = 0
    due: bool = False
    concerns: List[ADLConcern] = Field(default_factory=list)


class CaregiverStatusView(CaregiverStatusResponse):
    days_since_respite: Optional[int] = Field(None, description="Whole days since the last respite break")
    estimated_burnout_risk: BurnoutRiskEnum
    scorer: str


class MoodTally(BaseModel):
    window_days: int
    positive: int = 0
    negative: int = 0
    total: int = 0
    behavior_incidents: int = 0


class GoalProgressItem(BaseModel):
    goal_id: UUID
    title: str
    status: GoalStatusEnum
    progress: int
    milestone_completion_ratio: float


class GoalSummary(BaseModel):
    goals: List[GoalProgressItem] = Field(default_factory=list)
    active_count: int = 0
    average_progress: int = 0


class DashboardStatsResponse(BaseModel):
    patient_id: UUID
    day: dt.date

    tasks_completed: int = 0
    tasks_total: int = 0
    tasks_completion_rate: int = 0

    medications_taken: int = 0
    medications_total: int = 0
    medications_adherence_rate: int = 0

    mood_today: Optional[str] = None
    mood_trend: MoodTrendEnum = MoodTrendEnum.STABLE
    sleep_hours: Optional[float] = None
    sleep_quality: Optional[SleepQualityEnum] = None

    mood_tally: MoodTally
    goal_summary: GoalSummary
    safety: AlertTierCounts
    status_indicator: StatusIndicatorEnum

    degraded: List[str] = Field(default_factory=list, description="Collections that failed to load")
    generated_at: dt.datetime


class PatientOverviewItem(BaseModel):
    patient_id: UUID
    display_name: str
    status_indicator: StatusIndicatorEnum
    tasks_completed: int = 0
    tasks_total: int = 0
    pending_medications: int = 0
    latest_mood: Optional[str] = None
    next_appointment: Optional[AppointmentResponse] = None


class CaregiverOverviewResponse(BaseModel):
    day: dt.date
    total_patients: int = 0
    urgent_alerts: int = 0
    monitor_alerts: int = 0
    pending_medications: int = 0
    patients: List[PatientOverviewItem] = Field(default_factory=list)
    degraded: List[str] = Field(default_factory=list)
    generated_at: dt.datetime


__all__ = [
    "StatusIndicatorEnum",
    "AlertTierCounts",
    "SafetyTriageResponse",
    "ADLConcern",
    "ADLDeclineResponse",
    "CaregiverStatusView",
    "MoodTally",
    "GoalProgressItem",
    "GoalSummary",
    "DashboardStatsResponse",
    "PatientOverviewItem",
    "CaregiverOverviewResponse",
]
