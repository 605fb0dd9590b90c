from carecompanion.models.patient import (
    Patient,
    CareRelationship,
    Note,
    DementiaStageEnum,
    MoodTrendEnum,
    CareRoleEnum,
    NoteKindEnum
)

from carecompanion.models.clinical import (
    SafetyAlert,
    ADLAssessment,
    CaregiverStatus,
    MoodEntry,
    BehaviorLog,
    Goal,
    GoalMilestone,
    Task,
    Medication,
    MedicationLog,
    Appointment,
    SleepEntry,
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

# Base model for all tables
from carecompanion.core.database import Base

# Model collections for easy iteration
PATIENT_MODELS = [
    Patient,
    CareRelationship,
    Note
]

CLINICAL_MODELS = [
    SafetyAlert,
    ADLAssessment,
    CaregiverStatus,
    MoodEntry,
    BehaviorLog,
    Goal,
    GoalMilestone,
    Task,
    Medication,
    MedicationLog,
    Appointment,
    SleepEntry
]

ALL_MODELS = PATIENT_MODELS + CLINICAL_MODELS

# Model registry for dynamic access
MODEL_REGISTRY = {
    "patient": Patient,
    "care_relationship": CareRelationship,
    "note": Note,
    "safety_alert": SafetyAlert,
    "adl_assessment": ADLAssessment,
    "caregiver_status": CaregiverStatus,
    "mood_entry": MoodEntry,
    "behavior_log": BehaviorLog,
    "goal": Goal,
    "goal_milestone": GoalMilestone,
    "task": Task,
    "medication": Medication,
    "medication_log": MedicationLog,
    "appointment": Appointment,
    "sleep_entry": SleepEntry,
}


def get_model_by_name(model_name: str):
    """Get model class by name"""
    return MODEL_REGISTRY.get(model_name.lower())


__all__ = [
    "Base",
    "Patient",
    "CareRelationship",
    "Note",
    "SafetyAlert",
    "ADLAssessment",
    "CaregiverStatus",
    "MoodEntry",
    "BehaviorLog",
    "Goal",
    "GoalMilestone",
    "Task",
    "Medication",
    "MedicationLog",
    "Appointment",
    "SleepEntry",
    "DementiaStageEnum",
    "MoodTrendEnum",
    "CareRoleEnum",
    "NoteKindEnum",
    "AlertCategoryEnum",
    "SafetyAlertTypeEnum",
    "TimeOfDayEnum",
    "SeverityEnum",
    "StressLevelEnum",
    "SupportStrengthEnum",
    "BurnoutRiskEnum",
    "GoalCategoryEnum",
    "GoalStatusEnum",
    "TaskStatusEnum",
    "MedicationFormEnum",
    "MedicationLogStatusEnum",
    "SleepQualityEnum",
    "PATIENT_MODELS",
    "CLINICAL_MODELS",
    "ALL_MODELS",
    "MODEL_REGISTRY",
    "get_model_by_name",
]
