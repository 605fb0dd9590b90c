from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from carecompanion.models.patient import CareRoleEnum, DementiaStageEnum, MoodTrendEnum, NoteKindEnum


class EmergencyContactSchema(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    relationship: str = Field(..., max_length=100)
    phone: str = Field(..., min_length=3, max_length=40)
    email: Optional[str] = Field(None, max_length=200)


class PatientBase(BaseModel):
    """Fields shared by patient create and response schemas"""

    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    preferred_name: Optional[str] = Field(None, max_length=100)
    date_of_birth: Optional[date] = Field(None, description="Date of birth")
    photo_url: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    affirmation: Optional[str] = Field(None, max_length=2000, description="Daily affirmation shown to the patient")
    emergency_contact: Optional[EmergencyContactSchema] = None
    preferences: Optional[Dict[str, Any]] = Field(None, description="Display and accessibility preferences")
    diagnosis_date: Optional[date] = None
    dementia_stage: Optional[DementiaStageEnum] = None


class PatientCreate(PatientBase):
    """Request schema for adding a patient to the caller's roster"""

    display_name: str = Field(..., min_length=1, max_length=200)
    mood_trend: MoodTrendEnum = Field(MoodTrendEnum.STABLE)

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "display_name": "Margaret Thompson",
                "preferred_name": "Maggie",
                "date_of_birth": "1945-03-15",
                "dementia_stage": "middle",
                "location": "Home - Living Room",
                "affirmation": "You are safe and loved.",
            }
        },
    )

    @field_validator("display_name")
    @classmethod
    def display_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("display_name must not be blank")
        return v.strip()


class PatientUpdate(PatientBase):
    """Partial update; only provided fields are written"""

    display_name: Optional[str] = Field(None, min_length=1, max_length=200)
    mood_trend: Optional[MoodTrendEnum] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("display_name")
    @classmethod
    def display_name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("display_name must not be blank")
        return v.strip() if v is not None else v


class PatientResponse(PatientBase):
    id: UUID
    created_by: UUID
    display_name: str
    mood_trend: MoodTrendEnum
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RosterEntry(BaseModel):
    """A patient as seen from one caregiver's roster"""

    id: UUID
    display_name: str
    preferred_name: Optional[str] = None
    photo_url: Optional[str] = None
    dementia_stage: Optional[DementiaStageEnum] = None
    mood_trend: MoodTrendEnum = MoodTrendEnum.STABLE
    role: CareRoleEnum
    linked_at: datetime

    model_config = ConfigDict(frozen=True)


class RosterResponse(BaseModel):
    patients: List[RosterEntry] = Field(default_factory=list)
    total: int = 0
    degraded: List[str] = Field(default_factory=list, description="Collections that failed to load")


class RelationshipCreate(BaseModel):
    caregiver_id: UUID = Field(..., description="User to link to the patient")
    role: CareRoleEnum = Field(CareRoleEnum.SECONDARY)

    model_config = ConfigDict(extra="forbid")


class RelationshipResponse(BaseModel):
    id: UUID
    patient_id: UUID
    caregiver_id: UUID
    role: CareRoleEnum
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NoteCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=10000)

    model_config = ConfigDict(extra="forbid")

    @field_validator("body")
    @classmethod
    def body_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("body must not be blank")
        return v.strip()


class NoteResponse(BaseModel):
    id: UUID
    patient_id: UUID
    author_id: UUID
    body: str
    kind: NoteKindEnum
    session_type: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SessionTypeEnum(str, Enum):
    VALIDATION_THERAPY = "validation_therapy"
    REMINISCENCE_THERAPY = "reminiscence_therapy"
    PATH_FRAMEWORK = "path_framework"
    COGNITIVE_STIMULATION = "cognitive_stimulation"
    GENERAL_ASSESSMENT = "general_assessment"


class SessionNotesCreate(BaseModel):
    """Therapy session observations saved to the patient record"""

    session_type: SessionTypeEnum
    observations: str = Field(..., min_length=1, max_length=10000)

    model_config = ConfigDict(extra="forbid")

    @field_validator("observations")
    @classmethod
    def observations_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("observations must not be blank")
        return v.strip()


__all__ = [
    "EmergencyContactSchema",
    "PatientBase",
    "PatientCreate",
    "PatientUpdate",
    "PatientResponse",
    "RosterEntry",
    "RosterResponse",
    "RelationshipCreate",
    "RelationshipResponse",
    "NoteCreate",
    "NoteResponse",
    "SessionTypeEnum",
    "SessionNotesCreate",
]
