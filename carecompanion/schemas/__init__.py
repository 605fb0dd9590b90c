from carecompanion.schemas.common import ErrorResponse, SuccessResponse
from carecompanion.schemas.patient import (
    PatientCreate,
    PatientUpdate,
    PatientResponse,
    RosterEntry,
    RosterResponse,
    RelationshipCreate,
    RelationshipResponse,
    NoteCreate,
    NoteResponse,
    SessionNotesCreate
)
from carecompanion.schemas.dashboard import (
    SafetyTriageResponse,
    ADLDeclineResponse,
    CaregiverStatusView,
    DashboardStatsResponse,
    CaregiverOverviewResponse
)

__all__ = [
    "ErrorResponse",
    "SuccessResponse",
    "PatientCreate",
    "PatientUpdate",
    "PatientResponse",
    "RosterEntry",
    "RosterResponse",
    "RelationshipCreate",
    "RelationshipResponse",
    "NoteCreate",
    "NoteResponse",
    "SessionNotesCreate",
    "SafetyTriageResponse",
    "ADLDeclineResponse",
    "CaregiverStatusView",
    "DashboardStatsResponse",
    "CaregiverOverviewResponse",
]
