from typing import Literal, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from carecompanion.schemas.patient import RosterEntry


class CaregiverSettings(BaseModel):
    notifications_enabled: bool = True
    email_notifications: bool = True
    sms_notifications: bool = False
    default_language: str = Field("en", min_length=2, max_length=10)
    measurement_unit: Literal["metric", "imperial"] = "imperial"
    theme: Literal["light", "dark", "auto"] = "light"
    default_patient_view: Literal["grid", "list"] = "grid"

    model_config = ConfigDict(frozen=True)


class CaregiverSettingsUpdate(BaseModel):
    """Partial settings change; omitted fields keep their value"""

    notifications_enabled: Optional[bool] = None
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    default_language: Optional[str] = Field(None, min_length=2, max_length=10)
    measurement_unit: Optional[Literal["metric", "imperial"]] = None
    theme: Optional[Literal["light", "dark", "auto"]] = None
    default_patient_view: Optional[Literal["grid", "list"]] = None

    model_config = ConfigDict(extra="forbid")


class SelectPatientRequest(BaseModel):
    patient_id: Optional[UUID] = Field(None, description="None clears the selection")

    model_config = ConfigDict(extra="forbid")


class SessionState(BaseModel):
    """Server-held snapshot for one signed-in user"""

    user_id: UUID
    patients: Tuple[RosterEntry, ...] = ()
    selected_patient_id: Optional[UUID] = None
    settings: CaregiverSettings = Field(default_factory=CaregiverSettings)
    roster_seq: int = Field(0, description="Sequence number of the roster load applied last")

    model_config = ConfigDict(frozen=True)

    @property
    def selected_patient(self) -> Optional[RosterEntry]:
        return next((p for p in self.patients if p.id == self.selected_patient_id), None)


__all__ = [
    "CaregiverSettings",
    "CaregiverSettingsUpdate",
    "SelectPatientRequest",
    "SessionState",
]
