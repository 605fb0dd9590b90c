from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from carecompanion.api.dependencies import get_accessible_patient
from carecompanion.core.database import get_db
from carecompanion.core.exceptions import RecordNotFoundError
from carecompanion.core.security import get_current_user
from carecompanion.models.patient import Patient
from carecompanion.schemas.clinical import CaregiverStatusResponse, CaregiverStatusUpdate
from carecompanion.schemas.dashboard import CaregiverStatusView
from carecompanion.services.caregiver_burnout import estimate_burnout
from carecompanion.services.clinical_service import clinical_service

router = APIRouter()


@router.get(
    "/patients/{patient_id}/caregiver-status",
    response_model=CaregiverStatusView,
    summary="Caregiver status",
    description="The caller's stored status for this patient with days since respite and the burnout estimate"
)
async def get_caregiver_status(
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> CaregiverStatusView:
    record = await clinical_service.get_caregiver_status(db, current_user["user_id"], patient.id)
    if record is None:
        raise RecordNotFoundError("caregiver_status", patient.id)
    return estimate_burnout(CaregiverStatusResponse.model_validate(record))


@router.put(
    "/patients/{patient_id}/caregiver-status",
    response_model=CaregiverStatusView,
    summary="Save caregiver status",
    description="Replaces the caller's status snapshot for this patient"
)
async def put_caregiver_status(
    data: CaregiverStatusUpdate,
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> CaregiverStatusView:
    record = await clinical_service.upsert_caregiver_status(db, current_user["user_id"], patient.id, data)
    return estimate_burnout(CaregiverStatusResponse.model_validate(record))
