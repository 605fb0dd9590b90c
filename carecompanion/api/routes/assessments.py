from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from carecompanion.api.dependencies import get_accessible_patient, require_roles
from carecompanion.core.database import get_db
from carecompanion.models.patient import Patient
from carecompanion.schemas.clinical import ADLAssessmentCreate, ADLAssessmentResponse
from carecompanion.schemas.dashboard import ADLDeclineResponse
from carecompanion.services import records
from carecompanion.services.adl_decline import detect_decline

router = APIRouter()


@router.get(
    "/patients/{patient_id}/adl-assessments",
    response_model=List[ADLAssessmentResponse],
    summary="ADL assessment history, most recent first"
)
async def list_adl_assessments(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> List[ADLAssessmentResponse]:
    return await records.adl_assessments.list(db, patient.id)


@router.post(
    "/patients/{patient_id}/adl-assessments",
    response_model=ADLAssessmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record ADL assessment",
    description="Therapists only. Assessments are immutable once recorded."
)
async def create_adl_assessment(
    data: ADLAssessmentCreate,
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(require_roles("therapist")),
    db: AsyncSession = Depends(get_db)
) -> ADLAssessmentResponse:
    assessment = await records.adl_assessments.create(
        db, patient.id, assessed_by=current_user["user_id"], **data.model_dump()
    )
    return records.adl_assessments.to_schema(assessment)


@router.get(
    "/patients/{patient_id}/adl-assessments/decline",
    response_model=ADLDeclineResponse,
    summary="ADL decline report",
    description="Compares the two most recent assessments; a basic ADL total rise above 2 marks a re-assessment as due"
)
async def get_adl_decline(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> ADLDeclineResponse:
    patient_id = patient.id
    assessments = await records.adl_assessments.list(db, patient_id)
    return detect_decline(patient_id, assessments)
