from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from carecompanion.api.dependencies import get_accessible_patient
from carecompanion.core.database import get_db
from carecompanion.core.security import get_current_user
from carecompanion.models.patient import Patient
from carecompanion.schemas.clinical import SafetyAlertCreate, SafetyAlertResponse
from carecompanion.schemas.dashboard import SafetyTriageResponse
from carecompanion.services import records
from carecompanion.services.clinical_service import clinical_service
from carecompanion.services.safety_triage import triage_alerts

router = APIRouter()


@router.get(
    "/patients/{patient_id}/safety-alerts",
    response_model=List[SafetyAlertResponse],
    summary="Safety alerts, newest first"
)
async def list_safety_alerts(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> List[SafetyAlertResponse]:
    return await records.safety_alerts.list(db, patient.id)


@router.post(
    "/patients/{patient_id}/safety-alerts",
    response_model=SafetyAlertResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record safety alert"
)
async def create_safety_alert(
    data: SafetyAlertCreate,
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> SafetyAlertResponse:
    alert = await records.safety_alerts.create(db, patient.id, **data.model_dump())
    return records.safety_alerts.to_schema(alert)


@router.get(
    "/patients/{patient_id}/safety-alerts/triage",
    response_model=SafetyTriageResponse,
    summary="Safety alert triage",
    description="Unresolved red alerts are urgent, unresolved yellow alerts are monitored, green alerts are stable"
)
async def get_safety_triage(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> SafetyTriageResponse:
    patient_id = patient.id
    alerts = await records.safety_alerts.list(db, patient_id)
    return triage_alerts(patient_id, alerts)


@router.post(
    "/patients/{patient_id}/safety-alerts/{alert_id}/resolve",
    response_model=SafetyAlertResponse,
    summary="Resolve safety alert"
)
async def resolve_safety_alert(
    alert_id: UUID,
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> SafetyAlertResponse:
    alert = await clinical_service.resolve_alert(db, current_user["user_id"], patient.id, alert_id)
    return records.safety_alerts.to_schema(alert)
