from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from carecompanion.api.dependencies import get_accessible_patient, get_correlation_id
from carecompanion.core.database import get_db
from carecompanion.core.security import get_current_user
from carecompanion.models.patient import Patient
from carecompanion.schemas.dashboard import CaregiverOverviewResponse, DashboardStatsResponse
from carecompanion.services.dashboard_service import dashboard_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get(
    "/patients/{patient_id}/dashboard",
    response_model=DashboardStatsResponse,
    summary="Patient dashboard",
    description="Task completion, medication adherence, 7-day mood/behavior tally, goals and safety counts"
)
async def get_patient_dashboard(
    day: Optional[date] = Query(None, description="Reporting day, defaults to today (UTC)"),
    patient: Patient = Depends(get_accessible_patient),
    correlation_id: str = Depends(get_correlation_id),
    db: AsyncSession = Depends(get_db)
) -> DashboardStatsResponse:
    stats = await dashboard_service.patient_dashboard(db, patient, day=day)
    logger.info(
        "Dashboard generated",
        patient_id=str(stats.patient_id),
        degraded=stats.degraded,
        correlation_id=correlation_id,
    )
    return stats


@router.get(
    "/caregiver/overview",
    response_model=CaregiverOverviewResponse,
    summary="Caregiver multi-patient overview"
)
async def get_caregiver_overview(
    day: Optional[date] = Query(None, description="Reporting day, defaults to today (UTC)"),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> CaregiverOverviewResponse:
    return await dashboard_service.caregiver_overview(db, current_user["user_id"], day=day)
