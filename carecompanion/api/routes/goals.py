from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from carecompanion.api.dependencies import get_accessible_patient
from carecompanion.core.database import get_db
from carecompanion.core.security import get_current_user
from carecompanion.models.patient import Patient
from carecompanion.schemas.clinical import GoalCreate, GoalProgressUpdate, GoalResponse, MilestoneUpdate
from carecompanion.services import records
from carecompanion.services.clinical_service import clinical_service

router = APIRouter()


@router.get(
    "/patients/{patient_id}/goals",
    response_model=List[GoalResponse],
    summary="Therapy goals",
    description="Each goal carries the clinician-entered progress and the computed milestone completion ratio"
)
async def list_goals(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> List[GoalResponse]:
    return await records.goals.list(db, patient.id)


@router.post(
    "/patients/{patient_id}/goals",
    response_model=GoalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create goal"
)
async def create_goal(
    data: GoalCreate,
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> GoalResponse:
    goal = await clinical_service.create_goal(db, current_user["user_id"], patient.id, data)
    return records.goals.to_schema(goal)


@router.patch("/patients/{patient_id}/goals/{goal_id}/progress", response_model=GoalResponse, summary="Update goal progress")
async def update_goal_progress(
    goal_id: UUID,
    data: GoalProgressUpdate,
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> GoalResponse:
    goal = await clinical_service.update_goal_progress(db, patient.id, goal_id, data)
    return records.goals.to_schema(goal)


@router.patch(
    "/patients/{patient_id}/goals/{goal_id}/milestones/{milestone_id}",
    response_model=GoalResponse,
    summary="Complete or reopen a milestone"
)
async def update_milestone(
    goal_id: UUID,
    milestone_id: UUID,
    data: MilestoneUpdate,
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> GoalResponse:
    goal = await clinical_service.update_milestone(db, patient.id, goal_id, milestone_id, data)
    return records.goals.to_schema(goal)
