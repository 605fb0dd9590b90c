"""
Write paths for clinical records that need more than a plain insert.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from carecompanion.core.exceptions import DuplicateRecordError, RecordNotFoundError
from carecompanion.models.clinical import (
    CaregiverStatus,
    Goal,
    GoalMilestone,
    MedicationLog,
    MedicationLogStatusEnum,
    SafetyAlert,
    Task,
    TaskStatusEnum
)
from carecompanion.schemas.clinical import (
    CaregiverStatusUpdate,
    GoalCreate,
    GoalProgressUpdate,
    MedicationLogCreate,
    MedicationLogUpdate,
    MilestoneUpdate,
    TaskStatusUpdate
)
from carecompanion.services import records
from carecompanion.utils.timeutils import utcnow

logger = structlog.get_logger(__name__)


class ClinicalService:
    """Resolution, upserts and status transitions for clinical records"""

    async def resolve_alert(self, db: AsyncSession, user_id: UUID, patient_id: UUID, alert_id: UUID) -> SafetyAlert:
        alert = await records.safety_alerts.get(db, patient_id, alert_id)
        if not alert.is_resolved:
            alert.is_resolved = True
            alert.resolved_at = utcnow()
            alert.resolved_by = user_id
            await db.commit()
            logger.info(
                "Safety alert resolved",
                alert_id=str(alert_id),
                patient_id=str(patient_id),
                category=alert.category.value,
            )
        return alert

    async def get_caregiver_status(
        self,
        db: AsyncSession,
        caregiver_id: UUID,
        patient_id: UUID
    ) -> Optional[CaregiverStatus]:
        result = await db.execute(
            select(CaregiverStatus).where(
                CaregiverStatus.caregiver_id == caregiver_id,
                CaregiverStatus.patient_id == patient_id,
            )
        )
        return result.scalar_one_or_none()

    async def upsert_caregiver_status(
        self,
        db: AsyncSession,
        caregiver_id: UUID,
        patient_id: UUID,
        data: CaregiverStatusUpdate
    ) -> CaregiverStatus:
        """Overwrite the caregiver's snapshot for this patient."""
        status = await self.get_caregiver_status(db, caregiver_id, patient_id)
        values = data.model_dump()
        values["recommended_actions"] = list(values["recommended_actions"])

        if status is None:
            status = CaregiverStatus(caregiver_id=caregiver_id, patient_id=patient_id, **values)
            db.add(status)
        else:
            for field, value in values.items():
                setattr(status, field, value)
            status.updated_at = utcnow()

        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.warning(
                "Concurrent caregiver status insert rejected",
                caregiver_id=str(caregiver_id),
                patient_id=str(patient_id),
                error=str(e),
            )
            raise DuplicateRecordError(
                "Caregiver status was saved by another request; retry the update",
                {"caregiver_id": str(caregiver_id), "patient_id": str(patient_id)},
            ) from e

        logger.info(
            "Caregiver status saved",
            caregiver_id=str(caregiver_id),
            patient_id=str(patient_id),
            burnout_risk=data.burnout_risk.value,
        )
        return status

    async def create_goal(self, db: AsyncSession, author_id: UUID, patient_id: UUID, data: GoalCreate) -> Goal:
        milestones = [
            GoalMilestone(position=position, title=title)
            for position, title in enumerate(data.milestones)
        ]
        return await records.goals.create(
            db,
            patient_id,
            created_by=author_id,
            milestones=milestones,
            **data.model_dump(exclude={"milestones"}),
        )

    async def update_goal_progress(
        self,
        db: AsyncSession,
        patient_id: UUID,
        goal_id: UUID,
        data: GoalProgressUpdate
    ) -> Goal:
        goal = await records.goals.get(db, patient_id, goal_id)
        goal.progress = data.progress
        if data.status is not None:
            goal.status = data.status
        goal.updated_at = utcnow()
        await db.commit()
        logger.info("Goal progress updated", goal_id=str(goal_id), progress=data.progress)
        return goal

    async def update_milestone(
        self,
        db: AsyncSession,
        patient_id: UUID,
        goal_id: UUID,
        milestone_id: UUID,
        data: MilestoneUpdate
    ) -> Goal:
        goal = await records.goals.get(db, patient_id, goal_id)
        milestone = next((m for m in goal.milestones if m.id == milestone_id), None)
        if milestone is None:
            raise RecordNotFoundError("goal_milestone", milestone_id)

        milestone.completed = data.completed
        milestone.completed_at = utcnow() if data.completed else None
        goal.updated_at = utcnow()
        await db.commit()
        return goal

    async def update_task_status(
        self,
        db: AsyncSession,
        patient_id: UUID,
        task_id: UUID,
        data: TaskStatusUpdate
    ) -> Task:
        task = await records.tasks.get(db, patient_id, task_id)
        task.status = data.status
        task.completed_at = utcnow() if data.status == TaskStatusEnum.COMPLETED else None
        await db.commit()
        return task

    async def log_medication(
        self,
        db: AsyncSession,
        recorder_id: UUID,
        patient_id: UUID,
        data: MedicationLogCreate
    ) -> MedicationLog:
        # The medication must belong to the same patient
        await records.medications.get(db, patient_id, data.medication_id)

        values = data.model_dump()
        values["date"] = values["date"] or utcnow().date()
        if values["status"] == MedicationLogStatusEnum.TAKEN and values["taken_time"] is None:
            values["taken_time"] = utcnow()
        return await records.medication_logs.create(db, patient_id, recorded_by=recorder_id, **values)

    async def update_medication_log(
        self,
        db: AsyncSession,
        patient_id: UUID,
        log_id: UUID,
        data: MedicationLogUpdate
    ) -> MedicationLog:
        log = await records.medication_logs.get(db, patient_id, log_id)
        log.status = data.status
        if data.status == MedicationLogStatusEnum.TAKEN:
            log.taken_time = data.taken_time or log.taken_time or utcnow()
        else:
            log.taken_time = data.taken_time
        if data.notes is not None:
            log.notes = data.notes
        await db.commit()
        return log


clinical_service = ClinicalService()


__all__ = [
    "ClinicalService",
    "clinical_service",
]
