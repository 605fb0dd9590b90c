"""
Patient-scoped record access.

Rows leaving the database are validated against their response schema; a row
that fails validation is logged and skipped instead of reaching the
aggregation rules.
"""

from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from carecompanion.core.database import Base
from carecompanion.core.exceptions import RecordNotFoundError
from carecompanion.models.clinical import (
    SafetyAlert,
    ADLAssessment,
    CaregiverStatus,
    MoodEntry,
    BehaviorLog,
    Goal,
    Task,
    Medication,
    MedicationLog,
    Appointment,
    SleepEntry
)
from carecompanion.schemas.clinical import (
    SafetyAlertResponse,
    ADLAssessmentResponse,
    CaregiverStatusResponse,
    MoodEntryResponse,
    BehaviorLogResponse,
    GoalResponse,
    TaskResponse,
    MedicationResponse,
    MedicationLogResponse,
    AppointmentResponse,
    SleepEntryResponse
)

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
SchemaT = TypeVar("SchemaT", bound=BaseModel)


def validate_rows(rows: Sequence[Any], schema: Type[SchemaT], record_type: str) -> List[SchemaT]:
    """Validate ORM rows against ``schema``, dropping malformed ones."""
    valid = []
    for row in rows:
        try:
            valid.append(schema.model_validate(row))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed row",
                record_type=record_type,
                record_id=str(getattr(row, "id", None)),
                error_count=e.error_count(),
                errors=[err["loc"] for err in e.errors()],
            )
    return valid


class PatientRecordRepository(Generic[ModelT, SchemaT]):
    """Create/read access to one patient-scoped collection"""

    def __init__(self, name: str, model: Type[ModelT], schema: Type[SchemaT], order_by: Sequence[Any]):
        self.name = name
        self.model = model
        self.schema = schema
        self.order_by = tuple(order_by)

    async def list(self, db: AsyncSession, patient_id: UUID, limit: Optional[int] = None) -> List[SchemaT]:
        stmt = select(self.model).where(self.model.patient_id == patient_id).order_by(*self.order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await db.execute(stmt)
        return validate_rows(result.scalars().all(), self.schema, self.name)

    async def get(self, db: AsyncSession, patient_id: UUID, record_id: UUID) -> ModelT:
        result = await db.execute(
            select(self.model).where(
                self.model.id == record_id,
                self.model.patient_id == patient_id,
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise RecordNotFoundError(self.name, record_id)
        return record

    async def create(self, db: AsyncSession, patient_id: UUID, **values: Any) -> ModelT:
        record = self.model(patient_id=patient_id, **values)
        db.add(record)
        await db.commit()
        logger.info("Record created", record_type=self.name, record_id=str(record.id), patient_id=str(patient_id))
        return record

    def to_schema(self, record: ModelT) -> SchemaT:
        return self.schema.model_validate(record)


safety_alerts = PatientRecordRepository(
    "safety_alert", SafetyAlert, SafetyAlertResponse, (SafetyAlert.created_at.desc(),)
)
adl_assessments = PatientRecordRepository(
    "adl_assessment", ADLAssessment, ADLAssessmentResponse, (ADLAssessment.date.desc(), ADLAssessment.created_at.desc())
)
caregiver_statuses = PatientRecordRepository(
    "caregiver_status", CaregiverStatus, CaregiverStatusResponse, (CaregiverStatus.updated_at.desc(),)
)
mood_entries = PatientRecordRepository(
    "mood_entry", MoodEntry, MoodEntryResponse, (MoodEntry.timestamp.desc(),)
)
behavior_logs = PatientRecordRepository(
    "behavior_log", BehaviorLog, BehaviorLogResponse, (BehaviorLog.timestamp.desc(),)
)
goals = PatientRecordRepository(
    "goal", Goal, GoalResponse, (Goal.created_at.desc(),)
)
tasks = PatientRecordRepository(
    "task", Task, TaskResponse, (Task.time_of_day, Task.scheduled_time, Task.created_at)
)
medications = PatientRecordRepository(
    "medication", Medication, MedicationResponse, (Medication.name,)
)
medication_logs = PatientRecordRepository(
    "medication_log", MedicationLog, MedicationLogResponse, (MedicationLog.date.desc(), MedicationLog.scheduled_time)
)
appointments = PatientRecordRepository(
    "appointment", Appointment, AppointmentResponse, (Appointment.date, Appointment.time)
)
sleep_entries = PatientRecordRepository(
    "sleep_entry", SleepEntry, SleepEntryResponse, (SleepEntry.date.desc(), SleepEntry.created_at.desc())
)


__all__ = [
    "validate_rows",
    "PatientRecordRepository",
    "safety_alerts",
    "adl_assessments",
    "caregiver_statuses",
    "mood_entries",
    "behavior_logs",
    "goals",
    "tasks",
    "medications",
    "medication_logs",
    "appointments",
    "sleep_entries",
]
