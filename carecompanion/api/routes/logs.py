"""Daily care logs: mood, behavior, tasks, medications, appointments and sleep."""

from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from carecompanion.api.dependencies import get_accessible_patient
from carecompanion.core.database import get_db
from carecompanion.core.security import get_current_user
from carecompanion.models.patient import Patient
from carecompanion.schemas.clinical import (
    AppointmentCreate,
    AppointmentResponse,
    BehaviorLogCreate,
    BehaviorLogResponse,
    MedicationCreate,
    MedicationLogCreate,
    MedicationLogResponse,
    MedicationLogUpdate,
    MedicationResponse,
    MoodEntryCreate,
    MoodEntryResponse,
    SleepEntryCreate,
    SleepEntryResponse,
    TaskCreate,
    TaskResponse,
    TaskStatusUpdate
)
from carecompanion.services import records
from carecompanion.services.clinical_service import clinical_service

router = APIRouter()


# Mood

@router.get("/patients/{patient_id}/mood-entries", response_model=List[MoodEntryResponse], summary="Mood entries, newest first")
async def list_mood_entries(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> List[MoodEntryResponse]:
    return await records.mood_entries.list(db, patient.id)


@router.post(
    "/patients/{patient_id}/mood-entries",
    response_model=MoodEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log mood"
)
async def create_mood_entry(
    data: MoodEntryCreate,
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> MoodEntryResponse:
    entry = await records.mood_entries.create(
        db, patient.id, recorded_by=current_user["user_id"], **data.model_dump(exclude_none=True)
    )
    return records.mood_entries.to_schema(entry)


# Behavior

@router.get("/patients/{patient_id}/behavior-logs", response_model=List[BehaviorLogResponse], summary="Behavior logs, newest first")
async def list_behavior_logs(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> List[BehaviorLogResponse]:
    return await records.behavior_logs.list(db, patient.id)


@router.post(
    "/patients/{patient_id}/behavior-logs",
    response_model=BehaviorLogResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log behavior"
)
async def create_behavior_log(
    data: BehaviorLogCreate,
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> BehaviorLogResponse:
    log = await records.behavior_logs.create(
        db, patient.id, recorded_by=current_user["user_id"], **data.model_dump(exclude_none=True)
    )
    return records.behavior_logs.to_schema(log)


# Tasks

@router.get("/patients/{patient_id}/tasks", response_model=List[TaskResponse], summary="Care tasks")
async def list_tasks(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> List[TaskResponse]:
    return await records.tasks.list(db, patient.id)


@router.post(
    "/patients/{patient_id}/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add care task"
)
async def create_task(
    data: TaskCreate,
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> TaskResponse:
    task = await records.tasks.create(db, patient.id, **data.model_dump())
    return records.tasks.to_schema(task)


@router.patch("/patients/{patient_id}/tasks/{task_id}", response_model=TaskResponse, summary="Update task status")
async def update_task(
    task_id: UUID,
    data: TaskStatusUpdate,
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> TaskResponse:
    task = await clinical_service.update_task_status(db, patient.id, task_id, data)
    return records.tasks.to_schema(task)


# Medications

@router.get("/patients/{patient_id}/medications", response_model=List[MedicationResponse], summary="Medications")
async def list_medications(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> List[MedicationResponse]:
    return await records.medications.list(db, patient.id)


@router.post(
    "/patients/{patient_id}/medications",
    response_model=MedicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add medication"
)
async def create_medication(
    data: MedicationCreate,
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> MedicationResponse:
    medication = await records.medications.create(db, patient.id, **data.model_dump())
    return records.medications.to_schema(medication)


@router.get(
    "/patients/{patient_id}/medication-logs",
    response_model=List[MedicationLogResponse],
    summary="Medication administration log"
)
async def list_medication_logs(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> List[MedicationLogResponse]:
    return await records.medication_logs.list(db, patient.id)


@router.post(
    "/patients/{patient_id}/medication-logs",
    response_model=MedicationLogResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log medication dose"
)
async def create_medication_log(
    data: MedicationLogCreate,
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> MedicationLogResponse:
    log = await clinical_service.log_medication(db, current_user["user_id"], patient.id, data)
    return records.medication_logs.to_schema(log)


@router.patch(
    "/patients/{patient_id}/medication-logs/{log_id}",
    response_model=MedicationLogResponse,
    summary="Update medication dose status"
)
async def update_medication_log(
    log_id: UUID,
    data: MedicationLogUpdate,
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> MedicationLogResponse:
    log = await clinical_service.update_medication_log(db, patient.id, log_id, data)
    return records.medication_logs.to_schema(log)


# Appointments

@router.get("/patients/{patient_id}/appointments", response_model=List[AppointmentResponse], summary="Appointments")
async def list_appointments(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> List[AppointmentResponse]:
    return await records.appointments.list(db, patient.id)


@router.post(
    "/patients/{patient_id}/appointments",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add appointment"
)
async def create_appointment(
    data: AppointmentCreate,
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> AppointmentResponse:
    appointment = await records.appointments.create(db, patient.id, **data.model_dump())
    return records.appointments.to_schema(appointment)


# Sleep

@router.get("/patients/{patient_id}/sleep-entries", response_model=List[SleepEntryResponse], summary="Sleep entries")
async def list_sleep_entries(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> List[SleepEntryResponse]:
    return await records.sleep_entries.list(db, patient.id)


@router.post(
    "/patients/{patient_id}/sleep-entries",
    response_model=SleepEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log sleep"
)
async def create_sleep_entry(
    data: SleepEntryCreate,
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> SleepEntryResponse:
    entry = await records.sleep_entries.create(db, patient.id, **data.model_dump())
    return records.sleep_entries.to_schema(entry)
