from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from carecompanion.api.dependencies import get_accessible_patient, get_correlation_id, get_session_store
from carecompanion.core.database import get_db
from carecompanion.core.security import get_current_user
from carecompanion.models.patient import Patient
from carecompanion.schemas.patient import (
    NoteCreate,
    NoteResponse,
    PatientCreate,
    PatientResponse,
    PatientUpdate,
    RelationshipCreate,
    RelationshipResponse,
    RosterEntry,
    RosterResponse,
    SessionNotesCreate
)
from carecompanion.services.care_service import care_service, roster_row
from carecompanion.services.session_store import (
    PatientAdded,
    PatientRemoved,
    PatientUpdated,
    PatientsLoaded,
    SessionStore
)

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get(
    "/patients",
    response_model=RosterResponse,
    summary="Patient roster",
    description="Patients reachable through the caller's care relationships, newest relationship first"
)
async def list_patients(
    current_user: Dict[str, Any] = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store),
    db: AsyncSession = Depends(get_db)
) -> RosterResponse:
    request_seq = store.next_request_seq()
    roster = await care_service.load_roster(db, current_user["user_id"])
    if not roster.degraded:
        await store.dispatch(PatientsLoaded(patients=tuple(roster.patients), request_seq=request_seq))
    return roster


@router.post(
    "/patients",
    response_model=PatientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add patient",
    description="Create a patient and link the caller as its primary caregiver"
)
async def create_patient(
    data: PatientCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store),
    correlation_id: str = Depends(get_correlation_id),
    db: AsyncSession = Depends(get_db)
) -> PatientResponse:
    patient, link = await care_service.create_patient(db, current_user["user_id"], data)
    await store.dispatch(PatientAdded(patient=RosterEntry.model_validate(roster_row(patient, link))))

    logger.info("Patient added to roster", patient_id=str(patient.id), correlation_id=correlation_id)
    return PatientResponse.model_validate(patient)


@router.get("/patients/{patient_id}", response_model=PatientResponse, summary="Patient detail")
async def get_patient(patient: Patient = Depends(get_accessible_patient)) -> PatientResponse:
    return PatientResponse.model_validate(patient)


@router.patch("/patients/{patient_id}", response_model=PatientResponse, summary="Edit patient")
async def update_patient(
    data: PatientUpdate,
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store),
    db: AsyncSession = Depends(get_db)
) -> PatientResponse:
    patient = await care_service.update_patient(db, patient, data)

    link = await care_service.get_relationship(db, current_user["user_id"], patient.id)
    if link is not None:
        await store.dispatch(PatientUpdated(patient=RosterEntry.model_validate(roster_row(patient, link))))
    return PatientResponse.model_validate(patient)


@router.delete(
    "/patients/{patient_id}/relationship",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove patient from roster",
    description="Deletes only the caller's care relationship; the patient record is kept"
)
async def detach_patient(
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store),
    db: AsyncSession = Depends(get_db)
) -> Response:
    patient_id = patient.id
    await care_service.detach_patient(db, current_user["user_id"], patient_id)
    await store.dispatch(PatientRemoved(patient_id=patient_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/patients/{patient_id}/relationships",
    response_model=RelationshipResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Link caregiver",
    description="Give another caregiver, therapist or family member access to this patient"
)
async def link_caregiver(
    data: RelationshipCreate,
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> RelationshipResponse:
    link = await care_service.link_caregiver(db, current_user["user_id"], patient.id, data)
    return RelationshipResponse.model_validate(link)


@router.get("/patients/{patient_id}/notes", response_model=List[NoteResponse], summary="Patient notes, newest first")
async def list_notes(
    patient: Patient = Depends(get_accessible_patient),
    db: AsyncSession = Depends(get_db)
) -> List[NoteResponse]:
    return await care_service.list_notes(db, patient.id)


@router.post(
    "/patients/{patient_id}/notes",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add note"
)
async def add_note(
    data: NoteCreate,
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> NoteResponse:
    note = await care_service.add_note(db, current_user["user_id"], patient.id, data)
    return NoteResponse.model_validate(note)


@router.post(
    "/patients/{patient_id}/session-notes",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log therapy session notes",
    description="Saves session observations to the patient record as a session note"
)
async def log_session_notes(
    data: SessionNotesCreate,
    patient: Patient = Depends(get_accessible_patient),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> NoteResponse:
    note = await care_service.log_session_notes(db, current_user["user_id"], patient.id, data)
    return NoteResponse.model_validate(note)
