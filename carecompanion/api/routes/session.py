from typing import Any, Dict

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from carecompanion.api.dependencies import get_session_registry, get_session_store
from carecompanion.core.database import get_db
from carecompanion.core.security import get_current_user
from carecompanion.schemas.session import CaregiverSettingsUpdate, SelectPatientRequest, SessionState
from carecompanion.services.care_service import care_service
from carecompanion.services.session_store import (
    LoggedOut,
    PatientSelected,
    PatientsLoaded,
    SessionRegistry,
    SessionStore,
    SettingsUpdated
)

router = APIRouter()


@router.get(
    "/session",
    response_model=SessionState,
    summary="Session state",
    description="Refreshes the roster and returns the caller's session snapshot"
)
async def get_session(
    current_user: Dict[str, Any] = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store),
    db: AsyncSession = Depends(get_db)
) -> SessionState:
    request_seq = store.next_request_seq()
    roster = await care_service.load_roster(db, current_user["user_id"])
    if roster.degraded:
        return store.state
    return await store.dispatch(PatientsLoaded(patients=tuple(roster.patients), request_seq=request_seq))


@router.put("/session/selected-patient", response_model=SessionState, summary="Select patient")
async def select_patient(
    data: SelectPatientRequest,
    store: SessionStore = Depends(get_session_store)
) -> SessionState:
    return await store.dispatch(PatientSelected(patient_id=data.patient_id))


@router.patch("/session/settings", response_model=SessionState, summary="Update caregiver settings")
async def update_settings(
    data: CaregiverSettingsUpdate,
    store: SessionStore = Depends(get_session_store)
) -> SessionState:
    return await store.dispatch(SettingsUpdated(changes=data.model_dump(exclude_none=True)))


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT, summary="Log out")
async def end_session(
    current_user: Dict[str, Any] = Depends(get_current_user),
    store: SessionStore = Depends(get_session_store),
    registry: SessionRegistry = Depends(get_session_registry)
) -> Response:
    await store.dispatch(LoggedOut())
    registry.discard(current_user["user_id"])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
