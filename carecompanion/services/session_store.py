"""
Server-held session state.

State changes only through ``reduce``, a pure function from the current
``SessionState`` and a typed action to the next state. Each user's store
applies actions under its own ``asyncio.Lock``.

Roster loads carry a request sequence number taken before the load started;
a load that finishes after a newer one has been applied is dropped.
"""

import asyncio
import itertools
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict
import structlog

from carecompanion.core.config import get_settings
from carecompanion.schemas.patient import RosterEntry
from carecompanion.schemas.session import CaregiverSettings, SessionState

logger = structlog.get_logger(__name__)


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class PatientsLoaded(_Action):
    patients: Tuple[RosterEntry, ...]
    request_seq: int


class PatientAdded(_Action):
    patient: RosterEntry


class PatientUpdated(_Action):
    patient: RosterEntry


class PatientRemoved(_Action):
    patient_id: UUID


class PatientSelected(_Action):
    patient_id: Optional[UUID] = None


class SettingsUpdated(_Action):
    changes: Dict[str, Any]


class LoggedOut(_Action):
    pass


Action = Union[
    PatientsLoaded,
    PatientAdded,
    PatientUpdated,
    PatientRemoved,
    PatientSelected,
    SettingsUpdated,
    LoggedOut
]


def _first_id(patients: Tuple[RosterEntry, ...]) -> Optional[UUID]:
    return patients[0].id if patients else None


def reduce(state: SessionState, action: Action) -> SessionState:
    if isinstance(action, PatientsLoaded):
        if action.request_seq <= state.roster_seq:
            return state
        ids = {p.id for p in action.patients}
        selected = state.selected_patient_id
        if selected not in ids:
            selected = _first_id(action.patients)
        return state.model_copy(update={
            "patients": action.patients,
            "selected_patient_id": selected,
            "roster_seq": action.request_seq,
        })

    if isinstance(action, PatientAdded):
        others = tuple(p for p in state.patients if p.id != action.patient.id)
        return state.model_copy(update={
            "patients": (action.patient,) + others,
            "selected_patient_id": action.patient.id,
        })

    if isinstance(action, PatientUpdated):
        patients = tuple(action.patient if p.id == action.patient.id else p for p in state.patients)
        return state.model_copy(update={"patients": patients})

    if isinstance(action, PatientRemoved):
        patients = tuple(p for p in state.patients if p.id != action.patient_id)
        selected = state.selected_patient_id
        if selected == action.patient_id:
            selected = _first_id(patients)
        return state.model_copy(update={"patients": patients, "selected_patient_id": selected})

    if isinstance(action, PatientSelected):
        if action.patient_id is not None and action.patient_id not in {p.id for p in state.patients}:
            return state
        return state.model_copy(update={"selected_patient_id": action.patient_id})

    if isinstance(action, SettingsUpdated):
        settings = CaregiverSettings.model_validate({**state.settings.model_dump(), **action.changes})
        return state.model_copy(update={"settings": settings})

    if isinstance(action, LoggedOut):
        return SessionState(user_id=state.user_id)

    raise TypeError(f"Unknown session action: {type(action).__name__}")


class SessionStore:
    """Serialized access to one user's session state"""

    def __init__(self, user_id: UUID):
        self._state = SessionState(user_id=user_id)
        self._lock = asyncio.Lock()
        self._seq = itertools.count(1)

    @property
    def state(self) -> SessionState:
        return self._state

    def next_request_seq(self) -> int:
        return next(self._seq)

    async def dispatch(self, action: Action) -> SessionState:
        async with self._lock:
            previous = self._state
            self._state = reduce(previous, action)
            if self._state is previous:
                logger.debug("Session action ignored", action=type(action).__name__, user_id=str(previous.user_id))
            return self._state


class SessionRegistry:
    """In-process stores keyed by user id.

    Stores are kept in least-recently-used order. A store untouched for
    ``idle_timeout`` seconds is evicted on the next lookup, and the oldest
    store makes room once ``max_sessions`` is reached. An evicted user
    starts again from an empty session and reloads the roster.
    """

    def __init__(
        self,
        idle_timeout: float = 7200.0,
        max_sessions: int = 10000,
        clock: Callable[[], float] = time.monotonic
    ):
        self.idle_timeout = idle_timeout
        self.max_sessions = max_sessions
        self._clock = clock
        self._stores: "OrderedDict[UUID, SessionStore]" = OrderedDict()
        self._last_used: Dict[UUID, float] = {}

    def get(self, user_id: UUID) -> SessionStore:
        now = self._clock()
        self._evict_idle(now)

        store = self._stores.get(user_id)
        if store is None:
            while len(self._stores) >= self.max_sessions:
                self._evict(next(iter(self._stores)), "capacity")
            store = self._stores[user_id] = SessionStore(user_id)
        else:
            self._stores.move_to_end(user_id)
        self._last_used[user_id] = now
        return store

    def _evict_idle(self, now: float) -> None:
        while self._stores:
            oldest = next(iter(self._stores))
            if now - self._last_used[oldest] < self.idle_timeout:
                break
            self._evict(oldest, "idle")

    def _evict(self, user_id: UUID, reason: str) -> None:
        self.discard(user_id)
        logger.info("Session evicted", user_id=str(user_id), reason=reason)

    def discard(self, user_id: UUID) -> None:
        self._stores.pop(user_id, None)
        self._last_used.pop(user_id, None)

    def clear(self) -> None:
        self._stores.clear()
        self._last_used.clear()

    def __contains__(self, user_id: UUID) -> bool:
        return user_id in self._stores

    def __len__(self) -> int:
        return len(self._stores)


session_registry = SessionRegistry(
    idle_timeout=get_settings().SESSION_IDLE_TIMEOUT_MINUTES * 60,
    max_sessions=get_settings().SESSION_MAX_ACTIVE,
)


__all__ = [
    "PatientsLoaded",
    "PatientAdded",
    "PatientUpdated",
    "PatientRemoved",
    "PatientSelected",
    "SettingsUpdated",
    "LoggedOut",
    "Action",
    "reduce",
    "SessionStore",
    "SessionRegistry",
    "session_registry",
]
