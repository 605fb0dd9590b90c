"""
Care relationship resolution and patient lifecycle.

A caregiver sees exactly the patients it holds a ``CareRelationship`` for.
Every patient-scoped endpoint goes through ``ensure_access`` first; patients
outside the caller's relationships are reported as not found.
"""

from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from carecompanion.core.exceptions import (
    DuplicateRecordError,
    PatientAccessError,
    PatientCreationError
)
from carecompanion.models.patient import CareRelationship, CareRoleEnum, Note, NoteKindEnum, Patient
from carecompanion.schemas.patient import (
    NoteCreate,
    NoteResponse,
    PatientCreate,
    PatientUpdate,
    RelationshipCreate,
    RosterEntry,
    RosterResponse,
    SessionNotesCreate
)
from carecompanion.services.records import validate_rows

logger = structlog.get_logger(__name__)


def roster_row(patient: Patient, link: CareRelationship) -> Dict[str, Any]:
    """Flatten a patient and the caller's relationship into a roster entry."""
    return {
        "id": patient.id,
        "display_name": patient.display_name,
        "preferred_name": patient.preferred_name,
        "photo_url": patient.photo_url,
        "dementia_stage": patient.dementia_stage,
        "mood_trend": patient.mood_trend,
        "role": link.role,
        "linked_at": link.created_at,
    }


class CareService:
    """Patients, care relationships and notes"""

    async def list_patients(self, db: AsyncSession, caregiver_id: UUID) -> List[RosterEntry]:
        """Patients reachable from ``caregiver_id``, newest relationship first."""
        result = await db.execute(
            select(Patient, CareRelationship)
            .join(CareRelationship, CareRelationship.patient_id == Patient.id)
            .where(CareRelationship.caregiver_id == caregiver_id)
            .order_by(CareRelationship.created_at.desc(), CareRelationship.id)
        )

        roster = []
        seen = set()
        for patient, link in result.all():
            if patient.id in seen:
                continue
            seen.add(patient.id)
            roster.append(roster_row(patient, link))

        return validate_rows(roster, RosterEntry, "roster_entry")

    async def load_roster(self, db: AsyncSession, caregiver_id: UUID) -> RosterResponse:
        """Roster for display; a failed load yields an empty, degraded roster."""
        try:
            patients = await self.list_patients(db, caregiver_id)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to load patient roster", caregiver_id=str(caregiver_id), error=str(e))
            return RosterResponse(patients=[], total=0, degraded=["patients"])

        return RosterResponse(patients=patients, total=len(patients))

    async def create_patient(
        self,
        db: AsyncSession,
        caregiver_id: UUID,
        data: PatientCreate
    ) -> Tuple[Patient, CareRelationship]:
        """Insert a patient and its primary relationship in one transaction."""
        patient = Patient(created_by=caregiver_id, **self._patient_values(data))

        try:
            db.add(patient)
            await db.flush()
            link = await self._link(db, patient.id, caregiver_id, CareRoleEnum.PRIMARY)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Patient creation rolled back",
                caregiver_id=str(caregiver_id),
                error=str(e),
            )
            raise PatientCreationError(
                "Patient could not be created",
                {"caregiver_id": str(caregiver_id)},
            ) from e

        logger.info("Patient created", patient_id=str(patient.id), caregiver_id=str(caregiver_id))
        return patient, link

    async def _link(
        self,
        db: AsyncSession,
        patient_id: UUID,
        caregiver_id: UUID,
        role: CareRoleEnum
    ) -> CareRelationship:
        link = CareRelationship(patient_id=patient_id, caregiver_id=caregiver_id, role=role)
        db.add(link)
        await db.flush()
        return link

    async def get_relationship(
        self,
        db: AsyncSession,
        user_id: UUID,
        patient_id: UUID
    ) -> Optional[CareRelationship]:
        result = await db.execute(
            select(CareRelationship).where(
                CareRelationship.patient_id == patient_id,
                CareRelationship.caregiver_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def ensure_access(self, db: AsyncSession, user_id: UUID, patient_id: UUID) -> Patient:
        """Return the patient if ``user_id`` holds a relationship to it."""
        result = await db.execute(
            select(Patient)
            .join(CareRelationship, CareRelationship.patient_id == Patient.id)
            .where(
                Patient.id == patient_id,
                CareRelationship.caregiver_id == user_id,
            )
        )
        patient = result.scalar_one_or_none()
        if patient is None:
            logger.info("Patient access denied", user_id=str(user_id), patient_id=str(patient_id))
            raise PatientAccessError(patient_id)
        return patient

    async def update_patient(self, db: AsyncSession, patient: Patient, data: PatientUpdate) -> Patient:
        for field, value in self._patient_values(data, exclude_unset=True).items():
            # Required columns cannot be cleared
            if value is None and field in ("display_name", "mood_trend"):
                continue
            setattr(patient, field, value)
        await db.commit()
        logger.info("Patient updated", patient_id=str(patient.id))
        return patient

    async def link_caregiver(
        self,
        db: AsyncSession,
        actor_id: UUID,
        patient_id: UUID,
        data: RelationshipCreate
    ) -> CareRelationship:
        """Give another user access to a patient the actor can already see."""
        await self.ensure_access(db, actor_id, patient_id)

        if await self.get_relationship(db, data.caregiver_id, patient_id) is not None:
            raise DuplicateRecordError(
                "Caregiver is already linked to this patient",
                {"patient_id": str(patient_id), "caregiver_id": str(data.caregiver_id)},
            )

        try:
            link = await self._link(db, patient_id, data.caregiver_id, data.role)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.warning(
                "Concurrent caregiver link rejected",
                patient_id=str(patient_id),
                caregiver_id=str(data.caregiver_id),
                error=str(e),
            )
            raise DuplicateRecordError(
                "Caregiver is already linked to this patient",
                {"patient_id": str(patient_id), "caregiver_id": str(data.caregiver_id)},
            ) from e

        logger.info(
            "Caregiver linked",
            patient_id=str(patient_id),
            caregiver_id=str(data.caregiver_id),
            role=data.role.value,
            linked_by=str(actor_id),
        )
        return link

    async def detach_patient(self, db: AsyncSession, caregiver_id: UUID, patient_id: UUID) -> None:
        """Remove the patient from the caller's roster; the patient row stays."""
        link = await self.get_relationship(db, caregiver_id, patient_id)
        if link is None:
            raise PatientAccessError(patient_id)

        await db.delete(link)
        await db.commit()
        logger.info("Patient detached", patient_id=str(patient_id), caregiver_id=str(caregiver_id))

    async def add_note(self, db: AsyncSession, author_id: UUID, patient_id: UUID, data: NoteCreate) -> Note:
        return await self._save_note(db, author_id, patient_id, data.body, NoteKindEnum.NOTE)

    async def log_session_notes(
        self,
        db: AsyncSession,
        author_id: UUID,
        patient_id: UUID,
        data: SessionNotesCreate
    ) -> Note:
        return await self._save_note(
            db, author_id, patient_id, data.observations, NoteKindEnum.SESSION, data.session_type.value
        )

    async def _save_note(
        self,
        db: AsyncSession,
        author_id: UUID,
        patient_id: UUID,
        body: str,
        kind: NoteKindEnum,
        session_type: Optional[str] = None
    ) -> Note:
        note = Note(patient_id=patient_id, author_id=author_id, body=body, kind=kind, session_type=session_type)
        db.add(note)
        await db.commit()
        logger.info("Note saved", patient_id=str(patient_id), kind=kind.value)
        return note

    async def list_notes(self, db: AsyncSession, patient_id: UUID) -> List[NoteResponse]:
        result = await db.execute(
            select(Note)
            .where(Note.patient_id == patient_id)
            .order_by(Note.created_at.desc(), Note.id)
        )
        return validate_rows(result.scalars().all(), NoteResponse, "note")

    @staticmethod
    def _patient_values(data: Any, exclude_unset: bool = False) -> Dict[str, Any]:
        values = data.model_dump(exclude_unset=exclude_unset)
        if not exclude_unset:
            values = {k: v for k, v in values.items() if v is not None}
        return values


care_service = CareService()


__all__ = [
    "roster_row",
    "CareService",
    "care_service",
]
