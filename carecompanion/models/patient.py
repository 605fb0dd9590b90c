"""
CareCompanion - Patient, care relationship and note models

A caregiver sees exactly the patients for which a ``CareRelationship`` row
exists; patients are never hard-deleted, removal only drops the relationship.
"""

import enum
import uuid

from sqlalchemy import (
    Column,
    String,
    Date,
    DateTime,
    Text,
    JSON,
    ForeignKey,
    Index,
    UniqueConstraint,
    Uuid,
    Enum as SQLEnum
)
from sqlalchemy.orm import relationship, validates

from carecompanion.core.database import Base
from carecompanion.utils.timeutils import utcnow


def enum_column_type(enum_cls, name: str) -> SQLEnum:
    """Persist enum *values* rather than member names."""
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class DementiaStageEnum(str, enum.Enum):
    EARLY = "early"
    MIDDLE = "middle"
    LATE = "late"


class MoodTrendEnum(str, enum.Enum):
    """Clinician-maintained trend label shown on the dashboard"""
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class CareRoleEnum(str, enum.Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    THERAPIST = "therapist"
    FAMILY = "family"


class NoteKindEnum(str, enum.Enum):
    NOTE = "note"
    SESSION = "session"


class Patient(Base):
    """Patient identity, demographics and preferences"""

    __tablename__ = "patients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_by = Column(Uuid, nullable=False, index=True)

    # Identity
    display_name = Column(String(200), nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    preferred_name = Column(String(100))
    date_of_birth = Column(Date)
    photo_url = Column(String(500))

    # Location and comfort
    location = Column(String(200))
    address = Column(String(500))
    affirmation = Column(Text)
    emergency_contact = Column(JSON)  # {name, relationship, phone, email}
    preferences = Column(JSON)  # {language, font_size, high_contrast, ...}

    # Clinical context
    diagnosis_date = Column(Date)
    dementia_stage = Column(enum_column_type(DementiaStageEnum, "dementia_stage"))
    mood_trend = Column(
        enum_column_type(MoodTrendEnum, "mood_trend"),
        nullable=False,
        default=MoodTrendEnum.STABLE,
    )

    # Tracking
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    relationships = relationship("CareRelationship", back_populates="patient", cascade="all, delete-orphan")
    notes = relationship("Note", back_populates="patient", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_patient_created_at", "created_at"),
    )

    @validates("display_name")
    def validate_display_name(self, key, display_name):
        if not display_name or not display_name.strip():
            raise ValueError("Display name must not be blank")
        return display_name.strip()

    def __repr__(self):
        return f"<Patient(id='{self.id}', display_name='{self.display_name}')>"


class CareRelationship(Base):
    """Grants a caregiver or therapist visibility into one patient's records"""

    __tablename__ = "care_relationships"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = Column(Uuid, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)
    caregiver_id = Column(Uuid, nullable=False)
    role = Column(enum_column_type(CareRoleEnum, "care_role"), nullable=False, default=CareRoleEnum.PRIMARY)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    patient = relationship("Patient", back_populates="relationships")

    __table_args__ = (
        UniqueConstraint("patient_id", "caregiver_id", name="uq_care_relationship_pair"),
        Index("idx_care_relationship_caregiver", "caregiver_id", "created_at"),
    )

    def __repr__(self):
        return f"<CareRelationship(patient_id='{self.patient_id}', caregiver_id='{self.caregiver_id}', role='{self.role}')>"


class Note(Base):
    """Free-text entry on a patient's timeline"""

    __tablename__ = "notes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = Column(Uuid, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(Uuid, nullable=False)
    body = Column(Text, nullable=False)
    kind = Column(enum_column_type(NoteKindEnum, "note_kind"), nullable=False, default=NoteKindEnum.NOTE)
    session_type = Column(String(100))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    patient = relationship("Patient", back_populates="notes")

    __table_args__ = (
        Index("idx_note_patient_created", "patient_id", "created_at"),
    )

    @validates("body")
    def validate_body(self, key, body):
        if not body or not body.strip():
            raise ValueError("Note body must not be blank")
        return body.strip()

    def __repr__(self):
        return f"<Note(id='{self.id}', patient_id='{self.patient_id}', kind='{self.kind}')>"
