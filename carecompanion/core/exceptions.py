"""
Error taxonomy for the care service layer.

Services raise these; the API layer maps each class to an HTTP status in
``carecompanion.main``.
"""

from typing import Any, Dict, Optional


class CareCompanionError(Exception):
    """Base exception for all domain errors"""

    status_code = 500
    error = "internal_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotAuthenticatedError(CareCompanionError):
    """No authenticated identity is available for an operation that needs one"""

    status_code = 401
    error = "not_authenticated"

    def __init__(self, message: str = "Not logged in", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class PermissionDeniedError(CareCompanionError):
    status_code = 403
    error = "permission_denied"


class PatientAccessError(CareCompanionError):
    """The caller has no care relationship with the patient"""

    status_code = 404
    error = "patient_not_found"

    def __init__(self, patient_id: Any):
        super().__init__(f"Patient {patient_id} not found", {"patient_id": str(patient_id)})


class RecordNotFoundError(CareCompanionError):
    status_code = 404
    error = "record_not_found"

    def __init__(self, record_type: str, record_id: Any):
        super().__init__(
            f"{record_type} {record_id} not found",
            {"record_type": record_type, "record_id": str(record_id)},
        )


class DuplicateRecordError(CareCompanionError):
    status_code = 409
    error = "duplicate_record"


class PersistenceError(CareCompanionError):
    """A database call failed"""

    status_code = 503
    error = "persistence_error"


class PatientCreationError(PersistenceError):
    """Patient creation failed and the transaction was rolled back"""

    error = "patient_creation_failed"


__all__ = [
    "CareCompanionError",
    "NotAuthenticatedError",
    "PermissionDeniedError",
    "PatientAccessError",
    "RecordNotFoundError",
    "DuplicateRecordError",
    "PersistenceError",
    "PatientCreationError",
]
