from carecompanion.api.routes import (
    health,
    patients,
    safety,
    assessments,
    caregiver,
    logs,
    goals,
    therapy,
    dashboard,
    session
)
from carecompanion.api.dependencies import (
    get_correlation_id,
    require_roles,
    get_accessible_patient,
    get_session_store
)

# API route modules
__all__ = [
    "health",
    "patients",
    "safety",
    "assessments",
    "caregiver",
    "logs",
    "goals",
    "therapy",
    "dashboard",
    "session",
    "get_correlation_id",
    "require_roles",
    "get_accessible_patient",
    "get_session_store",
]
