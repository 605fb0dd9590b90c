from typing import Any, Callable, Dict, Optional
from uuid import UUID
import secrets

from fastapi import Depends, Header, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from carecompanion.core.database import get_db
from carecompanion.core.exceptions import PermissionDeniedError
from carecompanion.core.security import get_current_user
from carecompanion.models.patient import Patient
from carecompanion.services.care_service import care_service
from carecompanion.services.session_store import SessionRegistry, SessionStore, session_registry

logger = structlog.get_logger(__name__)


def get_correlation_id(
    request: Request,
    x_correlation_id: Optional[str] = Header(None),
    x_request_id: Optional[str] = Header(None)
) -> str:
    """
    Get or generate correlation ID for request tracing.

    **Returns:**
    - **correlation_id**: Unique identifier for request tracing
    """

    # The logging middleware has usually assigned one already
    correlation_id = getattr(request.state, "correlation_id", None) or x_correlation_id or x_request_id

    if not correlation_id:
        correlation_id = f"cc-{secrets.token_hex(8)}"

    return correlation_id


def require_roles(*roles: str) -> Callable[..., Dict[str, Any]]:
    """Dependency factory: the caller must hold at least one of ``roles``."""

    async def checker(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if not set(roles) & set(current_user.get("roles", [])):
            logger.warning(
                "Role requirement not met",
                user_id=str(current_user["user_id"]),
                required=list(roles),
            )
            raise PermissionDeniedError(
                "Insufficient role for this operation",
                {"required_roles": list(roles)},
            )
        return current_user

    return checker


async def get_accessible_patient(
    patient_id: UUID = Path(..., description="Patient identifier"),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> Patient:
    """Patient the caller has a care relationship with; 404 otherwise."""
    return await care_service.ensure_access(db, current_user["user_id"], patient_id)


def get_session_registry() -> SessionRegistry:
    return session_registry


def get_session_store(
    current_user: Dict[str, Any] = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry)
) -> SessionStore:
    return registry.get(current_user["user_id"])


__all__ = [
    "get_correlation_id",
    "require_roles",
    "get_accessible_patient",
    "get_session_registry",
    "get_session_store",
]
