from typing import Any, Dict
import platform
import time

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from carecompanion import __version__
from carecompanion.api.dependencies import get_correlation_id
from carecompanion.core.config import get_settings
from carecompanion.core.database import check_db_health, get_db
from carecompanion.services.caregiver_burnout import available_scorers
from carecompanion.services.session_store import session_registry
from carecompanion.utils.logger import get_log_level
from carecompanion.utils.timeutils import utcnow

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get(
    "/health",
    summary="Basic Health Check",
    description="Basic health check endpoint for load balancers and monitoring"
)
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint for quick status verification.

    **Returns:**
    - **status**: Overall health status
    - **timestamp**: Current server timestamp
    - **version**: API version
    """

    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "version": __version__,
        "service": "carecompanion-api"
    }


@router.get(
    "/health/detailed",
    summary="Detailed Health Check",
    description="Health check including database connectivity and runtime configuration"
)
async def detailed_health_check(
    correlation_id: str = Depends(get_correlation_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Health check covering the database and in-process components.

    **Returns:**
    - **overall_status**: healthy or unhealthy
    - **components**: Individual component health status
    - **system_info**: Runtime and configuration information
    """

    start_time = time.perf_counter()
    settings = get_settings()

    logger.info("Detailed health check started", correlation_id=correlation_id)

    database = await check_db_health(db)
    overall_status = "healthy" if database["status"] == "healthy" else "unhealthy"

    health_results = {
        "overall_status": overall_status,
        "timestamp": utcnow().isoformat(),
        "correlation_id": correlation_id,
        "components": {
            "database": database,
            "session_store": {
                "status": "healthy",
                "active_sessions": len(session_registry),
            },
            "burnout_scoring": {
                "status": "healthy",
                "configured": settings.clinical.BURNOUT_SCORER,
                "available": available_scorers(),
            },
        },
        "system_info": {
            "environment": settings.ENVIRONMENT,
            "api_version": settings.API_VERSION,
            "python_version": platform.python_version(),
            "log_level": get_log_level(),
        },
        "check_duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
    }

    if overall_status != "healthy":
        logger.warning("Detailed health check failed", correlation_id=correlation_id, database=database)
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=health_results)

    return health_results
