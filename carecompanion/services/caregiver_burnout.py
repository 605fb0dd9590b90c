"""
Caregiver burnout estimation.

The burnout tier is assigned by a clinician or an external rules engine and
stored on ``CaregiverStatus``. Scoring goes through a small registry so a
formula can be plugged in later; the default scorer returns the stored tier,
and any unknown or failing scorer falls back to it.
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

import structlog

from carecompanion.core.config import get_settings
from carecompanion.models.clinical import BurnoutRiskEnum
from carecompanion.schemas.clinical import CaregiverStatusResponse
from carecompanion.schemas.dashboard import CaregiverStatusView
from carecompanion.utils.timeutils import as_utc, utcnow

logger = structlog.get_logger(__name__)

BurnoutScorer = Callable[[CaregiverStatusResponse], BurnoutRiskEnum]

DEFAULT_SCORER = "stored"

_SCORERS: Dict[str, BurnoutScorer] = {}


def register_scorer(name: str) -> Callable[[BurnoutScorer], BurnoutScorer]:
    """Decorator registering a burnout scorer under ``name``."""
    def decorator(func: BurnoutScorer) -> BurnoutScorer:
        _SCORERS[name] = func
        return func
    return decorator


def unregister_scorer(name: str) -> None:
    if name == DEFAULT_SCORER:
        raise ValueError("The stored-value scorer cannot be removed")
    _SCORERS.pop(name, None)


def available_scorers() -> List[str]:
    return sorted(_SCORERS)


@register_scorer(DEFAULT_SCORER)
def stored_scorer(status: CaregiverStatusResponse) -> BurnoutRiskEnum:
    return status.burnout_risk


def days_since_respite(last_respite_break: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days elapsed since the last respite break, floored."""
    if last_respite_break is None:
        return None
    now = as_utc(now) if now is not None else utcnow()
    return (now - as_utc(last_respite_break)) // timedelta(days=1)


def score_burnout(status: CaregiverStatusResponse, scorer_name: str) -> BurnoutRiskEnum:
    scorer = _SCORERS.get(scorer_name)
    if scorer is None:
        logger.warning("Unknown burnout scorer, using stored tier", scorer=scorer_name)
        return status.burnout_risk

    try:
        return BurnoutRiskEnum(scorer(status))
    except Exception as e:
        logger.warning(
            "Burnout scorer failed, using stored tier",
            scorer=scorer_name,
            patient_id=str(status.patient_id),
            error=str(e),
        )
        return status.burnout_risk


def estimate_burnout(
    status: CaregiverStatusResponse,
    scorer_name: Optional[str] = None,
    now: Optional[datetime] = None
) -> CaregiverStatusView:
    """Caregiver status as displayed: stored fields plus derived values."""
    scorer_name = scorer_name or get_settings().clinical.BURNOUT_SCORER
    resolved_name = scorer_name if scorer_name in _SCORERS else DEFAULT_SCORER

    return CaregiverStatusView(
        **status.model_dump(),
        days_since_respite=days_since_respite(status.last_respite_break, now),
        estimated_burnout_risk=score_burnout(status, scorer_name),
        scorer=resolved_name,
    )


__all__ = [
    "BurnoutScorer",
    "DEFAULT_SCORER",
    "register_scorer",
    "unregister_scorer",
    "available_scorers",
    "stored_scorer",
    "days_since_respite",
    "score_burnout",
    "estimate_burnout",
]
