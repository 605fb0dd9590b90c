"""
Safety alert triage.

Partitions a patient's alerts into display tiers:

- ``urgent``: unresolved red alerts
- ``monitor``: unresolved yellow alerts
- ``stable``: every green alert, resolved or not

Resolved red and yellow alerts are not actionable and land in ``resolved``,
so the four lists together always account for every alert exactly once.
"""

from typing import Iterable, List
from uuid import UUID

from carecompanion.models.clinical import AlertCategoryEnum
from carecompanion.schemas.clinical import SafetyAlertResponse
from carecompanion.schemas.dashboard import (
    AlertTierCounts,
    SafetyTriageResponse,
    StatusIndicatorEnum
)
from carecompanion.utils.timeutils import as_utc


def _newest_first(alerts: List[SafetyAlertResponse]) -> List[SafetyAlertResponse]:
    return sorted(alerts, key=lambda a: as_utc(a.created_at), reverse=True)


def tier_of(alert: SafetyAlertResponse) -> str:
    """Name of the list an alert belongs to."""
    if alert.category == AlertCategoryEnum.GREEN:
        return "stable"
    if alert.is_resolved:
        return "resolved"
    if alert.category == AlertCategoryEnum.RED:
        return "urgent"
    return "monitor"


def status_indicator(counts: AlertTierCounts) -> StatusIndicatorEnum:
    if counts.urgent:
        return StatusIndicatorEnum.NEEDS_ATTENTION
    if counts.monitor:
        return StatusIndicatorEnum.MONITOR
    return StatusIndicatorEnum.STABLE


def count_tiers(alerts: Iterable[SafetyAlertResponse]) -> AlertTierCounts:
    counts = AlertTierCounts()
    for alert in alerts:
        tier = tier_of(alert)
        setattr(counts, tier, getattr(counts, tier) + 1)
        counts.total += 1
    return counts


def triage_alerts(patient_id: UUID, alerts: Iterable[SafetyAlertResponse]) -> SafetyTriageResponse:
    """Build the tiered view for one patient's alerts."""
    tiers = {"urgent": [], "monitor": [], "stable": [], "resolved": []}
    for alert in alerts:
        tiers[tier_of(alert)].append(alert)

    counts = AlertTierCounts(
        urgent=len(tiers["urgent"]),
        monitor=len(tiers["monitor"]),
        stable=len(tiers["stable"]),
        resolved=len(tiers["resolved"]),
        total=sum(len(members) for members in tiers.values()),
    )

    return SafetyTriageResponse(
        patient_id=patient_id,
        urgent=_newest_first(tiers["urgent"]),
        monitor=_newest_first(tiers["monitor"]),
        stable=_newest_first(tiers["stable"]),
        resolved=_newest_first(tiers["resolved"]),
        counts=counts,
        status_indicator=status_indicator(counts),
    )


__all__ = [
    "tier_of",
    "status_indicator",
    "count_tiers",
    "triage_alerts",
]
