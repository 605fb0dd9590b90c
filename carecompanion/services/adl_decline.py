"""
ADL decline detection over a patient's assessment history.

Scores run 1 (independent) to 5 (dependent), so a *higher* basic total means
more dependence. A rise of more than ``ADL_DECLINE_THRESHOLD`` points between
the two most recent assessments marks a re-assessment as due.
"""

from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from carecompanion.core.config import AppConstants
from carecompanion.schemas.clinical import ADLAssessmentResponse
from carecompanion.schemas.dashboard import ADLConcern, ADLDeclineResponse
from carecompanion.utils.timeutils import as_utc


def basic_total(assessment: ADLAssessmentResponse) -> int:
    return sum(getattr(assessment, field) for field in AppConstants.BASIC_ADL_FIELDS)


def iadl_total(assessment: ADLAssessmentResponse) -> int:
    return sum(getattr(assessment, field) for field in AppConstants.INSTRUMENTAL_ADL_FIELDS)


def latest_pair(
    assessments: Sequence[ADLAssessmentResponse],
) -> Tuple[Optional[ADLAssessmentResponse], Optional[ADLAssessmentResponse]]:
    """Return (latest, previous) ordered by assessment date, then creation time."""
    ordered = sorted(assessments, key=lambda a: (a.date, as_utc(a.created_at)))
    latest = ordered[-1] if ordered else None
    previous = ordered[-2] if len(ordered) > 1 else None
    return latest, previous


def regressed_fields(latest: ADLAssessmentResponse, previous: ADLAssessmentResponse) -> List[ADLConcern]:
    return [
        ADLConcern(field=field, previous=getattr(previous, field), latest=getattr(latest, field))
        for field in AppConstants.BASIC_ADL_FIELDS
        if getattr(latest, field) > getattr(previous, field)
    ]


def detect_decline(patient_id: UUID, assessments: Sequence[ADLAssessmentResponse]) -> ADLDeclineResponse:
    latest, previous = latest_pair(assessments)

    report = ADLDeclineResponse(
        patient_id=patient_id,
        assessment_count=len(assessments),
        latest=latest,
        previous=previous,
    )
    if latest is None:
        return report

    report.latest_total = basic_total(latest)
    report.latest_iadl_total = iadl_total(latest)
    if previous is None:
        return report

    report.previous_total = basic_total(previous)
    report.decline = report.latest_total - report.previous_total
    report.due = report.decline > AppConstants.ADL_DECLINE_THRESHOLD
    report.concerns = regressed_fields(latest, previous)
    return report


__all__ = [
    "basic_total",
    "iadl_total",
    "latest_pair",
    "regressed_fields",
    "detect_decline",
]
