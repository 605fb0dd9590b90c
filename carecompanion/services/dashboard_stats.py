"""
Pure roll-up rules behind the patient dashboard and the caregiver overview.

Rates are whole percentages rounded half-up using integer arithmetic only, so
3 of 9 is 33 and 1 of 8 is 13.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from carecompanion.core.config import AppConstants
from carecompanion.models.clinical import GoalStatusEnum, MedicationLogStatusEnum, TaskStatusEnum
from carecompanion.schemas.clinical import (
    AppointmentResponse,
    BehaviorLogResponse,
    GoalResponse,
    MedicationLogResponse,
    MoodEntryResponse,
    SleepEntryResponse,
    TaskResponse
)
from carecompanion.schemas.dashboard import GoalProgressItem, GoalSummary, MoodTally
from carecompanion.utils.timeutils import as_utc

POSITIVE = "positive"
NEGATIVE = "negative"


def percentage(part: int, whole: int) -> int:
    """round(100 * part / whole), half-up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def rounded_mean(values: Sequence[int]) -> int:
    if not values:
        return 0
    n = len(values)
    return (2 * sum(values) + n) // (2 * n)


def classify_mood(mood: str) -> str:
    """Every mood is exactly one of positive or negative."""
    if mood.strip().lower() in AppConstants.NEGATIVE_MOODS:
        return NEGATIVE
    return POSITIVE


def tasks_for_day(tasks: Iterable[TaskResponse], day: date) -> List[TaskResponse]:
    """Active tasks scheduled for ``day``; undated tasks recur daily."""
    return [
        t for t in tasks
        if t.is_active and (t.scheduled_for is None or t.scheduled_for == day)
    ]


def task_completion(tasks: Sequence[TaskResponse]) -> Tuple[int, int, int]:
    """(completed, total, rate)"""
    completed = sum(1 for t in tasks if t.status == TaskStatusEnum.COMPLETED)
    return completed, len(tasks), percentage(completed, len(tasks))


def medication_adherence(logs: Sequence[MedicationLogResponse]) -> Tuple[int, int, int]:
    """(taken, logged, rate)"""
    taken = sum(1 for log in logs if log.status == MedicationLogStatusEnum.TAKEN)
    return taken, len(logs), percentage(taken, len(logs))


def pending_medications(logs: Iterable[MedicationLogResponse]) -> int:
    return sum(1 for log in logs if log.status == MedicationLogStatusEnum.PENDING)


def mood_tally(
    moods: Iterable[MoodEntryResponse],
    behaviors: Iterable[BehaviorLogResponse],
    now: datetime,
    window_days: int = 7
) -> MoodTally:
    cutoff = as_utc(now) - timedelta(days=window_days)
    tally = MoodTally(window_days=window_days)

    for entry in moods:
        if as_utc(entry.timestamp) < cutoff:
            continue
        if classify_mood(entry.mood) == NEGATIVE:
            tally.negative += 1
        else:
            tally.positive += 1
    tally.total = tally.positive + tally.negative

    tally.behavior_incidents = sum(1 for log in behaviors if as_utc(log.timestamp) >= cutoff)
    return tally


def milestone_ratio(goal: GoalResponse) -> float:
    if not goal.milestones:
        return 0.0
    return sum(1 for m in goal.milestones if m.completed) / len(goal.milestones)


def goal_summary(goals: Iterable[GoalResponse]) -> GoalSummary:
    items = [
        GoalProgressItem(
            goal_id=goal.id,
            title=goal.title,
            status=goal.status,
            progress=goal.progress,
            milestone_completion_ratio=milestone_ratio(goal),
        )
        for goal in goals
    ]
    return GoalSummary(
        goals=items,
        active_count=sum(1 for item in items if item.status == GoalStatusEnum.ACTIVE),
        average_progress=rounded_mean([item.progress for item in items]),
    )


def latest_mood(moods: Iterable[MoodEntryResponse]) -> Optional[MoodEntryResponse]:
    return max(moods, key=lambda m: as_utc(m.timestamp), default=None)


def latest_sleep(entries: Iterable[SleepEntryResponse]) -> Optional[SleepEntryResponse]:
    return max(entries, key=lambda e: (e.date, as_utc(e.created_at)), default=None)


def next_appointment(appointments: Iterable[AppointmentResponse], day: date) -> Optional[AppointmentResponse]:
    upcoming = [a for a in appointments if a.date >= day]
    return min(upcoming, key=lambda a: (a.date, a.time), default=None)


__all__ = [
    "POSITIVE",
    "NEGATIVE",
    "percentage",
    "rounded_mean",
    "classify_mood",
    "tasks_for_day",
    "task_completion",
    "medication_adherence",
    "pending_medications",
    "mood_tally",
    "milestone_ratio",
    "goal_summary",
    "latest_mood",
    "latest_sleep",
    "next_appointment",
]
