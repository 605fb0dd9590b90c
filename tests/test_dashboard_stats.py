import uuid
from datetime import date, datetime, time, timedelta, timezone

import pytest
from pydantic import ValidationError

from carecompanion.models.clinical import (
    GoalCategoryEnum,
    GoalStatusEnum,
    MedicationLogStatusEnum,
    SeverityEnum,
    TaskStatusEnum,
    TimeOfDayEnum
)
from carecompanion.schemas.clinical import (
    AppointmentCreate,
    AppointmentResponse,
    BehaviorLogResponse,
    GoalResponse,
    MedicationLogResponse,
    MilestoneResponse,
    MoodEntryResponse,
    TaskResponse
)
from carecompanion.services.dashboard_stats import (
    NEGATIVE,
    POSITIVE,
    classify_mood,
    goal_summary,
    latest_mood,
    medication_adherence,
    milestone_ratio,
    mood_tally,
    next_appointment,
    pending_medications,
    percentage,
    rounded_mean,
    task_completion,
    tasks_for_day
)

PATIENT_ID = uuid.uuid4()
USER_ID = uuid.uuid4()
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def make_task(status=TaskStatusEnum.PENDING, scheduled_for=None, is_active=True) -> TaskResponse:
    return TaskResponse(
        id=uuid.uuid4(),
        patient_id=PATIENT_ID,
        title="Morning walk",
        time_of_day=TimeOfDayEnum.MORNING,
        scheduled_for=scheduled_for,
        status=status,
        is_recurring=scheduled_for is None,
        is_active=is_active,
    )


def make_log(status: MedicationLogStatusEnum, day: date = TODAY) -> MedicationLogResponse:
    return MedicationLogResponse(
        id=uuid.uuid4(),
        medication_id=uuid.uuid4(),
        patient_id=PATIENT_ID,
        scheduled_time="8:00 AM",
        status=status,
        date=day,
        recorded_by=USER_ID,
    )


def make_mood(mood: str, days_ago: float = 0) -> MoodEntryResponse:
    return MoodEntryResponse(
        id=uuid.uuid4(),
        patient_id=PATIENT_ID,
        mood=mood,
        timestamp=NOW - timedelta(days=days_ago),
        recorded_by=USER_ID,
    )


def make_behavior(days_ago: float = 0) -> BehaviorLogResponse:
    return BehaviorLogResponse(
        id=uuid.uuid4(),
        patient_id=PATIENT_ID,
        behavior="Sundowning",
        description="Restless after 5 PM",
        severity=SeverityEnum.MODERATE,
        timestamp=NOW - timedelta(days=days_ago),
        recorded_by=USER_ID,
    )


def make_goal(progress: int, completed_milestones: int = 0, milestones: int = 0, status=GoalStatusEnum.ACTIVE):
    return GoalResponse(
        id=uuid.uuid4(),
        patient_id=PATIENT_ID,
        title="Maintain daily walking routine",
        category=GoalCategoryEnum.PHYSICAL,
        status=status,
        progress=progress,
        created_by=USER_ID,
        created_at=NOW,
        milestones=[
            MilestoneResponse(id=uuid.uuid4(), position=i, title=f"Step {i}", completed=i < completed_milestones)
            for i in range(milestones)
        ],
    )


class TestPercentage:
    """Whole percentages, half rounded up."""

    @pytest.mark.parametrize("part,whole,expected", [
        (3, 9, 33),
        (1, 8, 13),
        (1, 3, 33),
        (2, 3, 67),
        (1, 2, 50),
        (1, 200, 1),
        (0, 5, 0),
        (5, 5, 100),
        (0, 0, 0),
    ])
    def test_percentage(self, part, whole, expected):
        assert percentage(part, whole) == expected

    @pytest.mark.parametrize("values,expected", [
        ([], 0),
        ([50], 50),
        ([10, 15], 13),
        ([33, 34], 34),
        ([0, 0, 1], 0),
    ])
    def test_rounded_mean(self, values, expected):
        assert rounded_mean(values) == expected


class TestTaskAndMedicationRates:

    def test_tasks_for_day_keeps_recurring_and_scheduled_today(self):
        recurring = make_task()
        today = make_task(scheduled_for=TODAY)
        tomorrow = make_task(scheduled_for=TODAY + timedelta(days=1))
        inactive = make_task(is_active=False)

        selected = tasks_for_day([recurring, today, tomorrow, inactive], TODAY)

        assert [t.id for t in selected] == [recurring.id, today.id]

    def test_task_completion(self):
        tasks = [make_task(TaskStatusEnum.COMPLETED) for _ in range(3)] + [make_task() for _ in range(6)]

        assert task_completion(tasks) == (3, 9, 33)

    def test_task_completion_without_tasks(self):
        assert task_completion([]) == (0, 0, 0)

    def test_medication_adherence(self):
        logs = [make_log(MedicationLogStatusEnum.TAKEN)] + [
            make_log(status) for status in (
                MedicationLogStatusEnum.MISSED,
                MedicationLogStatusEnum.PENDING,
                MedicationLogStatusEnum.SKIPPED,
            )
        ] * 2 + [make_log(MedicationLogStatusEnum.PENDING)]

        assert medication_adherence(logs) == (1, 8, 13)
        assert pending_medications(logs) == 3


class TestMoodTally:

    @pytest.mark.parametrize("mood,expected", [
        ("happy", POSITIVE),
        ("calm", POSITIVE),
        ("surprised", POSITIVE),
        ("anxious", NEGATIVE),
        ("Sad", NEGATIVE),
        (" confused ", NEGATIVE),
    ])
    def test_classify_mood(self, mood, expected):
        assert classify_mood(mood) == expected

    def test_seven_day_window(self):
        moods = [
            make_mood("happy", days_ago=1),
            make_mood("anxious", days_ago=2),
            make_mood("calm", days_ago=6.9),
            make_mood("sad", days_ago=8),
        ]
        behaviors = [make_behavior(days_ago=3), make_behavior(days_ago=10)]

        tally = mood_tally(moods, behaviors, NOW)

        assert tally.window_days == 7
        assert tally.positive == 2
        assert tally.negative == 1
        assert tally.total == 3
        assert tally.behavior_incidents == 1

    def test_latest_mood(self):
        older = make_mood("calm", days_ago=2)
        newer = make_mood("anxious", days_ago=0.5)

        assert latest_mood([older, newer]).id == newer.id
        assert latest_mood([]) is None


class TestGoals:

    def test_milestone_ratio(self):
        assert milestone_ratio(make_goal(40, completed_milestones=1, milestones=4)) == 0.25
        assert milestone_ratio(make_goal(40)) == 0.0

    def test_goal_summary(self):
        goals = [
            make_goal(10, completed_milestones=2, milestones=2),
            make_goal(15),
            make_goal(100, status=GoalStatusEnum.COMPLETED),
        ]

        summary = goal_summary(goals)

        assert summary.active_count == 2
        assert summary.average_progress == 42
        assert summary.goals[0].milestone_completion_ratio == 1.0
        assert summary.goals[0].progress == 10


class TestAppointments:

    def test_next_appointment_skips_past_dates(self):
        def make(day, time):
            return AppointmentResponse(
                id=uuid.uuid4(),
                patient_id=PATIENT_ID,
                title="Neurology follow-up",
                provider="Dr. Chen",
                date=day,
                time=time,
                reminder_set=True,
            )

        past = make(TODAY - timedelta(days=1), "09:00")
        later = make(TODAY + timedelta(days=3), "10:30")
        soonest = make(TODAY, "14:00")

        assert next_appointment([past, later, soonest], TODAY).id == soonest.id
        assert next_appointment([past], TODAY) is None

    def test_twelve_hour_times_sort_by_clock(self):
        def make(clock):
            return AppointmentResponse(
                id=uuid.uuid4(),
                patient_id=PATIENT_ID,
                title="Memory clinic",
                provider="Dr. Okafor",
                date=TODAY,
                time=clock,
                reminder_set=False,
            )

        morning = make("9:00 AM")
        late_morning = make("10:00 AM")
        afternoon = make("2:00 PM")

        assert morning.time == time(9, 0)
        assert afternoon.time == time(14, 0)
        assert next_appointment([late_morning, afternoon, morning], TODAY).id == morning.id
        assert next_appointment([afternoon, late_morning], TODAY).id == late_morning.id

    @pytest.mark.parametrize("text", ["25:00", "9:00 XM", "soon"])
    def test_unparseable_time_rejected(self, text):
        with pytest.raises(ValidationError):
            AppointmentCreate(title="Dentist", provider="Dr. Ruiz", date=TODAY, time=text)
