import uuid
from datetime import datetime, timedelta, timezone

import pytest

from carecompanion.models.clinical import BurnoutRiskEnum, StressLevelEnum, SupportStrengthEnum
from carecompanion.schemas.clinical import CaregiverStatusResponse
from carecompanion.services import caregiver_burnout
from carecompanion.services.caregiver_burnout import (
    DEFAULT_SCORER,
    available_scorers,
    days_since_respite,
    estimate_burnout,
    register_scorer,
    score_burnout,
    unregister_scorer
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_status(**overrides) -> CaregiverStatusResponse:
    values = {
        "caregiver_id": uuid.uuid4(),
        "patient_id": uuid.uuid4(),
        "stress_level": StressLevelEnum.HIGH,
        "support_system_strength": SupportStrengthEnum.WEAK,
        "hours_of_care_this_week": 62.5,
        "nights_interrupted_sleep": 5,
        "emergency_calls_made": 1,
        "last_respite_break": NOW - timedelta(days=12),
        "burnout_risk": BurnoutRiskEnum.MODERATE,
        "recommended_actions": ["Schedule adult day care two days a week"],
        "updated_at": NOW,
    }
    values.update(overrides)
    return CaregiverStatusResponse(**values)


@pytest.fixture
def scorer_registry(monkeypatch):
    """Isolate registrations made by a test."""
    monkeypatch.setattr(caregiver_burnout, "_SCORERS", dict(caregiver_burnout._SCORERS))


class TestDaysSinceRespite:

    def test_whole_days(self):
        assert days_since_respite(NOW - timedelta(days=5), NOW) == 5

    def test_partial_day_is_floored(self):
        assert days_since_respite(NOW - timedelta(days=5, hours=21, minutes=36), NOW) == 5

    def test_under_a_day(self):
        assert days_since_respite(NOW - timedelta(hours=23), NOW) == 0

    def test_no_respite_recorded(self):
        assert days_since_respite(None, NOW) is None

    def test_naive_timestamp_treated_as_utc(self):
        naive = (NOW - timedelta(days=3)).replace(tzinfo=None)

        assert days_since_respite(naive, NOW) == 3


class TestScoring:

    def test_default_scorer_returns_stored_tier(self):
        status = make_status(burnout_risk=BurnoutRiskEnum.HIGH)

        view = estimate_burnout(status, now=NOW)

        assert view.scorer == DEFAULT_SCORER
        assert view.estimated_burnout_risk == BurnoutRiskEnum.HIGH
        assert view.burnout_risk == BurnoutRiskEnum.HIGH
        assert view.days_since_respite == 12
        assert view.recommended_actions == status.recommended_actions

    def test_registered_scorer_is_used(self, scorer_registry):
        @register_scorer("hours_of_care")
        def hours_of_care(status):
            return BurnoutRiskEnum.HIGH if status.hours_of_care_this_week > 60 else BurnoutRiskEnum.LOW

        view = estimate_burnout(make_status(), scorer_name="hours_of_care", now=NOW)

        assert "hours_of_care" in available_scorers()
        assert view.scorer == "hours_of_care"
        assert view.estimated_burnout_risk == BurnoutRiskEnum.HIGH
        assert view.burnout_risk == BurnoutRiskEnum.MODERATE

    def test_unknown_scorer_falls_back_to_stored_tier(self):
        view = estimate_burnout(make_status(), scorer_name="does_not_exist", now=NOW)

        assert view.scorer == DEFAULT_SCORER
        assert view.estimated_burnout_risk == BurnoutRiskEnum.MODERATE

    def test_failing_scorer_falls_back_to_stored_tier(self, scorer_registry):
        @register_scorer("broken")
        def broken(status):
            raise RuntimeError("model unavailable")

        assert score_burnout(make_status(), "broken") == BurnoutRiskEnum.MODERATE

    def test_scorer_returning_invalid_tier_falls_back(self, scorer_registry):
        register_scorer("bogus")(lambda status: "catastrophic")

        assert score_burnout(make_status(), "bogus") == BurnoutRiskEnum.MODERATE

    def test_stored_scorer_cannot_be_removed(self):
        with pytest.raises(ValueError):
            unregister_scorer(DEFAULT_SCORER)

        assert DEFAULT_SCORER in available_scorers()

    def test_unregister_custom_scorer(self, scorer_registry):
        register_scorer("temporary")(lambda status: BurnoutRiskEnum.LOW)
        unregister_scorer("temporary")

        assert "temporary" not in available_scorers()
