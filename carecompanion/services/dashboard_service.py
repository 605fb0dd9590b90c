"""
Dashboard assembly: loads patient collections and applies the roll-up rules.

Loads are read paths; a collection that fails to load is logged, treated as
empty and reported in ``degraded`` so the rest of the dashboard still renders.
"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from carecompanion.core.config import get_settings
from carecompanion.models.patient import Patient
from carecompanion.schemas.dashboard import (
    CaregiverOverviewResponse,
    DashboardStatsResponse,
    PatientOverviewItem
)
from carecompanion.services import dashboard_stats, records
from carecompanion.services.care_service import care_service
from carecompanion.services.records import PatientRecordRepository
from carecompanion.services.safety_triage import count_tiers, status_indicator
from carecompanion.utils.timeutils import as_utc, utcnow

logger = structlog.get_logger(__name__)


class DashboardService:
    """Per-patient dashboard and multi-patient caregiver overview"""

    async def _load(
        self,
        db: AsyncSession,
        repo: PatientRecordRepository,
        patient_id: UUID,
        degraded: List[str],
        limit: Optional[int] = None
    ) -> list:
        try:
            return await repo.list(db, patient_id, limit=limit)
        except SQLAlchemyError as e:
            await db.rollback()
            collection = repo.model.__tablename__
            logger.error(
                "Failed to load collection",
                collection=collection,
                patient_id=str(patient_id),
                error=str(e),
            )
            if collection not in degraded:
                degraded.append(collection)
            return []

    async def patient_dashboard(
        self,
        db: AsyncSession,
        patient: Patient,
        day: Optional[date] = None,
        now: Optional[datetime] = None
    ) -> DashboardStatsResponse:
        now = now or utcnow()
        day = day or now.date()
        window_days = get_settings().clinical.MOOD_TALLY_WINDOW_DAYS

        # Read before any load; a rollback expires loaded instances
        patient_id = patient.id
        mood_trend = patient.mood_trend

        degraded: List[str] = []
        alerts = await self._load(db, records.safety_alerts, patient_id, degraded)
        tasks = await self._load(db, records.tasks, patient_id, degraded)
        medication_logs = await self._load(db, records.medication_logs, patient_id, degraded)
        moods = await self._load(db, records.mood_entries, patient_id, degraded)
        behaviors = await self._load(db, records.behavior_logs, patient_id, degraded)
        sleep = await self._load(db, records.sleep_entries, patient_id, degraded)
        goals = await self._load(db, records.goals, patient_id, degraded)

        tasks_completed, tasks_total, tasks_rate = dashboard_stats.task_completion(
            dashboard_stats.tasks_for_day(tasks, day)
        )
        meds_taken, meds_total, meds_rate = dashboard_stats.medication_adherence(
            [log for log in medication_logs if log.date == day]
        )
        latest_mood = dashboard_stats.latest_mood(moods)
        latest_sleep = dashboard_stats.latest_sleep(sleep)
        counts = count_tiers(alerts)

        if degraded:
            logger.warning("Dashboard degraded", patient_id=str(patient_id), degraded=degraded)

        return DashboardStatsResponse(
            patient_id=patient_id,
            day=day,
            tasks_completed=tasks_completed,
            tasks_total=tasks_total,
            tasks_completion_rate=tasks_rate,
            medications_taken=meds_taken,
            medications_total=meds_total,
            medications_adherence_rate=meds_rate,
            mood_today=latest_mood.mood if latest_mood and as_utc(latest_mood.timestamp).date() == day else None,
            mood_trend=mood_trend,
            sleep_hours=latest_sleep.duration_hours if latest_sleep else None,
            sleep_quality=latest_sleep.quality if latest_sleep else None,
            mood_tally=dashboard_stats.mood_tally(moods, behaviors, now, window_days),
            goal_summary=dashboard_stats.goal_summary(goals),
            safety=counts,
            status_indicator=status_indicator(counts),
            degraded=degraded,
            generated_at=now,
        )

    async def caregiver_overview(
        self,
        db: AsyncSession,
        caregiver_id: UUID,
        day: Optional[date] = None,
        now: Optional[datetime] = None
    ) -> CaregiverOverviewResponse:
        now = now or utcnow()
        day = day or now.date()

        roster = await care_service.load_roster(db, caregiver_id)
        degraded: List[str] = list(roster.degraded)
        overview = CaregiverOverviewResponse(day=day, total_patients=roster.total, generated_at=now)

        for entry in roster.patients:
            alerts = await self._load(db, records.safety_alerts, entry.id, degraded)
            tasks = await self._load(db, records.tasks, entry.id, degraded)
            medication_logs = await self._load(db, records.medication_logs, entry.id, degraded)
            moods = await self._load(db, records.mood_entries, entry.id, degraded, limit=1)
            appointments = await self._load(db, records.appointments, entry.id, degraded)

            counts = count_tiers(alerts)
            tasks_completed, tasks_total, _ = dashboard_stats.task_completion(
                dashboard_stats.tasks_for_day(tasks, day)
            )
            latest_mood = dashboard_stats.latest_mood(moods)

            item = PatientOverviewItem(
                patient_id=entry.id,
                display_name=entry.display_name,
                status_indicator=status_indicator(counts),
                tasks_completed=tasks_completed,
                tasks_total=tasks_total,
                pending_medications=dashboard_stats.pending_medications(medication_logs),
                latest_mood=latest_mood.mood if latest_mood else None,
                next_appointment=dashboard_stats.next_appointment(appointments, day),
            )
            overview.patients.append(item)
            overview.urgent_alerts += counts.urgent
            overview.monitor_alerts += counts.monitor
            overview.pending_medications += item.pending_medications

        overview.degraded = degraded
        return overview


dashboard_service = DashboardService()


__all__ = [
    "DashboardService",
    "dashboard_service",
]
