import uuid
from datetime import timedelta

from fastapi import status
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from carecompanion.models.clinical import SafetyAlert
from carecompanion.models.patient import CareRelationship, Note, Patient
from carecompanion.services.care_service import CareService
from carecompanion.services.clinical_service import ClinicalService
from carecompanion.utils.timeutils import utcnow

API = "/api/v1"


async def create_patient(client, headers, data=None) -> dict:
    response = await client.post(f"{API}/patients", json=data or {"display_name": "Margaret Thompson"}, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


class TestHealthEndpoints:
    """Test suite for health check endpoints."""

    async def test_health_check_success(self, client):
        response = await client.get(f"{API}/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "version" in data

    async def test_detailed_health_check(self, client):
        response = await client.get(f"{API}/health/detailed", headers={"X-Correlation-ID": "health-check-1"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["overall_status"] == "healthy"
        assert data["correlation_id"] == "health-check-1"
        assert data["components"]["database"]["status"] == "healthy"
        assert "stored" in data["components"]["burnout_scoring"]["available"]

    async def test_correlation_id_echoed(self, client):
        response = await client.get(f"{API}/health", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    async def test_correlation_id_generated(self, client):
        response = await client.get(f"{API}/health")

        assert response.headers["X-Correlation-ID"].startswith("cc-")

    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["health_check"] == f"{API}/health"


class TestAuthentication:

    async def test_missing_token_is_rejected(self, client):
        response = await client.get(f"{API}/patients")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "not_authenticated"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_invalid_token_is_rejected(self, client):
        response = await client.get(f"{API}/patients", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_unauthenticated_note_writes_nothing(self, client, caregiver_headers, count_rows):
        patient = await create_patient(client, caregiver_headers)

        response = await client.post(f"{API}/patients/{patient['id']}/notes", json={"body": "Slept well"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Not logged in"
        assert await count_rows(Note) == 0


class TestPatientEndpoints:

    async def test_create_and_list(self, client, caregiver_headers, sample_patient_data):
        created = await create_patient(client, caregiver_headers, sample_patient_data)

        response = await client.get(f"{API}/patients", headers=caregiver_headers)

        assert response.status_code == status.HTTP_200_OK
        roster = response.json()
        assert roster["total"] == 1
        assert roster["degraded"] == []
        assert roster["patients"][0]["id"] == created["id"]
        assert roster["patients"][0]["role"] == "primary"
        assert roster["patients"][0]["preferred_name"] == "Maggie"

    async def test_create_validation_error(self, client, caregiver_headers):
        response = await client.post(f"{API}/patients", json={"display_name": "   "}, headers=caregiver_headers)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_failed_creation_returns_error_and_writes_nothing(
        self, client, caregiver_headers, count_rows, monkeypatch
    ):
        async def failing_link(self, db, patient_id, caregiver_id, role):
            raise IntegrityError("INSERT INTO care_relationships", {}, Exception("constraint failed"))

        monkeypatch.setattr(CareService, "_link", failing_link)

        response = await client.post(f"{API}/patients", json={"display_name": "Robert Chen"}, headers=caregiver_headers)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["error"] == "patient_creation_failed"
        assert await count_rows(Patient) == 0

    async def test_other_caregiver_gets_not_found(self, client, caregiver_headers, other_headers):
        patient = await create_patient(client, caregiver_headers)

        response = await client.get(f"{API}/patients/{patient['id']}", headers=other_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "patient_not_found"

        roster = (await client.get(f"{API}/patients", headers=other_headers)).json()
        assert roster["total"] == 0

    async def test_update_patient(self, client, caregiver_headers):
        patient = await create_patient(client, caregiver_headers)

        response = await client.patch(
            f"{API}/patients/{patient['id']}",
            json={"mood_trend": "declining", "location": "Sunrise Memory Care"},
            headers=caregiver_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["mood_trend"] == "declining"
        assert response.json()["display_name"] == "Margaret Thompson"

    async def test_detach_keeps_patient(self, client, caregiver_headers, count_rows):
        patient = await create_patient(client, caregiver_headers)

        response = await client.delete(f"{API}/patients/{patient['id']}/relationship", headers=caregiver_headers)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert (await client.get(f"{API}/patients/{patient['id']}", headers=caregiver_headers)).status_code == 404
        assert await count_rows(Patient) == 1
        assert await count_rows(CareRelationship) == 0

    async def test_link_caregiver(self, client, caregiver_headers, other_caregiver_id, other_headers):
        patient = await create_patient(client, caregiver_headers)

        response = await client.post(
            f"{API}/patients/{patient['id']}/relationships",
            json={"caregiver_id": str(other_caregiver_id), "role": "family"},
            headers=caregiver_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert (await client.get(f"{API}/patients/{patient['id']}", headers=other_headers)).status_code == 200

        duplicate = await client.post(
            f"{API}/patients/{patient['id']}/relationships",
            json={"caregiver_id": str(other_caregiver_id)},
            headers=caregiver_headers,
        )
        assert duplicate.status_code == status.HTTP_409_CONFLICT

    async def test_notes(self, client, caregiver_headers):
        patient = await create_patient(client, caregiver_headers)
        base = f"{API}/patients/{patient['id']}"

        await client.post(f"{base}/notes", json={"body": "Ate full breakfast"}, headers=caregiver_headers)
        await client.post(
            f"{base}/session-notes",
            json={"session_type": "validation_therapy", "observations": "Settled after redirection"},
            headers=caregiver_headers,
        )
        response = await client.get(f"{base}/notes", headers=caregiver_headers)

        assert response.status_code == status.HTTP_200_OK
        notes = response.json()
        assert [n["kind"] for n in notes] == ["session", "note"]
        assert notes[0]["session_type"] == "validation_therapy"


class TestSafetyEndpoints:

    async def test_triage_and_resolve(self, client, caregiver_headers):
        patient = await create_patient(client, caregiver_headers)
        base = f"{API}/patients/{patient['id']}/safety-alerts"

        red = (await client.post(
            base, json={"type": "fall", "category": "red", "title": "Fall in bathroom"}, headers=caregiver_headers
        )).json()
        await client.post(
            base, json={"type": "sundowning", "category": "yellow", "title": "Evening agitation"}, headers=caregiver_headers
        )
        await client.post(
            base, json={"type": "stable_period", "category": "green", "title": "Calm week"}, headers=caregiver_headers
        )

        triage = (await client.get(f"{base}/triage", headers=caregiver_headers)).json()
        assert triage["counts"] == {"urgent": 1, "monitor": 1, "stable": 1, "resolved": 0, "total": 3}
        assert triage["status_indicator"] == "needs_attention"

        resolved = await client.post(f"{base}/{red['id']}/resolve", headers=caregiver_headers)
        assert resolved.status_code == status.HTTP_200_OK
        assert resolved.json()["is_resolved"] is True

        triage = (await client.get(f"{base}/triage", headers=caregiver_headers)).json()
        assert triage["counts"]["urgent"] == 0
        assert triage["counts"]["resolved"] == 1
        assert triage["status_indicator"] == "monitor"

    async def test_unknown_category_rejected(self, client, caregiver_headers):
        patient = await create_patient(client, caregiver_headers)

        response = await client.post(
            f"{API}/patients/{patient['id']}/safety-alerts",
            json={"type": "fall", "category": "orange", "title": "Fall"},
            headers=caregiver_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_resolve_unknown_alert(self, client, caregiver_headers):
        patient = await create_patient(client, caregiver_headers)

        response = await client.post(
            f"{API}/patients/{patient['id']}/safety-alerts/{uuid.uuid4()}/resolve", headers=caregiver_headers
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "record_not_found"

    async def test_failed_write_reports_persistence_error(self, client, caregiver_headers, count_rows, monkeypatch):
        patient = await create_patient(client, caregiver_headers)

        async def failing_commit(self):
            raise OperationalError("INSERT INTO safety_alerts", {}, Exception("disk I/O error"))

        monkeypatch.setattr(AsyncSession, "commit", failing_commit)

        response = await client.post(
            f"{API}/patients/{patient['id']}/safety-alerts",
            json={"type": "fall", "category": "red", "title": "Fall on stairs"},
            headers=caregiver_headers,
        )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        body = response.json()
        assert body["error"] == "persistence_error"
        assert body["details"] == {"error_type": "OperationalError"}
        assert "INSERT" not in response.text
        assert await count_rows(SafetyAlert) == 0


class TestAssessmentEndpoints:

    async def test_caregiver_cannot_record_assessment(self, client, caregiver_headers, sample_adl_scores):
        patient = await create_patient(client, caregiver_headers)

        response = await client.post(
            f"{API}/patients/{patient['id']}/adl-assessments",
            json={"date": "2026-10-01", **sample_adl_scores},
            headers=caregiver_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_decline_report(
        self, client, caregiver_headers, therapist_id, therapist_headers, sample_adl_scores
    ):
        patient = await create_patient(client, caregiver_headers)
        await client.post(
            f"{API}/patients/{patient['id']}/relationships",
            json={"caregiver_id": str(therapist_id), "role": "therapist"},
            headers=caregiver_headers,
        )
        base = f"{API}/patients/{patient['id']}/adl-assessments"

        first = await client.post(base, json={"date": "2026-09-01", **sample_adl_scores}, headers=therapist_headers)
        assert first.status_code == status.HTTP_201_CREATED
        await client.post(
            base,
            json={"date": "2026-10-01", **sample_adl_scores, "dressing": 4, "bathing": 4, "continence": 4},
            headers=therapist_headers,
        )

        report = (await client.get(f"{base}/decline", headers=caregiver_headers)).json()

        assert report["assessment_count"] == 2
        assert report["latest_total"] == 18
        assert report["previous_total"] == 15
        assert report["decline"] == 3
        assert report["due"] is True

    async def test_out_of_range_score_rejected(self, client, caregiver_headers, therapist_id, therapist_headers, sample_adl_scores):
        patient = await create_patient(client, caregiver_headers)
        await client.post(
            f"{API}/patients/{patient['id']}/relationships",
            json={"caregiver_id": str(therapist_id), "role": "therapist"},
            headers=caregiver_headers,
        )

        response = await client.post(
            f"{API}/patients/{patient['id']}/adl-assessments",
            json={"date": "2026-10-01", **sample_adl_scores, "eating": 6},
            headers=therapist_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestCaregiverStatusEndpoints:

    async def test_missing_status(self, client, caregiver_headers):
        patient = await create_patient(client, caregiver_headers)

        response = await client.get(f"{API}/patients/{patient['id']}/caregiver-status", headers=caregiver_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_save_and_read_status(self, client, caregiver_headers):
        patient = await create_patient(client, caregiver_headers)
        url = f"{API}/patients/{patient['id']}/caregiver-status"
        payload = {
            "stress_level": "high",
            "support_system_strength": "weak",
            "hours_of_care_this_week": 62,
            "nights_interrupted_sleep": 5,
            "burnout_risk": "high",
            "recommended_actions": ["Join a caregiver support group"],
        }

        saved = await client.put(url, json=payload, headers=caregiver_headers)
        assert saved.status_code == status.HTTP_200_OK

        updated = await client.put(url, json={**payload, "burnout_risk": "moderate"}, headers=caregiver_headers)
        assert updated.status_code == status.HTTP_200_OK

        data = (await client.get(url, headers=caregiver_headers)).json()
        assert data["burnout_risk"] == "moderate"
        assert data["estimated_burnout_risk"] == "moderate"
        assert data["scorer"] == "stored"
        assert data["days_since_respite"] is None

    async def test_concurrent_first_save_conflicts(self, client, caregiver_headers, monkeypatch):
        patient = await create_patient(client, caregiver_headers)
        url = f"{API}/patients/{patient['id']}/caregiver-status"
        payload = {"stress_level": "moderate", "support_system_strength": "strong", "burnout_risk": "low"}
        assert (await client.put(url, json=payload, headers=caregiver_headers)).status_code == status.HTTP_200_OK

        async def no_existing_status(self, db, caregiver_id, patient_id):
            return None

        # Both requests saw no row, so the second insert hits the unique pair
        monkeypatch.setattr(ClinicalService, "get_caregiver_status", no_existing_status)

        response = await client.put(url, json={**payload, "burnout_risk": "high"}, headers=caregiver_headers)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"] == "duplicate_record"
        monkeypatch.undo()
        assert (await client.get(url, headers=caregiver_headers)).json()["burnout_risk"] == "low"


class TestCareLogEndpoints:

    async def test_dashboard_reflects_logs(self, client, caregiver_headers):
        patient = await create_patient(client, caregiver_headers)
        base = f"{API}/patients/{patient['id']}"
        today = utcnow().date().isoformat()

        task = (await client.post(
            f"{base}/tasks", json={"title": "Morning walk", "time_of_day": "morning"}, headers=caregiver_headers
        )).json()
        await client.post(f"{base}/tasks", json={"title": "Puzzle", "time_of_day": "afternoon"}, headers=caregiver_headers)
        done = await client.patch(f"{base}/tasks/{task['id']}", json={"status": "completed"}, headers=caregiver_headers)
        assert done.json()["completed_at"] is not None

        medication = (await client.post(
            f"{base}/medications",
            json={"name": "Donepezil", "dosage": "10mg", "form": "pill"},
            headers=caregiver_headers,
        )).json()
        log = await client.post(
            f"{base}/medication-logs",
            json={"medication_id": medication["id"], "scheduled_time": "8:00 AM", "status": "taken", "date": today},
            headers=caregiver_headers,
        )
        assert log.status_code == status.HTTP_201_CREATED
        assert log.json()["taken_time"] is not None

        mood = await client.post(f"{base}/mood-entries", json={"mood": " Happy "}, headers=caregiver_headers)
        assert mood.json()["mood"] == "happy"

        stats = (await client.get(f"{base}/dashboard", params={"day": today}, headers=caregiver_headers)).json()

        assert stats["tasks_completed"] == 1
        assert stats["tasks_total"] == 2
        assert stats["tasks_completion_rate"] == 50
        assert stats["medications_adherence_rate"] == 100
        assert stats["mood_tally"]["positive"] == 1
        assert stats["status_indicator"] == "stable"

    async def test_medication_from_other_patient_rejected(self, client, caregiver_headers):
        first = await create_patient(client, caregiver_headers)
        second = await create_patient(client, caregiver_headers, {"display_name": "Robert Chen"})
        medication = (await client.post(
            f"{API}/patients/{first['id']}/medications",
            json={"name": "Memantine", "dosage": "5mg", "form": "pill"},
            headers=caregiver_headers,
        )).json()

        response = await client.post(
            f"{API}/patients/{second['id']}/medication-logs",
            json={"medication_id": medication["id"], "scheduled_time": "9:00 PM"},
            headers=caregiver_headers,
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_appointments_ordered_by_clock_time(self, client, caregiver_headers):
        patient = await create_patient(client, caregiver_headers)
        url = f"{API}/patients/{patient['id']}/appointments"
        day = (utcnow().date() + timedelta(days=1)).isoformat()

        for title, time_of_day in [("Podiatry", "2:00 PM"), ("Neurology", "10:00 AM"), ("Bloods", "9:00 AM")]:
            created = await client.post(
                url,
                json={"title": title, "provider": "Riverside Clinic", "date": day, "time": time_of_day},
                headers=caregiver_headers,
            )
            assert created.status_code == status.HTTP_201_CREATED

        appointments = (await client.get(url, headers=caregiver_headers)).json()

        assert [a["title"] for a in appointments] == ["Bloods", "Neurology", "Podiatry"]
        assert appointments[0]["time"] == "09:00:00"
        assert appointments[2]["time"] == "14:00:00"

        overview = (await client.get(f"{API}/caregiver/overview", headers=caregiver_headers)).json()
        assert overview["patients"][0]["next_appointment"]["title"] == "Bloods"

    async def test_caregiver_overview(self, client, caregiver_headers):
        patient = await create_patient(client, caregiver_headers)
        await client.post(
            f"{API}/patients/{patient['id']}/safety-alerts",
            json={"type": "wandering", "category": "red", "title": "Found at front door at 3 AM"},
            headers=caregiver_headers,
        )

        overview = (await client.get(f"{API}/caregiver/overview", headers=caregiver_headers)).json()

        assert overview["total_patients"] == 1
        assert overview["urgent_alerts"] == 1
        assert overview["patients"][0]["status_indicator"] == "needs_attention"


class TestGoalEndpoints:

    async def test_goal_progress_and_milestones(self, client, caregiver_headers):
        patient = await create_patient(client, caregiver_headers)
        base = f"{API}/patients/{patient['id']}/goals"

        created = await client.post(
            base,
            json={
                "title": "Independent dressing",
                "category": "functional",
                "milestones": ["Choose clothes", "Buttons", "Shoes", "Full outfit"],
                "target_date": (utcnow().date() + timedelta(days=60)).isoformat(),
            },
            headers=caregiver_headers,
        )
        assert created.status_code == status.HTTP_201_CREATED
        goal = created.json()
        assert [m["title"] for m in goal["milestones"]] == ["Choose clothes", "Buttons", "Shoes", "Full outfit"]
        assert goal["milestone_completion_ratio"] == 0.0

        milestone_id = goal["milestones"][0]["id"]
        updated = await client.patch(
            f"{base}/{goal['id']}/milestones/{milestone_id}", json={"completed": True}, headers=caregiver_headers
        )
        assert updated.json()["milestone_completion_ratio"] == 0.25

        progress = await client.patch(f"{base}/{goal['id']}/progress", json={"progress": 65}, headers=caregiver_headers)
        assert progress.json()["progress"] == 65

        invalid = await client.patch(f"{base}/{goal['id']}/progress", json={"progress": 120}, headers=caregiver_headers)
        assert invalid.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestSessionEndpoints:

    async def test_session_tracks_roster(self, client, caregiver_headers):
        first = await create_patient(client, caregiver_headers)
        second = await create_patient(client, caregiver_headers, {"display_name": "Robert Chen"})

        state = (await client.get(f"{API}/session", headers=caregiver_headers)).json()
        assert [p["id"] for p in state["patients"]] == [second["id"], first["id"]]
        assert state["selected_patient_id"] == second["id"]

        selected = await client.put(
            f"{API}/session/selected-patient", json={"patient_id": first["id"]}, headers=caregiver_headers
        )
        assert selected.json()["selected_patient_id"] == first["id"]

        await client.delete(f"{API}/patients/{first['id']}/relationship", headers=caregiver_headers)
        state = (await client.get(f"{API}/session", headers=caregiver_headers)).json()
        assert [p["id"] for p in state["patients"]] == [second["id"]]
        assert state["selected_patient_id"] == second["id"]

    async def test_settings_and_logout(self, client, caregiver_headers):
        response = await client.patch(f"{API}/session/settings", json={"theme": "dark"}, headers=caregiver_headers)

        assert response.json()["settings"]["theme"] == "dark"
        assert response.json()["settings"]["default_language"] == "en"

        logout = await client.delete(f"{API}/session", headers=caregiver_headers)
        assert logout.status_code == status.HTTP_204_NO_CONTENT

        state = (await client.get(f"{API}/session", headers=caregiver_headers)).json()
        assert state["settings"]["theme"] == "light"

    async def test_invalid_setting_rejected(self, client, caregiver_headers):
        response = await client.patch(f"{API}/session/settings", json={"theme": "neon"}, headers=caregiver_headers)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestTherapyEndpoints:

    async def test_tool_catalog(self, client, caregiver_headers):
        response = await client.get(f"{API}/therapy/tools", headers=caregiver_headers)

        assert response.status_code == status.HTTP_200_OK
        tools = response.json()
        assert len(tools) == 4
        assert all(tool["steps"] for tool in tools)

    async def test_requires_login(self, client):
        assert (await client.get(f"{API}/therapy/tools")).status_code == status.HTTP_401_UNAUTHORIZED
