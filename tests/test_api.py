"""HTTP API tests — FastAPI TestClient over the mocked workflow.

The lifespan handler is not run (no ``with TestClient(...)`` block), so no
database engine is created: the workflow and scheduler are placed on
``app.state`` directly and ``get_db`` is overridden with an AsyncMock.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from helpers.mocks import (
    REQUEST_PHOTO,
    VALIDATE_PHOTO,
    MockSessionRow,
    days_ago,
    mock_session_factory,
)
from renewal_server.app import create_app
from renewal_server.config import ServerSettings
from renewal_server.dependencies import get_db
from renewal_server.errors import RETRY_MESSAGE
from renewal_workflow.errors import OracleFailureError
from renewal_workflow.scheduler import ReminderScheduler

CRON_SECRET = "test-cron-secret"


def build_client(workflow, settings: ServerSettings) -> TestClient:
    app = create_app(settings)
    app.state.workflow = workflow
    app.state.scheduler = ReminderScheduler(workflow, mock_session_factory())

    async def override_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = override_db
    return TestClient(app)


@pytest.fixture
def client(workflow):
    return build_client(workflow, ServerSettings(cron_secret=CRON_SECRET))


@pytest.fixture
def session_row(mock_repo):
    return mock_repo.add(MockSessionRow(
        employee_id="E1",
        license_id="L1",
        status="awaiting_photo",
        current_step="Request license photo",
        pending_actions=["upload_license_photo"],
    ))


# =====================================================================
# Start
# =====================================================================


class TestStart:

    def test_start_new_session(self, client, oracle):
        oracle.push(REQUEST_PHOTO)

        resp = client.post("/api/renewals/start", json={"employee_id": "E1", "license_id": "L1"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "started"
        assert body["message"] == REQUEST_PHOTO["response"]
        assert body["current_status"] == "awaiting_photo"
        assert body["next_step"] == "Request license photo"
        assert body["actions"][0]["type"] == "request_document"

    def test_start_resumes(self, client, session_row):
        resp = client.post("/api/renewals/start", json={"employee_id": "E1"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "resumed"
        assert body["session_id"] == session_row.session_id
        assert body["current_status"] == "awaiting_photo"
        assert body["actions"] == []

    def test_missing_employee_id(self, client):
        resp = client.post("/api/renewals/start", json={})

        assert resp.status_code == 422

    def test_oracle_failure_is_502(self, client, oracle):
        oracle.push(OracleFailureError("model unavailable"))

        resp = client.post("/api/renewals/start", json={"employee_id": "E1"})

        assert resp.status_code == 502
        assert resp.json() == {"detail": RETRY_MESSAGE}


# =====================================================================
# Events
# =====================================================================


class TestEvent:

    def test_event_processed(self, client, oracle, session_row):
        oracle.push(VALIDATE_PHOTO)

        resp = client.post("/api/renewals/event", json={
            "session_id": session_row.session_id,
            "event_type": "photo_uploaded",
            "event_data": {"reference": "s3://photo.jpg"},
            "triggered_by": "employee",
        })

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "processed"
        assert body["event_type"] == "photo_uploaded"
        assert body["next_status"] == "photo_validated"
        assert body["action_results"][0]["success"] is True

    def test_duplicate_delivery(self, client, oracle, session_row):
        oracle.push(VALIDATE_PHOTO)
        payload = {
            "session_id": session_row.session_id,
            "event_type": "photo_uploaded",
            "event_data": {"reference": "s3://photo.jpg"},
            "idempotency_key": "upload-42",
        }

        first = client.post("/api/renewals/event", json=payload)
        second = client.post("/api/renewals/event", json=payload)

        assert first.json()["status"] == "processed"
        assert second.json()["status"] == "duplicate"
        assert second.json()["response"] == first.json()["response"]
        assert oracle.calls == 1

    def test_unknown_session_is_404(self, client):
        resp = client.post("/api/renewals/event", json={
            "session_id": "missing", "event_type": "employee_message",
        })

        assert resp.status_code == 404
        assert resp.json() == {"detail": "Session not found"}

    def test_closed_session_is_400(self, client, mock_repo):
        row = mock_repo.add(MockSessionRow(status="completed"))

        resp = client.post("/api/renewals/event", json={
            "session_id": row.session_id, "event_type": "employee_message",
        })

        assert resp.status_code == 400

    def test_lifecycle_event_type_is_rejected(self, client, session_row):
        resp = client.post("/api/renewals/event", json={
            "session_id": session_row.session_id, "event_type": "workflow_completed",
        })

        assert resp.status_code == 422

    def test_oracle_failure_keeps_event(self, client, oracle, session_row, mock_events):
        oracle.push(OracleFailureError("model unavailable"))

        resp = client.post("/api/renewals/event", json={
            "session_id": session_row.session_id,
            "event_type": "employee_message",
            "event_data": {"message": "hello?"},
        })

        assert resp.status_code == 502
        assert mock_events.types_for(session_row.session_id) == ["employee_message"]
        assert session_row.status == "awaiting_photo"


# =====================================================================
# Cancel and reads
# =====================================================================


class TestSessions:

    def test_cancel(self, client, session_row):
        resp = client.post(
            f"/api/renewals/{session_row.session_id}/cancel",
            json={"reason": "Duplicate request"},
        )

        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"
        assert resp.json()["metadata"]["cancellation"]["reason"] == "Duplicate request"

    def test_cancel_without_body(self, client, session_row):
        resp = client.post(f"/api/renewals/{session_row.session_id}/cancel")

        assert resp.status_code == 200

    def test_cancel_twice_is_400(self, client, session_row):
        client.post(f"/api/renewals/{session_row.session_id}/cancel")

        resp = client.post(f"/api/renewals/{session_row.session_id}/cancel")

        assert resp.status_code == 400

    def test_get_session(self, client, session_row):
        resp = client.get(f"/api/renewals/{session_row.session_id}")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "awaiting_photo"
        assert body["pending_actions"] == ["upload_license_photo"]
        assert "version" not in body

    def test_get_unknown_session(self, client):
        assert client.get("/api/renewals/missing").status_code == 404

    def test_list_events(self, client, oracle, session_row):
        oracle.push(VALIDATE_PHOTO)
        client.post("/api/renewals/event", json={
            "session_id": session_row.session_id,
            "event_type": "photo_uploaded",
            "event_data": {"reference": "s3://photo.jpg"},
        })

        resp = client.get(f"/api/renewals/{session_row.session_id}/events")

        assert resp.status_code == 200
        assert [e["event_type"] for e in resp.json()] == ["photo_uploaded"]

    def test_list_by_employee(self, client, session_row, mock_repo):
        mock_repo.add(MockSessionRow(employee_id="E2"))

        resp = client.get("/api/renewals", params={"employee_id": "E1"})

        assert resp.status_code == 200
        assert [s["session_id"] for s in resp.json()] == [session_row.session_id]

    def test_list_limit_is_bounded(self, client):
        resp = client.get("/api/renewals", params={"employee_id": "E1", "limit": 10_000})

        assert resp.status_code == 422


# =====================================================================
# Cron
# =====================================================================


class TestCron:

    def test_disabled_without_secret(self, workflow):
        client = build_client(workflow, ServerSettings(cron_secret=None))

        resp = client.get("/api/cron/renewal-reminders")

        assert resp.status_code == 403

    def test_missing_token(self, client):
        assert client.get("/api/cron/renewal-reminders").status_code == 401

    def test_wrong_token(self, client):
        resp = client.get(
            "/api/cron/renewal-reminders",
            headers={"Authorization": "Bearer nope"},
        )

        assert resp.status_code == 401

    def test_sweep(self, client, mock_repo):
        row = mock_repo.add(MockSessionRow(
            status="awaiting_photo", updated_at=days_ago(9), last_activity_at=days_ago(9),
        ))

        resp = client.get(
            "/api/cron/renewal-reminders",
            headers={"Authorization": f"Bearer {CRON_SECRET}"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["checked"] == 1
        assert body["escalated"] == 1
        assert body["reminded"] == 0
        assert body["errors"] == []
        assert row.status == "escalated"
