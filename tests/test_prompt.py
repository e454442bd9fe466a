"""PromptManager and parse_decision tests.

Prompt tests build SessionContext objects directly (no DB needed) and
check that the rendered prompt carries the session state, the event and
the JSON response instructions.  Parser tests cover the reply shapes that
models actually produce.
"""

from datetime import datetime, timezone

import pytest

from renewal_db.models.enums import SessionStatus
from renewal_workflow.constants import ACTION_TYPES
from renewal_workflow.errors import OracleFailureError
from renewal_workflow.models.context import (
    EmployeeProfile,
    EventPayload,
    JurisdictionRequirements,
    LicenseRecord,
    LicenseTypeRequirement,
    SessionContext,
    SessionSnapshot,
)
from renewal_workflow.models.session import ConversationTurn
from renewal_workflow.prompt import PromptManager, parse_decision

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def make_context(**overrides) -> SessionContext:
    values = dict(
        session=SessionSnapshot(
            session_id="S1",
            employee_id="E1",
            license_id="L1",
            status="awaiting_photo",
            current_step="Request license photo",
            completed_steps=["Greet employee"],
            pending_actions=["upload_license_photo"],
        ),
        employee=EmployeeProfile(employee_id="E1", name="Jane Doe"),
        license=LicenseRecord(
            license_id="L1", license_type="guard_card", state="CA",
            expiration_date="2026-12-31", status="active",
        ),
        history=[
            ConversationTurn(role="user", content="I want to renew my license", timestamp=NOW),
            ConversationTurn(role="assistant", content="Please send a photo", timestamp=NOW),
        ],
        history_total=2,
        valid_statuses=[s.value for s in SessionStatus],
        action_types=list(ACTION_TYPES),
    )
    values.update(overrides)
    return SessionContext(**values)


@pytest.fixture
def pm():
    """Fresh PromptManager for each test."""
    return PromptManager()


# =====================================================================
# Rendering
# =====================================================================


class TestRenderDecisionPrompt:

    def test_session_state(self, pm):
        prompt = pm.render_decision(make_context())

        assert "Status: awaiting_photo" in prompt
        assert "Current Step: Request license photo" in prompt
        assert "Completed Steps: Greet employee" in prompt
        assert "Pending Actions: upload_license_photo" in prompt
        assert "Name: Jane Doe" in prompt

    def test_license_section(self, pm):
        prompt = pm.render_decision(make_context())

        assert "## License Information" in prompt
        assert "State: CA" in prompt
        assert "Expires: 2026-12-31" in prompt

    def test_no_license_section_without_license(self, pm):
        prompt = pm.render_decision(make_context(license=None))

        assert "## License Information" not in prompt

    def test_history(self, pm):
        prompt = pm.render_decision(make_context())

        assert "Employee: I want to renew my license" in prompt
        assert "Agent: Please send a photo" in prompt
        assert "(last" not in prompt

    def test_truncated_history_is_flagged(self, pm):
        prompt = pm.render_decision(make_context(history_total=25))

        assert "(last 2 of 25 turns)" in prompt

    def test_event(self, pm):
        event = EventPayload(
            event_id="ev1", type="photo_uploaded",
            data={"reference": "s3://photo.jpg"}, timestamp=NOW,
        )

        prompt = pm.render_decision(make_context(event=event))

        assert "## New Event" in prompt
        assert "Type: photo_uploaded" in prompt
        assert '"reference": "s3://photo.jpg"' in prompt

    def test_requirements(self, pm):
        requirements = JurisdictionRequirements(
            state="CA",
            license_types=[LicenseTypeRequirement(
                name="guard_card", display_name="Guard Card", renewal_training_hours=8,
            )],
            required_documents=["license_photo", "training_certificate"],
        )

        prompt = pm.render_decision(make_context(requirements=requirements))

        assert "## State Requirements (CA)" in prompt
        assert "- Guard Card" in prompt
        assert "Renewal Training: 8.0 hours" in prompt
        assert "Required documents: license_photo, training_certificate" in prompt

    def test_response_instructions(self, pm):
        prompt = pm.render_decision(make_context())

        assert '"nextStatus"' in prompt
        assert '"pendingActions"' in prompt
        assert "ready_for_portal_submission" in prompt
        assert "generate_submission_package" in prompt


# =====================================================================
# Parsing
# =====================================================================


class TestParseDecision:

    def test_bare_json(self):
        decision = parse_decision(
            '{"response": "Hi", "nextStatus": "awaiting_photo", "nextStep": "Ask for photo"}'
        )

        assert decision.next_status == "awaiting_photo"
        assert decision.next_step == "Ask for photo"
        assert decision.actions == []
        assert decision.pending_actions is None

    def test_fenced_json(self):
        text = (
            "Here is my decision:\n"
            "```json\n"
            '{"response": "Thanks", "nextStatus": "photo_validated",'
            ' "actions": [{"type": "validate_document", "data": {"documentType": "license_photo"}}]}\n'
            "```"
        )

        decision = parse_decision(text)

        assert decision.next_status == "photo_validated"
        assert decision.actions[0].data == {"documentType": "license_photo"}

    def test_json_embedded_in_prose(self):
        text = 'Sure. {"response": "ok", "next_status": "active", "pending_actions": []} Done.'

        decision = parse_decision(text)

        assert decision.next_status == "active"
        assert decision.pending_actions == []

    def test_no_json(self):
        with pytest.raises(OracleFailureError):
            parse_decision("I am not sure what to do next.")

    def test_missing_next_status(self):
        with pytest.raises(OracleFailureError, match="Malformed"):
            parse_decision('{"response": "Hi"}')

    def test_array_is_rejected(self):
        with pytest.raises(OracleFailureError):
            parse_decision('[{"nextStatus": "active"}]')
