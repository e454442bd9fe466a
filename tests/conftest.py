from unittest.mock import AsyncMock

import pytest

from helpers.mocks import (
    MockEventRepository,
    MockRepository,
    RecordingHRSync,
    RecordingMessenger,
    RecordingValidator,
    ScriptedOracle,
    StaticDirectory,
)
from renewal_workflow.config import WorkflowSettings
from renewal_workflow.models.context import EmployeeProfile, LicenseRecord
from renewal_workflow.workflow import RenewalWorkflow


@pytest.fixture
def mock_db():
    return AsyncMock()


@pytest.fixture
def mock_repo():
    return MockRepository()


@pytest.fixture
def mock_events():
    return MockEventRepository()


@pytest.fixture
def oracle():
    return ScriptedOracle()


@pytest.fixture
def validator():
    return RecordingValidator()


@pytest.fixture
def messenger():
    return RecordingMessenger()


@pytest.fixture
def hr_sync():
    return RecordingHRSync()


@pytest.fixture
def directory():
    return StaticDirectory(
        employees={
            "E1": EmployeeProfile(
                employee_id="E1", name="Jane Doe",
                email="jane@example.com", phone="+15550100",
            ),
        },
        licenses={
            "L1": LicenseRecord(
                license_id="L1", license_type="guard_card",
                state="CA", expiration_date="2026-12-31", status="active",
            ),
        },
    )


@pytest.fixture
def settings():
    return WorkflowSettings()


@pytest.fixture
def workflow(oracle, validator, messenger, hr_sync, directory, settings,
             mock_repo, mock_events):
    wf = RenewalWorkflow(
        oracle,
        validator=validator,
        messenger=messenger,
        hr_sync=hr_sync,
        directory=directory,
        settings=settings,
        event_repository=mock_events,
    )
    wf._repo = mock_repo
    return wf
