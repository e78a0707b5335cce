"""Shared fixtures for exemption manager tests."""

from datetime import UTC, datetime

import pytest

from exemption_manager.core.config import Settings
from tests.fixtures import (
    FakeHierarchy,
    FakeInventory,
    FakePolicyStore,
    FakeSession,
    RecordingWaiter,
    make_assignment,
)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def policy_store():
    return FakePolicyStore()


@pytest.fixture
def inventory():
    return FakeInventory()


@pytest.fixture
def hierarchy():
    return FakeHierarchy()


@pytest.fixture
def waiter():
    return RecordingWaiter()


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def mcsb_assignment():
    return make_assignment()


@pytest.fixture
def expires_on():
    return datetime(2027, 10, 17, tzinfo=UTC)
