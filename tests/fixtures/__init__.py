"""Test fixtures for exemption manager tests."""

from .azure_fakes import (
    FIXED_TODAY,
    MCSB_ASSIGNMENT_ID,
    FakeHierarchy,
    FakeInventory,
    FakePolicyStore,
    FakeSession,
    RecordingWaiter,
    access_denied,
    make_assignment,
    make_exemption,
    make_resource,
)

__all__ = [
    "FIXED_TODAY",
    "MCSB_ASSIGNMENT_ID",
    "FakeHierarchy",
    "FakeInventory",
    "FakePolicyStore",
    "FakeSession",
    "RecordingWaiter",
    "access_denied",
    "make_assignment",
    "make_exemption",
    "make_resource",
]
