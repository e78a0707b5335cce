"""Tests for tagged resource discovery."""

import pytest

from exemption_manager.core.exceptions import ProviderError
from exemption_manager.services.resource_locator import ResourceLocator
from tests.fixtures import access_denied, make_resource


class TestResourceLocator:
    """Test suite for ResourceLocator."""

    def test_locate_across_subscriptions(self, inventory, session):
        """Test resources from every subscription are combined."""
        inventory.resources["sub-1"] = [make_resource(1, "sub-1")]
        inventory.resources["sub-2"] = [make_resource(2, "sub-2"), make_resource(3, "sub-2")]

        resources = ResourceLocator(inventory, session).locate(
            "DefenderExempt", "true", {"sub-2", "sub-1"}
        )

        assert [r.name for r in resources] == ["sa01", "sa02", "sa03"]
        assert inventory.queries == [
            ("sub-1", "DefenderExempt", "true"),
            ("sub-2", "DefenderExempt", "true"),
        ]

    def test_failing_subscription_skipped(self, inventory, session, caplog):
        """Test an unreadable subscription is logged and skipped."""
        inventory.resources["sub-1"] = [make_resource(1, "sub-1")]
        inventory.errors["sub-2"] = access_denied("sub-2")

        resources = ResourceLocator(inventory, session).locate(
            "DefenderExempt", "true", ["sub-1", "sub-2"]
        )

        assert [r.name for r in resources] == ["sa01"]
        assert "sub-2" in caplog.text

    def test_duplicates_removed(self, inventory, session):
        """Test a resource reported twice is returned once."""
        resource = make_resource(1, "sub-1")
        inventory.resources["sub-1"] = [resource, resource]

        resources = ResourceLocator(inventory, session).locate("DefenderExempt", "true", ["sub-1"])

        assert resources == [resource]

    def test_no_matches(self, inventory, session):
        """Test no tagged resources yields an empty list."""
        assert ResourceLocator(inventory, session).locate("DefenderExempt", "true", ["sub-1"]) == []

    def test_single_scope_propagates_errors(self, inventory, session):
        """Test the single-subscription query does not swallow failures."""
        inventory.errors["sub-1"] = access_denied("sub-1")

        with pytest.raises(ProviderError):
            ResourceLocator(inventory, session).locate_in_scope("DefenderExempt", "true", "sub-1")

    def test_queries_in_subscription_context(self, inventory, session):
        """Test each subscription is queried with its own context."""
        ResourceLocator(inventory, session).locate("DefenderExempt", "true", ["sub-b", "sub-a"])

        assert session.switched == ["sub-a", "sub-b"]
