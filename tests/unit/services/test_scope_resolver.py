"""Tests for management group hierarchy expansion."""

import pytest

from exemption_manager.core.exceptions import AccessError
from exemption_manager.schemas import ManagementGroupNode, SubscriptionNode
from exemption_manager.services.scope_resolver import ScopeResolver
from exemption_manager.services.interfaces import AzureContext
from tests.fixtures import access_denied


class TestScopeResolver:
    """Test suite for ScopeResolver."""

    def test_expand_group_with_two_subscriptions(self):
        """Test a group with S1 and S2 expands to exactly {S1, S2}."""
        root = ManagementGroupNode(
            id="mg-root",
            children=[SubscriptionNode(id="S1"), SubscriptionNode(id="S2")],
        )

        assert ScopeResolver().expand(root) == {"S1", "S2"}

    def test_expand_subscription_root(self):
        """Test a subscription node contributes itself."""
        assert ScopeResolver().expand(SubscriptionNode(id="S1")) == {"S1"}

    def test_expand_empty_group(self):
        """Test a group without subscriptions yields an empty set."""
        root = ManagementGroupNode(id="mg-empty", children=[])

        assert ScopeResolver().expand(root) == set()

    def test_expand_nested_groups(self):
        """Test nested groups contribute the union of their children."""
        root = ManagementGroupNode(
            id="mg-root",
            children=[
                SubscriptionNode(id="S1"),
                ManagementGroupNode(
                    id="mg-platform",
                    children=[
                        SubscriptionNode(id="S2"),
                        ManagementGroupNode(id="mg-connectivity", children=[SubscriptionNode(id="S3")]),
                    ],
                ),
            ],
        )

        assert ScopeResolver().expand(root) == {"S1", "S2", "S3"}

    def test_duplicate_nodes_visited_once(self):
        """Test a subscription reachable twice is returned once."""
        shared = SubscriptionNode(id="S1")
        root = ManagementGroupNode(
            id="mg-root",
            children=[
                ManagementGroupNode(id="mg-a", children=[shared]),
                ManagementGroupNode(id="mg-b", children=[shared]),
            ],
        )

        nodes = ScopeResolver().subscription_nodes(root)

        assert [n.id for n in nodes] == ["S1"]

    def test_cycle_through_hierarchy_service_terminates(self, hierarchy):
        """Test a cyclic hierarchy does not loop forever."""
        hierarchy.tree["mg-a"] = [ManagementGroupNode(id="mg-b"), SubscriptionNode(id="S1")]
        hierarchy.tree["mg-b"] = [ManagementGroupNode(id="mg-a"), SubscriptionNode(id="S2")]
        resolver = ScopeResolver(hierarchy, AzureContext(credential="fake"))

        assert resolver.expand_management_group("mg-a") == {"S1", "S2"}
        assert hierarchy.expanded.count("mg-a") == 1
        assert hierarchy.expanded.count("mg-b") == 1

    def test_lazy_children_fetched_from_hierarchy(self, hierarchy):
        """Test groups without inline children are expanded through the service."""
        hierarchy.tree["mg-root"] = [
            SubscriptionNode(id="S1", display_name="Production"),
            ManagementGroupNode(id="mg-dev"),
        ]
        hierarchy.tree["mg-dev"] = [SubscriptionNode(id="S2", display_name="Development")]
        resolver = ScopeResolver(hierarchy, AzureContext(credential="fake"))

        nodes = resolver.subscription_nodes(ManagementGroupNode(id="mg-root"))

        assert [(n.id, n.display_name) for n in nodes] == [
            ("S1", "Production"),
            ("S2", "Development"),
        ]

    def test_lazy_group_without_hierarchy_is_empty(self):
        """Test an unexpanded group without a hierarchy service yields nothing."""
        assert ScopeResolver().expand(ManagementGroupNode(id="mg-root")) == set()

    def test_unreadable_child_group_is_skipped(self, hierarchy, caplog):
        """Test a nested group that cannot be expanded is left out."""
        hierarchy.tree["root"] = [ManagementGroupNode(id="denied"), SubscriptionNode(id="s1")]
        hierarchy.errors["denied"] = access_denied("denied")
        resolver = ScopeResolver(hierarchy, AzureContext(credential="fake"))

        assert resolver.expand_management_group("root") == {"s1"}
        assert "Skipping management group denied" in caplog.text

    def test_unreadable_root_group_propagates(self, hierarchy):
        """Test a failure on the root group is not swallowed."""
        hierarchy.errors["root"] = access_denied("root")
        resolver = ScopeResolver(hierarchy, AzureContext(credential="fake"))

        with pytest.raises(AccessError):
            resolver.expand_management_group("root")
