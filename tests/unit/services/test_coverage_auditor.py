"""Tests for the baseline coverage audit."""

from unittest.mock import MagicMock

from exemption_manager.core.exceptions import ProviderError
from exemption_manager.schemas import Scope, SubscriptionNode
from exemption_manager.services.assignment_locator import PolicyAssignmentLocator
from exemption_manager.services.coverage_auditor import CoverageAuditor
from tests.fixtures import access_denied, make_assignment


def assign_baseline(policy_store, subscription_id):
    policy_store.add_assignments(
        Scope.subscription(subscription_id),
        make_assignment(
            assignment_id=f"/subscriptions/{subscription_id}/providers/Microsoft.Authorization/policyAssignments/SecurityCenterBuiltIn"
        ),
    )


def build_auditor(policy_store, session, hierarchy=None):
    return CoverageAuditor(PolicyAssignmentLocator(policy_store, session), session, hierarchy)


class TestCoverageAuditor:
    """Test suite for CoverageAuditor."""

    def test_two_of_three_covered(self, policy_store, session):
        """Test coverage percentage is rounded to one decimal."""
        assign_baseline(policy_store, "sub-a")
        assign_baseline(policy_store, "sub-b")

        report = build_auditor(policy_store, session).audit(["sub-a", "sub-b", "sub-c"])

        assert report.total == 3
        assert report.with_baseline == 2
        assert report.coverage_percentage == 66.7
        assert report.without_baseline == {"sub-c"}

    def test_access_denied_subscription_still_reported(self, policy_store, session):
        """Test an unreadable subscription counts as uncovered."""
        assign_baseline(policy_store, "sub-a")
        policy_store.scope_errors[Scope.subscription("sub-b").resource_id.lower()] = access_denied(
            "sub-b"
        )

        report = build_auditor(policy_store, session).audit(["sub-a", "sub-b"])

        assert report.total == 2
        assert report.without_baseline == {"sub-b"}
        failed = [r for r in report.results if r.subscription_id == "sub-b"][0]
        assert failed.has_baseline is False
        assert failed.is_error
        assert report.errored == [failed]

    def test_non_baseline_assignments_ignored(self, policy_store, session):
        """Test custom assignments do not count as coverage."""
        policy_store.add_assignments(
            Scope.subscription("sub-a"),
            make_assignment(name="custom-001", display_name="Contoso Custom Policy", assignment_id="/x/custom"),
        )

        report = build_auditor(policy_store, session).audit(["sub-a"])

        assert report.with_baseline == 0
        assert report.results[0].matching_assignment_count == 0

    def test_empty_subscription_set(self, policy_store, session):
        """Test auditing nothing reports zero coverage."""
        report = build_auditor(policy_store, session).audit([])

        assert report.total == 0
        assert report.coverage_percentage == 0.0

    def test_names_from_nodes_and_hierarchy(self, policy_store, session, hierarchy):
        """Test display names come from nodes first, then the hierarchy service."""
        hierarchy.names["sub-b"] = "Development"

        report = build_auditor(policy_store, session, hierarchy).audit(
            [SubscriptionNode(id="sub-a", display_name="Production"), "sub-b"]
        )

        assert [r.subscription_name for r in report.results] == ["Production", "Development"]

    def test_name_lookup_failure_is_ignored(self, policy_store, session, hierarchy):
        """Test a failing name lookup leaves the name empty."""
        hierarchy.subscription_name = MagicMock(side_effect=ProviderError("nope", status_code=500))

        result = build_auditor(policy_store, session, hierarchy).audit_subscription("sub-a")

        assert result.subscription_name is None
        assert result.has_baseline is False
        assert result.error is None

    def test_audit_never_creates_exemptions(self, policy_store, session):
        """Test the audit is read-only."""
        assign_baseline(policy_store, "sub-a")

        build_auditor(policy_store, session).audit(["sub-a"])

        assert policy_store.created == []
