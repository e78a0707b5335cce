"""Baseline initiative coverage audit."""

import logging
from collections.abc import Iterable

from exemption_manager.core.exceptions import ProviderError
from exemption_manager.schemas import CoverageReport, CoverageResult, Scope, SubscriptionNode
from exemption_manager.services.assignment_locator import PolicyAssignmentLocator
from exemption_manager.services.interfaces import HierarchyService, SessionProvider

logger = logging.getLogger(__name__)


class CoverageAuditor:
    """Reports which subscriptions have a baseline assignment in effect.

    Read-only: never creates exemptions.
    """

    def __init__(
        self,
        locator: PolicyAssignmentLocator,
        session: SessionProvider,
        hierarchy: HierarchyService | None = None,
    ):
        self.locator = locator
        self.session = session
        self.hierarchy = hierarchy

    def _subscription_name(self, subscription_id: str) -> str | None:
        if self.hierarchy is None:
            return None
        try:
            return self.hierarchy.subscription_name(
                self.session.for_subscription(subscription_id), subscription_id
            )
        except ProviderError as e:
            logger.debug(f"Could not resolve name of subscription {subscription_id}: {e}")
            return None

    def audit_subscription(self, subscription_id: str, name: str | None = None) -> CoverageResult:
        """Audit a single subscription; failures are recorded, not raised."""
        name = name or self._subscription_name(subscription_id)
        try:
            matches = self.locator.query_scope(Scope.subscription(subscription_id))
        except ProviderError as e:
            logger.error(f"Coverage check failed for subscription {name or subscription_id}: {e}")
            return CoverageResult(
                subscription_id=subscription_id,
                subscription_name=name,
                has_baseline=False,
                error=str(e),
            )

        logger.info(
            f"Subscription {name or subscription_id}: "
            f"{len(matches)} baseline assignment(s)"
        )
        return CoverageResult(
            subscription_id=subscription_id,
            subscription_name=name,
            has_baseline=len(matches) > 0,
            matching_assignment_count=len(matches),
        )

    def audit(self, subscriptions: Iterable[str | SubscriptionNode]) -> CoverageReport:
        """Audit baseline coverage for each subscription.

        Args:
            subscriptions: Subscription ids, or nodes carrying display names

        Returns:
            CoverageReport over all subscriptions, including failed ones
        """
        nodes = [
            s if isinstance(s, SubscriptionNode) else SubscriptionNode(id=s)
            for s in subscriptions
        ]
        nodes.sort(key=lambda node: node.id.lower())

        results = [self.audit_subscription(node.id, node.display_name) for node in nodes]
        report = CoverageReport.from_results(results)

        logger.info(
            f"Baseline coverage: {report.with_baseline}/{report.total} subscriptions "
            f"({report.coverage_percentage}%)"
        )
        return report
