"""Exemption runner - orchestrates a reconciliation run.

Wires the reconciliation services together for the three run modes:
listing (discovery and quota only), exemption creation, and baseline
coverage audit. Fatal conditions are raised as exemption manager errors
for the caller to map onto an exit status.
"""

import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta

from exemption_manager.core.config import Settings, get_settings
from exemption_manager.core.exceptions import NotFoundError, ValidationError
from exemption_manager.core.throttle import Waiter, real_wait
from exemption_manager.schemas import (
    BatchResult,
    CoverageReport,
    ManagementGroupNode,
    PolicyAssignment,
    ReconciliationPlan,
    RunOutcome,
    RunRequest,
    Scope,
    SubscriptionNode,
    TaggedResource,
)
from exemption_manager.services import (
    BatchExemptionCreator,
    CoverageAuditor,
    ExemptionRepository,
    HierarchyService,
    PolicyAssignmentLocator,
    PolicyStore,
    QuotaGuard,
    ResourceInventory,
    ResourceLocator,
    ScopeResolver,
    SessionProvider,
)

logger = logging.getLogger(__name__)


def validate_request(request: RunRequest) -> None:
    """Check scope selectors and modes before any query is made.

    Raises:
        ValidationError: If the request is inconsistent
    """
    if bool(request.subscription_id) == bool(request.management_group_id):
        raise ValidationError(
            "Specify exactly one of subscription or management group as the scope"
        )
    if not (request.list_only or request.create_exemptions or request.check_coverage):
        raise ValidationError(
            "Specify at least one mode: list only, create exemptions or check coverage"
        )
    if not request.tag_name or not request.tag_value:
        raise ValidationError("Tag name and tag value must not be empty")


class ExemptionRunner:
    """Runs reconciliation modes against a set of collaborators."""

    def __init__(
        self,
        session: SessionProvider,
        policy_store: PolicyStore,
        inventory: ResourceInventory,
        hierarchy: HierarchyService,
        settings: Settings | None = None,
        wait: Waiter = real_wait,
        today: Callable[[], date] | None = None,
    ):
        self.settings = settings or get_settings()
        self.session = session
        self.hierarchy = hierarchy

        self.scope_resolver = ScopeResolver(hierarchy, session.default_context())
        self.assignment_locator = PolicyAssignmentLocator(policy_store, session)
        self.resource_locator = ResourceLocator(inventory, session)
        self.repository = ExemptionRepository(policy_store, session)
        self.quota_guard = QuotaGuard(
            self.repository,
            hard_limit=self.settings.quota_hard_limit,
            safety_threshold=self.settings.quota_safety_threshold,
        )
        creator_kwargs = {"today": today} if today else {}
        self.creator = BatchExemptionCreator(
            policy_store, self.repository, self.quota_guard, session, wait=wait, **creator_kwargs
        )
        self.auditor = CoverageAuditor(self.assignment_locator, session, hierarchy)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ExemptionRunner":
        """Build a runner backed by the Azure SDK collaborators."""
        from exemption_manager.services.azure_client import (
            AzureHierarchyService,
            AzurePolicyStore,
            AzureResourceInventory,
            AzureSession,
        )

        settings = settings or get_settings()
        return cls(
            session=AzureSession(settings),
            policy_store=AzurePolicyStore(),
            inventory=AzureResourceInventory(),
            hierarchy=AzureHierarchyService(),
            settings=settings,
        )

    # ==========================================================================
    # Discovery
    # ==========================================================================

    def resolve_scope(self, request: RunRequest) -> tuple[Scope, list[SubscriptionNode]]:
        """Get the target scope and the subscriptions beneath it."""
        if request.subscription_id:
            return (
                Scope.subscription(request.subscription_id),
                [SubscriptionNode(id=request.subscription_id)],
            )

        scope = Scope.management_group(request.management_group_id)
        nodes = self.scope_resolver.subscription_nodes(
            ManagementGroupNode(id=request.management_group_id)
        )
        logger.info(f"Management group {scope.id} contains {len(nodes)} subscriptions")
        return scope, nodes

    def discover_assignments(
        self, request: RunRequest, scope: Scope, subscriptions: list[str]
    ) -> list[PolicyAssignment]:
        """Get the baseline assignments targeted by the run.

        Raises:
            NotFoundError: If no baseline assignment (or no requested one) exists
        """
        assignments = self.assignment_locator.locate(
            [scope],
            include_children=request.include_child_subscriptions,
            subscriptions=subscriptions,
        )
        if not assignments:
            raise NotFoundError(f"No baseline policy assignments found at {scope}")

        if request.assignment_name:
            assignments = self.assignment_locator.select_by_name(
                assignments, request.assignment_name
            )
        return assignments

    def discover_resources(
        self, request: RunRequest, subscriptions: list[str]
    ) -> list[TaggedResource]:
        """Get resources carrying the exemption tag."""
        if request.subscription_id:
            return self.resource_locator.locate_in_scope(
                request.tag_name, request.tag_value, request.subscription_id
            )
        return self.resource_locator.locate(request.tag_name, request.tag_value, subscriptions)

    def expiry_for(self, request: RunRequest) -> datetime:
        """Absolute expiry of exemptions created by this run."""
        days = request.expires_in_days or self.settings.expiry_days_for(request.category.value)
        return datetime.now(UTC) + timedelta(days=days)

    def plan(
        self,
        request: RunRequest,
        assess_quota: bool = True,
        resolved: tuple[Scope, list[SubscriptionNode]] | None = None,
    ) -> ReconciliationPlan:
        """Discover scope, assignments and resources and optionally assess the quota.

        ``resolved`` is the result of ``resolve_scope`` when already known.
        """
        validate_request(request)
        scope, nodes = resolved or self.resolve_scope(request)
        subscription_ids = [node.id for node in nodes]

        assignments = self.discover_assignments(request, scope, subscription_ids)
        resources = self.discover_resources(request, subscription_ids)

        plan = ReconciliationPlan(
            scope=scope,
            subscriptions=subscription_ids,
            assignments=assignments,
            resources=resources,
            category=request.category,
            expires_on=self.expiry_for(request),
        )
        if assess_quota and resources:
            plan.quota = self.quota_guard.assess(scope, plan.total_operations, resources)
        return plan

    # ==========================================================================
    # Modes
    # ==========================================================================

    def create_exemptions(self, request: RunRequest, plan: ReconciliationPlan) -> BatchResult | None:
        """Create missing exemptions for a plan.

        Returns None when there are no tagged resources.

        Raises:
            QuotaExceededError: If the projected count is unsafe
        """
        if not plan.resources:
            logger.info(
                f"No resources tagged {request.tag_name}={request.tag_value}; nothing to create"
            )
            return None

        return self.creator.run(
            plan.resources,
            plan.assignments,
            plan.category,
            plan.expires_on or self.expiry_for(request),
            request.batch_config,
            scope=plan.scope,
        )

    def check_coverage(
        self,
        request: RunRequest,
        resolved: tuple[Scope, list[SubscriptionNode]] | None = None,
    ) -> CoverageReport:
        """Audit baseline coverage of every subscription in scope."""
        validate_request(request)
        _, nodes = resolved or self.resolve_scope(request)
        return self.auditor.audit(nodes)

    def run(self, request: RunRequest) -> RunOutcome:
        """Run every mode the request enables.

        Raises:
            ValidationError: On inconsistent options
            NotFoundError: If no baseline assignment exists
            QuotaExceededError: If exemption creation would be unsafe
        """
        validate_request(request)
        outcome = RunOutcome()
        resolved = self.resolve_scope(request)

        if request.check_coverage:
            outcome.coverage = self.check_coverage(request, resolved)

        if request.list_only or request.create_exemptions:
            # Creation assesses the quota itself right before writing
            outcome.plan = self.plan(request, assess_quota=request.list_only, resolved=resolved)

        if request.create_exemptions and not request.list_only:
            outcome.batch_result = self.create_exemptions(request, outcome.plan)

        return outcome
