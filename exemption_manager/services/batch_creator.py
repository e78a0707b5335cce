"""Rate-limited bulk creation of policy exemptions.

Every (resource, assignment) pair moves through
``Pending -> DedupCheck -> {Skip | Attempt} -> {Created | Failed}``.
Resources are processed in fixed-size batches with a pause between
batches and a pause after every creation attempt, keeping the write rate
under the ARM throttling limits. A failed pair never aborts the run; an
interrupted run is resumed by re-running, since existing exemptions are
skipped.
"""

import hashlib
import logging
import operator
import re
from collections.abc import Callable
from datetime import UTC, date, datetime
from functools import reduce

from exemption_manager.core.exceptions import CreationError, ProviderError, ResolutionError
from exemption_manager.core.throttle import Waiter, real_wait
from exemption_manager.schemas import (
    BatchConfig,
    BatchResult,
    Exemption,
    ExemptionCategory,
    PairOutcome,
    PairStatus,
    PolicyAssignment,
    Scope,
    TaggedResource,
    is_management_group_scope,
    subscription_of,
)
from exemption_manager.services.exemption_repository import ExemptionRepository
from exemption_manager.services.interfaces import AzureContext, PolicyStore, SessionProvider
from exemption_manager.services.quota_guard import QuotaGuard

logger = logging.getLogger(__name__)

EXEMPTION_NAME_PREFIX = "mcsb"
EXEMPTION_NAME_MAX_LENGTH = 64
DISPLAY_NAME_MAX_LENGTH = 128

CATEGORY_RATIONALE = {
    ExemptionCategory.WAIVER: "Risk accepted; requires periodic review.",
    ExemptionCategory.MITIGATED: "Risk addressed through compensating controls.",
}


def _utc_today() -> date:
    return datetime.now(UTC).date()


def exemption_name(resource_name: str, assignment_id: str, on: date) -> str:
    """Build the deterministic exemption name for a pair on a given day.

    A short digest of the assignment id keeps names unique per resource
    when several baseline assignments are exempted on the same day.
    """
    digest = hashlib.sha1(assignment_id.lower().encode("utf-8")).hexdigest()[:8]
    suffix = f"-{on:%Y%m%d}-{digest}"
    budget = EXEMPTION_NAME_MAX_LENGTH - len(EXEMPTION_NAME_PREFIX) - 1 - len(suffix)
    safe_name = re.sub(r"[^A-Za-z0-9_-]+", "-", resource_name).strip("-")[:budget] or "resource"
    return f"{EXEMPTION_NAME_PREFIX}-{safe_name}{suffix}"


def exemption_description(
    resource: TaggedResource, assignment: PolicyAssignment, category: ExemptionCategory
) -> str:
    """Build the category-specific exemption description."""
    target = assignment.display_name or assignment.name
    kind = f" ({resource.resource_type})" if resource.resource_type else ""
    return (
        f"{category.value} exemption for {resource.name}{kind} from '{target}'. "
        f"{CATEGORY_RATIONALE[category]}"
    )


def build_exemption(
    resource: TaggedResource,
    assignment: PolicyAssignment,
    category: ExemptionCategory,
    expires_on: datetime,
    on: date,
) -> Exemption:
    """Build the exemption record for a pair.

    Raises:
        CreationError: If the resource id is a management group scope
    """
    if is_management_group_scope(resource.resource_id):
        raise CreationError(
            f"Refusing to place an exemption on management group scope {resource.resource_id}"
        )
    return Exemption(
        name=exemption_name(resource.name, assignment.id or "", on),
        scope=resource.resource_id,
        policy_assignment_id=assignment.id,
        category=category,
        display_name=f"MCSB Exemption - {resource.name}"[:DISPLAY_NAME_MAX_LENGTH],
        description=exemption_description(resource, assignment, category),
        expires_on=expires_on,
    )


class BatchExemptionCreator:
    """Creates missing exemptions for a resources x assignments cross product."""

    def __init__(
        self,
        policy_store: PolicyStore,
        repository: ExemptionRepository,
        quota_guard: QuotaGuard,
        session: SessionProvider,
        wait: Waiter = real_wait,
        today: Callable[[], date] = _utc_today,
    ):
        self.policy_store = policy_store
        self.repository = repository
        self.quota_guard = quota_guard
        self.session = session
        self.wait = wait
        self.today = today

    def _context_for(self, resource: TaggedResource) -> AzureContext:
        subscription_id = resource.subscription_id or subscription_of(resource.resource_id)
        if subscription_id:
            return self.session.for_subscription(subscription_id)
        return self.session.default_context()

    def _attempt(
        self,
        resource: TaggedResource,
        assignment: PolicyAssignment,
        category: ExemptionCategory,
        expires_on: datetime,
    ) -> Exemption:
        ctx = self._context_for(resource)

        try:
            resolved = self.policy_store.get_assignment(ctx, assignment.id)
        except ProviderError as e:
            raise ResolutionError(f"Assignment {assignment.id} could not be resolved: {e}") from e
        if not resolved.is_resolvable:
            raise ResolutionError(f"Assignment {assignment.id} resolved without an id")

        exemption = build_exemption(resource, resolved, category, expires_on, self.today())
        try:
            return self.policy_store.create_exemption(ctx, exemption)
        except ProviderError as e:
            raise CreationError(f"Creating exemption {exemption.name} failed: {e}") from e

    def _process_pair(
        self,
        resource: TaggedResource,
        assignment: PolicyAssignment,
        existing: list[Exemption],
        category: ExemptionCategory,
        expires_on: datetime,
        config: BatchConfig,
    ) -> PairOutcome:
        if any(e.matches_assignment(assignment.id) for e in existing):
            logger.info(
                f"Skipping {resource.name}: already exempt from {assignment.display_name or assignment.name}"
            )
            return PairOutcome(
                resource_id=resource.resource_id,
                resource_name=resource.name,
                assignment_id=assignment.id,
                status=PairStatus.SKIPPED,
            )

        try:
            created = self._attempt(resource, assignment, category, expires_on)
            logger.info(f"Created exemption {created.name} for {resource.name}")
            outcome = PairOutcome(
                resource_id=resource.resource_id,
                resource_name=resource.name,
                assignment_id=assignment.id,
                status=PairStatus.CREATED,
                exemption_name=created.name,
            )
        except Exception as e:
            logger.error(f"Failed to create exemption for {resource.name}: {e}")
            outcome = PairOutcome(
                resource_id=resource.resource_id,
                resource_name=resource.name,
                assignment_id=assignment.id,
                status=PairStatus.FAILED,
                error=str(e),
            )

        self.wait(config.call_delay_seconds)
        return outcome

    def _run_batch(
        self,
        batch: list[TaggedResource],
        assignments: list[PolicyAssignment],
        category: ExemptionCategory,
        expires_on: datetime,
        config: BatchConfig,
    ) -> tuple[PairOutcome, ...]:
        outcomes: list[PairOutcome] = []
        for resource in batch:
            # One lookup per resource, shared by all of its pairs
            existing = self.repository.existing_for(resource.resource_id)
            outcomes.extend(
                self._process_pair(resource, assignment, existing, category, expires_on, config)
                for assignment in assignments
            )
        return tuple(outcomes)

    def run(
        self,
        resources: list[TaggedResource],
        assignments: list[PolicyAssignment],
        category: ExemptionCategory,
        expires_on: datetime,
        batch_config: BatchConfig | None = None,
        scope: Scope | None = None,
    ) -> BatchResult:
        """Create missing exemptions for every (resource, assignment) pair.

        Args:
            resources: Resources to exempt, processed in the given order
            assignments: Baseline assignments to exempt them from
            category: Exemption category
            expires_on: Absolute expiry of created exemptions
            batch_config: Batch size and throttling delays
            scope: Scope the run targets, for quota reporting

        Returns:
            BatchResult accounting for every planned pair

        Raises:
            QuotaExceededError: If the projected count is unsafe; nothing is written
        """
        config = batch_config or BatchConfig()
        resources = list(resources)
        assignments = [a for a in assignments if a.is_resolvable]
        total_operations = len(resources) * len(assignments)

        if total_operations == 0:
            logger.info("Nothing to do: no resource/assignment pairs")
            return BatchResult(total_operations=0)

        quota = self.quota_guard.assess(scope, total_operations, resources)
        self.quota_guard.ensure_within_limits(quota)

        batches = [
            resources[start:start + config.batch_size]
            for start in range(0, len(resources), config.batch_size)
        ]
        logger.info(
            f"Processing {total_operations} operations for {len(resources)} resources "
            f"in {len(batches)} batches of up to {config.batch_size}"
        )

        batch_outcomes: list[tuple[PairOutcome, ...]] = []
        for index, batch in enumerate(batches, start=1):
            logger.info(f"Batch {index}/{len(batches)}: {len(batch)} resources")
            batch_outcomes.append(
                self._run_batch(batch, assignments, category, expires_on, config)
            )
            if index < len(batches):
                self.wait(config.batch_delay_seconds)

        result = BatchResult(
            total_operations=total_operations,
            outcomes=reduce(operator.add, batch_outcomes, ()),
            batch_sizes=tuple(len(batch) for batch in batches),
        )

        if not result.is_balanced:
            logger.error(f"Batch accounting mismatch: {result.get_summary()}")
        logger.info(
            f"Exemption creation completed: {result.created_count} created, "
            f"{result.skipped_count} skipped, {result.failed_count} failed "
            f"of {total_operations} operations"
        )
        return result
