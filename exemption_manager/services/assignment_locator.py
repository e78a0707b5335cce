"""Baseline policy assignment discovery.

The Microsoft Cloud Security Benchmark is assigned under several names
depending on how and when it was enabled (Defender for Cloud default
assignment, the legacy Azure Security Benchmark, custom re-assignments),
so assignments are classified by a substring heuristic rather than by
definition id.
"""

import logging
from collections.abc import Iterable

from exemption_manager.core.exceptions import NotFoundError, ProviderError
from exemption_manager.schemas import PolicyAssignment, Scope, ScopeKind
from exemption_manager.services.interfaces import AzureContext, PolicyStore, SessionProvider

logger = logging.getLogger(__name__)

BASELINE_DISPLAY_NAME_MARKERS = (
    "microsoft cloud security benchmark",
    "azure security baseline",
)
BASELINE_NAME_MARKERS = (
    "securitycenterbuiltin",
    "asc",
    "azure_security_baseline",
)


def is_baseline_assignment(display_name: str | None, name: str | None) -> bool:
    """Check whether an assignment looks like the security baseline.

    Args:
        display_name: Assignment display name
        name: Assignment name

    Returns:
        True if any baseline marker matches (case-insensitive)
    """
    display = (display_name or "").lower()
    short_name = (name or "").lower()

    if any(marker in display for marker in BASELINE_DISPLAY_NAME_MARKERS):
        return True
    if any(marker in short_name for marker in BASELINE_NAME_MARKERS):
        return True
    return "security" in display and "benchmark" in display


class PolicyAssignmentLocator:
    """Finds baseline-relevant policy assignments across scopes."""

    def __init__(self, policy_store: PolicyStore, session: SessionProvider):
        self.policy_store = policy_store
        self.session = session

    def _context_for(self, scope: Scope) -> AzureContext:
        if scope.kind == ScopeKind.SUBSCRIPTION:
            return self.session.for_subscription(scope.id)
        return self.session.default_context()

    def query_scope(self, scope: Scope) -> list[PolicyAssignment]:
        """Get baseline assignments visible at a single scope.

        Raises:
            ProviderError: If the scope cannot be queried
        """
        candidates = self.policy_store.list_assignments(self._context_for(scope), scope)

        matched: list[PolicyAssignment] = []
        for assignment in candidates:
            if not is_baseline_assignment(assignment.display_name, assignment.name):
                continue
            if not assignment.is_resolvable:
                logger.warning(
                    f"Dropping baseline assignment '{assignment.display_name or assignment.name}' "
                    f"at {scope}: assignment id could not be resolved"
                )
                continue
            matched.append(assignment)

        logger.debug(
            f"{len(matched)} of {len(candidates)} assignments at {scope} are baseline-relevant"
        )
        return matched

    def locate(
        self,
        scopes: Iterable[Scope],
        include_children: bool = False,
        subscriptions: Iterable[str] | None = None,
    ) -> list[PolicyAssignment]:
        """Get baseline assignments across scopes.

        Scopes that cannot be queried are logged and skipped. Assignments
        inherited by several scopes are returned once, in first-seen order.

        Args:
            scopes: Scopes to query
            include_children: Also query each of ``subscriptions`` individually
            subscriptions: Child subscription ids used with ``include_children``

        Returns:
            Deduplicated list of baseline assignments
        """
        targets = list(scopes)
        if include_children and subscriptions:
            targets.extend(Scope.subscription(sub_id) for sub_id in sorted(subscriptions))

        seen: set[str] = set()
        located: list[PolicyAssignment] = []

        for scope in targets:
            try:
                assignments = self.query_scope(scope)
            except ProviderError as e:
                logger.warning(f"Could not query policy assignments at {scope}: {e}")
                continue

            for assignment in assignments:
                key = assignment.id.lower()
                if key not in seen:
                    seen.add(key)
                    located.append(assignment)

        logger.info(f"Found {len(located)} baseline assignments across {len(targets)} scopes")
        return located

    @staticmethod
    def select_by_name(
        assignments: list[PolicyAssignment], assignment_name: str
    ) -> list[PolicyAssignment]:
        """Restrict assignments to the one(s) named ``assignment_name``.

        Raises:
            NotFoundError: If no assignment has that name or display name
        """
        wanted = assignment_name.strip().lower()
        selected = [
            a for a in assignments
            if a.name.lower() == wanted or a.display_name.lower() == wanted
        ]
        if not selected:
            raise NotFoundError(
                f"Policy assignment '{assignment_name}' not found among baseline assignments",
                {"available": [a.name for a in assignments]},
            )
        return selected
