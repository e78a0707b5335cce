"""Pre-flight exemption quota assessment.

Azure enforces a maximum number of policy exemptions per scope. Before a
bulk run, the projected total (existing + planned) is compared with a
safety threshold set below the provider's hard limit.
"""

import logging

from exemption_manager.core.exceptions import ProviderError, QuotaExceededError
from exemption_manager.schemas import QuotaState, Scope, TaggedResource, WarningLevel
from exemption_manager.services.exemption_repository import ExemptionRepository

logger = logging.getLogger(__name__)

DEFAULT_HARD_LIMIT = 1000
DEFAULT_SAFETY_THRESHOLD = 950


class QuotaGuard:
    """Classifies exemption quota risk for a planned run."""

    def __init__(
        self,
        repository: ExemptionRepository,
        hard_limit: int = DEFAULT_HARD_LIMIT,
        safety_threshold: int = DEFAULT_SAFETY_THRESHOLD,
    ):
        if safety_threshold > hard_limit:
            raise ValueError("safety_threshold cannot exceed hard_limit")
        self.repository = repository
        self.hard_limit = hard_limit
        self.safety_threshold = safety_threshold

    def _current_count(self, scope: Scope | None, resources: list[TaggedResource] | None) -> int:
        # Scope-level listings omit exemptions placed on nested resources
        if resources is not None:
            return sum(len(self.repository.fetch(r.resource_id)) for r in resources)
        if scope is None:
            raise ValueError("Either a scope or a resource list is required")
        return len(self.repository.at_scope(scope))

    def assess(
        self,
        scope: Scope | None,
        planned_count: int,
        resources: list[TaggedResource] | None = None,
    ) -> QuotaState:
        """Assess the projected exemption count.

        Args:
            scope: Scope counted when no resource list is given
            planned_count: Number of exemptions about to be created
            resources: Resources whose existing exemptions are tallied

        Returns:
            QuotaState; degraded (warning Unknown) if counting failed
        """
        try:
            current = self._current_count(scope, resources)
        except ProviderError as e:
            logger.error(f"Quota assessment failed at {scope}: {e}")
            return QuotaState.degraded(
                planned_count=planned_count,
                hard_limit=self.hard_limit,
                safety_threshold=self.safety_threshold,
                error=str(e),
            )

        state = QuotaState.evaluate(
            current_count=current,
            planned_count=planned_count,
            hard_limit=self.hard_limit,
            safety_threshold=self.safety_threshold,
        )

        message = (
            f"Exemption quota: {state.current_count} existing + {state.planned_count} planned "
            f"= {state.projected_total} (threshold {self.safety_threshold}, limit {self.hard_limit})"
        )
        if state.warning_level in (WarningLevel.HIGH, WarningLevel.CRITICAL):
            logger.error(f"{message} - {state.warning_level.value} risk")
        elif state.warning_level == WarningLevel.MEDIUM:
            logger.warning(f"{message} - approaching threshold")
        else:
            logger.info(message)
        return state

    @staticmethod
    def ensure_within_limits(state: QuotaState) -> QuotaState:
        """Raise unless the state allows creation to proceed.

        Raises:
            QuotaExceededError: If projected usage is unsafe or unknown
        """
        if state.warning_level == WarningLevel.UNKNOWN or not state.within_limits:
            raise QuotaExceededError(
                f"Projected exemption count {state.projected_total} is not within the "
                f"safety threshold of {state.safety_threshold} "
                f"(warning level: {state.warning_level.value})",
                state,
            )
        return state
