"""Read access to existing policy exemptions."""

import logging

from exemption_manager.core.exceptions import ProviderError
from exemption_manager.schemas import Exemption, Scope, ScopeKind, subscription_of
from exemption_manager.services.interfaces import AzureContext, PolicyStore, SessionProvider

logger = logging.getLogger(__name__)


class ExemptionRepository:
    """Looks up exemptions recorded against resources and scopes."""

    def __init__(self, policy_store: PolicyStore, session: SessionProvider):
        self.policy_store = policy_store
        self.session = session

    def _context_for_resource(self, resource_id: str) -> AzureContext:
        subscription_id = subscription_of(resource_id)
        if subscription_id:
            return self.session.for_subscription(subscription_id)
        return self.session.default_context()

    def fetch(self, resource_id: str) -> list[Exemption]:
        """Get exemptions applying to a resource.

        Raises:
            ProviderError: If the exemptions cannot be listed
        """
        return self.policy_store.list_resource_exemptions(
            self._context_for_resource(resource_id), resource_id
        )

    def existing_for(self, resource_id: str) -> list[Exemption]:
        """Get exemptions applying to a resource, or [] if the lookup fails.

        A failed lookup is indistinguishable from "no exemptions" to the
        caller, so creation is re-attempted rather than the resource skipped.
        """
        try:
            return self.fetch(resource_id)
        except ProviderError as e:
            logger.warning(f"Could not list exemptions for {resource_id}, assuming none: {e}")
            return []

    def at_scope(self, scope: Scope) -> list[Exemption]:
        """Get exemptions listed directly at a management group or subscription.

        Raises:
            ProviderError: If the exemptions cannot be listed
        """
        if scope.kind == ScopeKind.SUBSCRIPTION:
            ctx = self.session.for_subscription(scope.id)
        else:
            ctx = self.session.default_context()
        return self.policy_store.list_exemptions(ctx, scope)
