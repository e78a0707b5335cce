"""Tagged resource discovery."""

import logging
from collections.abc import Iterable

from exemption_manager.core.exceptions import ProviderError
from exemption_manager.schemas import TaggedResource
from exemption_manager.services.interfaces import ResourceInventory, SessionProvider

logger = logging.getLogger(__name__)


class ResourceLocator:
    """Finds resources carrying an exact tag name/value pair."""

    def __init__(self, inventory: ResourceInventory, session: SessionProvider):
        self.inventory = inventory
        self.session = session

    def locate_in_scope(self, tag_name: str, tag_value: str, subscription_id: str) -> list[TaggedResource]:
        """Query a single subscription; failures propagate."""
        ctx = self.session.for_subscription(subscription_id)
        return self.inventory.find_by_tag(ctx, tag_name, tag_value)

    def locate(
        self, tag_name: str, tag_value: str, subscriptions: Iterable[str]
    ) -> list[TaggedResource]:
        """Get tagged resources across subscriptions.

        Subscriptions that cannot be queried are logged and skipped.
        Subscriptions are visited in sorted order so results are stable.
        """
        resources: list[TaggedResource] = []
        seen: set[str] = set()

        for subscription_id in sorted(subscriptions):
            try:
                found = self.locate_in_scope(tag_name, tag_value, subscription_id)
            except ProviderError as e:
                logger.warning(
                    f"Could not query tagged resources in subscription {subscription_id}: {e}"
                )
                continue

            logger.debug(
                f"Found {len(found)} resources tagged {tag_name}={tag_value} "
                f"in subscription {subscription_id}"
            )
            for resource in found:
                key = resource.resource_id.lower()
                if key not in seen:
                    seen.add(key)
                    resources.append(resource)

        logger.info(f"Found {len(resources)} resources tagged {tag_name}={tag_value}")
        return resources
