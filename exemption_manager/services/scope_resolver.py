"""Management group hierarchy expansion."""

import logging

from exemption_manager.core.exceptions import ProviderError
from exemption_manager.schemas import ManagementGroupNode, ScopeNode, SubscriptionNode
from exemption_manager.services.interfaces import AzureContext, HierarchyService

logger = logging.getLogger(__name__)


class ScopeResolver:
    """Expands a hierarchy root into the subscriptions beneath it.

    Traversal is iterative, depth-first, with a visited set keyed on the
    node kind and id so malformed (cyclic or diamond) input terminates and
    contributes each subscription once. Management groups whose children
    are not inlined are expanded through the hierarchy service; a nested
    group that cannot be expanded is logged and left out, while a failure
    on the root group propagates.
    """

    def __init__(self, hierarchy: HierarchyService | None = None, context: AzureContext | None = None):
        self.hierarchy = hierarchy
        self.context = context

    def _children_of(self, node: ManagementGroupNode, is_root: bool) -> list[ScopeNode]:
        if node.children is not None:
            return node.children
        if self.hierarchy is None or self.context is None:
            logger.warning(
                f"Management group {node.id} has no inline children and no hierarchy service"
            )
            return []
        if is_root:
            return self.hierarchy.children(self.context, node.id)

        try:
            return self.hierarchy.children(self.context, node.id)
        except ProviderError as e:
            logger.warning(f"Skipping management group {node.id}: {e}")
            return []

    def subscription_nodes(self, root: ScopeNode) -> list[SubscriptionNode]:
        """Get all subscription nodes beneath ``root`` in depth-first order."""
        found: list[SubscriptionNode] = []
        visited: set[tuple[str, str]] = set()
        worklist: list[ScopeNode] = [root]

        while worklist:
            node = worklist.pop()
            key = (node.kind, node.id.lower())
            if key in visited:
                logger.warning(f"Skipping already visited {node.kind} {node.id}")
                continue
            visited.add(key)

            if isinstance(node, SubscriptionNode):
                found.append(node)
                continue

            # Reversed so children are visited in their listed order
            worklist.extend(reversed(self._children_of(node, is_root=node is root)))

        logger.debug(f"Resolved {len(found)} subscriptions under {root.kind} {root.id}")
        return found

    def expand(self, root: ScopeNode) -> set[str]:
        """Get the set of subscription ids beneath ``root``."""
        return {node.id for node in self.subscription_nodes(root)}

    def expand_management_group(self, group_id: str) -> set[str]:
        """Expand a management group by id through the hierarchy service."""
        return self.expand(ManagementGroupNode(id=group_id))
