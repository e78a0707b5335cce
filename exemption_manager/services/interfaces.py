"""Collaborator interfaces consumed by the reconciliation services.

Every provider call receives an explicit ``AzureContext``; there is no
ambient "current subscription" shared between calls.
"""

from dataclasses import dataclass
from typing import Any, Protocol

from exemption_manager.schemas import (
    Exemption,
    PolicyAssignment,
    Scope,
    ScopeNode,
    TaggedResource,
)


@dataclass(frozen=True)
class AzureContext:
    """Authenticated context a query runs in."""

    credential: Any
    subscription_id: str | None = None
    tenant_id: str | None = None


class SessionProvider(Protocol):
    """Supplies authenticated contexts."""

    def default_context(self) -> AzureContext: ...

    def for_subscription(self, subscription_id: str) -> AzureContext: ...


class PolicyStore(Protocol):
    """Read policy assignments, read/write policy exemptions."""

    def list_assignments(self, ctx: AzureContext, scope: Scope) -> list[PolicyAssignment]: ...

    def list_exemptions(self, ctx: AzureContext, scope: Scope) -> list[Exemption]: ...

    def list_resource_exemptions(self, ctx: AzureContext, resource_id: str) -> list[Exemption]: ...

    def get_assignment(self, ctx: AzureContext, assignment_id: str) -> PolicyAssignment: ...

    def create_exemption(self, ctx: AzureContext, exemption: Exemption) -> Exemption: ...


class ResourceInventory(Protocol):
    """Query resources by tag."""

    def find_by_tag(
        self, ctx: AzureContext, tag_name: str, tag_value: str
    ) -> list[TaggedResource]: ...


class HierarchyService(Protocol):
    """Expand management groups into their immediate children."""

    def children(self, ctx: AzureContext, group_id: str) -> list[ScopeNode]: ...

    def subscription_name(self, ctx: AzureContext, subscription_id: str) -> str | None: ...
