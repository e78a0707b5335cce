"""Azure SDK implementations of the collaborator interfaces.

Credential mode follows settings: an explicit service principal when
AZURE_TENANT_ID / AZURE_CLIENT_ID / AZURE_CLIENT_SECRET are all set,
DefaultAzureCredential (CLI login, managed identity, ...) otherwise.

All SDK exceptions are translated into the exemption manager's error
taxonomy at this boundary: 401/403 become AccessError, any other HTTP
failure becomes ProviderError carrying the status code.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from azure.core.exceptions import ClientAuthenticationError, HttpResponseError
from azure.identity import ClientSecretCredential, DefaultAzureCredential
from azure.mgmt.core.tools import parse_resource_id
from azure.mgmt.managementgroups import ManagementGroupsAPI
from azure.mgmt.resource import PolicyClient, ResourceManagementClient
from azure.mgmt.resource.policy.v2022_07_01_preview.models import (
    PolicyExemption as AzurePolicyExemption,
)
from azure.mgmt.resource.subscriptions import SubscriptionClient

from exemption_manager.core.config import Settings, get_settings
from exemption_manager.core.exceptions import AccessError, ProviderError
from exemption_manager.core.retry import (
    EXEMPTION_WRITE_POLICY,
    HIERARCHY_READ_POLICY,
    POLICY_READ_POLICY,
    RESOURCE_READ_POLICY,
    retry_with_backoff,
)
from exemption_manager.schemas import (
    Exemption,
    ExemptionCategory,
    ManagementGroupNode,
    PolicyAssignment,
    Scope,
    ScopeKind,
    ScopeNode,
    SubscriptionNode,
    TaggedResource,
)
from exemption_manager.services.interfaces import AzureContext

logger = logging.getLogger(__name__)

# Management-group and scope-level operations ignore the client's subscription
NO_SUBSCRIPTION = "00000000-0000-0000-0000-000000000000"

MANAGEMENT_GROUP_CHILD_TYPE = "microsoft.management/managementgroups"
EXEMPTION_ID_SEGMENT = "/providers/microsoft.authorization/policyexemptions/"


@contextmanager
def azure_errors(operation: str, scope: str) -> Iterator[None]:
    """Translate Azure SDK exceptions raised inside the block."""
    try:
        yield
    except ClientAuthenticationError as e:
        raise AccessError(
            f"Authentication failed during {operation} at {scope}: {e.message}",
            status_code=401,
            scope=scope,
        ) from e
    except HttpResponseError as e:
        status = getattr(e, "status_code", None)
        if status in (401, 403):
            raise AccessError(
                f"Access denied during {operation} at {scope}",
                status_code=status,
                scope=scope,
            ) from e
        raise ProviderError(
            f"HTTP error during {operation} at {scope}: {status} - {e.message}",
            status_code=status,
            scope=scope,
        ) from e


def _enum_value(value: Any) -> str:
    return str(getattr(value, "value", value) or "")


def _exemption_scope(exemption_id: str | None) -> str:
    """Extract the scope an exemption is attached to from its ARM id."""
    if not exemption_id:
        return ""
    index = exemption_id.lower().find(EXEMPTION_ID_SEGMENT)
    return exemption_id[:index] if index >= 0 else exemption_id


def _to_category(value: Any) -> ExemptionCategory:
    raw = _enum_value(value).lower()
    if raw == ExemptionCategory.WAIVER.value.lower():
        return ExemptionCategory.WAIVER
    return ExemptionCategory.MITIGATED


def to_assignment(item: Any) -> PolicyAssignment:
    """Convert an SDK PolicyAssignment into the schema model."""
    return PolicyAssignment(
        id=item.id,
        name=item.name or "",
        display_name=item.display_name or "",
        definition_id=item.policy_definition_id,
        scope=item.scope,
    )


def to_exemption(item: Any) -> Exemption:
    """Convert an SDK PolicyExemption into the schema model."""
    return Exemption(
        name=item.name,
        scope=_exemption_scope(item.id),
        policy_assignment_id=item.policy_assignment_id or "",
        category=_to_category(item.exemption_category),
        display_name=item.display_name or "",
        description=item.description or "",
        expires_on=item.expires_on,
    )


class AzureSession:
    """Credential holder handing out explicit per-subscription contexts."""

    def __init__(self, settings: Settings | None = None, credential: Any = None) -> None:
        self._settings = settings or get_settings()
        self._credential = credential

    @property
    def credential(self) -> Any:
        if self._credential is None:
            if self._settings.is_configured:
                logger.debug(
                    f"Using service principal credentials for tenant {self._settings.azure_tenant_id}"
                )
                self._credential = ClientSecretCredential(
                    tenant_id=self._settings.azure_tenant_id,
                    client_id=self._settings.azure_client_id,
                    client_secret=self._settings.azure_client_secret,
                )
            else:
                logger.debug("Using DefaultAzureCredential")
                self._credential = DefaultAzureCredential()
        return self._credential

    def default_context(self) -> AzureContext:
        return AzureContext(
            credential=self.credential,
            tenant_id=self._settings.azure_tenant_id,
        )

    def for_subscription(self, subscription_id: str) -> AzureContext:
        logger.debug(f"Switching context to subscription {subscription_id}")
        return AzureContext(
            credential=self.credential,
            subscription_id=subscription_id,
            tenant_id=self._settings.azure_tenant_id,
        )


class AzurePolicyStore:
    """Policy assignments and exemptions through the ARM policy API."""

    def __init__(self) -> None:
        self._clients: dict[str, PolicyClient] = {}

    def _client(self, ctx: AzureContext) -> PolicyClient:
        subscription_id = ctx.subscription_id or NO_SUBSCRIPTION
        if subscription_id not in self._clients:
            self._clients[subscription_id] = PolicyClient(ctx.credential, subscription_id)
        return self._clients[subscription_id]

    @retry_with_backoff(POLICY_READ_POLICY)
    def list_assignments(self, ctx: AzureContext, scope: Scope) -> list[PolicyAssignment]:
        with azure_errors("policy assignment listing", scope.resource_id):
            if scope.kind == ScopeKind.MANAGEMENT_GROUP:
                items = self._client(ctx).policy_assignments.list_for_management_group(
                    management_group_id=scope.id, filter="atScope()"
                )
            else:
                client = self._client(AzureContext(ctx.credential, scope.id, ctx.tenant_id))
                items = client.policy_assignments.list(filter="atScope()")
            return [to_assignment(item) for item in items]

    @retry_with_backoff(POLICY_READ_POLICY)
    def list_exemptions(self, ctx: AzureContext, scope: Scope) -> list[Exemption]:
        with azure_errors("policy exemption listing", scope.resource_id):
            if scope.kind == ScopeKind.MANAGEMENT_GROUP:
                items = self._client(ctx).policy_exemptions.list_for_management_group(
                    management_group_id=scope.id, filter="atScope()"
                )
            else:
                client = self._client(AzureContext(ctx.credential, scope.id, ctx.tenant_id))
                items = client.policy_exemptions.list()
            return [to_exemption(item) for item in items]

    @retry_with_backoff(POLICY_READ_POLICY)
    def list_resource_exemptions(self, ctx: AzureContext, resource_id: str) -> list[Exemption]:
        parts = parse_resource_id(resource_id)
        resource_ctx = AzureContext(
            ctx.credential, parts.get("subscription") or ctx.subscription_id, ctx.tenant_id
        )
        with azure_errors("resource exemption listing", resource_id):
            items = self._client(resource_ctx).policy_exemptions.list_for_resource(
                resource_group_name=parts["resource_group"],
                resource_provider_namespace=parts["resource_namespace"],
                parent_resource_path=(parts.get("resource_parent") or "").strip("/"),
                resource_type=parts["resource_type"],
                resource_name=parts["resource_name"],
            )
            return [to_exemption(item) for item in items]

    @retry_with_backoff(POLICY_READ_POLICY)
    def get_assignment(self, ctx: AzureContext, assignment_id: str) -> PolicyAssignment:
        with azure_errors("policy assignment lookup", assignment_id):
            return to_assignment(
                self._client(ctx).policy_assignments.get_by_id(assignment_id)
            )

    @retry_with_backoff(EXEMPTION_WRITE_POLICY)
    def create_exemption(self, ctx: AzureContext, exemption: Exemption) -> Exemption:
        parameters = AzurePolicyExemption(
            policy_assignment_id=exemption.policy_assignment_id,
            exemption_category=exemption.category.value,
            display_name=exemption.display_name,
            description=exemption.description,
            expires_on=exemption.expires_on,
        )
        with azure_errors("policy exemption creation", exemption.scope):
            created = self._client(ctx).policy_exemptions.create_or_update(
                scope=exemption.scope,
                policy_exemption_name=exemption.name,
                parameters=parameters,
            )
        logger.debug(f"Created exemption {created.name} at {exemption.scope}")
        return to_exemption(created)


class AzureResourceInventory:
    """Tagged resource lookup through Azure Resource Manager."""

    @staticmethod
    def tag_filter(tag_name: str, tag_value: str) -> str:
        """OData filter for an exact tag name/value match."""
        name = tag_name.replace("'", "''")
        value = tag_value.replace("'", "''")
        return f"tagName eq '{name}' and tagValue eq '{value}'"

    @retry_with_backoff(RESOURCE_READ_POLICY)
    def find_by_tag(
        self, ctx: AzureContext, tag_name: str, tag_value: str
    ) -> list[TaggedResource]:
        if not ctx.subscription_id:
            raise ValueError("Resource queries require a subscription context")

        with azure_errors("tagged resource query", f"/subscriptions/{ctx.subscription_id}"):
            client = ResourceManagementClient(ctx.credential, ctx.subscription_id)
            return [
                TaggedResource(
                    resource_id=item.id,
                    name=item.name or "",
                    resource_type=item.type or "",
                    subscription_id=ctx.subscription_id,
                )
                for item in client.resources.list(filter=self.tag_filter(tag_name, tag_value))
                if item.id
            ]


class AzureHierarchyService:
    """Management group hierarchy through the management groups API."""

    @retry_with_backoff(HIERARCHY_READ_POLICY)
    def children(self, ctx: AzureContext, group_id: str) -> list[ScopeNode]:
        with azure_errors("management group expansion", group_id):
            client = ManagementGroupsAPI(ctx.credential)
            group = client.management_groups.get(
                group_id=group_id, expand="children", recurse=False
            )

        nodes: list[ScopeNode] = []
        for child in group.children or []:
            child_type = _enum_value(child.type).strip("/").lower()
            if child_type == MANAGEMENT_GROUP_CHILD_TYPE:
                nodes.append(ManagementGroupNode(id=child.name, display_name=child.display_name))
            elif child_type == "subscriptions":
                nodes.append(SubscriptionNode(id=child.name, display_name=child.display_name))
            else:
                logger.debug(f"Ignoring child {child.name} of unknown type {child.type}")
        return nodes

    @retry_with_backoff(HIERARCHY_READ_POLICY)
    def subscription_name(self, ctx: AzureContext, subscription_id: str) -> str | None:
        with azure_errors("subscription lookup", f"/subscriptions/{subscription_id}"):
            subscription = SubscriptionClient(ctx.credential).subscriptions.get(subscription_id)
            return subscription.display_name
