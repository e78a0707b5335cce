"""In-memory fakes of the Azure collaborators and test data builders.

Fakes implement the service interfaces structurally, so services under
test never touch Azure or sleep.
"""

from datetime import date

from exemption_manager.core.exceptions import AccessError, ProviderError
from exemption_manager.schemas import (
    Exemption,
    ExemptionCategory,
    PolicyAssignment,
    Scope,
    ScopeNode,
    TaggedResource,
)
from exemption_manager.services.interfaces import AzureContext

MCSB_ASSIGNMENT_ID = (
    "/providers/Microsoft.Management/managementGroups/contoso"
    "/providers/Microsoft.Authorization/policyAssignments/SecurityCenterBuiltIn"
)
FIXED_TODAY = date(2026, 10, 17)


def make_resource(index: int, subscription_id: str = "sub-1") -> TaggedResource:
    """Build a tagged storage account resource."""
    return TaggedResource(
        resource_id=(
            f"/subscriptions/{subscription_id}/resourceGroups/rg-test"
            f"/providers/Microsoft.Storage/storageAccounts/sa{index:02d}"
        ),
        name=f"sa{index:02d}",
        resource_type="Microsoft.Storage/storageAccounts",
        subscription_id=subscription_id,
    )


def make_assignment(
    name: str = "SecurityCenterBuiltIn",
    display_name: str = "ASC Default (subscription: sub-1)",
    assignment_id: str | None = MCSB_ASSIGNMENT_ID,
) -> PolicyAssignment:
    """Build a policy assignment."""
    return PolicyAssignment(
        id=assignment_id,
        name=name,
        display_name=display_name,
        definition_id="/providers/Microsoft.Authorization/policySetDefinitions/1f3afdf9",
        scope="/providers/Microsoft.Management/managementGroups/contoso",
    )


def make_exemption(resource: TaggedResource, assignment_id: str) -> Exemption:
    """Build an existing exemption on a resource."""
    return Exemption(
        name=f"existing-{resource.name}",
        scope=resource.resource_id,
        policy_assignment_id=assignment_id,
        category=ExemptionCategory.MITIGATED,
    )


class FakeSession:
    """Session provider recording subscription switches."""

    def __init__(self):
        self.switched: list[str] = []

    def default_context(self) -> AzureContext:
        return AzureContext(credential="fake-credential")

    def for_subscription(self, subscription_id: str) -> AzureContext:
        self.switched.append(subscription_id)
        return AzureContext(credential="fake-credential", subscription_id=subscription_id)


class FakePolicyStore:
    """In-memory policy store."""

    def __init__(self):
        self.assignments: dict[str, list[PolicyAssignment]] = {}
        self.scope_exemptions: dict[str, list[Exemption]] = {}
        self.resource_exemptions: dict[str, list[Exemption]] = {}
        self.scope_errors: dict[str, Exception] = {}
        self.resource_errors: dict[str, Exception] = {}
        self.create_errors: dict[str, Exception] = {}
        self.unresolvable: set[str] = set()
        self.created: list[Exemption] = []
        self.calls: list[str] = []

    def add_assignments(self, scope: Scope, *assignments: PolicyAssignment) -> None:
        self.assignments.setdefault(scope.resource_id.lower(), []).extend(assignments)

    def add_resource_exemption(self, exemption: Exemption) -> None:
        self.resource_exemptions.setdefault(exemption.scope.lower(), []).append(exemption)

    def list_assignments(self, ctx, scope):
        self.calls.append(f"list_assignments:{scope.id}")
        key = scope.resource_id.lower()
        if key in self.scope_errors:
            raise self.scope_errors[key]
        return list(self.assignments.get(key, []))

    def list_exemptions(self, ctx, scope):
        self.calls.append(f"list_exemptions:{scope.id}")
        key = scope.resource_id.lower()
        if key in self.scope_errors:
            raise self.scope_errors[key]
        return list(self.scope_exemptions.get(key, []))

    def list_resource_exemptions(self, ctx, resource_id):
        self.calls.append(f"list_resource_exemptions:{resource_id}")
        key = resource_id.lower()
        if key in self.resource_errors:
            raise self.resource_errors[key]
        return list(self.resource_exemptions.get(key, []))

    def get_assignment(self, ctx, assignment_id):
        self.calls.append(f"get_assignment:{assignment_id}")
        if assignment_id.lower() in self.unresolvable:
            raise ProviderError(f"Assignment {assignment_id} not found", status_code=404)
        for assignments in self.assignments.values():
            for assignment in assignments:
                if assignment.id and assignment.id.lower() == assignment_id.lower():
                    return assignment
        return make_assignment(assignment_id=assignment_id)

    def create_exemption(self, ctx, exemption):
        self.calls.append(f"create_exemption:{exemption.scope}")
        if exemption.scope.lower() in self.create_errors:
            raise self.create_errors[exemption.scope.lower()]
        self.created.append(exemption)
        self.add_resource_exemption(exemption)
        return exemption


class FakeInventory:
    """In-memory resource inventory keyed by subscription."""

    def __init__(self):
        self.resources: dict[str, list[TaggedResource]] = {}
        self.errors: dict[str, Exception] = {}
        self.queries: list[tuple[str, str, str]] = []

    def find_by_tag(self, ctx, tag_name, tag_value):
        self.queries.append((ctx.subscription_id, tag_name, tag_value))
        if ctx.subscription_id in self.errors:
            raise self.errors[ctx.subscription_id]
        return list(self.resources.get(ctx.subscription_id, []))


class FakeHierarchy:
    """In-memory management group tree."""

    def __init__(self):
        self.tree: dict[str, list[ScopeNode]] = {}
        self.names: dict[str, str] = {}
        self.expanded: list[str] = []
        self.errors: dict[str, Exception] = {}

    def children(self, ctx, group_id):
        self.expanded.append(group_id)
        if group_id in self.errors:
            raise self.errors[group_id]
        return list(self.tree.get(group_id, []))

    def subscription_name(self, ctx, subscription_id):
        return self.names.get(subscription_id)


class RecordingWaiter:
    """Wait function recording requested delays instead of sleeping."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def access_denied(scope: str) -> AccessError:
    return AccessError(f"Access denied at {scope}", status_code=403, scope=scope)
