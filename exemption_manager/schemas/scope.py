"""Governance hierarchy schemas."""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

MANAGEMENT_GROUP_PREFIX = "/providers/Microsoft.Management/managementGroups/"
SUBSCRIPTION_PREFIX = "/subscriptions/"


class ScopeKind(str, Enum):
    """Kinds of governance scope."""

    MANAGEMENT_GROUP = "management_group"
    SUBSCRIPTION = "subscription"


class Scope(BaseModel):
    """A governance boundary addressed by the policy store."""

    kind: ScopeKind
    id: str = Field(..., min_length=1)

    model_config = {"frozen": True}

    @classmethod
    def management_group(cls, group_id: str) -> "Scope":
        return cls(kind=ScopeKind.MANAGEMENT_GROUP, id=group_id)

    @classmethod
    def subscription(cls, subscription_id: str) -> "Scope":
        return cls(kind=ScopeKind.SUBSCRIPTION, id=subscription_id)

    @property
    def resource_id(self) -> str:
        """Fully-qualified ARM identifier of this scope."""
        if self.kind == ScopeKind.MANAGEMENT_GROUP:
            return f"{MANAGEMENT_GROUP_PREFIX}{self.id}"
        return f"{SUBSCRIPTION_PREFIX}{self.id}"

    def __str__(self) -> str:
        return self.resource_id


class SubscriptionNode(BaseModel):
    """Leaf of the hierarchy."""

    kind: Literal["subscription"] = "subscription"
    id: str
    display_name: str | None = None


class ManagementGroupNode(BaseModel):
    """Interior node of the hierarchy.

    ``children`` of None means the node has not been expanded yet and its
    children must be fetched from the hierarchy service.
    """

    kind: Literal["management_group"] = "management_group"
    id: str
    display_name: str | None = None
    children: list["ScopeNode"] | None = None


ScopeNode = Annotated[
    Union[ManagementGroupNode, SubscriptionNode],
    Field(discriminator="kind"),
]

ManagementGroupNode.model_rebuild()


def subscription_of(resource_id: str) -> str | None:
    """Extract the subscription id from an ARM resource id."""
    parts = [p for p in resource_id.split("/") if p]
    for index, part in enumerate(parts[:-1]):
        if part.lower() == "subscriptions":
            return parts[index + 1]
    return None


def is_management_group_scope(scope: str) -> bool:
    """Check whether an ARM id addresses a management group."""
    return scope.lower().startswith(MANAGEMENT_GROUP_PREFIX.lower())
