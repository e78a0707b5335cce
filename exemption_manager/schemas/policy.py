"""Policy assignment, tagged resource and exemption schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ExemptionCategory(str, Enum):
    """Azure Policy exemption categories."""

    WAIVER = "Waiver"
    MITIGATED = "Mitigated"


class PolicyAssignment(BaseModel):
    """A policy assignment as returned by the policy store."""

    id: str | None = None
    name: str = ""
    display_name: str = ""
    definition_id: str | None = None
    scope: str | None = None

    model_config = {"frozen": True}

    @property
    def is_resolvable(self) -> bool:
        """Assignments without an id can never be exempted against."""
        return bool(self.id and self.id.strip())


class TaggedResource(BaseModel):
    """Snapshot of a resource carrying the exemption tag."""

    resource_id: str = Field(..., min_length=1)
    name: str
    resource_type: str = ""
    subscription_id: str = ""

    model_config = {"frozen": True}


class Exemption(BaseModel):
    """A policy exemption scoped to a single resource."""

    name: str = Field(..., min_length=1)
    scope: str
    policy_assignment_id: str
    category: ExemptionCategory
    display_name: str = ""
    description: str = ""
    expires_on: datetime | None = None

    model_config = {"frozen": True}

    def matches_assignment(self, assignment_id: str | None) -> bool:
        """Case-insensitive comparison of the exempted assignment id."""
        if not assignment_id or not self.policy_assignment_id:
            return False
        return self.policy_assignment_id.lower() == assignment_id.lower()
