"""Reconciliation run schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from exemption_manager.schemas.batch import BatchConfig, BatchResult
from exemption_manager.schemas.coverage import CoverageReport
from exemption_manager.schemas.policy import ExemptionCategory, PolicyAssignment, TaggedResource
from exemption_manager.schemas.quota import QuotaState
from exemption_manager.schemas.scope import Scope


class RunRequest(BaseModel):
    """Options of a single reconciliation run."""

    subscription_id: str | None = None
    management_group_id: str | None = None
    tag_name: str = "DefenderExempt"
    tag_value: str = "true"
    category: ExemptionCategory = ExemptionCategory.MITIGATED
    expires_in_days: int | None = Field(None, ge=1)
    list_only: bool = False
    create_exemptions: bool = False
    check_coverage: bool = False
    include_child_subscriptions: bool = False
    assignment_name: str | None = None
    batch_config: BatchConfig = Field(default_factory=BatchConfig)


class ReconciliationPlan(BaseModel):
    """What a run found before writing anything."""

    scope: Scope
    subscriptions: list[str] = Field(default_factory=list)
    assignments: list[PolicyAssignment] = Field(default_factory=list)
    resources: list[TaggedResource] = Field(default_factory=list)
    quota: QuotaState | None = None
    category: ExemptionCategory = ExemptionCategory.MITIGATED
    expires_on: datetime | None = None

    @property
    def total_operations(self) -> int:
        return len(self.resources) * len(self.assignments)


class RunOutcome(BaseModel):
    """Everything a run produced, for reporting."""

    plan: ReconciliationPlan | None = None
    batch_result: BatchResult | None = None
    coverage: CoverageReport | None = None
