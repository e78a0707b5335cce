"""Pydantic schemas for exemption reconciliation."""

from exemption_manager.schemas.batch import BatchConfig, BatchResult, PairOutcome, PairStatus
from exemption_manager.schemas.coverage import CoverageReport, CoverageResult
from exemption_manager.schemas.plan import ReconciliationPlan, RunOutcome, RunRequest
from exemption_manager.schemas.policy import (
    Exemption,
    ExemptionCategory,
    PolicyAssignment,
    TaggedResource,
)
from exemption_manager.schemas.quota import QuotaState, WarningLevel, classify_warning
from exemption_manager.schemas.scope import (
    ManagementGroupNode,
    Scope,
    ScopeKind,
    ScopeNode,
    SubscriptionNode,
    is_management_group_scope,
    subscription_of,
)

__all__ = [
    # Scope
    "Scope",
    "ScopeKind",
    "ScopeNode",
    "ManagementGroupNode",
    "SubscriptionNode",
    "subscription_of",
    "is_management_group_scope",
    # Policy
    "PolicyAssignment",
    "TaggedResource",
    "Exemption",
    "ExemptionCategory",
    # Quota
    "QuotaState",
    "WarningLevel",
    "classify_warning",
    # Batch
    "BatchConfig",
    "BatchResult",
    "PairOutcome",
    "PairStatus",
    # Coverage
    "CoverageResult",
    "CoverageReport",
    # Runs
    "RunRequest",
    "ReconciliationPlan",
    "RunOutcome",
]
