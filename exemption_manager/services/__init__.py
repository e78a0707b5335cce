"""Reconciliation services and their Azure collaborators."""

from exemption_manager.services.assignment_locator import (
    PolicyAssignmentLocator,
    is_baseline_assignment,
)
from exemption_manager.services.batch_creator import BatchExemptionCreator, build_exemption
from exemption_manager.services.coverage_auditor import CoverageAuditor
from exemption_manager.services.exemption_repository import ExemptionRepository
from exemption_manager.services.interfaces import (
    AzureContext,
    HierarchyService,
    PolicyStore,
    ResourceInventory,
    SessionProvider,
)
from exemption_manager.services.quota_guard import QuotaGuard
from exemption_manager.services.resource_locator import ResourceLocator
from exemption_manager.services.scope_resolver import ScopeResolver

__all__ = [
    # Interfaces
    "AzureContext",
    "SessionProvider",
    "PolicyStore",
    "ResourceInventory",
    "HierarchyService",
    # Services
    "ScopeResolver",
    "PolicyAssignmentLocator",
    "is_baseline_assignment",
    "ResourceLocator",
    "ExemptionRepository",
    "QuotaGuard",
    "BatchExemptionCreator",
    "build_exemption",
    "CoverageAuditor",
]
