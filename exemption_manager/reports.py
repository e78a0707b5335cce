"""Report generation for reconciliation runs.

Provides plain-text and JSON renderings of run outcomes. The services
never format output themselves; everything user-facing is built here.
"""

import json
import logging
from typing import Any

from exemption_manager.schemas import (
    BatchResult,
    CoverageReport,
    QuotaState,
    ReconciliationPlan,
    RunOutcome,
    WarningLevel,
)

logger = logging.getLogger(__name__)

RULE = "=" * 60

WARNING_ICONS = {
    WarningLevel.NONE: "✅",
    WarningLevel.MEDIUM: "⚠️ ",
    WarningLevel.HIGH: "❌",
    WarningLevel.CRITICAL: "❌",
    WarningLevel.UNKNOWN: "❓",
}


class ReportGenerator:
    """Generate reports from a run outcome."""

    def __init__(self, outcome: RunOutcome):
        self.outcome = outcome

    def to_dict(self) -> dict[str, Any]:
        """Get the outcome as JSON-compatible data, with derived counters."""
        data = self.outcome.model_dump(mode="json")
        if self.outcome.plan is not None:
            data["plan"]["total_operations"] = self.outcome.plan.total_operations
        if self.outcome.batch_result is not None:
            data["batch_result"]["summary"] = self.outcome.batch_result.get_summary()
        if self.outcome.coverage is not None:
            data["coverage"]["without_baseline"] = sorted(self.outcome.coverage.without_baseline)
        return data

    def to_json(self, pretty: bool = True) -> str:
        """Generate JSON report."""
        return json.dumps(self.to_dict(), indent=2 if pretty else None)

    def to_text(self) -> str:
        """Generate human-readable report."""
        sections: list[str] = []
        if self.outcome.coverage is not None:
            sections.append(self._coverage_section(self.outcome.coverage))
        if self.outcome.plan is not None:
            sections.append(self._plan_section(self.outcome.plan))
        if self.outcome.batch_result is not None:
            sections.append(self._batch_section(self.outcome.batch_result))
        return "\n\n".join(sections)

    @staticmethod
    def _quota_lines(quota: QuotaState) -> list[str]:
        icon = WARNING_ICONS[quota.warning_level]
        if quota.warning_level == WarningLevel.UNKNOWN:
            return [f"{icon} Exemption quota: unknown ({quota.error})"]
        return [
            f"{icon} Exemption quota: {quota.current_count} existing + "
            f"{quota.planned_count} planned = {quota.projected_total}",
            f"   Safety threshold: {quota.safety_threshold}, hard limit: {quota.hard_limit} "
            f"({quota.usage_percent}% of limit, risk: {quota.warning_level.value})",
        ]

    def _plan_section(self, plan: ReconciliationPlan) -> str:
        lines = [
            RULE,
            "EXEMPTION RECONCILIATION",
            RULE,
            f"Scope: {plan.scope}",
            f"Subscriptions: {len(plan.subscriptions)}",
            f"Category: {plan.category.value}",
        ]
        if plan.expires_on:
            lines.append(f"Expires on: {plan.expires_on:%Y-%m-%d}")

        lines.append(f"\n📋 Baseline assignments: {len(plan.assignments)}")
        for assignment in plan.assignments:
            lines.append(f"  - {assignment.display_name or assignment.name} ({assignment.name})")

        lines.append(f"\n🏷️  Tagged resources: {len(plan.resources)}")
        for resource in plan.resources:
            lines.append(f"  - {resource.name} [{resource.resource_type}]")

        if not plan.resources:
            lines.append("Nothing to do: no tagged resources found.")

        lines.append(f"\n📊 Planned operations: {plan.total_operations}")
        if plan.quota is not None:
            lines.extend(self._quota_lines(plan.quota))
        return "\n".join(lines)

    @staticmethod
    def _batch_section(result: BatchResult) -> str:
        lines = [
            RULE,
            "EXEMPTION CREATION RESULTS",
            RULE,
            f"✅ Created: {result.created_count}",
            f"⏭️  Skipped: {result.skipped_count}",
            f"❌ Failed: {result.failed_count}",
            f"📊 Total: {result.total_operations}",
        ]
        failures = result.get_failures()
        if failures:
            lines.append("\nFailed operations:")
            for failure in failures:
                lines.append(f"  - {failure.resource_name}: {failure.error}")
        return "\n".join(lines)

    @staticmethod
    def _coverage_section(report: CoverageReport) -> str:
        lines = [
            RULE,
            "BASELINE COVERAGE",
            RULE,
            f"Subscriptions: {report.total}",
            f"✅ With baseline: {report.with_baseline}",
            f"❌ Without baseline: {len(report.without_baseline)}",
            f"📊 Coverage: {report.coverage_percentage}%",
        ]
        missing = [r for r in report.results if not r.has_baseline]
        if missing:
            lines.append("\nSubscriptions without baseline:")
            for result in missing:
                label = result.subscription_name or result.subscription_id
                suffix = f" (error: {result.error})" if result.error else ""
                lines.append(f"  - {label}{suffix}")
        return "\n".join(lines)
