"""Baseline coverage audit schemas."""

from pydantic import BaseModel, Field


class CoverageResult(BaseModel):
    """Baseline coverage of a single subscription."""

    subscription_id: str
    subscription_name: str | None = None
    has_baseline: bool
    matching_assignment_count: int = Field(0, ge=0)
    error: str | None = None

    model_config = {"frozen": True}

    @property
    def is_error(self) -> bool:
        return self.error is not None


class CoverageReport(BaseModel):
    """Baseline coverage across a set of subscriptions."""

    total: int
    with_baseline: int
    without_baseline: set[str] = Field(default_factory=set)
    coverage_percentage: float
    results: list[CoverageResult] = Field(default_factory=list)

    @classmethod
    def from_results(cls, results: list[CoverageResult]) -> "CoverageReport":
        total = len(results)
        with_baseline = sum(1 for r in results if r.has_baseline)
        percentage = round(with_baseline / total * 100, 1) if total else 0.0
        return cls(
            total=total,
            with_baseline=with_baseline,
            without_baseline={r.subscription_id for r in results if not r.has_baseline},
            coverage_percentage=percentage,
            results=results,
        )

    @property
    def errored(self) -> list[CoverageResult]:
        """Subscriptions whose audit failed."""
        return [r for r in self.results if r.is_error]
