"""Exemption quota schemas."""

from enum import Enum

from pydantic import BaseModel, Field

# Fraction of the safety threshold above which a run is flagged Medium
MEDIUM_WARNING_RATIO = 0.8


class WarningLevel(str, Enum):
    """Quota risk classification."""

    NONE = "None"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"
    UNKNOWN = "Unknown"


def classify_warning(projected_total: int, hard_limit: int, safety_threshold: int) -> WarningLevel:
    """Classify a projected exemption count against the configured limits."""
    if projected_total > hard_limit:
        return WarningLevel.CRITICAL
    if projected_total > safety_threshold:
        return WarningLevel.HIGH
    if projected_total > MEDIUM_WARNING_RATIO * safety_threshold:
        return WarningLevel.MEDIUM
    return WarningLevel.NONE


class QuotaState(BaseModel):
    """Current and planned exemption counts against provider limits."""

    current_count: int
    planned_count: int
    projected_total: int
    hard_limit: int = Field(..., ge=1)
    safety_threshold: int = Field(..., ge=1)
    within_limits: bool
    warning_level: WarningLevel
    error: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def evaluate(
        cls,
        current_count: int,
        planned_count: int,
        hard_limit: int,
        safety_threshold: int,
    ) -> "QuotaState":
        projected_total = current_count + planned_count
        return cls(
            current_count=current_count,
            planned_count=planned_count,
            projected_total=projected_total,
            hard_limit=hard_limit,
            safety_threshold=safety_threshold,
            within_limits=projected_total <= safety_threshold,
            warning_level=classify_warning(projected_total, hard_limit, safety_threshold),
        )

    @classmethod
    def degraded(
        cls,
        planned_count: int,
        hard_limit: int,
        safety_threshold: int,
        error: str,
    ) -> "QuotaState":
        """State reported when the current count could not be determined."""
        return cls(
            current_count=-1,
            planned_count=planned_count,
            projected_total=-1,
            hard_limit=hard_limit,
            safety_threshold=safety_threshold,
            within_limits=False,
            warning_level=WarningLevel.UNKNOWN,
            error=error,
        )

    @property
    def usage_percent(self) -> float:
        """Projected usage of the hard limit, 0 when unknown."""
        if self.projected_total < 0:
            return 0.0
        return round(self.projected_total / self.hard_limit * 100, 1)
