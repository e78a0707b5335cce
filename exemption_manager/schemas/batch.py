"""Batch exemption creation schemas."""

from enum import Enum

from pydantic import BaseModel, Field


class BatchConfig(BaseModel):
    """Rate-limiting parameters for bulk exemption creation."""

    batch_size: int = Field(5, ge=1, description="Resources per batch")
    batch_delay_seconds: float = Field(
        2.0, ge=0, description="Pause between consecutive batches"
    )
    call_delay_seconds: float = Field(
        0.5, ge=0, description="Pause after every creation attempt"
    )

    model_config = {"frozen": True}


class PairStatus(str, Enum):
    """Terminal state of a (resource, assignment) pair."""

    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


class PairOutcome(BaseModel):
    """Outcome of processing one (resource, assignment) pair."""

    resource_id: str
    resource_name: str
    assignment_id: str
    status: PairStatus
    exemption_name: str | None = None
    error: str | None = None

    model_config = {"frozen": True}


class BatchResult(BaseModel):
    """Aggregate result of a batch creation run."""

    total_operations: int = Field(..., ge=0)
    outcomes: tuple[PairOutcome, ...] = ()
    batch_sizes: tuple[int, ...] = ()

    model_config = {"frozen": True}

    def _count(self, status: PairStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def created_count(self) -> int:
        return self._count(PairStatus.CREATED)

    @property
    def skipped_count(self) -> int:
        return self._count(PairStatus.SKIPPED)

    @property
    def failed_count(self) -> int:
        return self._count(PairStatus.FAILED)

    @property
    def is_balanced(self) -> bool:
        """Every planned operation reached exactly one terminal state."""
        return (
            self.created_count + self.skipped_count + self.failed_count
            == self.total_operations
        )

    def get_failures(self) -> list[PairOutcome]:
        """Get all failed pairs."""
        return [o for o in self.outcomes if o.status == PairStatus.FAILED]

    def get_summary(self) -> dict[str, int]:
        """Get the counters of this run."""
        return {
            "created": self.created_count,
            "skipped": self.skipped_count,
            "failed": self.failed_count,
            "total": self.total_operations,
        }
