"""Error taxonomy for exemption reconciliation.

Fatal errors (validation, not-found, quota) abort a run; provider and
creation errors are non-fatal and are aggregated into result records.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from exemption_manager.schemas.quota import QuotaState


class ExemptionManagerError(Exception):
    """Base exception for all exemption manager errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ExemptionManagerError):
    """Raised when scope selectors or options conflict or are missing."""

    pass


class NotFoundError(ExemptionManagerError):
    """Raised when no baseline assignments or tagged resources were found."""

    pass


class ProviderError(ExemptionManagerError):
    """Raised when a provider query fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        scope: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.scope = scope


class AccessError(ProviderError):
    """Raised when a query against a scope is denied."""

    pass


class QuotaExceededError(ExemptionManagerError):
    """Raised when the projected exemption count is unsafe."""

    def __init__(self, message: str, quota: "QuotaState"):
        super().__init__(message, {"quota": quota.model_dump(mode="json")})
        self.quota = quota


class CreationError(ExemptionManagerError):
    """Raised when a single exemption creation attempt fails."""

    pass


class ResolutionError(CreationError):
    """Raised when an assignment id can no longer be resolved."""

    pass
