"""Core module initialization."""

from exemption_manager.core.config import Settings, get_settings
from exemption_manager.core.exceptions import (
    AccessError,
    CreationError,
    ExemptionManagerError,
    NotFoundError,
    ProviderError,
    QuotaExceededError,
    ResolutionError,
    ValidationError,
)
from exemption_manager.core.retry import RetryPolicy, is_retryable_error, retry_with_backoff
from exemption_manager.core.throttle import Waiter, real_wait

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "ExemptionManagerError",
    "ValidationError",
    "NotFoundError",
    "ProviderError",
    "AccessError",
    "QuotaExceededError",
    "CreationError",
    "ResolutionError",
    # Retry
    "RetryPolicy",
    "is_retryable_error",
    "retry_with_backoff",
    # Throttling
    "Waiter",
    "real_wait",
]
