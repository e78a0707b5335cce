"""Retry utilities for Azure API calls."""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import TypeVar

from azure.core.exceptions import ClientAuthenticationError, HttpResponseError

from exemption_manager.core.exceptions import AccessError, ProviderError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Retryable HTTP status codes
RETRYABLE_STATUS_CODES = {429, 502, 503, 504}

# Non-retryable exceptions
NON_RETRYABLE_EXCEPTIONS = (
    AccessError,
    ClientAuthenticationError,
    ValueError,
    TypeError,
    KeyError,
)


@dataclass
class RetryPolicy:
    """Configuration for retry behavior."""

    max_retries: int = 3
    backoff_factor: float = 1.0
    max_wait: float = 60.0
    sleep: Callable[[float], None] = time.sleep


def is_retryable_error(error: Exception) -> bool:
    """Determine if an error is retryable."""
    if isinstance(error, NON_RETRYABLE_EXCEPTIONS):
        return False

    # Translated provider errors keep the HTTP status code
    if isinstance(error, ProviderError):
        return error.status_code in RETRYABLE_STATUS_CODES

    if isinstance(error, HttpResponseError):
        return getattr(error, "status_code", None) in RETRYABLE_STATUS_CODES

    # Connection and timeout errors are retryable
    error_type = type(error).__name__
    if error_type in ['TimeoutError', 'ConnectionError', 'ConnectionResetError']:
        return True

    return False


def retry_with_backoff(policy: RetryPolicy | None = None):
    """Decorator that retries functions with exponential backoff."""
    if policy is None:
        policy = RetryPolicy()

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            for attempt in range(policy.max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not is_retryable_error(e):
                        raise

                    if attempt >= policy.max_retries:
                        logger.error(
                            f"{func.__name__} failed after {policy.max_retries + 1} attempts: {e}"
                        )
                        raise

                    # Calculate backoff with jitter
                    wait_time = min(
                        policy.backoff_factor * (2 ** attempt) + random.uniform(0, 1),
                        policy.max_wait,
                    )

                    logger.warning(
                        f"{func.__name__} attempt {attempt + 1}/{policy.max_retries + 1} "
                        f"failed: {e}. Retrying in {wait_time:.1f}s..."
                    )
                    policy.sleep(wait_time)

            raise RuntimeError("Unexpected retry failure")

        return wrapper

    return decorator


# Predefined policies for Azure Resource Manager operations
POLICY_READ_POLICY = RetryPolicy(max_retries=3, backoff_factor=1.0)
RESOURCE_READ_POLICY = RetryPolicy(max_retries=5, backoff_factor=1.5)
HIERARCHY_READ_POLICY = RetryPolicy(max_retries=3, backoff_factor=1.0, max_wait=30.0)
EXEMPTION_WRITE_POLICY = RetryPolicy(max_retries=2, backoff_factor=2.0)
