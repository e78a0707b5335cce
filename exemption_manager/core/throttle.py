"""Throttling primitives for rate-limited provider writes."""

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

# A wait function suspends the caller for the given number of seconds.
Waiter = Callable[[float], None]


def real_wait(seconds: float) -> None:
    """Suspend for ``seconds`` of wall-clock time."""
    if seconds <= 0:
        return
    logger.debug(f"Throttling for {seconds:.2f}s")
    time.sleep(seconds)
