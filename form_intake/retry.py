# ==============================================
# Retry Envelope
# ==============================================
#
# PURPOSE:
#   Run an operation up to `max_attempts` times with a fixed pause
#   between attempts. There is no backoff growth: worst-case blocking
#   is max_attempts × delay.
#
# SEMANTICS:
# ----------
#   - Success on any attempt returns that attempt's result.
#   - A failure with attempts left is logged, then we sleep and retry.
#   - The final failure is re-raised unchanged.
#   - Exceptions outside `retry_on` propagate on the first occurrence.
#
# ==============================================

import logging
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def with_retry(
    operation: Callable[[], T],
    max_attempts: int,
    delay_seconds: float,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Optional[Callable[[float], None]] = None
) -> T:
    """
    Execute `operation`, retrying on failure.

    Args:
        operation: Zero-argument callable
        max_attempts: Total number of tries (>= 1)
        delay_seconds: Fixed pause between tries (>= 0)
        retry_on: Exception types that are worth another attempt
        sleep: Pause function, defaults to time.sleep

    Returns:
        Whatever `operation` returned on its first successful attempt

    Raises:
        ValueError: If max_attempts < 1 or delay_seconds < 0
        Exception: The last attempt's error, unchanged
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
    if delay_seconds < 0:
        raise ValueError(f"delay_seconds must be >= 0, got {delay_seconds}")

    name = getattr(operation, "__name__", repr(operation))
    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except retry_on as e:
            if attempt == max_attempts:
                logger.error("%s failed after %d attempt(s): %s", name, max_attempts, e)
                raise
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying in %.2fs",
                name, attempt, max_attempts, e, delay_seconds
            )
            if delay_seconds:
                (sleep or time.sleep)(delay_seconds)

    # Unreachable: the loop either returns or raises.
    raise AssertionError("with_retry exited without a result")
