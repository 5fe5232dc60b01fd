"""Retry whole lending operations that lost a storage-level conflict."""

import time
from typing import Callable, Optional, TypeVar

import structlog

from ..config import get_config
from ..errors import TransactionConflictError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def retry_on_conflict(
    operation: Callable[[], T],
    retries: Optional[int] = None,
    base_delay: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Execute operation, re-running it from the start after a conflict.

    Each attempt is a complete borrow or return; nothing is resumed partway.
    The delay doubles after every failed attempt.

    Args:
        operation: Callable running one full transaction
        retries: Max attempts (uses config retry_max if not provided); at
            least one attempt is always made
        base_delay: First backoff delay in seconds (uses config if not provided)
        sleep: Sleep function, replaceable in tests

    Returns:
        Result of operation

    Raises:
        TransactionConflictError: If every attempt conflicted
    """
    config = get_config()
    max_attempts = max(1, config.retry_max if retries is None else retries)
    backoff = config.retry_base_delay if base_delay is None else base_delay

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except TransactionConflictError:
            if attempt == max_attempts:
                logger.warning("transaction.retries_exhausted", attempts=attempt)
                raise
            logger.info("transaction.retrying", attempt=attempt, delay=backoff)
            sleep(backoff)
            backoff *= 2
