"""
Reliability utilities.

Includes the Circuit Breaker pattern, call timeouts and bounded retry for
idempotent store reads.
"""

import time
import asyncio
import logging
from typing import Awaitable, Callable, Any, Tuple, Type, TypeVar

from sqlalchemy.exc import OperationalError

from parcel_backend.app.core.config import settings
from parcel_backend.app.core.exceptions import OperationTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitOpenError(Exception):
    pass


class CircuitBreaker:
    """
    Simple Circuit Breaker implementation.
    If 'failure_threshold' consecutive failures occur, the circuit opens
    and rejects calls until 'reset_timeout' seconds have passed.
    """
    def __init__(self, failure_threshold: int = 5, reset_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.failures = 0
        self.last_failure_time = 0
        self.state = "CLOSED" # CLOSED, OPEN, HALF_OPEN

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        if self.state == "OPEN":
            if time.time() - self.last_failure_time > self.reset_timeout:
                self.state = "HALF_OPEN"
            else:
                raise CircuitOpenError("Circuit is OPEN")

        try:
            result = await func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise
        self.reset_state()
        return result

    def record_failure(self):
        self.failures += 1
        self.last_failure_time = time.time()
        if self.state == "HALF_OPEN" or self.failures >= self.failure_threshold:
            self.state = "OPEN"

    def reset_state(self):
        self.failures = 0
        self.state = "CLOSED"


async def with_timeout(awaitable: Awaitable[T], timeout_seconds: float, operation: str) -> T:
    """
    Await `awaitable`, raising OperationTimeoutError once `timeout_seconds` elapse.

    The pending operation is cancelled on expiry.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning("%s timed out after %ss", operation, timeout_seconds)
        raise OperationTimeoutError(operation, timeout_seconds)


TRANSIENT_READ_ERRORS: Tuple[Type[BaseException], ...] = (OperationalError, OperationTimeoutError)


async def retry_read(
    func: Callable[[], Awaitable[T]],
    operation: str,
    attempts: int = None,
    base_delay: float = None,
    timeout_seconds: float = None,
    on_retry: Callable[[], Awaitable[None]] = None,
) -> T:
    """
    Run an idempotent store read with a per-attempt timeout and exponential backoff.

    Only for reads: writes (settlement, lifecycle) must never go through here,
    a replayed write could append a second ledger row.

    Args:
        func: zero-argument coroutine function performing the read
        operation: name used in logs and timeout errors
        attempts: total attempts (defaults to settings.store_read_retry_attempts)
        base_delay: first backoff delay in seconds, doubled after each failure
        timeout_seconds: per-attempt budget (defaults to settings.store_read_timeout_seconds)
        on_retry: awaited before each new attempt, e.g. `session.rollback` to
            clear a failed transaction
    """
    attempts = attempts or settings.store_read_retry_attempts
    delay = settings.store_read_retry_base_delay if base_delay is None else base_delay
    timeout_seconds = timeout_seconds or settings.store_read_timeout_seconds

    for attempt in range(1, attempts + 1):
        try:
            return await with_timeout(func(), timeout_seconds, operation)
        except TRANSIENT_READ_ERRORS as exc:
            if attempt == attempts:
                logger.error("%s failed after %d attempts: %s", operation, attempts, exc)
                raise
            logger.warning("%s attempt %d/%d failed (%s); retrying in %.2fs", operation, attempt, attempts, type(exc).__name__, delay)
            await asyncio.sleep(delay)
            delay *= 2
            if on_retry is not None:
                await on_retry()
