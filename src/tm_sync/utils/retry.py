"""Retry with exponential backoff for operations that may fail transiently.

The loop is blocking: one attempt at a time, each attempt raced against a
timeout on a worker thread, with a cancellable wait between attempts.

    delay(n) = min(initial_delay * multiplier ** (n - 1), max_delay)
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Generic, Optional, Sequence, TypeVar

from tm_sync.utils.errors import OperationTimeoutError, is_retryable_error

if TYPE_CHECKING:
    from tm_sync.models.configuration import TmsConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class RetryOptions:
    """Retry policy. Delays and timeout are in seconds."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    timeout: float = 30.0
    is_retryable: Optional[Callable[[BaseException], bool]] = is_retryable_error
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1; got {self.max_attempts}")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive; got {self.timeout}")

    @classmethod
    def from_tms_config(cls, tms: "TmsConfig", **overrides: Any) -> "RetryOptions":
        """Build options from the ``tms`` configuration section."""
        values: dict[str, Any] = {
            "max_attempts": tms.retry_attempts,
            "initial_delay": tms.retry_delay,
            "timeout": tms.timeout,
        }
        values.update(overrides)
        return cls(**values)


@dataclass
class RetryResult(Generic[T]):
    value: T
    attempts: int
    duration: float
    errors: list[BaseException] = field(default_factory=list)


def with_timeout(operation: Callable[[], T], timeout: float) -> T:
    """Run ``operation`` and return its value, or raise OperationTimeoutError.

    The operation runs on a worker thread; whichever finishes first, the
    operation or the timer, decides the attempt. A timed-out operation is
    abandoned, not interrupted.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tm-sync-attempt")
    future = executor.submit(operation)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError as exc:
        future.cancel()
        raise OperationTimeoutError(timeout) from exc
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def retry(
    operation: Callable[[], T],
    options: Optional[RetryOptions] = None,
    cancel_event: Optional[threading.Event] = None,
) -> RetryResult[T]:
    """Execute ``operation`` with retry and exponential backoff.

    Args:
        operation: Zero-argument callable to attempt
        options: Retry policy (defaults to ``RetryOptions()``)
        cancel_event: When set during a backoff wait, retrying stops and the
            last error is re-raised

    Returns:
        RetryResult with the value, attempts made, elapsed seconds and the
        errors of failed attempts

    Raises:
        The last error, once it is not retryable, attempts are exhausted,
        or the wait was cancelled.
    """
    opts = options or RetryOptions()
    errors: list[BaseException] = []
    start = time.monotonic()
    delay = opts.initial_delay
    attempt = 0

    while True:
        attempt += 1
        try:
            value = with_timeout(operation, opts.timeout)
        except Exception as exc:
            errors.append(exc)
            should_retry = opts.is_retryable(exc) if opts.is_retryable else True
            if attempt >= opts.max_attempts or not should_retry:
                raise

            if opts.on_retry is not None:
                opts.on_retry(attempt, exc, delay)
            logger.debug(
                "Attempt %d/%d failed, retrying in %.2fs: %s",
                attempt,
                opts.max_attempts,
                delay,
                exc,
            )

            if cancel_event is not None:
                if cancel_event.wait(delay):
                    logger.debug("Retry cancelled after attempt %d", attempt)
                    raise
            else:
                time.sleep(delay)

            delay = min(delay * opts.backoff_multiplier, opts.max_delay)
            continue

        return RetryResult(
            value=value,
            attempts=attempt,
            duration=time.monotonic() - start,
            errors=errors,
        )


def retry_operation(operation: Callable[[], T], options: Optional[RetryOptions] = None) -> T:
    """Like ``retry`` but returns the value directly."""
    return retry(operation, options).value


def retry_with_backoff(
    operation: Callable[[], T],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
) -> T:
    return retry_operation(
        operation,
        RetryOptions(
            max_attempts=max_attempts,
            initial_delay=initial_delay,
            backoff_multiplier=2.0,
            max_delay=10.0,
        ),
    )


@dataclass
class BatchItemResult(Generic[T, R]):
    item: T
    result: Optional[R]
    error: Optional[BaseException]


def retry_batch(
    items: Sequence[T],
    operation: Callable[[T], R],
    options: Optional[RetryOptions] = None,
) -> list[BatchItemResult[T, R]]:
    """Retry ``operation`` for each item in turn; failures never stop the batch."""
    results: list[BatchItemResult[T, R]] = []
    for item in items:
        try:
            value = retry_operation(lambda item=item: operation(item), options)
        except Exception as exc:
            logger.warning("Batch item failed after retries: %s", exc)
            results.append(BatchItemResult(item=item, result=None, error=exc))
        else:
            results.append(BatchItemResult(item=item, result=value, error=None))
    return results
