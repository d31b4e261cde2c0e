"""Utility functions and helpers for the installctl application."""
import logging
import time
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

T = TypeVar('T')

REDACT_KEYS: tuple = ("password", "secret", "token")

logger = logging.getLogger(__name__)


def redact_sensitive_data(data: Any) -> Any:
    """Recursively redact sensitive data from dictionaries and lists.

    Args:
        data: Input data that might contain sensitive information

    Returns:
        Data with sensitive values redacted
    """
    if isinstance(data, dict):
        return {
            k: "[REDACTED]" if any(
                redact_key.lower() in k.lower()
                for redact_key in REDACT_KEYS
            ) else redact_sensitive_data(v)
            for k, v in data.items()
        }
    elif isinstance(data, (list, tuple)):
        return [redact_sensitive_data(item) for item in data]
    return data


class PollTimeoutError(Exception):
    """Raised when a bounded wait runs out of time."""
    pass


def poll_until(
    condition: Callable[[], T],
    interval: float,
    timeout: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    description: str = "condition",
    log: Optional[logging.Logger] = None,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
) -> T:
    """Call ``condition`` until it returns a truthy value.

    Exceptions listed in ``exceptions`` count as a falsy result and are
    logged. With ``timeout=None`` the wait is unbounded.

    Args:
        condition: Callable evaluated once per attempt
        interval: Seconds to sleep between attempts
        timeout: Give up after this many seconds (None waits forever)
        sleep: Sleep function, injectable for tests
        clock: Monotonic clock, injectable for tests
        description: Human readable name used in log and error messages
        log: Logger to use instead of the module logger
        exceptions: Exceptions that are retried instead of propagated

    Returns:
        The first truthy value returned by ``condition``

    Raises:
        PollTimeoutError: If ``timeout`` elapsed before the condition held
    """
    log = log or logger
    start = clock()
    while True:
        try:
            result = condition()
        except exceptions as e:
            log.warning(f"Checking {description} failed: {e}")
            result = None
        if result:
            return result
        if timeout is not None and clock() - start >= timeout:
            raise PollTimeoutError(f"Timed out after {timeout:g}s waiting for {description}")
        sleep(interval)


def retry_forever(
    action: Callable[[], T],
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
    description: str = "action",
    log: Optional[logging.Logger] = None,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
) -> T:
    """Run ``action`` until it stops raising, sleeping ``interval`` between attempts."""
    log = log or logger
    attempt = 0
    while True:
        attempt += 1
        try:
            return action()
        except exceptions as e:
            log.error(f"Attempt {attempt} to {description} failed: {e}. Retrying in {interval:g}s")
        sleep(interval)
