# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# Condition-based waiting for UI interactions.
#
# Key Features:
#   - Poll a predicate until it returns a truthy value or the timeout elapses
#   - Optional exponential backoff between polls
#   - Fixed settle pauses reserved for unobservable animations
#
# Usage:
#   wait_until(lambda: driver.is_list_open(control), timeout=1500,
#              description="dropdown to open")
#
# ================================================================================

import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from loguru import logger

from .exceptions import WaitTimeoutError


T = TypeVar('T')


@dataclass
class WaitConfig:
    """
    Configuration for wait operations. Durations are milliseconds.

    Attributes:
        timeout: Total time budget
        interval: Initial interval between polls
        multiplier: Backoff multiplier applied after every poll
        max_interval: Upper bound for the interval
    """
    timeout: int = 5000
    interval: int = 100
    multiplier: float = 1.0
    max_interval: int = 1000


def wait_until(
    condition: Callable[[], T],
    timeout: Optional[int] = None,
    interval: Optional[int] = None,
    description: str = "condition",
    config: Optional[WaitConfig] = None,
    raise_on_timeout: bool = True,
) -> Optional[T]:
    """
    Poll `condition` until it returns a truthy value.

    The condition is always evaluated at least once, even with a zero timeout.
    Exceptions raised by the condition propagate immediately.

    Args:
        condition: Zero-argument callable; its truthy return value is returned
        timeout: Time budget in milliseconds (overrides config.timeout)
        interval: Poll interval in milliseconds (overrides config.interval)
        description: Human-readable description for logging
        config: Optional WaitConfig with backoff settings
        raise_on_timeout: When False, return the last (falsy) result instead
            of raising

    Returns:
        The first truthy value returned by `condition`

    Raises:
        WaitTimeoutError: If the timeout elapses and raise_on_timeout is set
    """
    config = config or WaitConfig()
    timeout_ms = config.timeout if timeout is None else timeout
    current_interval = config.interval if interval is None else interval

    deadline = time.monotonic() + timeout_ms / 1000.0
    attempt = 0

    while True:
        attempt += 1
        result = condition()
        if result:
            if attempt > 1:
                logger.debug(f"Wait satisfied after {attempt} polls: {description}")
            return result

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break

        time.sleep(min(current_interval / 1000.0, remaining))
        current_interval = min(
            current_interval * config.multiplier,
            config.max_interval,
        )

    message = f"Timeout after {timeout_ms}ms ({attempt} polls) waiting for: {description}"
    if raise_on_timeout:
        logger.debug(message)
        raise WaitTimeoutError(message)
    return result


def settle(milliseconds: int, reason: str = "") -> None:
    """
    Fixed pause for changes that expose no observable condition
    (fade animations, highlight flashes).
    """
    if milliseconds <= 0:
        return
    if reason:
        logger.trace(f"Settling {milliseconds}ms: {reason}")
    time.sleep(milliseconds / 1000.0)


__all__ = [
    "WaitConfig",
    "WaitTimeoutError",
    "wait_until",
    "settle",
]
