from __future__ import annotations

import asyncio
import math
import time
from typing import Awaitable, Callable

from composekit.config import DEFAULT_POLL_INTERVAL_S
from composekit.events import emit_event

Check = Callable[[], bool]


class HealthTimeoutError(RuntimeError):
    def __init__(self, attempts: int, interval_s: float) -> None:
        super().__init__(f"service did not become healthy after {attempts} checks ({interval_s}s interval)")
        self.attempts = attempts
        self.interval_s = interval_s


def attempts_for(timeout_s: float, interval_s: float = DEFAULT_POLL_INTERVAL_S) -> int:
    if interval_s <= 0:
        raise ValueError("interval_s must be positive")
    return max(1, math.ceil(timeout_s / interval_s))


def _check_once(check: Check) -> bool:
    try:
        return bool(check())
    except Exception as err:  # noqa: BLE001
        emit_event("poll_check_failed", {"error": str(err)})
        return False


def _validate_budget(attempts: int) -> None:
    if attempts < 1:
        raise ValueError("attempts must be at least 1")


def wait_until_healthy(
    check: Check,
    attempts: int,
    interval_s: float = DEFAULT_POLL_INTERVAL_S,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Poll ``check`` until it reports healthy.

    Returns the number of checks issued. There is no sleep after the final
    check, so ``attempts`` checks span ``attempts - 1`` intervals.
    """
    _validate_budget(attempts)
    for attempt in range(1, attempts + 1):
        healthy = _check_once(check)
        emit_event("poll_attempt", {"attempt": attempt, "attempts": attempts, "healthy": healthy})
        if healthy:
            emit_event("healthy", {"attempt": attempt})
            return attempt
        if attempt < attempts:
            sleep(interval_s)
    emit_event("health_timeout", {"attempts": attempts, "interval_s": interval_s})
    raise HealthTimeoutError(attempts, interval_s)


async def async_wait_until_healthy(
    check: Check,
    attempts: int,
    interval_s: float = DEFAULT_POLL_INTERVAL_S,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> int:
    _validate_budget(attempts)
    for attempt in range(1, attempts + 1):
        healthy = await asyncio.to_thread(_check_once, check)
        emit_event("poll_attempt", {"attempt": attempt, "attempts": attempts, "healthy": healthy})
        if healthy:
            emit_event("healthy", {"attempt": attempt})
            return attempt
        if attempt < attempts:
            await sleep(interval_s)
    emit_event("health_timeout", {"attempts": attempts, "interval_s": interval_s})
    raise HealthTimeoutError(attempts, interval_s)
