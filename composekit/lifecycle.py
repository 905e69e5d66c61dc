"""Start/stop helpers for test harnesses.

``start_service`` and ``stop_service`` are meant to bracket a test run:

    with compose_service("docker-compose.test.yml", attempts=30):
        run_tests()

Teardown runs regardless of the outcome and never raises, so a flaky
``down`` cannot hide the result of the tests it wraps.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Iterator, Optional, Sequence

from composekit.config import Settings, load_settings
from composekit.events import emit_event
from composekit.ops.docker import ComposeRunner
from composekit.ops.health import async_wait_until_healthy, attempts_for, wait_until_healthy
from composekit.ops.smoke import http_ready


def default_runner(settings: Optional[Settings] = None) -> ComposeRunner:
    settings = settings or load_settings()
    return ComposeRunner.detect(preferred=settings.engine, timeout_s=settings.cmd_timeout_s)


def _budget(settings: Settings, attempts: Optional[int], timeout_s: Optional[float]) -> int:
    if not settings.poll_interval_s > 0:
        raise ValueError(f"poll interval must be positive, got {settings.poll_interval_s}")
    if attempts is not None:
        budget = attempts
    elif timeout_s is not None:
        budget = attempts_for(timeout_s, settings.poll_interval_s)
    else:
        budget = settings.health_attempts
    if isinstance(budget, bool) or not isinstance(budget, int):
        raise ValueError(f"attempts must be an int, got {budget!r}")
    if budget < 1:
        raise ValueError(f"attempts must be at least 1, got {budget}")
    return budget


def _health_check(
    runner: ComposeRunner,
    compose_file: str | Path,
    services: Sequence[str],
    ready_url: Optional[str],
) -> Callable[[], bool]:
    def check() -> bool:
        if not runner.is_healthy(compose_file, services):
            return False
        return http_ready(ready_url) if ready_url else True

    return check


def up(compose_file: str | Path, runner: Optional[ComposeRunner] = None) -> None:
    (runner or default_runner()).up(compose_file)


def down(compose_file: str | Path, runner: Optional[ComposeRunner] = None) -> bool:
    return (runner or default_runner()).down(compose_file)


def is_healthy(compose_file: str | Path, runner: Optional[ComposeRunner] = None) -> bool:
    return (runner or default_runner()).is_healthy(compose_file)


def start_service(
    compose_file: str | Path,
    attempts: Optional[int] = None,
    timeout_s: Optional[float] = None,
    *,
    services: Sequence[str] = (),
    ready_url: Optional[str] = None,
    runner: Optional[ComposeRunner] = None,
    settings: Optional[Settings] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Bring the compose file up and block until it reports healthy.

    The budget is ``attempts`` checks, or ``timeout_s`` converted to checks
    at the configured poll interval, or ``COMPOSE_HEALTH_ATTEMPTS``. Raises
    ``ComposeUpError`` or ``HealthTimeoutError``; returns the number of
    health checks issued.
    """
    settings = settings or load_settings()
    runner = runner or default_runner(settings)
    budget = _budget(settings, attempts, timeout_s)
    runner.up(compose_file, services)
    check = _health_check(runner, compose_file, services, ready_url or settings.ready_url)
    return wait_until_healthy(check, budget, settings.poll_interval_s, sleep=sleep)


async def async_start_service(
    compose_file: str | Path,
    attempts: Optional[int] = None,
    timeout_s: Optional[float] = None,
    *,
    services: Sequence[str] = (),
    ready_url: Optional[str] = None,
    runner: Optional[ComposeRunner] = None,
    settings: Optional[Settings] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> int:
    settings = settings or load_settings()
    runner = runner or default_runner(settings)
    budget = _budget(settings, attempts, timeout_s)
    await asyncio.to_thread(runner.up, compose_file, services)
    check = _health_check(runner, compose_file, services, ready_url or settings.ready_url)
    return await async_wait_until_healthy(check, budget, settings.poll_interval_s, sleep=sleep)


def stop_service(compose_file: str | Path, runner: Optional[ComposeRunner] = None) -> bool:
    try:
        runner = runner or default_runner()
        return runner.down(compose_file)
    except Exception as err:  # noqa: BLE001
        emit_event("stop_failed", {"compose_file": str(compose_file), "error": str(err)})
        return False


@contextmanager
def compose_service(
    compose_file: str | Path,
    attempts: Optional[int] = None,
    timeout_s: Optional[float] = None,
    *,
    services: Sequence[str] = (),
    ready_url: Optional[str] = None,
    runner: Optional[ComposeRunner] = None,
    settings: Optional[Settings] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[ComposeRunner]:
    settings = settings or load_settings()
    runner = runner or default_runner(settings)
    try:
        start_service(
            compose_file,
            attempts,
            timeout_s,
            services=services,
            ready_url=ready_url,
            runner=runner,
            settings=settings,
            sleep=sleep,
        )
        yield runner
    finally:
        stop_service(compose_file, runner=runner)


@asynccontextmanager
async def async_compose_service(
    compose_file: str | Path,
    attempts: Optional[int] = None,
    timeout_s: Optional[float] = None,
    *,
    services: Sequence[str] = (),
    ready_url: Optional[str] = None,
    runner: Optional[ComposeRunner] = None,
    settings: Optional[Settings] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> AsyncIterator[ComposeRunner]:
    settings = settings or load_settings()
    runner = runner or default_runner(settings)
    try:
        await async_start_service(
            compose_file,
            attempts,
            timeout_s,
            services=services,
            ready_url=ready_url,
            runner=runner,
            settings=settings,
            sleep=sleep,
        )
        yield runner
    finally:
        await asyncio.to_thread(stop_service, compose_file, runner)
