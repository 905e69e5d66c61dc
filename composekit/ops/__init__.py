from __future__ import annotations

from composekit.ops.docker import (
    ComposeError,
    ComposeNotFoundError,
    ComposeRunner,
    ComposeUpError,
    detect_engine,
    find_compose_file,
)
from composekit.ops.health import HealthTimeoutError, async_wait_until_healthy, attempts_for, wait_until_healthy
from composekit.ops.ps import is_healthy_output, parse_ps_output

__all__ = [
    "ComposeError",
    "ComposeNotFoundError",
    "ComposeRunner",
    "ComposeUpError",
    "HealthTimeoutError",
    "async_wait_until_healthy",
    "attempts_for",
    "detect_engine",
    "find_compose_file",
    "is_healthy_output",
    "parse_ps_output",
    "wait_until_healthy",
]
