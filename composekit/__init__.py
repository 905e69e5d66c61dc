from __future__ import annotations

from composekit.lifecycle import (
    async_compose_service,
    async_start_service,
    compose_service,
    down,
    is_healthy,
    start_service,
    stop_service,
    up,
)
from composekit.ops.docker import ComposeError, ComposeNotFoundError, ComposeRunner, ComposeUpError
from composekit.ops.health import HealthTimeoutError

__all__ = [
    "ComposeError",
    "ComposeNotFoundError",
    "ComposeRunner",
    "ComposeUpError",
    "HealthTimeoutError",
    "async_compose_service",
    "async_start_service",
    "compose_service",
    "down",
    "is_healthy",
    "start_service",
    "stop_service",
    "up",
]
