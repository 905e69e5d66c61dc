from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

DEFAULT_POLL_INTERVAL_S = 1.0
DEFAULT_HEALTH_ATTEMPTS = 60
DEFAULT_CMD_TIMEOUT_S = 120
ENGINES = ("docker", "podman")
QUOTES = ("'", '"')


def normalize_env(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) > 1 and value[0] in QUOTES and value[-1] == value[0]:
        value = value[1:-1].strip()
    return value


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return normalize_env(os.environ.get(key)) or default


def load_env_file(path: Path) -> List[str]:
    """Export ``KEY=value`` lines from ``path``; variables already set win."""
    loaded: List[str] = []
    if not path.is_file():
        return loaded
    for line in path.read_text().splitlines():
        line = line.strip()
        if line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if not key or key in os.environ:
            continue
        os.environ[key] = normalize_env(value) or ""
        loaded.append(key)
    return loaded


@dataclass(frozen=True)
class Settings:
    engine: Optional[str]
    compose_file: Optional[str]
    poll_interval_s: float
    health_attempts: int
    cmd_timeout_s: int
    ready_url: Optional[str]


def _engine() -> Optional[str]:
    value = (get_env("COMPOSE_ENGINE") or "").lower()
    if not value or value == "auto":
        return None
    if value not in ENGINES:
        raise ValueError(f"unsupported COMPOSE_ENGINE {value}")
    return value


def _positive(key: str, default: float, cast=float):
    raw = get_env(key, str(default)) or str(default)
    try:
        value = cast(raw)
    except ValueError as err:
        raise ValueError(f"invalid {key} {raw!r}") from err
    if not value > 0:
        raise ValueError(f"{key} must be positive, got {raw}")
    return value


def load_settings() -> Settings:
    load_env_file(Path.cwd() / ".env")
    return Settings(
        engine=_engine(),
        compose_file=get_env("COMPOSE_FILE"),
        poll_interval_s=_positive("COMPOSE_POLL_INTERVAL_S", DEFAULT_POLL_INTERVAL_S),
        health_attempts=_positive("COMPOSE_HEALTH_ATTEMPTS", DEFAULT_HEALTH_ATTEMPTS, int),
        cmd_timeout_s=_positive("COMPOSE_CMD_TIMEOUT_S", DEFAULT_CMD_TIMEOUT_S, int),
        ready_url=get_env("COMPOSE_READY_URL"),
    )
