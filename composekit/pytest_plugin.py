from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator

from composekit.lifecycle import compose_service
from composekit.ops.docker import ComposeRunner


def running_stack(compose_file: str | Path, start_kwargs: Dict[str, Any]) -> Iterator[ComposeRunner]:
    with compose_service(compose_file, **start_kwargs) as runner:
        yield runner


def compose_fixture(
    compose_file: str | Path,
    scope: str = "session",
    name: str | None = None,
    **start_kwargs: Any,
):
    """Build a pytest fixture that keeps ``compose_file`` up for its scope.

    Usage in a conftest::

        postgres = compose_fixture("docker-compose.test.yml", attempts=30)
    """
    try:
        import pytest
    except Exception as err:
        raise RuntimeError(f"pytest not available: {err}") from err

    @pytest.fixture(scope=scope, name=name)
    def _compose_service():
        yield from running_stack(compose_file, start_kwargs)

    return _compose_service
