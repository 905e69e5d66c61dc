from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

import click

from composekit.config import Settings, load_settings
from composekit.lifecycle import default_runner, start_service, stop_service
from composekit.ops.docker import ComposeError, ComposeRunner, ComposeUpError, find_compose_file
from composekit.ops.health import HealthTimeoutError
from composekit.ops.ps import parse_ps_output
from composekit.ops.smoke import http_probe


def _write(stream: TextIO, payload: Dict[str, Any], pretty: bool = False) -> None:
    stream.write(json.dumps(payload, indent=2 if pretty else None, ensure_ascii=False, default=str))
    stream.write("\n")


def emit_ok(data: Any, pretty: bool = False) -> None:
    _write(sys.stdout, {"ok": True, "data": data}, pretty)


def emit_err(code: str, message: str, details: Dict[str, Any] | None = None) -> None:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    _write(sys.stderr, {"ok": False, "error": error})
    raise SystemExit(1)


def _settings() -> Settings:
    try:
        return load_settings()
    except ValueError as err:
        emit_err("invalid_config", str(err))
        raise


def _compose_file(explicit: Optional[str], settings: Settings) -> str:
    if explicit:
        return explicit
    if settings.compose_file:
        return settings.compose_file
    try:
        return str(find_compose_file())
    except FileNotFoundError as err:
        emit_err("compose_not_found", str(err), {"cwd": str(Path.cwd())})
        raise


def _runner(settings: Settings) -> ComposeRunner:
    try:
        return default_runner(settings)
    except ComposeError as err:
        emit_err("compose_unavailable", str(err))
        raise


compose_file_option = click.option(
    "--compose-file",
    "-f",
    "compose_file",
    help="Compose file (default: COMPOSE_FILE or the nearest docker-compose.yml/compose.yml)",
)


@click.group()
def cli() -> None:
    """Compose lifecycle helpers for integration tests."""


@cli.command("up")
@compose_file_option
@click.argument("services", nargs=-1)
def up_cmd(compose_file: str | None, services: tuple[str, ...]) -> None:
    settings = _settings()
    path = _compose_file(compose_file, settings)
    try:
        _runner(settings).up(path, services)
    except ComposeUpError as err:
        emit_err("compose_up_failed", str(err), {"stderr": err.stderr, "returncode": err.returncode})
    emit_ok({"compose_file": path, "services": list(services)})


@cli.command("down")
@compose_file_option
def down_cmd(compose_file: str | None) -> None:
    settings = _settings()
    path = _compose_file(compose_file, settings)
    if not _runner(settings).down(path):
        emit_err("compose_down_failed", "compose down failed", {"compose_file": path})
    emit_ok({"compose_file": path})


@cli.command("ps")
@compose_file_option
@click.argument("services", nargs=-1)
@click.option("--pretty", is_flag=True, default=False)
def ps_cmd(compose_file: str | None, services: tuple[str, ...], pretty: bool) -> None:
    settings = _settings()
    path = _compose_file(compose_file, settings)
    output = _runner(settings).status(path, services)
    if output is None:
        emit_err("compose_ps_failed", "compose ps failed", {"compose_file": path})
    emit_ok(parse_ps_output(output), pretty=pretty)


@cli.command("health")
@compose_file_option
@click.argument("services", nargs=-1)
def health_cmd(compose_file: str | None, services: tuple[str, ...]) -> None:
    settings = _settings()
    path = _compose_file(compose_file, settings)
    emit_ok({"compose_file": path, "healthy": _runner(settings).is_healthy(path, services)})


@cli.command("start")
@compose_file_option
@click.argument("services", nargs=-1)
@click.option("--attempts", "attempts", type=click.IntRange(min=1), help="Health checks before giving up")
@click.option("--timeout", "timeout_s", type=click.FloatRange(min=0, min_open=True), help="Seconds before giving up")
@click.option("--ready-url", "ready_url", help="URL that must answer below 400 once compose reports healthy")
def start_cmd(
    compose_file: str | None,
    services: tuple[str, ...],
    attempts: int | None,
    timeout_s: float | None,
    ready_url: str | None,
) -> None:
    settings = _settings()
    path = _compose_file(compose_file, settings)
    runner = _runner(settings)
    try:
        checks = start_service(
            path,
            attempts,
            timeout_s,
            services=services,
            ready_url=ready_url,
            runner=runner,
            settings=settings,
        )
    except ComposeUpError as err:
        emit_err("compose_up_failed", str(err), {"stderr": err.stderr, "returncode": err.returncode})
    except HealthTimeoutError as err:
        emit_err("health_timeout", str(err), {"attempts": err.attempts})
    emit_ok({"compose_file": path, "checks": checks})


@cli.command("stop")
@compose_file_option
def stop_cmd(compose_file: str | None) -> None:
    settings = _settings()
    path = _compose_file(compose_file, settings)
    emit_ok({"compose_file": path, "stopped": stop_service(path)})


@cli.command("probe")
@click.argument("url")
def probe_cmd(url: str) -> None:
    try:
        emit_ok(http_probe(url))
    except Exception as err:
        emit_err("probe_failed", str(err), {"url": url})


def main() -> None:
    try:
        cli()
    except SystemExit:
        raise
    except Exception as err:
        emit_err("unexpected_error", str(err))


if __name__ == "__main__":
    main()
