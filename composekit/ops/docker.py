from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from composekit.config import DEFAULT_CMD_TIMEOUT_S, ENGINES
from composekit.events import emit_event
from composekit.ops.ps import is_healthy_output

COMPOSE_FILE_NAMES = ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml")
DETECT_TIMEOUT_S = 15

Run = Callable[..., subprocess.CompletedProcess]


class ComposeError(RuntimeError):
    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class ComposeNotFoundError(ComposeError):
    pass


class ComposeUpError(ComposeError):
    pass


def find_compose_file(start: Optional[Path] = None) -> Path:
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        for name in COMPOSE_FILE_NAMES:
            candidate = parent / name
            if candidate.exists():
                return candidate
    raise FileNotFoundError("compose file not found")


def detect_engine(
    preferred: Optional[str] = None,
    which: Callable[[str], Optional[str]] = shutil.which,
    run: Run = subprocess.run,
) -> List[str]:
    candidates = [preferred] if preferred else list(ENGINES)
    tried = []
    for binary in candidates:
        tried.append(f"{binary} compose")
        if not which(binary):
            continue
        try:
            proc = run([binary, "compose", "version"], capture_output=True, text=True, timeout=DETECT_TIMEOUT_S, check=False)
        except (OSError, subprocess.SubprocessError):
            continue
        if proc.returncode == 0:
            return [binary, "compose"]
    raise ComposeNotFoundError(f"no compose tool available (tried: {', '.join(tried)})")


class ComposeRunner:
    """Runs compose subcommands for one engine.

    ``run`` is the process capability (``subprocess.run`` signature). Every
    invocation happens in ``cwd``, or the process working directory when
    ``cwd`` is None, so relative compose file paths resolve against it.
    """

    def __init__(
        self,
        command: Sequence[str],
        cwd: Optional[Path] = None,
        timeout_s: int = DEFAULT_CMD_TIMEOUT_S,
        run: Run = subprocess.run,
    ) -> None:
        self.command = list(command)
        self.cwd = cwd
        self.timeout_s = timeout_s
        self._run = run

    @classmethod
    def detect(
        cls,
        preferred: Optional[str] = None,
        cwd: Optional[Path] = None,
        timeout_s: int = DEFAULT_CMD_TIMEOUT_S,
        which: Callable[[str], Optional[str]] = shutil.which,
        run: Run = subprocess.run,
    ) -> "ComposeRunner":
        return cls(detect_engine(preferred, which=which, run=run), cwd=cwd, timeout_s=timeout_s, run=run)

    def _cmd(self, compose_file: str | Path, args: Sequence[str]) -> List[str]:
        return self.command + ["-f", str(compose_file)] + list(args)

    def run_compose(self, compose_file: str | Path, args: Sequence[str]) -> subprocess.CompletedProcess:
        cmd = self._cmd(compose_file, args)
        return self._run(
            cmd,
            cwd=str(self.cwd) if self.cwd else None,
            capture_output=True,
            text=True,
            timeout=self.timeout_s,
            check=False,
        )

    def up(self, compose_file: str | Path, services: Sequence[str] = ()) -> None:
        args = ["up", "-d", *services]
        cmd = self._cmd(compose_file, args)
        emit_event("compose_up", {"compose_file": str(compose_file), "command": cmd})
        try:
            proc = self.run_compose(compose_file, args)
        except (OSError, ValueError, subprocess.SubprocessError) as err:
            raise ComposeUpError(f"Failed to start compose services: {err}", command=cmd) from err
        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip()
            raise ComposeUpError(
                f"Failed to start compose services: {stderr or f'exit code {proc.returncode}'}",
                command=cmd,
                returncode=proc.returncode,
                stderr=stderr,
            )

    def down(self, compose_file: str | Path) -> bool:
        cmd = self._cmd(compose_file, ["down"])
        emit_event("compose_down", {"compose_file": str(compose_file), "command": cmd})
        try:
            proc = self.run_compose(compose_file, ["down"])
        except (OSError, ValueError, subprocess.SubprocessError) as err:
            emit_event("compose_down_failed", {"compose_file": str(compose_file), "error": str(err)})
            return False
        if proc.returncode != 0:
            emit_event(
                "compose_down_failed",
                {"compose_file": str(compose_file), "returncode": proc.returncode, "stderr": (proc.stderr or "").strip()},
            )
            return False
        return True

    def status(self, compose_file: str | Path, services: Sequence[str] = ()) -> Optional[str]:
        try:
            proc = self.run_compose(compose_file, ["ps", "--format", "json", *services])
        except (OSError, ValueError, subprocess.SubprocessError):
            return None
        if proc.returncode != 0:
            return None
        return proc.stdout or ""

    def is_healthy(self, compose_file: str | Path, services: Sequence[str] = ()) -> bool:
        output = self.status(compose_file, services)
        if output is None:
            return False
        try:
            return is_healthy_output(output)
        except (ValueError, RecursionError):
            return False
