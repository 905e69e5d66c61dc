from __future__ import annotations

import json
import sys
from typing import Any, Dict


def emit_event(event: str, payload: Dict[str, Any] | None = None) -> None:
    message = {"event": event, **(payload or {})}
    sys.stderr.write(json.dumps(message, ensure_ascii=False, default=str))
    sys.stderr.write("\n")
