"""Parsing and health classification for ``compose ps --format json``.

Compose v2 prints one JSON object per line, newer releases and podman
print a single JSON array. Both shapes are accepted. When nothing can be
parsed as a service record the raw text is searched for the health markers
instead; that fallback can misfire on unrelated text that happens to
contain them.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, List, Optional

from jsonschema import validate as jsonschema_validate
from jsonschema.exceptions import ValidationError

HEALTHY_MARKERS = ('"Health":"healthy"', '"Health": "healthy"', "(healthy)")

PS_RECORD_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "minProperties": 1,
    "properties": {
        "Service": {"type": "string"},
        "Name": {"type": "string"},
        "State": {"type": "string"},
        "Status": {"type": "string"},
        "Health": {"type": "string"},
    },
}


def _health_from_status(status: str) -> str:
    if "(healthy)" in status:
        return "healthy"
    if "(unhealthy)" in status:
        return "unhealthy"
    if "(health: starting)" in status:
        return "starting"
    return "unknown"


def _raw_items(raw: str) -> Iterator[Any]:
    text = raw.strip()
    if text.startswith("["):
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, list):
            yield from data
            return
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            item = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(item, list):
            yield from item
        else:
            yield item


def _normalize(item: Dict[str, Any]) -> Dict[str, Optional[str]]:
    status = item.get("Status") or ""
    health = item.get("Health") or _health_from_status(status)
    return {
        "service": item.get("Service"),
        "name": item.get("Name"),
        "state": item.get("State"),
        "status": status,
        "health": health,
    }


def parse_ps_output(raw: Optional[str]) -> List[Dict[str, Optional[str]]]:
    if not raw:
        return []
    services = []
    for item in _raw_items(raw):
        try:
            jsonschema_validate(item, PS_RECORD_SCHEMA)
        except ValidationError:
            continue
        services.append(_normalize(item))
    return services


def contains_healthy_marker(raw: str) -> bool:
    return any(marker in raw for marker in HEALTHY_MARKERS)


def is_healthy_output(raw: Optional[str]) -> bool:
    if not raw:
        return False
    services = parse_ps_output(raw)
    if services:
        return any(service["health"] == "healthy" for service in services)
    return contains_healthy_marker(raw)
