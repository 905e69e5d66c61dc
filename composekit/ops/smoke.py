from __future__ import annotations

import requests

DEFAULT_PROBE_TIMEOUT_S = 5


def http_ready(url: str, timeout_s: float = DEFAULT_PROBE_TIMEOUT_S) -> bool:
    try:
        resp = requests.get(url, timeout=timeout_s)
    except requests.RequestException:
        return False
    return resp.status_code < 400


def http_probe(url: str, timeout_s: float = DEFAULT_PROBE_TIMEOUT_S) -> dict:
    resp = requests.get(url, timeout=timeout_s)
    return {"url": url, "status": resp.status_code, "ok": resp.status_code < 400, "body": resp.text[:2000]}
