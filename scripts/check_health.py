#!/usr/bin/env python3
"""Probe a deployed wallet service's liveness and readiness endpoints."""

from __future__ import annotations

import json
import os
import time
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


PROBES = (("/healthz", "ok"), ("/readyz", "ready"))


def fail(message: str) -> None:
    print(f"ERROR: {message}")
    raise SystemExit(1)


def probe(url: str, expected_status: str, timeout: int) -> None:
    request = Request(url, headers={"User-Agent": "mcduck-wallet-healthcheck/1.0"})
    with urlopen(request, timeout=timeout) as response:
        body = json.loads(response.read().decode("utf-8", "replace"))
    actual = body.get("status") if isinstance(body, dict) else None
    if actual != expected_status:
        raise RuntimeError(f"expected status '{expected_status}', got '{actual}'")


def main() -> None:
    base_url = (os.getenv("WALLET_BASE_URL") or "").strip().rstrip("/")
    if not base_url:
        fail("Missing WALLET_BASE_URL environment variable.")
    timeout = int(os.getenv("HEALTHCHECK_TIMEOUT_SECONDS", "10"))
    retries = int(os.getenv("HEALTHCHECK_RETRIES", "3"))

    for path, expected in PROBES:
        for attempt in range(retries + 1):
            try:
                probe(f"{base_url}{path}", expected, timeout)
                print(f"OK: {path}")
                break
            except HTTPError as exc:
                error = f"{path} returned HTTP {exc.code}"
            except (URLError, TimeoutError, ValueError, RuntimeError) as exc:
                error = f"{path} failed: {exc}"
            if attempt == retries:
                fail(error)
            print(f"WARN: {error} (retry {attempt + 1}/{retries})")
            time.sleep(2 * (attempt + 1))
    print("SUCCESS: all health checks passed.")


if __name__ == "__main__":
    main()
