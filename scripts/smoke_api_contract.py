"""Smoke test for the route-audit HTTP contract.

Runs a minimal set of requests against the FastAPI app using TestClient and
asserts the response shapes report tooling expects.

Usage:
  python scripts/smoke_api_contract.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

from fastapi.testclient import TestClient


def _assert_keys(obj: Any, keys: list[str], *, where: str) -> None:
    if not isinstance(obj, dict):
        raise AssertionError(f"{where}: expected dict, got {type(obj)}")
    missing = [k for k in keys if k not in obj]
    if missing:
        raise AssertionError(f"{where}: missing keys: {missing}")


ROUTES = [
    {"method": "GET", "path": "/api/tasks/:id", "module": "tasks"},
    {"method": "POST", "path": "/api/auth/login", "module": "auth"},
    {"method": "GET", "path": "/api/clients", "module": "clients"},
]
CALLS = [
    {"method": "get", "path": "/tasks/123", "fullPath": "/api/tasks/123", "hasBaseURL": True},
    {"method": "get", "path": "/auth/login", "fullPath": "/api/auth/login", "hasBaseURL": True},
    {"method": "get", "path": "/api/clients", "fullPath": "/api/api/clients", "hasBaseURL": True},
]


def main() -> None:
    # Ensure repo root is on sys.path so `import route_audit` works when running as a script.
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

    os.environ.setdefault("APP_ENV", "test")

    from route_audit.main import create_app

    app = create_app()
    client = TestClient(app)

    r = client.get("/health")
    assert r.status_code == 200
    _assert_keys(r.json(), ["status", "env"], where="/health")

    r = client.post("/api/audit/routes/match", json={"frontendCalls": CALLS, "backendRoutes": ROUTES})
    assert r.status_code == 200
    body = r.json()
    _assert_keys(body, ["matched", "unmatchedFrontend", "unmatchedBackend", "statistics"], where="/api/audit/routes/match")
    _assert_keys(
        body["statistics"],
        ["totalFrontend", "totalBackend", "matchedCount", "matchRate", "improvementFromPrevious"],
        where="/api/audit/routes/match statistics",
    )

    r = client.post(
        "/api/audit/routes/analysis",
        json={"unmatchedFrontend": body["unmatchedFrontend"], "unmatchedBackend": body["unmatchedBackend"]},
    )
    assert r.status_code == 200
    _assert_keys(r.json(), ["byReason", "statistics"], where="/api/audit/routes/analysis")

    r = client.post(
        "/api/audit/routes/suggestions",
        json={"unmatchedFrontend": body["unmatchedFrontend"], "unmatchedBackend": body["unmatchedBackend"]},
    )
    assert r.status_code == 200
    _assert_keys(r.json(), ["suggestions"], where="/api/audit/routes/suggestions")

    r = client.post("/api/audit/routes/duplicate-prefixes", json={"calls": CALLS})
    assert r.status_code == 200
    _assert_keys(r.json(), ["issues"], where="/api/audit/routes/duplicate-prefixes")

    r = client.post("/api/audit/routes/report", json={"frontendCalls": CALLS, "backendRoutes": ROUTES, "previousMatchRate": 0.0})
    assert r.status_code == 200
    _assert_keys(r.json(), ["matchResult", "suggestions", "analysis", "duplicatePrefixes"], where="/api/audit/routes/report")

    print("OK: route audit contract smoke test passed")


if __name__ == "__main__":
    main()
