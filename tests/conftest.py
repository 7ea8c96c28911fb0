import os
import sys

import pytest

# Ensure repository root is on sys.path so `import route_audit` works when running pytest.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


@pytest.fixture(autouse=True)
def _pin_settings(monkeypatch):
    """Pin tunables to their defaults so a developer's .env cannot change outcomes."""

    from route_audit.core.settings import settings as app_settings

    monkeypatch.setattr(app_settings, "APP_ENV", "test", raising=False)
    monkeypatch.setattr(app_settings, "API_PREFIX", "/api", raising=False)
    monkeypatch.setattr(app_settings, "PATH_FAMILY_MISMATCH_THRESHOLD", 2, raising=False)
    monkeypatch.setattr(app_settings, "SUGGESTION_MIN_SIMILARITY", 0.7, raising=False)
    monkeypatch.setattr(app_settings, "SUGGESTION_MAX_PER_CALL", 3, raising=False)
    monkeypatch.setattr(app_settings, "SIMILARITY_MAX_SEGMENT_DIFF", 2, raising=False)
    monkeypatch.setattr(app_settings, "REQUIRE_API_KEY", False, raising=False)
    yield


@pytest.fixture
def make_route():
    from route_audit.matching.models import RouteInfo

    def _mk(method: str, path: str, **kw):
        return RouteInfo(method=method, path=path, **kw)

    return _mk


@pytest.fixture
def make_call():
    from route_audit.matching.models import APICallInfo

    def _mk(method: str, full_path: str, path: str | None = None, **kw):
        return APICallInfo(method=method, path=path if path is not None else full_path, full_path=full_path, **kw)

    return _mk
