from __future__ import annotations

import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from loguru import logger

from route_audit.core.settings import settings
from route_audit.utils.request_context import request_id_var


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get("x-request-id") or str(uuid4())
        request.state.request_id = req_id
        token = request_id_var.set(req_id)
        try:
            resp = await call_next(request)
            resp.headers["x-request-id"] = req_id
            return resp
        finally:
            request_id_var.reset(token)


class ApiKeyAuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if not settings.REQUIRE_API_KEY:
            return await call_next(request)

        if not settings.API_KEY:
            # Misconfigured; fail closed.
            return JSONResponse(status_code=500, content={"detail": "REQUIRE_API_KEY=true but no API key configured"})

        # Support comma-separated key lists.
        keys = {p.strip() for p in str(settings.API_KEY).split(",") if p.strip()}

        is_api = request.url.path.startswith("/api/")
        is_write = request.method.upper() in {"POST", "PUT", "PATCH", "DELETE"}
        if is_api and is_write and request.headers.get("x-api-key") not in keys:
            return JSONResponse(status_code=401, content={"detail": "invalid api key"})
        return await call_next(request)


class PerformanceLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if not getattr(settings, "PERF_LOG_ENABLED", True):
            return await call_next(request)

        t0 = time.perf_counter()
        status_code: int | None = None
        try:
            resp = await call_next(request)
            status_code = int(getattr(resp, "status_code", 0) or 0)
            return resp
        finally:
            dt_ms = (time.perf_counter() - t0) * 1000.0
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id") or "-"
            method = str(request.method or "?").upper()
            path = str(request.url.path or "?")

            slow_ms = int(getattr(settings, "PERF_LOG_SLOW_MS", 250) or 250)
            lvl = "WARNING" if dt_ms >= float(slow_ms) else "INFO"
            sc = status_code if status_code is not None else "?"
            logger.log(lvl, "HTTP {method} {path} -> {status} ({ms:.1f}ms) rid={rid}", method=method, path=path, status=sc, ms=dt_ms, rid=rid)
