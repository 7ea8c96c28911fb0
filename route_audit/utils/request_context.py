from __future__ import annotations

from contextvars import ContextVar

# Best-effort request correlation for logs; set by the HTTP middleware.
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
