from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from route_audit.api.router import api_router
from route_audit.core.middleware import ApiKeyAuthMiddleware, PerformanceLogMiddleware, RequestContextMiddleware
from route_audit.core.settings import settings
from route_audit.utils.logger import configure_logging


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Route Audit",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS: permissive by default for local frontend integration.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request IDs + optional auth
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(ApiKeyAuthMiddleware)
    app.add_middleware(PerformanceLogMiddleware)

    app.include_router(api_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "env": settings.APP_ENV}

    return app


app = create_app()
