from __future__ import annotations

from fastapi import APIRouter

from route_audit.api import route_audit

api_router = APIRouter(prefix="/api")
api_router.include_router(route_audit.router)
