"""Dependencias FastAPI compartidas por los endpoints."""

from __future__ import annotations

from fastapi import HTTPException, Request

from usage_monitor.service import UsageService


def get_service(request: Request) -> UsageService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="service not ready")
    return service
