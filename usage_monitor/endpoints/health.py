"""Health, readiness, métricas y diagnóstico de adaptadores."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from usage_monitor.adapters import describe_adapters
from usage_monitor.core.errors import AdapterReadFailure
from usage_monitor.schemas import LoopStatusOut
from usage_monitor.service import UsageService

from .deps import get_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness probe: ok while the process is running."""
    return {"status": "ok"}


@router.get("/ready")
def ready(service: UsageService = Depends(get_service)):
    """Readiness probe: checks store connectivity."""
    if not service.store.ping():
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready"}


@router.get("/status", response_model=LoopStatusOut)
def loop_status(service: UsageService = Depends(get_service)):
    loop = service.loop
    return LoopStatusOut(
        state=loop.state.value,
        next_rollup_at=loop.next_rollup_at,
        stats=loop.stats.to_dict(),
    )


@router.get("/metrics")
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/diagnostics/adapters")
def adapters_diagnostics():
    """Adaptadores vistos por psutil y si cuentan en el total."""
    try:
        return {"adapters": describe_adapters()}
    except AdapterReadFailure as e:
        logger.warning("[API] Diagnóstico de adaptadores falló: %s", e)
        raise HTTPException(status_code=503, detail="adapter counters unavailable")
