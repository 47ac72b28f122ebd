from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from common.config import get_settings
from common.db import dispose_engine, get_engine
from usage_monitor import __version__
from usage_monitor.endpoints import health_router, usage_router
from usage_monitor.service import UsageService

logger = logging.getLogger(__name__)


def create_app(service: Optional[UsageService] = None, *, start_loop: bool = True) -> FastAPI:
    """Build the HTTP app.

    Without an explicit service the lifespan builds one from the environment
    settings. The monitor loop is stopped before the engine is released.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_engine = service is None
        svc = service
        if svc is None:
            settings = get_settings()
            logging.getLogger().setLevel(settings.log_level)
            svc = UsageService.build(get_engine(settings), settings)
        app.state.service = svc

        if start_loop:
            svc.loop.start()
        try:
            yield
        finally:
            svc.loop.stop()
            app.state.service = None
            if owns_engine:
                dispose_engine()
            logger.info("[API] Shutdown completo")

    app = FastAPI(title="Network Usage Monitor", version=__version__, lifespan=lifespan)
    app.include_router(health_router)
    app.include_router(usage_router)
    return app


app = create_app()
