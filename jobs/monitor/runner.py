"""Monitor runner orchestrator."""

from __future__ import annotations

import logging
import signal
import threading
import time
from typing import List, Optional

from common.config import Settings
from usage_monitor.core.domain import HourlySummary
from usage_monitor.core.timebuckets import hour_start
from usage_monitor.service import UsageService

from .config import RunnerConfig

logger = logging.getLogger(__name__)


def backfill(service: UsageService, now: Optional[int] = None) -> List[HourlySummary]:
    """Re-aggregate complete hours whose raw samples are still retained.

    Covers rollups missed while the process was down.
    """
    now = int(time.time()) if now is None else int(now)
    window_start = now - service.settings.raw_retention_seconds
    summaries = service.aggregator.aggregate_range(window_start, hour_start(now))
    logger.info("backfill hours=%d window_start=%d", len(summaries), window_start)
    return summaries


def run_once(service: UsageService) -> None:
    """Take two samples one interval apart, then run one rollup cycle."""
    loop = service.loop
    loop.prime()
    time.sleep(service.settings.sampling_interval_ms / 1000.0)
    reading = loop.tick()
    loop.flush()
    logger.info(
        "tick down_bps=%d up_bps=%d",
        reading.download_bytes_per_second,
        reading.upload_bytes_per_second,
    )
    loop.run_rollup()
    logger.info("run_once done. %s", loop.stats)


def _install_signal_handlers(service: UsageService, stop: threading.Event) -> None:
    def _stop(signum, frame):
        logger.info("Señal %s recibida, deteniendo...", signum)
        stop.set()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    # SIGUSR1/SIGUSR2 permiten que un hook de energía externo suspenda/reanude.
    if hasattr(signal, "SIGUSR1"):
        signal.signal(signal.SIGUSR1, lambda signum, frame: service.loop.suspend())
        signal.signal(signal.SIGUSR2, lambda signum, frame: service.loop.resume())


def run_forever(service: UsageService, cfg: RunnerConfig) -> None:
    stop = threading.Event()
    if threading.current_thread() is threading.main_thread():
        _install_signal_handlers(service, stop)

    service.loop.start()
    try:
        stop.wait(cfg.duration_seconds)
    finally:
        service.loop.stop()


def run(cfg: RunnerConfig, service: UsageService, settings: Settings) -> None:
    if cfg.backfill:
        backfill(service)

    if cfg.once:
        run_once(service)
        return

    logger.info(
        "Monitor corriendo interval_ms=%d retention_days=%d",
        settings.sampling_interval_ms,
        settings.data_retention_days,
    )
    run_forever(service, cfg)
