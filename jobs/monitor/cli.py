"""CLI entry point for the headless monitor."""

from __future__ import annotations

import argparse
import logging
import sys

from common.config import get_settings
from common.db import dispose_engine, get_engine
from usage_monitor.core.errors import ConfigError
from usage_monitor.service import UsageService

from .config import RunnerConfig
from .runner import run

logger = logging.getLogger(__name__)


def main() -> None:
    try:
        settings = get_settings()
    except ConfigError as e:
        # Configuración inválida: fatal solo al arrancar.
        print(f"Invalid configuration: {e}", file=sys.stderr)
        raise SystemExit(2)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="Network usage monitor (sampling + hourly rollups)")
    p.add_argument("--once", action="store_true", help="take one sample pair, run one rollup and exit")
    p.add_argument("--backfill", action="store_true", help="re-aggregate retained complete hours first")
    p.add_argument("--duration-seconds", type=float, default=None, help="stop after this many seconds")
    args = p.parse_args()

    cfg = RunnerConfig(
        once=bool(args.once),
        backfill=bool(args.backfill),
        duration_seconds=args.duration_seconds,
    )

    logger.info("Network usage monitor started")
    logger.info(
        "Config: db=%s interval=%dms retention=%dd cap=%sGbps gap=%ds",
        settings.db_path,
        settings.sampling_interval_ms,
        settings.data_retention_days,
        settings.max_speed_threshold_gbps,
        settings.gap_threshold_seconds,
    )

    service = UsageService.build(get_engine(settings), settings)
    try:
        run(cfg, service, settings)
    finally:
        dispose_engine()


if __name__ == "__main__":
    main()
