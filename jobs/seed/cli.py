"""CLI entry point for seeding demo usage summaries."""

from __future__ import annotations

import argparse
import logging

from common.config import get_settings
from common.db import dispose_engine, get_engine
from usage_monitor.core.errors import ConfigError
from usage_monitor.infrastructure.persistence import UsageStore

from .seeder import demo_summaries

logger = logging.getLogger(__name__)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="Seed demo hourly usage summaries")
    p.add_argument("--weeks", type=int, default=10)
    p.add_argument("--seed", type=int, default=42)
    args = p.parse_args()

    try:
        settings = get_settings()
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        raise SystemExit(2)

    store = UsageStore(get_engine(settings))
    try:
        inserted = store.insert_summaries_if_absent(demo_summaries(weeks=args.weeks, seed=args.seed))
        logger.info("Seed completado: %d resúmenes insertados en %s", inserted, settings.db_path)
    finally:
        dispose_engine()


if __name__ == "__main__":
    main()
