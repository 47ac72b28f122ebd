"""Ensamblado de los componentes del monitor.

Un solo UsageService por proceso: construye el store sobre el engine,
el agregador, el motor de consultas, el sweeper y el loop de monitoreo.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.engine import Engine

from common.config import Settings
from usage_monitor.adapters import CounterSource, PsutilCounterSource
from usage_monitor.aggregation import HourlyAggregator
from usage_monitor.infrastructure.persistence import UsageStore
from usage_monitor.queries import UsageQueryEngine
from usage_monitor.retention import RetentionSweeper
from usage_monitor.scheduler import MonitorLoop

logger = logging.getLogger(__name__)


@dataclass
class UsageService:
    settings: Settings
    store: UsageStore
    aggregator: HourlyAggregator
    queries: UsageQueryEngine
    sweeper: RetentionSweeper
    loop: MonitorLoop

    @classmethod
    def build(
        cls,
        engine: Engine,
        settings: Settings,
        source: Optional[CounterSource] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> UsageService:
        store = UsageStore(engine)
        aggregator = HourlyAggregator(store)
        sweeper = RetentionSweeper(store, settings.raw_retention_seconds)
        loop_kwargs = {"clock": clock} if clock is not None else {}
        loop = MonitorLoop(
            source or PsutilCounterSource(),
            store,
            settings,
            aggregator=aggregator,
            sweeper=sweeper,
            **loop_kwargs,
        )
        logger.info(
            "[SERVICE] Listo db=%s interval_ms=%d retention_days=%d cap_gbps=%s gap_s=%d",
            settings.db_path,
            settings.sampling_interval_ms,
            settings.data_retention_days,
            settings.max_speed_threshold_gbps,
            settings.gap_threshold_seconds,
        )
        return cls(
            settings=settings,
            store=store,
            aggregator=aggregator,
            queries=UsageQueryEngine(store, settings),
            sweeper=sweeper,
            loop=loop,
        )
