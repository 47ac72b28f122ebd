"""Estadísticas del loop de monitoreo."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class LoopStats:
    """Contadores del loop de muestreo y de la agregación horaria."""

    ticks: int = 0
    samples_persisted: int = 0
    persist_failures: int = 0
    read_failures: int = 0
    rollups: int = 0
    rollup_failures: int = 0
    sleep_resyncs: int = 0
    last_tick_at: Optional[int] = None
    last_rollup_at: Optional[int] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        return (
            f"Stats: ticks={self.ticks} persisted={self.samples_persisted} "
            f"persist_failed={self.persist_failures} read_failed={self.read_failures} "
            f"rollups={self.rollups} rollup_failed={self.rollup_failures} "
            f"sleep_resyncs={self.sleep_resyncs}"
        )

    def to_dict(self) -> dict:
        return {
            "ticks": self.ticks,
            "samples_persisted": self.samples_persisted,
            "persist_failures": self.persist_failures,
            "read_failures": self.read_failures,
            "rollups": self.rollups,
            "rollup_failures": self.rollup_failures,
            "sleep_resyncs": self.sleep_resyncs,
            "last_tick_at": self.last_tick_at,
            "last_rollup_at": self.last_rollup_at,
            "started_at": self.started_at.isoformat(),
        }
