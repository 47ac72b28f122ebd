"""Genera resúmenes horarios de demostración.

Solo para desarrollo: llena usage_summaries con N semanas de uso
realista (más tráfico de día y en fin de semana). No pisa horas que ya
tienen resumen.
"""

from __future__ import annotations

import random
import time
from datetime import datetime
from typing import Iterator, Optional

from usage_monitor.core.domain import SECONDS_PER_HOUR, HourlySummary
from usage_monitor.core.timebuckets import hour_start, next_hour_start

BASE_DOWNLOAD_PER_HOUR = 100_000_000  # 100 MB
BASE_UPLOAD_PER_HOUR = 20_000_000     # 20 MB
MAX_PEAK_DOWNLOAD = 6_250_000         # 50 Mbps
MAX_PEAK_UPLOAD = 1_250_000           # 10 Mbps


def demo_summaries(
    weeks: int = 10,
    now: Optional[int] = None,
    seed: int = 42,
) -> Iterator[HourlySummary]:
    rng = random.Random(seed)
    now = int(time.time()) if now is None else int(now)

    current = hour_start(now - weeks * 7 * 24 * SECONDS_PER_HOUR)
    end = hour_start(now)

    while current < end:
        local = datetime.fromtimestamp(current)
        day_multiplier = 1.0 if 8 <= local.hour <= 22 else 0.3
        weekend_multiplier = 1.5 if local.weekday() >= 5 else 1.0
        variation = 0.5 + rng.random()

        yield HourlySummary(
            period_start=current,
            period_end=current + SECONDS_PER_HOUR,
            total_download=int(BASE_DOWNLOAD_PER_HOUR * day_multiplier * weekend_multiplier * variation),
            total_upload=int(BASE_UPLOAD_PER_HOUR * day_multiplier * weekend_multiplier * variation * 0.8),
            peak_download_speed=int(rng.random() * MAX_PEAK_DOWNLOAD),
            peak_upload_speed=int(rng.random() * MAX_PEAK_UPLOAD),
            sample_count=SECONDS_PER_HOUR,
        )
        current = next_hour_start(current)
