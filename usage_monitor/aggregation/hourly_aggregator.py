"""Agregador horario: muestras crudas → un HourlySummary por hora.

- Ventana [hora, hora + 1h), truncada al inicio de la hora local.
- Menos de 2 muestras: no hay resumen (None). No es un error.
- Totales = delta recortado entre la PRIMERA y la ÚLTIMA muestra de la
  ventana, no la suma de deltas por intervalo.
- Picos = máxima velocidad por intervalo entre pares consecutivos. Los
  pares con dt <= 0 se omiten, pero el umbral de hueco NO se aplica aquí
  (a diferencia de la serie por minuto y de filtered_peaks).
- Escritura por upsert sobre period_start: repetir la agregación de una
  hora sobrescribe el resumen con los mismos valores.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from usage_monitor.core import delta as deltas
from usage_monitor.core.domain import SECONDS_PER_HOUR, HourlySummary, RawSample
from usage_monitor.core.errors import PersistenceFailure
from usage_monitor.core.timebuckets import hour_start as truncate_to_hour
from usage_monitor.core.timebuckets import next_hour_start
from usage_monitor.infrastructure.persistence import UsageStore

logger = logging.getLogger(__name__)

MIN_SAMPLES_PER_HOUR = 2


def summarize_window(hour_start: int, samples: List[RawSample]) -> Optional[HourlySummary]:
    """Pure rollup of one hour window; None when there are fewer than 2 samples."""
    if len(samples) < MIN_SAMPLES_PER_HOUR:
        return None

    span = deltas.delta(samples[0], samples[-1])

    peak_down, peak_up = deltas.peak_speeds(
        interval for _, interval in deltas.interval_deltas(samples, gap_threshold_seconds=None)
    )

    return HourlySummary(
        period_start=hour_start,
        period_end=hour_start + SECONDS_PER_HOUR,
        total_download=span.download,
        total_upload=span.upload,
        peak_download_speed=peak_down,
        peak_upload_speed=peak_up,
        sample_count=len(samples),
    )


class HourlyAggregator:
    """Consolida muestras crudas de una hora cerrada en un resumen durable."""

    def __init__(self, store: UsageStore):
        self._store = store

    def aggregate_hour(self, hour_start: int) -> Optional[HourlySummary]:
        """Aggregate and upsert the hour containing hour_start.

        Returns the summary, or None for insufficient data or when the raw
        window could not be read. A failed upsert is logged and the computed
        summary is still returned.
        """
        start = truncate_to_hour(hour_start)
        end = start + SECONDS_PER_HOUR

        try:
            samples = self._store.samples_between(start, end)
        except PersistenceFailure as e:
            logger.error("[AGGREGATOR] Lectura de ventana falló hour=%d err=%s", start, e)
            return None

        summary = summarize_window(start, samples)
        if summary is None:
            logger.info(
                "[AGGREGATOR] Datos insuficientes hour=%d samples=%d", start, len(samples)
            )
            return None

        try:
            self._store.upsert_summary(summary)
        except PersistenceFailure as e:
            logger.error("[AGGREGATOR] Upsert falló hour=%d err=%s", start, e)
            return summary

        logger.info(
            "[AGGREGATOR] hour=%d samples=%d down=%d up=%d peak_down=%d peak_up=%d",
            start,
            summary.sample_count,
            summary.total_download,
            summary.total_upload,
            summary.peak_download_speed,
            summary.peak_upload_speed,
        )
        return summary

    def aggregate_range(self, start: int, end: int) -> List[HourlySummary]:
        """Re-aggregate every complete hour whose start lies in [start, end)."""
        results: List[HourlySummary] = []
        hour = truncate_to_hour(start)
        while hour < end:
            summary = self.aggregate_hour(hour)
            if summary is not None:
                results.append(summary)
            hour = next_hour_start(hour)
        return results
