"""Motor de consultas multi-granularidad.

Lee del store bajo demanda (solo lectura) y produce series listas para
mostrar. Cada llamada regenera la serie desde cero.

- minute: deltas por par de muestras crudas en [from, to], excluyendo
  huecos (dt > gap_threshold_seconds). Un punto por par, en el timestamp
  de la muestra posterior.
- hour: un punto por resumen con period_start en [from, to).
- day/week/month/year: suma de resúmenes agrupados por inicio de bucket
  en hora local, ascendente.

Cada resumen se recorta a max_bytes_per_hour ANTES de devolverlo o de
sumarlo en buckets más gruesos, para que una hora corrupta no domine la
vista diaria o mensual.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from common.config import Settings
from usage_monitor.core import delta as deltas
from usage_monitor.core.domain import (
    Granularity,
    HourlySummary,
    PeakSpeeds,
    UsageDataPoint,
    UsageReport,
    UsageTotals,
)
from usage_monitor.core.timebuckets import BUCKET_START, day_start
from usage_monitor.infrastructure.persistence import UsageStore

logger = logging.getLogger(__name__)


class UsageQueryEngine:
    """Series de uso, picos filtrados y reportes de periodo."""

    def __init__(self, store: UsageStore, settings: Settings):
        """Inicializa el motor de consultas.

        Args:
            store: Store de muestras crudas y resúmenes (solo lectura)
            settings: Fuente del umbral de hueco y de los topes por
                segundo/hora derivados de max_speed_threshold_gbps
        """
        self._store = store
        self._gap_threshold_seconds = settings.gap_threshold_seconds
        self._max_bytes_per_second = settings.max_bytes_per_second
        self._max_bytes_per_hour = settings.max_bytes_per_hour

    @property
    def max_bytes_per_second(self) -> int:
        return self._max_bytes_per_second

    @property
    def max_bytes_per_hour(self) -> int:
        return self._max_bytes_per_hour

    def data_points(self, start: int, end: int, granularity: Granularity) -> List[UsageDataPoint]:
        granularity = Granularity(granularity)
        if granularity is Granularity.MINUTE:
            return self._minute_points(start, end)

        summaries = self._capped_summaries(start, end)
        if granularity is Granularity.HOUR:
            return [
                UsageDataPoint(s.period_start, s.total_download, s.total_upload)
                for s in summaries
            ]
        return self._group_by_bucket(summaries, granularity)

    def filtered_peaks(self, start: int, end: int) -> PeakSpeeds:
        """Peak single-interval bytes from the gap-free minute series, capped.

        Intervals are ~1 second, so the byte count approximates bytes/second.
        This differs on purpose from the peaks stored on HourlySummary rows,
        which are uncapped and include gap intervals.
        """
        peak_down = 0
        peak_up = 0
        for point in self._minute_points(start, end):
            if point.download_bytes > peak_down:
                peak_down = point.download_bytes
            if point.upload_bytes > peak_up:
                peak_up = point.upload_bytes

        return PeakSpeeds(
            peak_download=min(peak_down, self._max_bytes_per_second),
            peak_upload=min(peak_up, self._max_bytes_per_second),
        )

    def usage_from_samples(self, start: int, end: int) -> Optional[UsageTotals]:
        """Totals straight from raw samples in [start, end).

        Sums clamped per-interval deltas, skipping invalid and gap intervals.
        None when fewer than 2 samples exist.
        """
        samples = self._store.samples_between(start, end)
        if len(samples) < 2:
            return None

        total_down = 0
        total_up = 0
        intervals = []
        for _, interval in deltas.interval_deltas(samples, self._gap_threshold_seconds):
            total_down += interval.download
            total_up += interval.upload
            intervals.append(interval)
        peak_down, peak_up = deltas.peak_speeds(intervals)

        return UsageTotals(
            period_start=int(start),
            period_end=int(end),
            total_download=total_down,
            total_upload=total_up,
            peak_download_speed=min(peak_down, self._max_bytes_per_second),
            peak_upload_speed=min(peak_up, self._max_bytes_per_second),
            sample_count=len(samples),
        )

    def usage_report(self, start: int, end: int) -> UsageReport:
        """Period totals plus a daily breakdown.

        Totals are the sum of capped hourly summaries, so they always match
        the daily breakdown. Without summaries (or with all-zero ones) the
        totals come from raw samples instead.
        """
        summaries = self._store.summaries_between(start, end)
        capped = [s.capped(self._max_bytes_per_hour) for s in summaries]
        totals = self._store.total_usage(start, end)
        source = "summaries"

        if totals is not None:
            totals = replace(
                totals,
                total_download=sum(s.total_download for s in capped),
                total_upload=sum(s.total_upload for s in capped),
            )

        if totals is None or (totals.total_download == 0 and totals.total_upload == 0):
            totals = self.usage_from_samples(start, end)
            source = "samples" if totals is not None else "none"

        if totals is not None and summaries:
            totals = totals.with_peaks(self.filtered_peaks(start, end))

        daily = [
            p for p in self._group_by_bucket(capped, Granularity.DAY)
            if p.download_bytes > 0 or p.upload_bytes > 0
        ]

        return UsageReport(
            period_start=int(start),
            period_end=int(end),
            totals=totals,
            daily=daily,
            source=source,
        )

    # ------------------------------------------------------------------

    def _minute_points(self, start: int, end: int) -> List[UsageDataPoint]:
        samples = self._store.samples_between(start, end, inclusive_end=True)
        if len(samples) < 2:
            return []
        return [
            UsageDataPoint(curr.timestamp, interval.download, interval.upload)
            for curr, interval in deltas.interval_deltas(samples, self._gap_threshold_seconds)
        ]

    def _capped_summaries(self, start: int, end: int) -> List[HourlySummary]:
        return [s.capped(self._max_bytes_per_hour) for s in self._store.summaries_between(start, end)]

    @staticmethod
    def _group_by_bucket(summaries: List[HourlySummary], granularity: Granularity) -> List[UsageDataPoint]:
        bucket_of = BUCKET_START.get(granularity, day_start)
        buckets: Dict[int, Tuple[int, int]] = OrderedDict()
        for s in summaries:
            key = bucket_of(s.period_start)
            down, up = buckets.get(key, (0, 0))
            buckets[key] = (down + s.total_download, up + s.total_upload)

        return [
            UsageDataPoint(key, down, up)
            for key, (down, up) in sorted(buckets.items())
        ]
