"""Modelos de dominio del monitor de uso de red.

Todos los timestamps son segundos epoch Unix (int). Los objetos son
inmutables una vez creados; el store es el único dueño de las filas
persistidas y el resto de componentes solo los lee.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional

SECONDS_PER_HOUR = 3600


class Granularity(str, Enum):
    """Tamaño de bucket de una consulta de series de uso."""
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


@dataclass(frozen=True)
class RawSample:
    """Lectura cruda de contadores acumulados (una por tick de muestreo)."""

    timestamp: int
    bytes_received: int
    bytes_sent: int

    def restamped(self, timestamp: int) -> RawSample:
        return replace(self, timestamp=int(timestamp))

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "bytes_received": self.bytes_received,
            "bytes_sent": self.bytes_sent,
        }


@dataclass(frozen=True)
class HourlySummary:
    """Resumen durable de una hora. Clave única: period_start."""

    period_start: int
    period_end: int
    total_download: int
    total_upload: int
    peak_download_speed: int
    peak_upload_speed: int
    sample_count: int

    def capped(self, max_bytes_per_hour: int) -> HourlySummary:
        """Copy with totals clamped to max_bytes_per_hour."""
        return replace(
            self,
            total_download=min(self.total_download, max_bytes_per_hour),
            total_upload=min(self.total_upload, max_bytes_per_hour),
        )


@dataclass(frozen=True)
class SpeedReading:
    """Velocidad instantánea (bytes/segundo). Nunca se persiste."""

    download_bytes_per_second: int
    upload_bytes_per_second: int
    timestamp: int

    @classmethod
    def zero(cls, timestamp: int) -> SpeedReading:
        return cls(0, 0, int(timestamp))


@dataclass(frozen=True)
class UsageDataPoint:
    """Punto de una serie de uso, a cualquier granularidad."""

    timestamp: int
    download_bytes: int
    upload_bytes: int


@dataclass(frozen=True)
class IntervalDelta:
    """Bytes transferidos entre dos muestras consecutivas."""

    download: int
    upload: int
    seconds: int

    @property
    def is_valid(self) -> bool:
        return self.seconds > 0


@dataclass(frozen=True)
class PeakSpeeds:
    peak_download: int = 0
    peak_upload: int = 0


@dataclass(frozen=True)
class UsageTotals:
    """Agregado sobre un rango de resúmenes (o de muestras crudas)."""

    period_start: int
    period_end: int
    total_download: int
    total_upload: int
    peak_download_speed: int
    peak_upload_speed: int
    sample_count: int

    def with_peaks(self, peaks: PeakSpeeds) -> UsageTotals:
        return replace(
            self,
            peak_download_speed=peaks.peak_download,
            peak_upload_speed=peaks.peak_upload,
        )


@dataclass(frozen=True)
class UsageReport:
    """Reporte de un periodo para los colaboradores de presentación."""

    period_start: int
    period_end: int
    totals: Optional[UsageTotals]
    daily: List[UsageDataPoint] = field(default_factory=list)
    source: str = "none"  # "summaries" | "samples" | "none"
