"""Motor de deltas y velocidad entre muestras de contadores acumulados.

Reglas:
- dt = curr.timestamp - prev.timestamp. Si dt <= 0 el par es inválido y la
  velocidad es cero (nunca se divide).
- Un delta de bytes negativo significa que el contador del adaptador se
  reinició (reconexión). Se recorta a 0 para ese intervalo.
- Velocidad = delta // dt, en bytes/segundo. Nunca negativa.
- Un intervalo con dt > gap_threshold_seconds es un hueco (suspensión o
  reinicio del proceso).
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Sequence, Tuple

from .domain import IntervalDelta, RawSample, SpeedReading

DEFAULT_GAP_THRESHOLD_SECONDS = 10


def delta(prev: RawSample, curr: RawSample) -> IntervalDelta:
    """Clamped byte deltas and elapsed seconds between two samples."""
    seconds = int(curr.timestamp) - int(prev.timestamp)

    download = curr.bytes_received - prev.bytes_received
    upload = curr.bytes_sent - prev.bytes_sent

    # Reinicio de contador: el intervalo no aporta bytes.
    if download < 0:
        download = 0
    if upload < 0:
        upload = 0

    return IntervalDelta(download=download, upload=upload, seconds=seconds)


def speed_of(interval: IntervalDelta) -> Tuple[int, int]:
    if not interval.is_valid:
        return 0, 0
    return interval.download // interval.seconds, interval.upload // interval.seconds


def speed(prev: RawSample, curr: RawSample) -> Tuple[int, int]:
    """(download_bps, upload_bps) between two samples; (0, 0) if invalid."""
    return speed_of(delta(prev, curr))


def is_gap(interval: IntervalDelta, gap_threshold_seconds: int = DEFAULT_GAP_THRESHOLD_SECONDS) -> bool:
    return interval.seconds > gap_threshold_seconds


def speed_reading(prev: Optional[RawSample], curr: RawSample) -> SpeedReading:
    if prev is None:
        return SpeedReading.zero(curr.timestamp)
    down, up = speed(prev, curr)
    return SpeedReading(
        download_bytes_per_second=down,
        upload_bytes_per_second=up,
        timestamp=curr.timestamp,
    )


def consecutive_pairs(samples: Sequence[RawSample]) -> Iterator[Tuple[RawSample, RawSample]]:
    for i in range(1, len(samples)):
        yield samples[i - 1], samples[i]


def interval_deltas(
    samples: Sequence[RawSample],
    gap_threshold_seconds: Optional[int] = None,
) -> Iterator[Tuple[RawSample, IntervalDelta]]:
    """Yield (later sample, delta) for each usable consecutive pair.

    Pairs with non-positive dt are always skipped. When gap_threshold_seconds
    is given, pairs exceeding it are skipped as well.
    """
    for prev, curr in consecutive_pairs(samples):
        interval = delta(prev, curr)
        if not interval.is_valid:
            continue
        if gap_threshold_seconds is not None and is_gap(interval, gap_threshold_seconds):
            continue
        yield curr, interval


def peak_speeds(intervals: Iterable[IntervalDelta]) -> Tuple[int, int]:
    peak_down = 0
    peak_up = 0
    for interval in intervals:
        down, up = speed_of(interval)
        if down > peak_down:
            peak_down = down
        if up > peak_up:
            peak_up = up
    return peak_down, peak_up
