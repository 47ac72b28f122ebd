"""Loop de monitoreo: muestreo periódico + agregación alineada a la hora.

Estados: STOPPED → SAMPLING ⇄ SUSPENDED → STOPPED.

- Timer de muestreo (sampling_interval_ms): lee los contadores, calcula la
  velocidad contra la muestra anterior, persiste la muestra nueva y
  desplaza current → previous.
- Timer horario: agrega la hora anterior completa, barre muestras crudas
  viejas y, cuando la hora local es 0, barre resúmenes viejos.
- suspend(): ambos timers se detienen.
- resume(): se descarta la muestra previa y se re-lee (evita una velocidad
  enorme a través del hueco de suspensión); el próximo disparo horario se
  recalcula desde el reloj actual.

La persistencia de muestras es fire-and-forget a través de un único
worker de escritura: un fallo se loguea y el tick sigue. Nada de lo que
ocurra dentro de un tick o de una agregación se propaga fuera del loop.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from enum import Enum
from typing import Callable, Optional

from common.config import Settings
from usage_monitor import metrics
from usage_monitor.adapters import CounterSource, read_sample
from usage_monitor.aggregation import HourlyAggregator
from usage_monitor.core.delta import speed_reading
from usage_monitor.core.domain import RawSample, SpeedReading
from usage_monitor.core.errors import AdapterReadFailure, PersistenceFailure
from usage_monitor.core.timebuckets import local_hour, next_hour_start, previous_hour_start
from usage_monitor.infrastructure.persistence import UsageStore
from usage_monitor.retention import RetentionSweeper

from .stats import LoopStats

logger = logging.getLogger(__name__)

_IDLE_POLL_SECONDS = 0.5
_ROLLUP_POLL_SECONDS = 1.0
_FLUSH_TIMEOUT_SECONDS = 5.0


class LoopState(str, Enum):
    STOPPED = "stopped"
    SAMPLING = "sampling"
    SUSPENDED = "suspended"


_STATE_GAUGE = {LoopState.STOPPED: 0, LoopState.SAMPLING: 1, LoopState.SUSPENDED: 2}


class MonitorLoop:
    """Dueño único del estado previous/current de muestras."""

    def __init__(
        self,
        source: CounterSource,
        store: UsageStore,
        settings: Settings,
        *,
        aggregator: Optional[HourlyAggregator] = None,
        sweeper: Optional[RetentionSweeper] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Inicializa el loop (estado STOPPED; no arranca threads).

        Args:
            source: Colaborador que entrega los contadores acumulados
            store: Store donde se persisten las muestras crudas
            settings: Intervalo de muestreo, umbral de hueco y retenciones
            aggregator: Agregador horario (por defecto uno sobre el store)
            sweeper: Barrido de retención (por defecto uno sobre el store)
            clock: Reloj de pared en segundos epoch; inyectable en tests
        """
        self._source = source
        self._store = store
        self._settings = settings
        self._aggregator = aggregator or HourlyAggregator(store)
        self._sweeper = sweeper or RetentionSweeper(store, settings.raw_retention_seconds)
        self._clock = clock

        self._interval_seconds = settings.sampling_interval_ms / 1000.0

        # previous/current se actualizan juntos bajo este lock.
        self._lock = threading.Lock()
        self._previous: Optional[RawSample] = None
        self._current: Optional[RawSample] = None

        self._state = LoopState.STOPPED
        self._stop_event = threading.Event()
        self._running_event = threading.Event()
        self._next_rollup_at: Optional[int] = None

        self._sampling_thread: Optional[threading.Thread] = None
        self._rollup_thread: Optional[threading.Thread] = None
        self._writer: Optional[ThreadPoolExecutor] = None

        self.stats = LoopStats()
        metrics.LOOP_STATE.set(_STATE_GAUGE[self._state])

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def next_rollup_at(self) -> Optional[int]:
        return self._next_rollup_at

    def start(self) -> None:
        if self._state is not LoopState.STOPPED:
            return

        self._stop_event.clear()
        self.prime()
        self._schedule_next_rollup()
        self._set_state(LoopState.SAMPLING)
        self._running_event.set()

        self._sampling_thread = threading.Thread(
            target=self._sampling_loop, daemon=True, name="netusage-sampling",
        )
        self._rollup_thread = threading.Thread(
            target=self._rollup_loop, daemon=True, name="netusage-rollup",
        )
        self._sampling_thread.start()
        self._rollup_thread.start()
        logger.info(
            "[MONITOR] Started interval=%.3fs next_rollup_at=%s",
            self._interval_seconds, self._next_rollup_at,
        )

    def stop(self) -> None:
        """Halt both timers and drain pending writes. Safe to call twice."""
        self._stop_event.set()
        # Despierta a los threads que esperan en estado suspendido.
        self._running_event.set()

        for thread in (self._sampling_thread, self._rollup_thread):
            if thread is not None:
                thread.join(timeout=5.0)
        self._sampling_thread = None
        self._rollup_thread = None

        if self._writer is not None:
            self._writer.shutdown(wait=True)
            self._writer = None

        self._running_event.clear()
        self._set_state(LoopState.STOPPED)
        logger.info("[MONITOR] Stopped. %s", self.stats)

    def suspend(self) -> None:
        if self._state is not LoopState.SAMPLING:
            return
        self._running_event.clear()
        self._set_state(LoopState.SUSPENDED)
        logger.info("[MONITOR] Suspended")

    def resume(self) -> None:
        if self._state is not LoopState.SUSPENDED:
            return
        self.prime()
        self._schedule_next_rollup()
        self._set_state(LoopState.SAMPLING)
        self._running_event.set()
        logger.info("[MONITOR] Resumed next_rollup_at=%s", self._next_rollup_at)

    def prime(self) -> Optional[RawSample]:
        """Discard the held samples and take a fresh baseline read."""
        try:
            sample = read_sample(self._source, self._clock)
        except AdapterReadFailure as e:
            logger.warning("[MONITOR] Lectura de contadores falló al re-cebar: %s", e)
            self.stats.read_failures += 1
            metrics.SAMPLES_TOTAL.labels(status="read_failed").inc()
            with self._lock:
                self._previous = None
            return None

        with self._lock:
            self._previous = None
            self._current = sample
        return sample

    # ------------------------------------------------------------------
    # Operaciones expuestas
    # ------------------------------------------------------------------

    def current_speed(self) -> SpeedReading:
        with self._lock:
            previous, current = self._previous, self._current
        if current is None:
            return SpeedReading.zero(int(self._clock()))
        return speed_reading(previous, current)

    def current_stats(self) -> Optional[RawSample]:
        with self._lock:
            return self._current

    def tick(self) -> SpeedReading:
        """One sampling step. Never raises.

        A failed counter read falls back to the last known sample re-stamped
        with the current time, so that interval reports zero speed.
        """
        now = int(self._clock())
        self.stats.ticks += 1
        self.stats.last_tick_at = now

        try:
            sample = read_sample(self._source, self._clock)
        except AdapterReadFailure as e:
            self.stats.read_failures += 1
            metrics.SAMPLES_TOTAL.labels(status="read_failed").inc()
            logger.warning("[MONITOR] Lectura de contadores falló: %s", e)
            last_known = self.current_stats()
            if last_known is None:
                return SpeedReading.zero(now)
            # Última muestra conocida con el timestamp actual: delta cero.
            sample = last_known.restamped(now)

        with self._lock:
            previous = self._current
            self._previous = previous
            self._current = sample

        self._submit_write(sample)
        return speed_reading(previous, sample)

    def flush(self, timeout: float = _FLUSH_TIMEOUT_SECONDS) -> bool:
        """Wait until every submitted sample write has finished."""
        if self._writer is None:
            return True
        try:
            self._writer.submit(lambda: None).result(timeout=timeout)
            return True
        except FutureTimeout:
            logger.warning("[MONITOR] Escrituras pendientes tras %.1fs", timeout)
            return False

    def run_rollup(self, now: Optional[int] = None) -> None:
        """Aggregate the previous complete hour, then sweep. Never raises."""
        now = int(self._clock()) if now is None else int(now)
        hour = previous_hour_start(now)
        self.stats.last_rollup_at = now

        try:
            self.flush()
            summary = self._aggregator.aggregate_hour(hour)
            self.stats.rollups += 1
            metrics.ROLLUPS_TOTAL.labels(
                outcome="summary" if summary is not None else "insufficient_data"
            ).inc()

            deleted = self._sweeper.sweep_raw_samples(now)
            metrics.SWEPT_ROWS_TOTAL.labels(table="usage_records").inc(deleted)

            if local_hour(now) == 0:
                deleted = self._sweeper.sweep_summaries(now, self._settings.data_retention_days)
                metrics.SWEPT_ROWS_TOTAL.labels(table="usage_summaries").inc(deleted)
        except Exception:
            self.stats.rollup_failures += 1
            metrics.ROLLUPS_TOTAL.labels(outcome="error").inc()
            logger.exception("[MONITOR] Agregación horaria falló hour=%d", hour)

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------

    def _set_state(self, state: LoopState) -> None:
        self._state = state
        metrics.LOOP_STATE.set(_STATE_GAUGE[state])

    def _schedule_next_rollup(self) -> None:
        self._next_rollup_at = next_hour_start(int(self._clock()))

    def _submit_write(self, sample: RawSample) -> None:
        if self._writer is None:
            self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="netusage-writer")
        future = self._writer.submit(self._store.insert_sample, sample)
        future.add_done_callback(self._on_write_done)

    def _on_write_done(self, future: Future) -> None:
        error = future.exception()
        if error is None:
            self.stats.samples_persisted += 1
            metrics.SAMPLES_TOTAL.labels(status="persisted").inc()
            return
        self.stats.persist_failures += 1
        metrics.SAMPLES_TOTAL.labels(status="persist_failed").inc()
        if isinstance(error, PersistenceFailure):
            logger.warning("[MONITOR] Muestra descartada: %s", error)
        else:
            logger.error("[MONITOR] Error inesperado persistiendo muestra: %r", error)

    def _sampling_loop(self) -> None:
        last_wall, last_mono = self._clock(), time.monotonic()
        while not self._stop_event.is_set():
            if not self._running_event.wait(timeout=_IDLE_POLL_SECONDS):
                continue
            if self._stop_event.wait(self._interval_seconds):
                break
            if not self._running_event.is_set():
                continue

            # El reloj monotónico no avanza durante una suspensión del sistema.
            wall, mono = self._clock(), time.monotonic()
            slept = (wall - last_wall) - (mono - last_mono)
            last_wall, last_mono = wall, mono
            if slept > self._settings.gap_threshold_seconds:
                logger.info("[MONITOR] Suspensión detectada (%.0fs), re-cebando", slept)
                self.stats.sleep_resyncs += 1
                self.prime()
                self._schedule_next_rollup()
                continue

            try:
                self.tick()
            except Exception:
                logger.exception("[MONITOR] Tick falló")

    def _rollup_loop(self) -> None:
        while not self._stop_event.is_set():
            if not self._running_event.wait(timeout=_IDLE_POLL_SECONDS):
                continue

            due = self._next_rollup_at
            if due is None:
                self._schedule_next_rollup()
                continue

            remaining = due - self._clock()
            if remaining > 0:
                # Espera en pasos cortos: resume() puede reprogramar el disparo.
                if self._stop_event.wait(min(remaining, _ROLLUP_POLL_SECONDS)):
                    break
                continue

            if not self._running_event.is_set():
                continue
            self.run_rollup()
            self._schedule_next_rollup()
