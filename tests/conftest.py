"""Fixtures compartidos de la suite."""

from __future__ import annotations

import time
from datetime import datetime
from typing import Callable, Iterable, List, Tuple

import pytest

from common.config import Settings
from common.db import build_engine
from usage_monitor.core.domain import HourlySummary, RawSample
from usage_monitor.core.errors import AdapterReadFailure
from usage_monitor.infrastructure.persistence import UsageStore


def local_ts(*args) -> int:
    """Epoch seconds for a local wall-clock datetime."""
    return int(datetime(*args).timestamp())


# Mediados de junio: lejos de cambios de horario de verano.
HOUR = local_ts(2026, 6, 10, 14)


class FakeClock:
    """Reloj manual para tests: clock() devuelve el valor actual."""

    def __init__(self, start: float):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def set(self, value: float) -> None:
        self.now = float(value)


class StaticCounterSource:
    """Fuente de contadores manejada a mano desde el test."""

    def __init__(self, bytes_received: int = 0, bytes_sent: int = 0):
        self.bytes_received = bytes_received
        self.bytes_sent = bytes_sent
        # La próxima lectura falla una sola vez.
        self.fail_next = False

    def advance(self, received: int, sent: int) -> None:
        self.bytes_received += received
        self.bytes_sent += sent

    def reset(self) -> None:
        self.bytes_received = 0
        self.bytes_sent = 0

    def current_cumulative_counters(self) -> Tuple[int, int]:
        if self.fail_next:
            self.fail_next = False
            raise AdapterReadFailure("simulated read failure")
        return self.bytes_received, self.bytes_sent


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> bool:
    """Polls predicate until it holds or the timeout expires (threads reales)."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def make_summary(period_start: int, download: int = 1000, upload: int = 100, **overrides) -> HourlySummary:
    fields = dict(
        period_start=period_start,
        period_end=period_start + 3600,
        total_download=download,
        total_upload=upload,
        peak_download_speed=10,
        peak_upload_speed=1,
        sample_count=3600,
    )
    fields.update(overrides)
    return HourlySummary(**fields)


def insert_samples(store: UsageStore, rows: Iterable[tuple]) -> List[RawSample]:
    samples = [RawSample(int(t), int(down), int(up)) for t, down, up in rows]
    for sample in samples:
        store.insert_sample(sample)
    return samples


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(db_path=str(tmp_path / "usage.db"))


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> UsageStore:
    return UsageStore(engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(HOUR + 30)


@pytest.fixture
def source() -> StaticCounterSource:
    return StaticCounterSource(bytes_received=1_000_000, bytes_sent=200_000)
