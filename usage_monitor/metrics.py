"""Métricas Prometheus del loop de monitoreo."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

SAMPLES_TOTAL = Counter(
    "netusage_samples_total",
    "Raw counter samples taken by the sampling tick",
    ["status"],  # persisted, persist_failed, read_failed
)
ROLLUPS_TOTAL = Counter(
    "netusage_rollups_total",
    "Hourly aggregation runs",
    ["outcome"],  # summary, insufficient_data, error
)
SWEPT_ROWS_TOTAL = Counter(
    "netusage_swept_rows_total",
    "Rows deleted by the retention sweeper",
    ["table"],
)
LOOP_STATE = Gauge(
    "netusage_loop_state",
    "Monitor loop state (0=stopped, 1=sampling, 2=suspended)",
)
