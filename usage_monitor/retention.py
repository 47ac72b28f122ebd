"""Barrido de retención.

- Muestras crudas: se borran las que tienen timestamp < now - 1h.
- Resúmenes: se borran los que tienen period_start < now - retention_days.

Ambas operaciones son borrados por rango de timestamp, idempotentes. Un
fallo del store se loguea y el barrido devuelve 0; se reintenta en el
próximo ciclo del timer.
"""

from __future__ import annotations

import logging

from usage_monitor.core.errors import PersistenceFailure
from usage_monitor.infrastructure.persistence import UsageStore

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400
DEFAULT_RAW_RETENTION_SECONDS = 3600
DEFAULT_RETENTION_DAYS = 365


class RetentionSweeper:
    """Borra muestras crudas y resúmenes fuera de su ventana de retención."""

    def __init__(self, store: UsageStore, raw_retention_seconds: int = DEFAULT_RAW_RETENTION_SECONDS):
        """Inicializa el sweeper.

        Args:
            store: Store sobre el que se ejecutan los borrados por rango
            raw_retention_seconds: Antigüedad máxima de una muestra cruda
        """
        self._store = store
        self._raw_retention_seconds = int(raw_retention_seconds)

    def sweep_raw_samples(self, now: int) -> int:
        cutoff = int(now) - self._raw_retention_seconds
        try:
            deleted = self._store.delete_samples_before(cutoff)
        except PersistenceFailure as e:
            logger.error("[RETENTION] Borrado de muestras crudas falló cutoff=%d err=%s", cutoff, e)
            return 0
        if deleted:
            logger.info("[RETENTION] usage_records borrados=%d cutoff=%d", deleted, cutoff)
        return deleted

    def sweep_summaries(self, now: int, retention_days: int = DEFAULT_RETENTION_DAYS) -> int:
        cutoff = int(now) - int(retention_days) * SECONDS_PER_DAY
        try:
            deleted = self._store.delete_summaries_before(cutoff)
        except PersistenceFailure as e:
            logger.error("[RETENTION] Borrado de resúmenes falló cutoff=%d err=%s", cutoff, e)
            return 0
        if deleted:
            logger.info("[RETENTION] usage_summaries borrados=%d cutoff=%d", deleted, cutoff)
        return deleted
