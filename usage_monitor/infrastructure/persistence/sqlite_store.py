"""Store de muestras crudas y resúmenes horarios sobre SQLite.

Cada operación abre su propia conexión/transacción del engine; con WAL
los lectores no bloquean al escritor del tick de muestreo ni al de la
agregación horaria, así que no hay locks a nivel de aplicación.

Los errores de SQLAlchemy se envuelven en PersistenceFailure. Decidir si
se absorben (y se loguean) es responsabilidad del llamador.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from usage_monitor.core.domain import HourlySummary, RawSample, UsageTotals
from usage_monitor.core.errors import PersistenceFailure

from .schema import initialize_schema

logger = logging.getLogger(__name__)


def _sample_from_row(row: Any) -> RawSample:
    return RawSample(
        timestamp=int(row.timestamp),
        bytes_received=int(row.bytes_received),
        bytes_sent=int(row.bytes_sent),
    )


def _summary_from_row(row: Any) -> HourlySummary:
    return HourlySummary(
        period_start=int(row.period_start),
        period_end=int(row.period_end),
        total_download=int(row.total_download),
        total_upload=int(row.total_upload),
        peak_download_speed=int(row.peak_download_speed),
        peak_upload_speed=int(row.peak_upload_speed),
        sample_count=int(row.sample_count),
    )


def _summary_params(summary: HourlySummary) -> Dict[str, int]:
    return {
        "period_start": int(summary.period_start),
        "period_end": int(summary.period_end),
        "total_download": int(summary.total_download),
        "total_upload": int(summary.total_upload),
        "peak_download_speed": int(summary.peak_download_speed),
        "peak_upload_speed": int(summary.peak_upload_speed),
        "sample_count": int(summary.sample_count),
    }


class UsageStore:
    """Almacenamiento durable y ordenado de RawSample y HourlySummary."""

    def __init__(self, engine: Engine, *, initialize: bool = True):
        self._engine = engine
        if initialize:
            initialize_schema(engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    # ------------------------------------------------------------------
    # Muestras crudas
    # ------------------------------------------------------------------

    def insert_sample(self, sample: RawSample) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    text(
                        """
                        INSERT INTO usage_records (timestamp, bytes_received, bytes_sent)
                        VALUES (:timestamp, :bytes_received, :bytes_sent)
                        """
                    ),
                    sample.to_dict(),
                )
        except SQLAlchemyError as e:
            raise PersistenceFailure("insert_sample", e) from e

    def samples_since(self, timestamp: int) -> List[RawSample]:
        """Samples with timestamp >= given value, oldest first."""
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(
                        """
                        SELECT timestamp, bytes_received, bytes_sent
                        FROM usage_records
                        WHERE timestamp >= :since
                        ORDER BY timestamp ASC, id ASC
                        """
                    ),
                    {"since": int(timestamp)},
                ).fetchall()
        except SQLAlchemyError as e:
            raise PersistenceFailure("samples_since", e) from e
        return [_sample_from_row(r) for r in rows]

    def samples_between(self, start: int, end: int, *, inclusive_end: bool = False) -> List[RawSample]:
        """Samples in [start, end) (or [start, end] when inclusive_end), oldest first."""
        op = "<=" if inclusive_end else "<"
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(
                        f"""
                        SELECT timestamp, bytes_received, bytes_sent
                        FROM usage_records
                        WHERE timestamp >= :start AND timestamp {op} :end
                        ORDER BY timestamp ASC, id ASC
                        """
                    ),
                    {"start": int(start), "end": int(end)},
                ).fetchall()
        except SQLAlchemyError as e:
            raise PersistenceFailure("samples_between", e) from e
        return [_sample_from_row(r) for r in rows]

    def delete_samples_before(self, timestamp: int) -> int:
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    text("DELETE FROM usage_records WHERE timestamp < :before"),
                    {"before": int(timestamp)},
                )
        except SQLAlchemyError as e:
            raise PersistenceFailure("delete_samples_before", e) from e
        return int(result.rowcount or 0)

    # ------------------------------------------------------------------
    # Resúmenes horarios
    # ------------------------------------------------------------------

    def upsert_summary(self, summary: HourlySummary) -> None:
        """Insert or replace keyed by period_start."""
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    text(
                        """
                        INSERT INTO usage_summaries (
                            period_start, period_end, total_download, total_upload,
                            peak_download_speed, peak_upload_speed, sample_count
                        ) VALUES (
                            :period_start, :period_end, :total_download, :total_upload,
                            :peak_download_speed, :peak_upload_speed, :sample_count
                        )
                        ON CONFLICT(period_start) DO UPDATE SET
                            period_end = excluded.period_end,
                            total_download = excluded.total_download,
                            total_upload = excluded.total_upload,
                            peak_download_speed = excluded.peak_download_speed,
                            peak_upload_speed = excluded.peak_upload_speed,
                            sample_count = excluded.sample_count
                        """
                    ),
                    _summary_params(summary),
                )
        except SQLAlchemyError as e:
            raise PersistenceFailure("upsert_summary", e) from e

    def insert_summaries_if_absent(self, summaries: Iterable[HourlySummary]) -> int:
        """Bulk insert that leaves existing periods untouched. Returns rows inserted."""
        params = [_summary_params(s) for s in summaries]
        if not params:
            return 0
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    text(
                        """
                        INSERT OR IGNORE INTO usage_summaries (
                            period_start, period_end, total_download, total_upload,
                            peak_download_speed, peak_upload_speed, sample_count
                        ) VALUES (
                            :period_start, :period_end, :total_download, :total_upload,
                            :peak_download_speed, :peak_upload_speed, :sample_count
                        )
                        """
                    ),
                    params,
                )
        except SQLAlchemyError as e:
            raise PersistenceFailure("insert_summaries_if_absent", e) from e
        return int(result.rowcount or 0)

    def get_summary(self, period_start: int) -> Optional[HourlySummary]:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    text(
                        """
                        SELECT period_start, period_end, total_download, total_upload,
                               peak_download_speed, peak_upload_speed, sample_count
                        FROM usage_summaries
                        WHERE period_start = :period_start
                        """
                    ),
                    {"period_start": int(period_start)},
                ).fetchone()
        except SQLAlchemyError as e:
            raise PersistenceFailure("get_summary", e) from e
        if not row:
            return None
        return _summary_from_row(row)

    def summaries_between(self, start: int, end: int) -> List[HourlySummary]:
        """Summaries whose period_start falls in [start, end), ascending."""
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(
                        """
                        SELECT period_start, period_end, total_download, total_upload,
                               peak_download_speed, peak_upload_speed, sample_count
                        FROM usage_summaries
                        WHERE period_start >= :start AND period_start < :end
                        ORDER BY period_start ASC
                        """
                    ),
                    {"start": int(start), "end": int(end)},
                ).fetchall()
        except SQLAlchemyError as e:
            raise PersistenceFailure("summaries_between", e) from e
        return [_summary_from_row(r) for r in rows]

    def delete_summaries_before(self, timestamp: int) -> int:
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    text("DELETE FROM usage_summaries WHERE period_start < :before"),
                    {"before": int(timestamp)},
                )
        except SQLAlchemyError as e:
            raise PersistenceFailure("delete_summaries_before", e) from e
        return int(result.rowcount or 0)

    def total_usage(self, start: int, end: int) -> Optional[UsageTotals]:
        """Aggregate over summaries with period_start in [start, end); None if none match."""
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    text(
                        """
                        SELECT
                            MIN(period_start) AS period_start,
                            MAX(period_end) AS period_end,
                            SUM(total_download) AS total_download,
                            SUM(total_upload) AS total_upload,
                            MAX(peak_download_speed) AS peak_download_speed,
                            MAX(peak_upload_speed) AS peak_upload_speed,
                            SUM(sample_count) AS sample_count
                        FROM usage_summaries
                        WHERE period_start >= :start AND period_start < :end
                        """
                    ),
                    {"start": int(start), "end": int(end)},
                ).fetchone()
        except SQLAlchemyError as e:
            raise PersistenceFailure("total_usage", e) from e

        if not row or row.period_start is None:
            return None

        return UsageTotals(
            period_start=int(row.period_start),
            period_end=int(row.period_end),
            total_download=int(row.total_download),
            total_upload=int(row.total_upload),
            peak_download_speed=int(row.peak_download_speed),
            peak_upload_speed=int(row.peak_upload_speed),
            sample_count=int(row.sample_count),
        )

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.exception("[STORE] Ping falló")
            return False
