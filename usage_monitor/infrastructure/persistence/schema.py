"""DDL del store SQLite.

Idempotente: se puede ejecutar en cada arranque.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS usage_records (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp INTEGER NOT NULL,
        bytes_received INTEGER NOT NULL,
        bytes_sent INTEGER NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_usage_records_timestamp
    ON usage_records(timestamp)
    """,
    """
    CREATE TABLE IF NOT EXISTS usage_summaries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        period_start INTEGER NOT NULL UNIQUE,
        period_end INTEGER NOT NULL,
        total_download INTEGER NOT NULL,
        total_upload INTEGER NOT NULL,
        peak_download_speed INTEGER NOT NULL,
        peak_upload_speed INTEGER NOT NULL,
        sample_count INTEGER NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_usage_summaries_period
    ON usage_summaries(period_start)
    """,
)


def initialize_schema(engine: Engine) -> None:
    with engine.begin() as conn:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(text(statement))
    logger.info("[STORE] Schema listo (usage_records, usage_summaries)")
