from __future__ import annotations

from pathlib import Path
from typing import Optional
import logging

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine

from .config import Settings, get_settings


logger = logging.getLogger(__name__)


def _enable_wal(dbapi_connection, connection_record) -> None:
    # WAL permite lectores concurrentes mientras el tick de muestreo escribe.
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA busy_timeout=5000")
    finally:
        cursor.close()


def build_engine(settings: Settings) -> Engine:
    if settings.db_path != ":memory:":
        Path(settings.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)

    logger.info("[DB] Crear engine SQLite path=%s", settings.db_path)

    engine = create_engine(
        settings.database_url,
        pool_pre_ping=True,
        future=True,
        # Timer threads and request handlers share the engine.
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _enable_wal)
    return engine


_engine: Optional[Engine] = None


def get_engine(settings: Optional[Settings] = None) -> Engine:
    """Engine singleton; the first call decides which database is used."""
    global _engine

    if _engine is not None:
        return _engine

    _engine = build_engine(settings or get_settings())

    try:
        with _engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Test de conexión OK")
    except Exception:
        logger.exception("[DB] Test de conexión FALLÓ")

    return _engine


def dispose_engine() -> None:
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
