from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from usage_monitor.core.errors import ConfigError


BYTES_PER_SECOND_PER_GBPS = 125_000_000


def _default_env_file() -> str:
    return str(Path.cwd() / ".env")


def _default_db_path() -> str:
    return str(Path.home() / ".netusage" / "usage.db")


@dataclass(frozen=True)
class Settings:
    db_path: str

    sampling_interval_ms: int = 1000
    data_retention_days: int = 365
    max_speed_threshold_gbps: float = 10
    gap_threshold_seconds: int = 10
    raw_retention_seconds: int = 3600

    log_level: str = "INFO"

    @property
    def max_bytes_per_second(self) -> int:
        return int(round(self.max_speed_threshold_gbps * BYTES_PER_SECOND_PER_GBPS))

    @property
    def max_bytes_per_hour(self) -> int:
        return self.max_bytes_per_second * 3600

    @property
    def database_url(self) -> str:
        if self.db_path == ":memory:":
            return "sqlite://"
        return f"sqlite:///{self.db_path}"


def _read_int(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def _read_float(name: str, default: float, minimum: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value <= minimum:
        raise ConfigError(f"{name} must be > {minimum}, got {value}")
    return value


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("NETUSAGE_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    db_path = os.getenv("NETUSAGE_DB_PATH", "").strip() or _default_db_path()

    log_level = os.getenv("NETUSAGE_LOG_LEVEL", "INFO").strip().upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigError(f"NETUSAGE_LOG_LEVEL is not a logging level: {log_level!r}")

    return Settings(
        db_path=db_path,
        sampling_interval_ms=_read_int("NETUSAGE_SAMPLING_INTERVAL_MS", 1000, minimum=100),
        data_retention_days=_read_int("NETUSAGE_DATA_RETENTION_DAYS", 365, minimum=1),
        max_speed_threshold_gbps=_read_float("NETUSAGE_MAX_SPEED_THRESHOLD_GBPS", 10.0, minimum=0.0),
        gap_threshold_seconds=_read_int("NETUSAGE_GAP_THRESHOLD_SECONDS", 10, minimum=1),
        raw_retention_seconds=_read_int("NETUSAGE_RAW_RETENTION_SECONDS", 3600, minimum=60),
        log_level=log_level,
    )
