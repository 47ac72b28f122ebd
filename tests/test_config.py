"""Tests de configuración desde el entorno."""

import os

import pytest

from common.config import Settings, get_settings
from usage_monitor.core.errors import ConfigError

ENV_VARS = (
    "NETUSAGE_DB_PATH",
    "NETUSAGE_SAMPLING_INTERVAL_MS",
    "NETUSAGE_DATA_RETENTION_DAYS",
    "NETUSAGE_MAX_SPEED_THRESHOLD_GBPS",
    "NETUSAGE_GAP_THRESHOLD_SECONDS",
    "NETUSAGE_RAW_RETENTION_SECONDS",
    "NETUSAGE_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Sin .env del directorio de trabajo.
    monkeypatch.setenv("NETUSAGE_ENV_FILE", str(tmp_path / "missing.env"))


class TestGetSettings:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NETUSAGE_DB_PATH", str(tmp_path / "u.db"))

        settings = get_settings()

        assert settings.db_path == str(tmp_path / "u.db")
        assert settings.sampling_interval_ms == 1000
        assert settings.data_retention_days == 365
        assert settings.max_speed_threshold_gbps == 10
        assert settings.gap_threshold_seconds == 10
        assert settings.raw_retention_seconds == 3600
        assert settings.log_level == "INFO"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("NETUSAGE_SAMPLING_INTERVAL_MS", "500")
        monkeypatch.setenv("NETUSAGE_DATA_RETENTION_DAYS", "30")
        monkeypatch.setenv("NETUSAGE_MAX_SPEED_THRESHOLD_GBPS", "2.5")
        monkeypatch.setenv("NETUSAGE_LOG_LEVEL", "debug")

        settings = get_settings()

        assert settings.sampling_interval_ms == 500
        assert settings.data_retention_days == 30
        assert settings.max_speed_threshold_gbps == 2.5
        assert settings.log_level == "DEBUG"

    def test_env_file_is_loaded(self, monkeypatch, tmp_path):
        env_file = tmp_path / "netusage.env"
        env_file.write_text("NETUSAGE_DATA_RETENTION_DAYS=90\n")
        monkeypatch.setenv("NETUSAGE_ENV_FILE", str(env_file))

        try:
            assert get_settings().data_retention_days == 90
        finally:
            os.environ.pop("NETUSAGE_DATA_RETENTION_DAYS", None)

    @pytest.mark.parametrize(
        "name, value",
        [
            ("NETUSAGE_SAMPLING_INTERVAL_MS", "fast"),
            ("NETUSAGE_SAMPLING_INTERVAL_MS", "10"),
            ("NETUSAGE_DATA_RETENTION_DAYS", "0"),
            ("NETUSAGE_MAX_SPEED_THRESHOLD_GBPS", "-1"),
            ("NETUSAGE_LOG_LEVEL", "LOUD"),
        ],
    )
    def test_malformed_values_raise_config_error(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ConfigError):
            get_settings()


class TestDerivedSettings:
    def test_speed_caps(self):
        settings = Settings(db_path=":memory:")

        assert settings.max_bytes_per_second == 1_250_000_000
        assert settings.max_bytes_per_hour == 4_500_000_000_000

    def test_database_url(self):
        assert Settings(db_path=":memory:").database_url == "sqlite://"
        assert Settings(db_path="/tmp/x.db").database_url == "sqlite:////tmp/x.db"
