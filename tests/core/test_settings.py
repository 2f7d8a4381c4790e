"""Tests for ChronicleSettings."""

from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from chronicle.core.settings import ChronicleSettings, clear_settings_cache, get_settings


class TestDefaults:
    """Default values."""

    def test_defaults(self):
        settings = ChronicleSettings(_env_file=None)
        assert settings.database_url == "sqlite:///chronicle.db"
        assert settings.timezone == "America/Los_Angeles"
        assert settings.day_cron == "*/30 6-23 * * *"
        assert settings.night_cron == "0 2 * * *"
        assert settings.dedup_threshold == 0.85
        assert settings.dedup_window == 500
        assert settings.capture_window_minutes == 30
        assert settings.reclassify_batch_size == 50
        assert settings.compile_window_hours == 24
        assert settings.corrections_retention_days == 30
        assert settings.scheduler_backend == "thread"

    def test_zone_property(self):
        settings = ChronicleSettings(_env_file=None, timezone="Europe/Berlin")
        assert settings.zone == ZoneInfo("Europe/Berlin")


class TestEnvironment:
    """CHRONICLE_* environment variables."""

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("CHRONICLE_DEDUP_THRESHOLD", "0.5")
        monkeypatch.setenv("CHRONICLE_NIGHT_JOB_NAME", "nightly")
        settings = ChronicleSettings(_env_file=None)
        assert settings.dedup_threshold == 0.5
        assert settings.night_job_name == "nightly"

    def test_get_settings_caches(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("CHRONICLE_LOG_LEVEL", "DEBUG")
        assert get_settings() is first
        clear_settings_cache()
        assert get_settings().log_level == "DEBUG"


class TestValidation:
    """Field validators."""

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValidationError):
            ChronicleSettings(_env_file=None, timezone="Mars/Olympus_Mons")

    @pytest.mark.parametrize("value", [0.0, -0.1, 1.5])
    def test_threshold_range(self, value):
        with pytest.raises(ValidationError):
            ChronicleSettings(_env_file=None, dedup_threshold=value)

    def test_threshold_upper_bound_inclusive(self):
        assert ChronicleSettings(_env_file=None, dedup_threshold=1.0).dedup_threshold == 1.0

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            ChronicleSettings(_env_file=None, scheduler_backend="celery")

    def test_backend_is_normalized(self):
        assert ChronicleSettings(_env_file=None, scheduler_backend="APScheduler").scheduler_backend == "apscheduler"


class TestLogFormat:
    """json_logs derivation."""

    @pytest.mark.parametrize("fmt, expected", [("json", True), ("console", False), ("auto", None)])
    def test_json_logs(self, fmt, expected):
        assert ChronicleSettings(_env_file=None, log_format=fmt).json_logs is expected
