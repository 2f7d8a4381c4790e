"""
Centralized settings for Chronicle.

All fields can be set via ``CHRONICLE_*`` environment variables (e.g.
``CHRONICLE_TIMEZONE=Europe/Berlin``) or through a ``.env`` file. A single
validated, cached instance is returned by :func:`get_settings`.

Tags:
    chronicle, configuration, settings, pydantic, caching, validation
"""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChronicleSettings(BaseSettings):
    """Chronicle configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CHRONICLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///chronicle.db")
    database_echo: bool = Field(default=False)

    # ── Time ─────────────────────────────────────────────────────
    timezone: str = Field(
        default="America/Los_Angeles",
        description="Zone used for cron evaluation and snippet/document dates",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="auto", description="json, console or auto")

    # ── Scheduler ────────────────────────────────────────────────
    scheduler_backend: str = Field(default="thread", description="thread or apscheduler")
    scheduler_interval_seconds: float = Field(default=30.0, gt=0)
    scheduler_misfire_grace_seconds: int = Field(default=300, ge=0)
    scheduler_stale_run_seconds: int = Field(
        default=21600, gt=0, description="A running row older than this is treated as interrupted"
    )

    # ── Jobs ─────────────────────────────────────────────────────
    day_job_name: str = Field(default="day-organizer")
    day_cron: str = Field(default="*/30 6-23 * * *")
    night_job_name: str = Field(default="night-compiler")
    night_cron: str = Field(default="0 2 * * *")

    # ── Capture ──────────────────────────────────────────────────
    capture_window_minutes: int = Field(default=30, gt=0)
    capture_context_chars: int = Field(default=500, gt=0)

    # ── Reclassification ─────────────────────────────────────────
    reclassify_lookback_hours: int = Field(default=24, gt=0)
    reclassify_batch_size: int = Field(default=50, gt=0)

    # ── Deduplication ────────────────────────────────────────────
    dedup_window: int = Field(default=500, gt=0)
    dedup_threshold: float = Field(default=0.85)

    # ── Compilation ──────────────────────────────────────────────
    compile_window_hours: int = Field(default=24, gt=0)

    # ── Corrections ──────────────────────────────────────────────
    corrections_retention_days: int = Field(default=30, gt=0)

    # ── Pass identities ──────────────────────────────────────────
    cataloger_identity: str = Field(default="chronicle-day-organizer")
    compiler_identity: str = Field(default="chronicle-night-compiler")
    dedup_identity: str = Field(default="chronicle-cleanup")

    # ── Text generation ──────────────────────────────────────────
    llm_provider: str = Field(
        default="",
        description="Dotted 'module:factory' path returning an LLMProvider",
    )
    classifier_model: str | None = Field(default=None)
    synthesizer_model: str | None = Field(default=None)
    classifier_max_tokens: int = Field(default=200, gt=0)
    synthesizer_max_tokens: int = Field(default=2000, gt=0)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {value}") from exc
        return value

    @field_validator("dedup_threshold")
    @classmethod
    def _threshold_range(cls, value: float) -> float:
        if not 0.0 < value <= 1.0:
            raise ValueError("dedup_threshold must be in (0, 1]")
        return value

    @field_validator("scheduler_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("thread", "apscheduler"):
            raise ValueError(f"Unknown scheduler backend: {value}")
        return value

    # ── Derived properties ───────────────────────────────────────

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def json_logs(self) -> bool | None:
        """``None`` lets the logger auto-detect from the terminal."""
        fmt = self.log_format.lower()
        if fmt == "json":
            return True
        if fmt == "console":
            return False
        return None


_settings_cache: dict[str, ChronicleSettings] = {}


def get_settings(*, _force_reload: bool = False) -> ChronicleSettings:
    """Load, validate, and cache a :class:`ChronicleSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = ChronicleSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop the cached settings (tests, CLI option overrides)."""
    _settings_cache.clear()


__all__ = ["ChronicleSettings", "get_settings", "clear_settings_cache"]
