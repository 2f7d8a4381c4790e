"""
Daytime and nightly pipelines, and the wiring that puts them on the scheduler.

    day_organize   (default */30 6-23 * * *)   capture → reclassify
    night_compile  (default 0 2 * * *)         dedup → compile → purge corrections

A pipeline is a scheduler handler: ``run_job(job, now)`` runs its stages in
order and returns a JSON-able summary that the ledger stores as
``last_result``. Item-level failures are folded into the stage results;
anything that escapes a stage fails the run and lands in ``last_error``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from chronicle.core.database import open_connection
from chronicle.core.logging import get_logger
from chronicle.core.models import ScheduleJob
from chronicle.core.protocols import Connection
from chronicle.core.schema import create_tables
from chronicle.core.settings import ChronicleSettings, get_settings
from chronicle.llm import LLMClassifier, LLMProvider, LLMSynthesizer, load_provider
from chronicle.llm.collaborators import Classifier, Synthesizer
from chronicle.scheduling import JobCreate, SchedulerService, create_scheduler

from .capture import SnippetCapture
from .compiler import CompilationEngine
from .corrections import CorrectionApplier
from .dedup import SimilarityDeduplicator
from .reclassify import ReclassificationPass

logger = get_logger(__name__)

DAY_JOB_TYPE = "day_organize"
NIGHT_JOB_TYPE = "night_compile"


class DaytimePipeline:
    """Capture fresh sources, then re-validate knowledge categories."""

    job_type = DAY_JOB_TYPE

    def __init__(self, capture: SnippetCapture, reclassify: ReclassificationPass) -> None:
        self.capture = capture
        self.reclassify = reclassify

    def run(self, now: datetime) -> dict[str, Any]:
        return {
            "capture": self.capture.run(now).to_dict(),
            "reclassify": self.reclassify.run(now).to_dict(),
        }

    def run_job(self, job: ScheduleJob, now: datetime) -> dict[str, Any]:
        summary = self.run(now)
        logger.info("daytime_pipeline_finished", job_name=job.job_name, **_headline(summary))
        return summary


class NightlyPipeline:
    """Flag duplicates, compile the day's entries, purge old corrections."""

    job_type = NIGHT_JOB_TYPE

    def __init__(
        self,
        dedup: SimilarityDeduplicator,
        compiler: CompilationEngine,
        corrections: CorrectionApplier,
        *,
        retention_days: int = 30,
    ) -> None:
        self.dedup = dedup
        self.compiler = compiler
        self.corrections = corrections
        self.retention_days = retention_days

    def run(self, now: datetime) -> dict[str, Any]:
        return {
            "dedup": self.dedup.run(now).to_dict(),
            "compile": self.compiler.run(now).to_dict(),
            "corrections_purged": self.corrections.purge_resolved(self.retention_days, now=now),
        }

    def run_job(self, job: ScheduleJob, now: datetime) -> dict[str, Any]:
        summary = self.run(now)
        logger.info("nightly_pipeline_finished", job_name=job.job_name, **_headline(summary))
        return summary


def _headline(summary: dict[str, Any]) -> dict[str, Any]:
    return {
        f"{stage}_applied": data.get("applied", 0)
        for stage, data in summary.items()
        if isinstance(data, dict)
    }


# =============================================================================
# Wiring
# =============================================================================


def job_specs(settings: ChronicleSettings) -> list[JobCreate]:
    """Ledger rows for the two pipelines, from settings."""
    return [
        JobCreate(DAY_JOB_TYPE, settings.day_job_name, settings.day_cron, settings.timezone),
        JobCreate(NIGHT_JOB_TYPE, settings.night_job_name, settings.night_cron, settings.timezone),
    ]


def build_daytime(
    conn: Connection, classifier: Classifier, settings: ChronicleSettings
) -> DaytimePipeline:
    return DaytimePipeline(
        SnippetCapture(
            conn,
            zone=settings.zone,
            window_minutes=settings.capture_window_minutes,
            context_chars=settings.capture_context_chars,
        ),
        ReclassificationPass(
            conn,
            classifier,
            identity=settings.cataloger_identity,
            lookback_hours=settings.reclassify_lookback_hours,
            batch_size=settings.reclassify_batch_size,
        ),
    )


def build_nightly(
    conn: Connection, synthesizer: Synthesizer, settings: ChronicleSettings
) -> NightlyPipeline:
    return NightlyPipeline(
        SimilarityDeduplicator(
            conn,
            identity=settings.dedup_identity,
            threshold=settings.dedup_threshold,
            window=settings.dedup_window,
        ),
        CompilationEngine(
            conn,
            synthesizer,
            zone=settings.zone,
            identity=settings.compiler_identity,
            window_hours=settings.compile_window_hours,
        ),
        CorrectionApplier(conn, actor=settings.dedup_identity),
        retention_days=settings.corrections_retention_days,
    )


@dataclass
class Runtime:
    """Everything a running agent needs, wired from one settings object."""

    settings: ChronicleSettings
    conn: Connection
    scheduler: SchedulerService
    daytime: DaytimePipeline
    nightly: NightlyPipeline

    def seed_jobs(self, now: datetime | None = None) -> list[ScheduleJob]:
        """Register both pipeline jobs (idempotent)."""
        return [self.scheduler.register(spec, now=now) for spec in job_specs(self.settings)]

    def close(self) -> None:
        self.scheduler.stop()
        self.conn.close()


def build_runtime(
    settings: ChronicleSettings | None = None,
    *,
    conn: Connection | None = None,
    provider: LLMProvider | None = None,
    init_schema: bool = True,
) -> Runtime:
    """Open the store, load the provider and register both pipelines.

    Raises:
        MissingConfigError: no *provider* given and ``CHRONICLE_LLM_PROVIDER`` unset
        InvalidConfigError: the provider path cannot be loaded
    """
    settings = settings or get_settings()
    provider = provider or load_provider(settings.llm_provider)
    conn = conn or open_connection(settings.database_url, echo=settings.database_echo)
    if init_schema:
        create_tables(conn)

    classifier = LLMClassifier(
        provider, model=settings.classifier_model, max_tokens=settings.classifier_max_tokens
    )
    synthesizer = LLMSynthesizer(
        provider, model=settings.synthesizer_model, max_tokens=settings.synthesizer_max_tokens
    )
    daytime = build_daytime(conn, classifier, settings)
    nightly = build_nightly(conn, synthesizer, settings)

    scheduler = create_scheduler(
        conn,
        backend=settings.scheduler_backend,
        interval_seconds=settings.scheduler_interval_seconds,
        misfire_grace_seconds=settings.scheduler_misfire_grace_seconds,
        stale_run_seconds=settings.scheduler_stale_run_seconds,
    )
    scheduler.register_handler(DAY_JOB_TYPE, daytime.run_job)
    scheduler.register_handler(NIGHT_JOB_TYPE, nightly.run_job)
    return Runtime(settings, conn, scheduler, daytime, nightly)


__all__ = [
    "DAY_JOB_TYPE",
    "NIGHT_JOB_TYPE",
    "DaytimePipeline",
    "NightlyPipeline",
    "Runtime",
    "build_daytime",
    "build_nightly",
    "build_runtime",
    "job_specs",
]
