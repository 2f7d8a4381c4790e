"""
Knowledge lifecycle stages.

Daytime:  capture → reclassify
Nightly:  dedup → compile → purge resolved corrections

Each stage returns a :class:`StageResult` with explicit per-item outcomes
(``applied``, ``skipped``, ``retry``).
"""

from .capture import SnippetCapture
from .compiler import CompilationEngine, render_entries
from .corrections import CorrectionApplier
from .dedup import SimilarityDeduplicator, cluster_items, jaccard_similarity
from .pipelines import (
    DAY_JOB_TYPE,
    NIGHT_JOB_TYPE,
    DaytimePipeline,
    NightlyPipeline,
    Runtime,
    build_daytime,
    build_nightly,
    build_runtime,
    job_specs,
)
from .reclassify import ReclassificationPass
from .results import ItemOutcome, ItemResult, StageResult

__all__ = [
    "ItemOutcome",
    "ItemResult",
    "StageResult",
    "SnippetCapture",
    "ReclassificationPass",
    "SimilarityDeduplicator",
    "cluster_items",
    "jaccard_similarity",
    "CompilationEngine",
    "render_entries",
    "CorrectionApplier",
    "DaytimePipeline",
    "NightlyPipeline",
    "Runtime",
    "build_daytime",
    "build_nightly",
    "build_runtime",
    "job_specs",
    "DAY_JOB_TYPE",
    "NIGHT_JOB_TYPE",
]
