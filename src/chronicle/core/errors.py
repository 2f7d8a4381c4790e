"""
Structured error types for Chronicle.

Every failure the knowledge lifecycle can produce is expressed as a
ChronicleError subclass carrying a category, an explicit retry flag, a
context dict and an optional chained cause. The recovery boundary for each
family is fixed:

    ┌──────────────────────────────────────────────────────────────────┐
    │                       ChronicleError                              │
    │  (category, retryable, context, cause)                            │
    ├──────────────────────────────────────────────────────────────────┤
    │  CollaboratorError (retryable)   recovered per item/category      │
    │      ClassificationError                                          │
    │      VerdictParseError                                            │
    │      SynthesisError                                               │
    │                                                                   │
    │  StoreError                      recovered per item/project       │
    │      RecordNotFoundError                                          │
    │                                                                   │
    │  ConfigError                     fatal at startup                 │
    │      MissingConfigError                                           │
    │      InvalidConfigError                                           │
    │                                                                   │
    │  ScheduleError                   recorded on the ledger row       │
    │  CorrectionError                 reported to the operator         │
    └──────────────────────────────────────────────────────────────────┘

Collaborator errors never escape a stage: the affected item keeps its
markers and is picked up again on the next firing. Anything that does escape
a pipeline is caught by the scheduler and written to ``last_error``.

Usage:
    from chronicle.core.errors import ClassificationError

    try:
        verdict = classifier.classify(request)
    except ClassificationError as e:
        logger.warning("classify_failed", item_id=item.id, error=str(e))
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    COLLABORATOR = "COLLABORATOR"  # Classifier, synthesizer, LLM provider
    DATABASE = "DATABASE"          # Store reads and writes
    CONFIG = "CONFIG"              # Missing config, invalid settings
    ORCHESTRATION = "ORCHESTRATION"  # Scheduler, ledger, handlers
    VALIDATION = "VALIDATION"      # Bad input to an operation
    INTERNAL = "INTERNAL"          # Bugs, unexpected state


class ChronicleError(Exception):
    """
    Base exception for all Chronicle errors.

    Subclasses set ``default_category`` and ``default_retryable`` so callers
    can decide how to recover without inspecting message text.

    Examples:
        >>> error = ChronicleError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(job_name="night-compile").context
        {'job_name': 'night-compile'}
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ChronicleError:
        """Add context to this error (fluent API)."""
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# COLLABORATOR ERRORS (Retryable on the next firing)
# =============================================================================


class CollaboratorError(ChronicleError):
    """
    The external text-generation collaborator failed.

    Retryable: the item or category that triggered it is left untouched so
    the next scheduled firing selects it again.
    """

    default_category = ErrorCategory.COLLABORATOR
    default_retryable = True


class ClassificationError(CollaboratorError):
    """The classifier could not produce a verdict."""


class VerdictParseError(ClassificationError):
    """The classifier answered, but the answer is not a usable verdict."""

    def __init__(self, raw: str, message: str | None = None):
        self.raw = raw
        preview = raw if len(raw) <= 120 else raw[:117] + "..."
        super().__init__(message or f"Unparsable classifier verdict: {preview!r}")


class SynthesisError(CollaboratorError):
    """The synthesizer could not produce a document body."""


# =============================================================================
# STORE ERRORS
# =============================================================================


class StoreError(ChronicleError):
    """Database query or write error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class RecordNotFoundError(StoreError):
    """A referenced row does not exist."""

    def __init__(self, table: str, key: Any):
        self.table = table
        self.key = key
        super().__init__(f"{table} record not found: {key!r}")


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(ChronicleError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# ORCHESTRATION ERRORS
# =============================================================================


class ScheduleError(ChronicleError):
    """Schedule configuration or execution error."""

    default_category = ErrorCategory.ORCHESTRATION
    default_retryable = False


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class CorrectionError(ChronicleError):
    """A correction is not pending, or cannot be applied as requested."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, ChronicleError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, ChronicleError):
        return error.category
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.COLLABORATOR
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.INTERNAL


def describe_error(error: BaseException) -> str:
    """Short ``Type: message`` text stored in ``last_error`` columns."""
    message = str(error) or error.__class__.__name__
    return f"{error.__class__.__name__}: {message}"


__all__ = [
    "ErrorCategory",
    "ChronicleError",
    "CollaboratorError",
    "ClassificationError",
    "VerdictParseError",
    "SynthesisError",
    "StoreError",
    "RecordNotFoundError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "ScheduleError",
    "CorrectionError",
    "is_retryable",
    "categorize_error",
    "describe_error",
]
