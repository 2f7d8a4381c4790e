"""Classifier and Synthesizer — the two AI collaborators.

The lifecycle stages depend only on the :class:`Classifier` and
:class:`Synthesizer` protocols. :class:`LLMClassifier` and
:class:`LLMSynthesizer` implement them over any
:class:`~chronicle.llm.protocol.LLMProvider`: they build the prompt, call
the provider once, and turn every failure into a
:class:`~chronicle.core.errors.CollaboratorError` so callers have exactly
one exception family to recover from.

Verdict parsing is tolerant of the shapes classifiers actually return:
``needs_change`` / ``needsChange`` or the inverted ``correct`` flag,
``category`` / ``suggested_category``, JSON wrapped in prose or code fences.

Tags:
    chronicle, llm, classifier, synthesizer, prompts
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from chronicle.core.errors import (
    ChronicleError,
    ClassificationError,
    SynthesisError,
    VerdictParseError,
)
from chronicle.llm.protocol import LLMProvider, Message

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


# ── Requests and verdicts ────────────────────────────────────────────────


@dataclass(frozen=True)
class ClassificationRequest:
    """One knowledge item to validate against the category vocabulary."""

    title: str
    category: str | None
    summary_preview: str
    vocabulary: tuple[str, ...]


@dataclass(frozen=True)
class Verdict:
    needs_change: bool
    category: str | None = None
    subcategory: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class SynthesisRequest:
    """One project/category/day worth of rendered entries."""

    project_path: str
    category: str
    doc_date: str
    rendered_entries: str
    entry_count: int


@runtime_checkable
class Classifier(Protocol):
    def classify(self, request: ClassificationRequest) -> Verdict:
        """Return a verdict or raise :class:`ClassificationError`."""
        ...


@runtime_checkable
class Synthesizer(Protocol):
    def synthesize(self, request: SynthesisRequest) -> str:
        """Return a document body or raise :class:`SynthesisError`."""
        ...


# ── Verdict parsing ──────────────────────────────────────────────────────


def _extract_json_object(text: str) -> dict[str, Any]:
    candidates: list[str] = [m.group(1) for m in _FENCE_RE.finditer(text)]
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])
    for candidate in candidates:
        try:
            parsed = json.loads(candidate.strip())
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise VerdictParseError(text)


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] not in (None, ""):
            return data[key]
    return None


def _as_bool(value: Any, raw: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "yes", "false", "no"):
        return value.strip().lower() in ("true", "yes")
    raise VerdictParseError(raw)


def parse_verdict(text: str) -> Verdict:
    """Parse a classifier answer into a :class:`Verdict`.

    Raises:
        VerdictParseError: no JSON object, no change flag, or a change
            without a target category.
    """
    data = _extract_json_object(text)

    flag = _first(data, "needs_change", "needsChange")
    if flag is not None:
        needs_change = _as_bool(flag, text)
    elif "correct" in data:
        needs_change = not _as_bool(data["correct"], text)
    else:
        raise VerdictParseError(text, "Classifier verdict has no change flag")

    category = _first(data, "category", "suggested_category", "suggestedCategory")
    subcategory = _first(data, "subcategory", "suggested_subcategory", "suggestedSubcategory")
    reason = _first(data, "reason", "explanation")

    if needs_change and not category:
        raise VerdictParseError(text, "Classifier asked for a change without a category")

    return Verdict(
        needs_change=needs_change,
        category=str(category).strip().lower() if category else None,
        subcategory=str(subcategory).strip() if subcategory else None,
        reason=str(reason) if reason else None,
    )


# ── Prompt builders ──────────────────────────────────────────────────────


CLASSIFIER_SYSTEM_PROMPT = (
    "You review how software-project knowledge notes are categorized. "
    "Answer with a single JSON object and nothing else."
)

SYNTHESIZER_SYSTEM_PROMPT = (
    "You compile a developer's daily notes into a concise document. "
    "ONLY use the information provided. Do not invent details, names, "
    "numbers or outcomes that are not present in the entries."
)


def build_classification_prompt(request: ClassificationRequest) -> str:
    return (
        f"Title: {request.title}\n"
        f"Current category: {request.category or '(none)'}\n"
        f"Summary: {request.summary_preview or '(none)'}\n\n"
        f"Category vocabulary: {', '.join(request.vocabulary)}\n\n"
        "Is the current category correct? Respond as JSON:\n"
        '{"needs_change": true|false, "category": "<one of the vocabulary>", '
        '"subcategory": "<optional>", "reason": "<short reason>"}'
    )


def build_synthesis_prompt(request: SynthesisRequest) -> str:
    label = request.category.replace("_", " ")
    return (
        f"Project: {request.project_path}\n"
        f"Date: {request.doc_date}\n"
        f"Category: {label} ({request.entry_count} entries)\n\n"
        f"Entries:\n{request.rendered_entries}\n\n"
        f"Write the {label} document for this day in Markdown. "
        "ONLY use the information provided above."
    )


# ── LLM-backed collaborators ─────────────────────────────────────────────


class LLMClassifier:
    """:class:`Classifier` over an :class:`LLMProvider`."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        model: str | None = None,
        max_tokens: int = 200,
    ) -> None:
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens

    def classify(self, request: ClassificationRequest) -> Verdict:
        messages = [
            Message.system(CLASSIFIER_SYSTEM_PROMPT),
            Message.user(build_classification_prompt(request)),
        ]
        try:
            response = self.provider.complete(
                messages, self.model, temperature=0.0, max_tokens=self.max_tokens
            )
        except ChronicleError:
            raise
        except Exception as e:
            raise ClassificationError(f"Classifier call failed: {e}", cause=e) from e
        return parse_verdict(response.content or "")


class LLMSynthesizer:
    """:class:`Synthesizer` over an :class:`LLMProvider`."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        model: str | None = None,
        max_tokens: int = 2000,
    ) -> None:
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens

    def synthesize(self, request: SynthesisRequest) -> str:
        messages = [
            Message.system(SYNTHESIZER_SYSTEM_PROMPT),
            Message.user(build_synthesis_prompt(request)),
        ]
        try:
            response = self.provider.complete(
                messages, self.model, temperature=0.3, max_tokens=self.max_tokens
            )
        except ChronicleError:
            raise
        except Exception as e:
            raise SynthesisError(f"Synthesizer call failed: {e}", cause=e) from e

        content = (response.content or "").strip()
        if not content:
            raise SynthesisError("Synthesizer returned an empty document")
        return content


__all__ = [
    "ClassificationRequest",
    "Verdict",
    "SynthesisRequest",
    "Classifier",
    "Synthesizer",
    "parse_verdict",
    "build_classification_prompt",
    "build_synthesis_prompt",
    "LLMClassifier",
    "LLMSynthesizer",
]
