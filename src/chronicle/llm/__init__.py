"""Text-generation collaborators: provider protocol, mock, classifier, synthesizer."""

from __future__ import annotations

import importlib

from chronicle.core.errors import InvalidConfigError, MissingConfigError

from .collaborators import (
    ClassificationRequest,
    Classifier,
    LLMClassifier,
    LLMSynthesizer,
    SynthesisRequest,
    Synthesizer,
    Verdict,
    parse_verdict,
)
from .mock import MockLLMProvider, create_mock_provider
from .protocol import LLMProvider, LLMResponse, Message, Role, TokenUsage


def load_provider(path: str) -> LLMProvider:
    """Load an :class:`LLMProvider` from a ``module:attribute`` path.

    A callable attribute is treated as a factory and called without
    arguments; anything else must already be a provider.
    """
    if not path:
        raise MissingConfigError("CHRONICLE_LLM_PROVIDER")
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise InvalidConfigError("CHRONICLE_LLM_PROVIDER", path, "Expected 'module:attribute'")
    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise InvalidConfigError("CHRONICLE_LLM_PROVIDER", path, f"Cannot load provider {path!r}: {e}") from e

    is_factory = isinstance(target, type) or (callable(target) and not isinstance(target, LLMProvider))
    provider = target() if is_factory else target
    if not isinstance(provider, LLMProvider):
        raise InvalidConfigError("CHRONICLE_LLM_PROVIDER", path, f"{path!r} is not an LLM provider")
    return provider


__all__ = [
    "LLMProvider",
    "LLMResponse",
    "Message",
    "Role",
    "TokenUsage",
    "MockLLMProvider",
    "create_mock_provider",
    "ClassificationRequest",
    "Classifier",
    "LLMClassifier",
    "LLMSynthesizer",
    "SynthesisRequest",
    "Synthesizer",
    "Verdict",
    "parse_verdict",
    "load_provider",
]
