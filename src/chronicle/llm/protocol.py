"""
The text-generation collaborator, as seen from chronicle.

Two passes need a model: the daytime reclassifier (one short JSON verdict
per knowledge item) and the nightly compiler (one markdown document per
project and category). Both go through :class:`LLMProvider`, never a vendor
SDK. A deployment points ``CHRONICLE_LLM_PROVIDER`` at a ``module:factory``
returning anything with this shape.

    LLMProvider.complete([Message.system(...), Message.user(...)], model)
        └─► LLMResponse(content, model, usage)

``content`` may be ``None`` when a backend stops without text; callers
treat that as an empty answer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(Role.USER, content)

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass(frozen=True)
class LLMResponse:
    """One completion. ``model`` is the identifier the backend actually used."""

    content: str | None
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)


@runtime_checkable
class LLMProvider(Protocol):
    """Backend for the classifier and synthesizer adapters.

    Exceptions raised by ``complete`` are wrapped by the adapters into
    ``ClassificationError`` / ``SynthesisError``, which the lifecycle
    stages treat as per-item, retry-next-firing failures.
    """

    def complete(
        self,
        messages: list[Message],
        model: str | None = None,
        *,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        **kwargs: Any,
    ) -> LLMResponse: ...

    def models(self) -> list[str]: ...


__all__ = ["LLMProvider", "LLMResponse", "Message", "Role", "TokenUsage"]
