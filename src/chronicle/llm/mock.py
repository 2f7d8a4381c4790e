"""
Offline provider for tests and dry runs.

Answers are picked by prompt substring, so one instance can serve both
passes: ``create_mock_provider`` keys the classifier prompt (it always lists
the category vocabulary) to a "no change" verdict and lets every synthesis
fall through to a placeholder document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chronicle.llm.protocol import LLMResponse, Message, Role, TokenUsage

# Marker line present in every classification prompt.
CLASSIFIER_MARKER = "Category vocabulary:"


@dataclass
class MockLLMProvider:
    """Deterministic :class:`~chronicle.llm.protocol.LLMProvider`.

    ``failures`` are checked against the whole conversation and win over
    ``responses``, which are checked against the last user message.
    Every call is recorded in ``calls``.
    """

    default_response: str = "Mock LLM response"
    responses: dict[str, str] = field(default_factory=dict)
    failures: dict[str, Exception] = field(default_factory=dict)
    model_name: str = "mock-model-v1"
    calls: list[dict[str, Any]] = field(default_factory=list, repr=False)

    def complete(
        self,
        messages: list[Message],
        model: str | None = None,
        *,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        **kwargs: Any,
    ) -> LLMResponse:
        used_model = model or self.model_name
        self.calls.append(
            {
                "messages": [m.as_dict() for m in messages],
                "model": used_model,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )

        conversation = "\n".join(m.content for m in messages)
        for needle, error in self.failures.items():
            if needle in conversation:
                raise error

        prompt = next((m.content for m in reversed(messages) if m.role is Role.USER), "")
        content = next(
            (answer for needle, answer in self.responses.items() if needle in prompt),
            self.default_response,
        )
        # word counts stand in for tokens
        usage = TokenUsage(len(conversation.split()), len(content.split()))
        return LLMResponse(content=content, model=used_model, usage=usage)

    def models(self) -> list[str]:
        return [self.model_name]


def create_mock_provider() -> MockLLMProvider:
    """``CHRONICLE_LLM_PROVIDER`` target that needs no backend.

    Every item is confirmed as correctly categorized and every document
    reads ``(mock synthesis)``.
    """
    return MockLLMProvider(
        default_response="(mock synthesis)",
        responses={CLASSIFIER_MARKER: '{"needs_change": false}'},
    )


__all__ = ["MockLLMProvider", "create_mock_provider"]
