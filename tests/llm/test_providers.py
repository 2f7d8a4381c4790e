"""Tests for MockLLMProvider and provider loading."""

import pytest

from chronicle.core.errors import InvalidConfigError, MissingConfigError
from chronicle.llm import LLMProvider, Message, MockLLMProvider, create_mock_provider, load_provider


class TestMockLLMProvider:
    """Deterministic provider behaviour."""

    def test_default_response(self):
        provider = MockLLMProvider()
        response = provider.complete([Message.user("hello there")])
        assert response.content == "Mock LLM response"
        assert response.model == "mock-model-v1"
        assert response.usage.prompt_tokens == 2
        assert response.usage.total_tokens == 5
        assert len(provider.calls) == 1

    def test_responses_match_last_user_message(self):
        provider = MockLLMProvider(responses={"weather": "sunny"})
        assert provider.complete([Message.user("what's the weather")]).content == "sunny"
        assert provider.complete([Message.system("weather"), Message.user("other")]).content == "Mock LLM response"

    def test_failures(self):
        provider = MockLLMProvider(failures={"boom": RuntimeError("provider down")})
        with pytest.raises(RuntimeError):
            provider.complete([Message.system("boom"), Message.user("please")])
        assert len(provider.calls) == 1

    def test_calls_record_messages(self):
        provider = MockLLMProvider()
        provider.complete([Message.system("rules"), Message.user("x")], "big", max_tokens=10)
        assert provider.calls == [
            {
                "messages": [{"role": "system", "content": "rules"}, {"role": "user", "content": "x"}],
                "model": "big",
                "temperature": 0.0,
                "max_tokens": 10,
            }
        ]

    def test_is_provider(self):
        assert isinstance(MockLLMProvider(), LLMProvider)
        assert MockLLMProvider().models() == ["mock-model-v1"]

    def test_dry_run_factory(self):
        provider = create_mock_provider()
        verdict = provider.complete([Message.user("Category vocabulary: api")]).content
        assert verdict == '{"needs_change": false}'
        assert provider.complete([Message.user("Entries:")]).content == "(mock synthesis)"


class TestLoadProvider:
    """module:attribute provider loading."""

    def test_factory_function(self):
        provider = load_provider("chronicle.llm.mock:create_mock_provider")
        assert isinstance(provider, MockLLMProvider)

    def test_class(self):
        assert isinstance(load_provider("chronicle.llm.mock:MockLLMProvider"), MockLLMProvider)

    def test_missing(self):
        with pytest.raises(MissingConfigError):
            load_provider("")

    @pytest.mark.parametrize("path", ["chronicle.llm.mock", ":factory", "chronicle.llm.mock:"])
    def test_bad_format(self, path):
        with pytest.raises(InvalidConfigError):
            load_provider(path)

    @pytest.mark.parametrize("path", ["no_such_module_xyz:factory", "chronicle.llm.mock:nope"])
    def test_unloadable(self, path):
        with pytest.raises(InvalidConfigError):
            load_provider(path)

    def test_not_a_provider(self):
        with pytest.raises(InvalidConfigError):
            load_provider("chronicle.core.enums:KNOWLEDGE_CATEGORIES")
