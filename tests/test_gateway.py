"""Tests for provider selection, retries and the provider factory."""

import asyncio

import pytest

from config import Settings
from contracts import Complexity, ModelConfig, TaskType
from errors import AllAttemptsExhaustedError, NoAvailableModelError, ProviderError
from providers import (
    AnthropicProvider,
    GeminiProvider,
    LiteLLMProvider,
    ModelGateway,
    OpenAIProvider,
    build_providers,
    list_providers,
)
from fakes import FakeProvider


class TestSelectModel:
    """Test static priority selection."""

    def test_highest_priority_candidate_wins(self, make_gateway):
        gateway = make_gateway(
            FakeProvider("low", priority=1),
            FakeProvider("high", priority=4),
            FakeProvider("mid", priority=2),
        )
        config = gateway.select_model(TaskType.CODING, Complexity.HIGH)
        assert config.provider == "high"
        assert config.model_name == "high-model"
        assert config.task_type == TaskType.CODING

    def test_specialization_filters_candidates(self, make_gateway):
        gateway = make_gateway(
            FakeProvider("reasoner", priority=4, task_types=[TaskType.REASONING]),
            FakeProvider("creative", priority=3, task_types=[TaskType.CREATIVE]),
        )
        assert gateway.select_model(TaskType.CREATIVE, Complexity.MEDIUM).provider == "creative"
        assert gateway.select_model(TaskType.REASONING, Complexity.MEDIUM).provider == "reasoner"
        assert gateway.select_model(TaskType.SPEED, Complexity.LOW) is None

    def test_unavailable_providers_are_skipped(self, make_gateway):
        gateway = make_gateway(
            FakeProvider("offline", priority=9, available=False),
            FakeProvider("online", priority=1),
        )
        assert gateway.select_model(TaskType.GENERAL).provider == "online"

    def test_no_providers(self, empty_gateway):
        assert empty_gateway.select_model(TaskType.REASONING, Complexity.HIGH) is None
        assert not empty_gateway.has_any_model()

    def test_require_model_raises(self, empty_gateway):
        with pytest.raises(NoAvailableModelError) as exc_info:
            empty_gateway.require_model(TaskType.REASONING, Complexity.HIGH, "prompt optimization")
        assert "No available model" in str(exc_info.value)
        assert exc_info.value.task_type == "reasoning"

    def test_available_models_lists_configured_providers(self, make_gateway):
        gateway = make_gateway(
            FakeProvider("a", priority=4),
            FakeProvider("b", priority=2, available=False),
        )
        models = gateway.available_models()
        assert [m.provider for m in models] == ["a"]
        assert models[0].model_name == "a-model"

    def test_refresh_rebuilds_from_settings(self, test_settings):
        gateway = ModelGateway(settings=test_settings)
        assert not gateway.has_any_model()

        test_settings.openai_api_key = "sk-test"
        gateway.refresh()
        assert list(gateway.providers) == ["openai"]
        assert gateway.select_model(TaskType.CODING, Complexity.MEDIUM).provider == "openai"


class TestCall:
    """Test bounded retries with exponential backoff."""

    @pytest.mark.asyncio
    async def test_success_first_try(self, make_gateway, sleeps):
        provider = FakeProvider(replies=["hello"])
        gateway = make_gateway(provider)
        response = await gateway.call(gateway.select_model(TaskType.GENERAL), "hi")
        assert response.content == "hello"
        assert response.tokens_used == 15
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, make_gateway, test_settings, sleeps):
        test_settings.retry_base_delay_seconds = 1.0
        provider = FakeProvider(replies=[RuntimeError("503"), RuntimeError("429"), "ok"])
        gateway = make_gateway(provider)
        response = await gateway.call(gateway.select_model(TaskType.GENERAL), "hi", max_retries=3)
        assert response.content == "ok"
        assert len(provider.calls) == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted(self, make_gateway, sleeps):
        provider = FakeProvider(replies=[RuntimeError("down")])
        gateway = make_gateway(provider)
        with pytest.raises(AllAttemptsExhaustedError) as exc_info:
            await gateway.call(gateway.select_model(TaskType.GENERAL), "hi", max_retries=3)
        assert exc_info.value.attempts == 3
        assert len(provider.calls) == 3
        assert len(sleeps) == 2
        assert "down" in str(exc_info.value.last_error)

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self, make_gateway, test_settings):
        test_settings.api_timeout_seconds = 0.01

        class SlowProvider(FakeProvider):
            async def complete(self, *args, **kwargs):
                await asyncio.sleep(1)

        gateway = make_gateway(SlowProvider("slow"))
        with pytest.raises(AllAttemptsExhaustedError):
            await gateway.call(gateway.select_model(TaskType.GENERAL), "hi", max_retries=1)

    @pytest.mark.asyncio
    async def test_system_instruction_is_passed(self, make_gateway):
        provider = FakeProvider(replies=["ok"])
        gateway = make_gateway(provider)
        await gateway.call(gateway.select_model(TaskType.GENERAL), "hi", "Be terse.")
        assert provider.calls[0]["system"] == "Be terse."

    @pytest.mark.asyncio
    async def test_unknown_provider(self, empty_gateway):
        config = ModelConfig(
            provider="ghost",
            model_name="x",
            task_type=TaskType.GENERAL,
            complexity=Complexity.LOW,
        )
        with pytest.raises(ProviderError):
            await empty_gateway.call(config, "hi")


class TestProviderFactory:
    """Test building real providers from settings (no network)."""

    def test_nothing_configured(self):
        settings = Settings(_env_file=None)
        assert build_providers(settings) == []
        assert list_providers(settings) == {
            "anthropic": False,
            "gemini": False,
            "openai": False,
            "litellm": False,
        }

    def test_priority_order(self):
        settings = Settings(
            _env_file=None,
            anthropic_api_key="a",
            gemini_api_key="g",
            openai_api_key="o",
            deepseek_api_key="d",
        )
        providers = build_providers(settings)
        assert [type(p) for p in providers] == [AnthropicProvider, GeminiProvider, OpenAIProvider, LiteLLMProvider]

    def test_blank_key_is_not_configured(self):
        settings = Settings(_env_file=None, openai_api_key="   ")
        assert list_providers(settings)["openai"] is False

    def test_vendor_env_fallback(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        settings = Settings(_env_file=None)
        assert settings.anthropic_api_key == "sk-ant-test"
        assert list_providers(settings)["anthropic"] is True

    def test_specializations(self):
        anthropic = AnthropicProvider(api_key="a")
        gemini = GeminiProvider(api_key="g")
        assert anthropic.handles(TaskType.REASONING, Complexity.LOW)
        assert anthropic.handles(TaskType.GENERAL, Complexity.HIGH)
        assert not anthropic.handles(TaskType.CREATIVE, Complexity.MEDIUM)
        assert gemini.handles(TaskType.CREATIVE, Complexity.MEDIUM)
        assert not gemini.handles(TaskType.CODING, Complexity.HIGH)
