"""Tests for the vendor providers with mocked SDK clients."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from contracts import Complexity, TaskType
from providers.anthropic_provider import AnthropicProvider
from providers.base import LLMResponse
from providers.litellm_provider import LiteLLMProvider


class TestLiteLLMProvider:
    """Test LiteLLMProvider with mocked litellm."""

    @pytest.fixture
    def mock_completion_response(self):
        resp = MagicMock()
        resp.choices = [MagicMock()]
        resp.choices[0].message.content = "Hello, world."
        resp.usage = MagicMock(prompt_tokens=10, completion_tokens=5)
        resp.model = "deepseek/deepseek-chat"
        return resp

    @pytest.mark.asyncio
    async def test_complete_returns_llm_response(self, mock_completion_response):
        with patch("litellm.acompletion", new=AsyncMock(return_value=mock_completion_response)):
            provider = LiteLLMProvider(default_model="deepseek/deepseek-chat", api_key="k")
            result = await provider.complete("You are helpful.", "Hi", max_tokens=100)
        assert isinstance(result, LLMResponse)
        assert result.content == "Hello, world."
        assert result.total_tokens == 15
        assert result.model == "deepseek/deepseek-chat"
        assert result.provider == "litellm"

    @pytest.mark.asyncio
    async def test_complete_passes_key_and_metadata(self, mock_completion_response):
        mock_completion = AsyncMock(return_value=mock_completion_response)
        with patch("litellm.acompletion", new=mock_completion):
            provider = LiteLLMProvider(default_model="deepseek/deepseek-chat", api_key="k", metadata={"agent": "coder"})
            await provider.complete("Sys", "User", model="deepseek/deepseek-coder")
        call_kw = mock_completion.call_args[1]
        assert call_kw["model"] == "deepseek/deepseek-coder"
        assert call_kw["api_key"] == "k"
        assert call_kw["metadata"] == {"agent": "coder"}
        assert call_kw["messages"][0] == {"role": "system", "content": "Sys"}

    def test_name_and_default_model(self):
        provider = LiteLLMProvider(default_model="gemini/gemini-2.0-flash")
        assert provider.name == "litellm"
        assert provider.default_model == "gemini/gemini-2.0-flash"

    def test_is_available(self):
        assert LiteLLMProvider(default_model="deepseek/deepseek-chat", api_key="k").is_available() is True
        assert LiteLLMProvider(default_model="deepseek/deepseek-chat").is_available() is False
        assert LiteLLMProvider(default_model="", api_key="k").is_available() is False


class TestAnthropicProvider:
    """Test AnthropicProvider with a mocked async client."""

    @pytest.mark.asyncio
    async def test_complete_joins_text_blocks(self):
        response = MagicMock()
        response.content = [MagicMock(type="text", text="Hello, "), MagicMock(type="text", text="world.")]
        response.usage = MagicMock(input_tokens=7, output_tokens=3)
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=response)

        provider = AnthropicProvider(api_key="a")
        provider._client = client
        result = await provider.complete("Sys", "User", model="haiku")

        assert result.content == "Hello, world."
        assert result.model == "claude-3-5-haiku-20241022"
        assert result.total_tokens == 10
        assert client.messages.create.call_args[1]["system"] == "Sys"

    def test_model_for_complexity(self):
        provider = AnthropicProvider(api_key="a", model_high="big", model_low="small")
        assert provider.model_for(TaskType.CODING, Complexity.HIGH) == "big"
        assert provider.model_for(TaskType.CODING, Complexity.LOW) == "small"
