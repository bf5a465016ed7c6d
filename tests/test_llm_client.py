"""
Tests for shared/clients/llm
OpenAI-compatible chat completion client.
"""

import httpx
import pytest

from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.llm.openai.LLMClientOpenai import LLMClientOpenai
from shared.errors import ConfigurationError, UpstreamError
from shared.models.assistant import ChatMessage, CompletionOptions

MESSAGES = [
    ChatMessage(role="system", content="You are a concise, helpful assistant."),
    ChatMessage(role="user", content="Hi"),
]


def _completion(content="Hello!", usage=None, role="assistant"):
    body = {
        "id": "chatcmpl-1",
        "choices": [{"index": 0, "message": {"role": role, "content": content}, "finish_reason": "stop"}],
    }
    if usage is not None:
        body["usage"] = usage
    return httpx.Response(200, json=body)


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("LLM_OPENAI_API_KEY", "sk-llmtest1234567")


class TestComplete:
    """do_complete() request and response handling."""

    @pytest.mark.asyncio
    async def test_defaults(self, helper_config, boot_with, api_key):
        usage = {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15}
        client = LLMClientOpenai(helper_config)
        recorder = await boot_with(client, lambda r: _completion(usage=usage))

        result = await client.do_complete(MESSAGES)

        assert result.message == ChatMessage(role="assistant", content="Hello!")
        assert result.usage == usage
        body = recorder.json_bodies()[0]
        assert str(recorder.requests[0].url) == "https://api.openai.com/v1/chat/completions"
        assert body["model"] == "gpt-4o-mini"
        assert body["temperature"] == 0.3
        assert body["messages"] == [m.model_dump() for m in MESSAGES]
        assert "response_format" not in body
        assert "max_tokens" not in body

    @pytest.mark.asyncio
    async def test_options_are_forwarded(self, helper_config, boot_with, api_key):
        client = LLMClientOpenai(helper_config)
        recorder = await boot_with(client, lambda r: _completion(content='{"answer": "x"}'))

        await client.do_complete(MESSAGES, CompletionOptions(
            model="gpt-4o",
            temperature=0.0,
            response_format={"type": "json_object"},
            max_output_tokens=256,
        ))

        body = recorder.json_bodies()[0]
        assert body["model"] == "gpt-4o"
        assert body["temperature"] == 0.0
        assert body["response_format"] == {"type": "json_object"}
        assert body["max_tokens"] == 256

    @pytest.mark.asyncio
    async def test_configured_chat_model(self, helper_config, boot_with, api_key, monkeypatch):
        monkeypatch.setenv("LLM_CHAT_MODEL", "my-model")
        client = LLMClientOpenai(helper_config)
        recorder = await boot_with(client, lambda r: _completion())

        await client.do_complete(MESSAGES)
        assert client.get_chat_model() == "my-model"
        assert recorder.json_bodies()[0]["model"] == "my-model"

    @pytest.mark.asyncio
    async def test_null_content_and_missing_usage(self, helper_config, boot_with, api_key):
        client = LLMClientOpenai(helper_config)
        await boot_with(client, lambda r: _completion(content=None))

        result = await client.do_complete(MESSAGES)
        assert result.message.content == ""
        assert result.message.role == "assistant"
        assert result.usage is None


class TestCompleteErrors:
    """Credential and upstream failures."""

    @pytest.mark.asyncio
    async def test_missing_key(self, helper_config, boot_with):
        client = LLMClientOpenai(helper_config)
        recorder = await boot_with(client, lambda r: _completion())

        with pytest.raises(ConfigurationError):
            await client.do_complete(MESSAGES)
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_rate_limit_message_preserved(self, helper_config, boot_with, api_key):
        def handler(request):
            return httpx.Response(429, json={"error": {"message": "Rate limit reached for gpt-4o-mini"}})

        client = LLMClientOpenai(helper_config)
        await boot_with(client, handler)

        with pytest.raises(UpstreamError, match="Rate limit reached"):
            await client.do_complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_no_choices(self, helper_config, boot_with, api_key):
        client = LLMClientOpenai(helper_config)
        await boot_with(client, lambda r: httpx.Response(200, json={"choices": []}))

        with pytest.raises(UpstreamError):
            await client.do_complete(MESSAGES)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [[{"type": "text", "text": "hi"}], {"text": "hi"}, 42])
    async def test_non_string_content(self, helper_config, boot_with, api_key, content):
        client = LLMClientOpenai(helper_config)
        await boot_with(client, lambda r: _completion(content=content))

        with pytest.raises(UpstreamError, match="expected a string"):
            await client.do_complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_non_json_body(self, helper_config, boot_with, api_key):
        client = LLMClientOpenai(helper_config)
        await boot_with(client, lambda r: httpx.Response(200, text="<html>gateway</html>"))

        with pytest.raises(UpstreamError):
            await client.do_complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_request_before_boot(self, helper_config, api_key):
        client = LLMClientOpenai(helper_config)
        with pytest.raises(RuntimeError):
            await client.do_complete(MESSAGES)


class TestManager:
    def test_defaults_to_openai(self, helper_config):
        assert isinstance(LLMClientManager(helper_config).get_client(), LLMClientOpenai)

    def test_unknown_engine(self, helper_config, monkeypatch):
        monkeypatch.setenv("LLM_ENGINE", "nonexistent")
        with pytest.raises(ConfigurationError):
            LLMClientManager(helper_config)
