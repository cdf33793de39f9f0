import pytest
from unittest.mock import AsyncMock, MagicMock

from openai import OpenAIError

from supportwise.config import Settings
from supportwise.exceptions import UpstreamError
from supportwise.services import CompletionService, SamplingConfig


def _client_returning(content):
    client = MagicMock()
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice] if content is not None else []
    client.chat.completions.create = AsyncMock(return_value=response)
    return client

@pytest.mark.asyncio
async def test_complete_sends_system_prompt_turns_and_sampling():
    client = _client_returning("  Hello there  ")
    service = CompletionService(api_key="key", model="test-model", client=client)

    text = await service.complete(
        "Be brief.",
        [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hey"}],
        SamplingConfig(max_tokens=120, temperature=0.2, top_p=0.5),
    )

    assert text == "Hello there"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["messages"][0] == {"role": "system", "content": "Be brief."}
    assert [m["role"] for m in kwargs["messages"]] == ["system", "user", "assistant"]
    assert kwargs["max_tokens"] == 120
    assert kwargs["temperature"] == 0.2
    assert kwargs["top_p"] == 0.5

@pytest.mark.asyncio
async def test_empty_reply_raises_upstream_error():
    service = CompletionService(api_key="key", model="m", client=_client_returning("   "))
    with pytest.raises(UpstreamError):
        await service.complete("sys")

    service = CompletionService(api_key="key", model="m", client=_client_returning(None))
    with pytest.raises(UpstreamError):
        await service.complete("sys")

@pytest.mark.asyncio
async def test_api_error_raises_upstream_error():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=OpenAIError("rate limited"))
    service = CompletionService(api_key="key", model="m", client=client)
    with pytest.raises(UpstreamError) as exc_info:
        await service.complete("sys")
    assert exc_info.value.error_code == "UPSTREAM_ERROR"

@pytest.mark.asyncio
async def test_missing_key_is_not_configured():
    service = CompletionService(api_key="", model="m")
    assert service.is_configured is False
    with pytest.raises(UpstreamError):
        await service.complete("sys")

def test_from_settings_uses_completion_fields():
    settings = Settings(completion_api_key="abc", completion_model="llama-test", completion_timeout=5.0)
    service = CompletionService.from_settings(settings)
    assert service.is_configured
    assert service.model == "llama-test"
    assert service.timeout == 5.0
    assert service.base_url == settings.completion_base_url
