"""Tests for the analysis LLM chain with mocked OpenAI responses."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from habit_lens.chains.analyze_entries import (
    ANALYSIS_MAX_TOKENS,
    ANALYSIS_TEMPERATURE,
    complete_analysis,
)
from habit_lens.core.errors import TransportError
from habit_lens.core.schemas_analysis import ChatMessage

MESSAGES = [
    ChatMessage(role="system", content="role"),
    ChatMessage(role="system", content="context"),
    ChatMessage(role="user", content="How did I sleep?"),
]

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _completion(content):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


def _mock_client(create):
    client = MagicMock()
    client.chat.completions.create = create
    client.close = AsyncMock()
    return client


@pytest.mark.asyncio
@patch("habit_lens.chains.analyze_entries.AsyncOpenAI")
async def test_returns_first_choice_with_fixed_parameters(mock_openai_cls):
    create = AsyncMock(return_value=_completion("You slept better on weekends."))
    mock_openai_cls.return_value = _mock_client(create)

    answer = await complete_analysis(api_key="sk-user", model="gpt-4o", messages=MESSAGES)

    assert answer == "You slept better on weekends."
    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o"
    assert kwargs["temperature"] == ANALYSIS_TEMPERATURE == 0.7
    assert kwargs["max_tokens"] == ANALYSIS_MAX_TOKENS == 1000
    assert kwargs["messages"][2] == {"role": "user", "content": "How did I sleep?"}

    init_kwargs = mock_openai_cls.call_args.kwargs
    assert init_kwargs["api_key"] == "sk-user"
    assert init_kwargs["timeout"] == 60.0
    mock_openai_cls.return_value.close.assert_awaited_once()


@pytest.mark.asyncio
@patch("habit_lens.chains.analyze_entries.AsyncOpenAI")
async def test_empty_response_raises(mock_openai_cls):
    mock_openai_cls.return_value = _mock_client(AsyncMock(return_value=_completion("")))

    with pytest.raises(TransportError, match="No analysis generated"):
        await complete_analysis(api_key="sk-user", model="gpt-4o", messages=MESSAGES)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        openai.APITimeoutError(request=_REQUEST),
        openai.APIConnectionError(request=_REQUEST),
        openai.AuthenticationError(
            "bad key", response=httpx.Response(401, request=_REQUEST), body=None
        ),
        openai.RateLimitError(
            "slow down", response=httpx.Response(429, request=_REQUEST), body=None
        ),
        openai.APIResponseValidationError(response=httpx.Response(200, request=_REQUEST), body=None),
        openai.OpenAIError("weird provider failure"),
    ],
)
@patch("habit_lens.chains.analyze_entries.AsyncOpenAI")
async def test_provider_failures_become_transport_errors(mock_openai_cls, error):
    client = _mock_client(AsyncMock(side_effect=error))
    mock_openai_cls.return_value = client

    with pytest.raises(TransportError):
        await complete_analysis(api_key="sk-user", model="gpt-4o", messages=MESSAGES)

    client.close.assert_awaited_once()
