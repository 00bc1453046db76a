"""
Tests for AnthropicClient against a fake aiohttp session.
"""

import asyncio
import json

import aiohttp
import pytest

from takedown_assistant.domain.errors import (
    AuthenticationFailed,
    ConfigurationError,
    EmptyResponse,
    RateLimited,
    TransportFailure,
)
from takedown_assistant.models.case import PromptKind
from takedown_assistant.services.anthropic_client import (
    AnthropicClient,
    ModelConfig,
    model_configs_from_settings,
)


class FakeResponse:
    def __init__(self, status=200, payload=None, headers=None):
        self.status = status
        self._payload = payload
        self.headers = headers or {}

    async def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Records posts and replays one scripted response or error."""

    def __init__(self, outcome):
        self.outcome = outcome
        self.posts = []

    def __call__(self, **kwargs):
        self.session_kwargs = kwargs
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def post(self, url, **kwargs):
        self.posts.append((url, kwargs))
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


def _text_payload(text):
    return {"content": [{"type": "text", "text": text}], "stop_reason": "end_turn"}


def _client(session, api_key="test-key", settings=None):
    configs = (
        model_configs_from_settings(settings)
        if settings is not None
        else {kind: ModelConfig("claude-test", 1000, 0.5) for kind in PromptKind}
    )
    return AnthropicClient(
        api_key=api_key,
        model_configs=configs,
        base_url="https://api.example.test/v1/",
        session_factory=session,
    )


@pytest.mark.asyncio
async def test_returns_text_and_sends_kind_config(settings):
    session = FakeSession(FakeResponse(payload=_text_payload('{"subject": "s"}')))
    client = _client(session, settings=settings)

    text = await client.invoke(PromptKind.QUALITY_CHECK, "check this")

    assert text == '{"subject": "s"}'
    url, kwargs = session.posts[0]
    assert url == "https://api.example.test/v1/messages"
    assert kwargs["headers"]["x-api-key"] == "test-key"
    assert kwargs["headers"]["anthropic-version"] == settings.anthropic_api_version
    body = kwargs["json"]
    assert body["model"] == settings.anthropic_model
    assert body["max_tokens"] == settings.quality_check_max_tokens
    assert body["temperature"] == settings.quality_check_temperature
    assert body["messages"] == [{"role": "user", "content": "check this"}]


@pytest.mark.asyncio
async def test_each_kind_uses_its_own_temperature(settings):
    temperatures = {}
    for kind in PromptKind:
        session = FakeSession(FakeResponse(payload=_text_payload("[]")))
        await _client(session, settings=settings).invoke(kind, "p")
        temperatures[kind] = session.posts[0][1]["json"]["temperature"]

    assert temperatures == {
        PromptKind.FOLLOW_UP: 0.7,
        PromptKind.LETTER_DRAFT: 0.6,
        PromptKind.QUALITY_CHECK: 0.5,
    }


@pytest.mark.asyncio
async def test_joins_text_blocks():
    payload = {
        "content": [
            {"type": "text", "text": '{"a": '},
            {"type": "tool_use", "id": "x"},
            {"type": "text", "text": "1}"},
        ]
    }
    client = _client(FakeSession(FakeResponse(payload=payload)))
    assert await client.invoke(PromptKind.FOLLOW_UP, "p") == '{"a": 1}'


@pytest.mark.asyncio
@pytest.mark.parametrize("api_key", ["", "   "])
async def test_missing_key_fails_before_any_request(api_key):
    session = FakeSession(FakeResponse(payload=_text_payload("x")))
    client = _client(session, api_key=api_key)

    assert not client.is_configured
    with pytest.raises(ConfigurationError, match="Missing Anthropic API key"):
        await client.invoke(PromptKind.LETTER_DRAFT, "p")
    assert session.posts == []


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403])
async def test_auth_failure(status):
    client = _client(FakeSession(FakeResponse(status=status, payload={"error": {}})))
    with pytest.raises(AuthenticationFailed) as exc_info:
        await client.invoke(PromptKind.FOLLOW_UP, "p")
    assert exc_info.value.status_code == 401
    assert not exc_info.value.retryable


@pytest.mark.asyncio
async def test_rate_limited_carries_retry_after():
    response = FakeResponse(status=429, payload={}, headers={"retry-after": "30"})
    client = _client(FakeSession(response))
    with pytest.raises(RateLimited) as exc_info:
        await client.invoke(PromptKind.FOLLOW_UP, "p")
    assert exc_info.value.retry_after == 30
    assert exc_info.value.retryable


@pytest.mark.asyncio
async def test_server_error_is_transport_failure():
    client = _client(FakeSession(FakeResponse(status=529, payload={})))
    with pytest.raises(TransportFailure, match="529"):
        await client.invoke(PromptKind.FOLLOW_UP, "p")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error", [aiohttp.ClientConnectionError("connection reset"), asyncio.TimeoutError()]
)
async def test_network_errors_are_transport_failures(error):
    client = _client(FakeSession(error))
    with pytest.raises(TransportFailure) as exc_info:
        await client.invoke(PromptKind.LETTER_DRAFT, "p")
    assert exc_info.value.cause is error


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"content": []},
        {"content": [{"type": "text", "text": "   "}]},
        {"id": "msg_1"},
        None,
    ],
)
async def test_empty_content(payload):
    client = _client(FakeSession(FakeResponse(payload=payload)))
    with pytest.raises(EmptyResponse, match="Invalid response from Anthropic API"):
        await client.invoke(PromptKind.QUALITY_CHECK, "p")


def test_every_kind_needs_a_config():
    with pytest.raises(ValueError):
        AnthropicClient(
            api_key="k",
            model_configs={PromptKind.FOLLOW_UP: ModelConfig("m", 10, 0.1)},
        )


def test_from_settings(settings):
    client = AnthropicClient.from_settings(settings)
    assert client.is_configured
    assert client.base_url == settings.anthropic_base_url.rstrip("/")
    assert client.model_configs[PromptKind.LETTER_DRAFT].max_tokens == settings.letter_max_tokens


@pytest.mark.asyncio
async def test_non_json_success_body_is_transport_failure():
    error = json.JSONDecodeError("Expecting value", "<html>gateway</html>", 0)
    client = _client(FakeSession(FakeResponse(status=200, payload=error)))
    with pytest.raises(TransportFailure) as exc_info:
        await client.invoke(PromptKind.FOLLOW_UP, "p")
    assert exc_info.value.cause is error
