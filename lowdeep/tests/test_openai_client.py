import asyncio

import httpx
import pytest

from lowdeep.domain.exceptions import ApiError, ConfigurationError, NetworkError, RateLimitError
from lowdeep.domain.models import ChatMessage, ChatRequest
from lowdeep.providers.openai_compat import OpenAICompatibleClient, normalize_api_key


class SettingsStub:
    http_timeout = 1.0


def _request(**kw):
    return ChatRequest(provider="groq", model="smart", messages=[ChatMessage(role="user", content="hi")], **kw)


def _fake_client(monkeypatch, status_code=200, body=None, text="", captured=None, error=None):
    class Resp:
        def __init__(self):
            self.status_code = status_code
            self.text = text

        def json(self):
            return body

    class Client:
        def __init__(self, *a, **kw):
            if captured is not None:
                captured["client_kwargs"] = kw

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def post(self, url, json=None, headers=None, **_):
            if error is not None:
                raise error
            if captured is not None:
                captured["url"] = url
                captured["payload"] = json
                captured["headers"] = headers
            return Resp()

    monkeypatch.setattr("httpx.AsyncClient", Client)


def test_chat_parses_content_and_usage(monkeypatch):
    body = {
        "choices": [{"index": 0, "message": {"role": "assistant", "content": "ok"}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2},
    }
    _fake_client(monkeypatch, body=body)
    client = OpenAICompatibleClient(SettingsStub(), provider="groq", api_key="gsk_0123456789")
    res = asyncio.run(client.chat(_request()))
    assert res.content == "ok"
    assert res.provider == "groq"
    assert res.usage.total_tokens == 2


def test_chat_missing_content_is_none(monkeypatch):
    _fake_client(monkeypatch, body={"choices": [{"message": {"role": "assistant"}}]})
    client = OpenAICompatibleClient(SettingsStub(), provider="groq", api_key="gsk_0123456789")
    res = asyncio.run(client.chat(_request()))
    assert res.content is None
    assert res.usage is None


def test_chat_without_choices_has_no_content(monkeypatch):
    _fake_client(monkeypatch, body={"choices": []})
    client = OpenAICompatibleClient(SettingsStub(), provider="groq", api_key="gsk_0123456789")
    assert asyncio.run(client.chat(_request())).content is None


def test_payload_url_and_headers(monkeypatch):
    captured = {}
    _fake_client(monkeypatch, body={"choices": []}, captured=captured)
    client = OpenAICompatibleClient(SettingsStub(), provider="GROQ", api_key="  Bearer gsk_0123456789 ")
    asyncio.run(client.chat(_request(temperature=0.4)))

    assert captured["url"] == "https://api.groq.com/openai/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer gsk_0123456789"
    assert captured["payload"] == {
        "model": "llama-3.3-70b-versatile",
        "messages": [{"role": "user", "content": "hi"}],
        "temperature": 0.4,
    }
    assert captured["client_kwargs"]["trust_env"] is False


def test_temperature_omitted_when_unset(monkeypatch):
    captured = {}
    _fake_client(monkeypatch, body={"choices": []}, captured=captured)
    client = OpenAICompatibleClient(SettingsStub(), provider="deepinfra", api_key="di_0123456789")
    req = ChatRequest(provider="deepinfra", model="custom/model-id", messages=[ChatMessage(role="user", content="x")])
    asyncio.run(client.chat(req))
    assert "temperature" not in captured["payload"]
    assert captured["payload"]["model"] == "custom/model-id"
    assert captured["url"] == "https://api.deepinfra.com/v1/openai/chat/completions"


def test_rate_limit(monkeypatch):
    _fake_client(monkeypatch, status_code=429)
    client = OpenAICompatibleClient(SettingsStub(), provider="groq", api_key="gsk_0123456789")
    with pytest.raises(RateLimitError):
        asyncio.run(client.chat(_request()))


def test_api_error(monkeypatch):
    _fake_client(monkeypatch, status_code=500, text="boom")
    client = OpenAICompatibleClient(SettingsStub(), provider="groq", api_key="gsk_0123456789")
    with pytest.raises(ApiError) as exc_info:
        asyncio.run(client.chat(_request()))
    assert exc_info.value.http_status == 500
    assert exc_info.value.message == "boom"


def test_network_error(monkeypatch):
    _fake_client(monkeypatch, error=httpx.ConnectError("connection refused"))
    client = OpenAICompatibleClient(SettingsStub(), provider="groq", api_key="gsk_0123456789")
    with pytest.raises(NetworkError):
        asyncio.run(client.chat(_request()))


def test_missing_key_fails_without_request(monkeypatch):
    _fake_client(monkeypatch, error=AssertionError("should not be called"))
    client = OpenAICompatibleClient(SettingsStub(), provider="groq", api_key="   ")
    with pytest.raises(ConfigurationError):
        asyncio.run(client.chat(_request()))


def test_normalize_api_key():
    assert normalize_api_key(None) is None
    assert normalize_api_key("  abc  ") == "abc"
    assert normalize_api_key("bearer xyz") == "xyz"
    assert normalize_api_key("Bearer ") is None
