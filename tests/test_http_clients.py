"""Tests for HTTP-based adapters."""

import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest
from openai import APIConnectionError, APIStatusError

from nutrition_facts.adapters.model_catalog_client import HttpxModelCatalogClient
from nutrition_facts.adapters.openai_chat_client import OpenAIChatClient
from nutrition_facts.domain.providers import ResolvedProvider
from nutrition_facts.services.providers import TransportError

_PROVIDER = ResolvedProvider(
    provider_id="openai",
    token="sk-test",
    model="gpt-4o",
    base_url="https://api.test/v1",
)


class _FakeCompletions:
    def __init__(self, result: object) -> None:
        self.result = result
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class _FakeOpenAI:
    def __init__(self, result: object) -> None:
        self.chat = SimpleNamespace(completions=_FakeCompletions(result))
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def _completion(content: str | None) -> object:
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def test_openai_chat_client_returns_content() -> None:
    fake = _FakeOpenAI(_completion('[{"name": "рис"}]'))
    seen: list[ResolvedProvider] = []

    def factory(provider: ResolvedProvider) -> _FakeOpenAI:
        seen.append(provider)
        return fake

    client = OpenAIChatClient(client_factory=factory, temperature=0.2)

    first = asyncio.run(
        client.complete(
            _PROVIDER,
            [{"role": "user", "content": "рис"}],
            json_mode=True,
            max_tokens=256,
        )
    )
    asyncio.run(client.complete(_PROVIDER, [], json_mode=False, max_tokens=10))

    assert first == '[{"name": "рис"}]'
    assert seen == [_PROVIDER]
    payload = fake.chat.completions.last_payload
    assert payload is not None
    assert payload["model"] == "gpt-4o"
    assert payload["max_tokens"] == 10
    assert "response_format" not in payload

    asyncio.run(client.close())
    assert fake.closed


def test_openai_chat_client_requests_json_object() -> None:
    fake = _FakeOpenAI(_completion(None))
    client = OpenAIChatClient(client_factory=lambda provider: fake)

    content = asyncio.run(
        client.complete(_PROVIDER, [], json_mode=True, max_tokens=1024)
    )

    assert content == ""
    payload = fake.chat.completions.last_payload
    assert payload is not None
    assert payload["response_format"] == {"type": "json_object"}
    assert payload["temperature"] == 0.1


def test_openai_chat_client_maps_status_errors() -> None:
    request = httpx.Request("POST", "https://api.test/v1/chat/completions")
    error = APIStatusError(
        "Unauthorized",
        response=httpx.Response(401, request=request),
        body=None,
    )
    client = OpenAIChatClient(client_factory=lambda provider: _FakeOpenAI(error))

    with pytest.raises(TransportError) as raised:
        asyncio.run(client.complete(_PROVIDER, [], json_mode=True, max_tokens=1))

    assert raised.value.status_code == 401
    assert str(raised.value).startswith("HTTP 401")


def test_openai_chat_client_maps_connection_errors_and_empty_choices() -> None:
    request = httpx.Request("POST", "https://api.test/v1/chat/completions")
    offline = OpenAIChatClient(
        client_factory=lambda provider: _FakeOpenAI(
            APIConnectionError(request=request)
        )
    )
    empty = OpenAIChatClient(
        client_factory=lambda provider: _FakeOpenAI(SimpleNamespace(choices=[]))
    )

    with pytest.raises(TransportError):
        asyncio.run(offline.complete(_PROVIDER, [], json_mode=True, max_tokens=1))
    with pytest.raises(TransportError):
        asyncio.run(empty.complete(_PROVIDER, [], json_mode=True, max_tokens=1))


def test_model_catalog_client_lists_models() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/models"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert request.headers["X-Title"] == "Nutrition Facts Calculator"
        return httpx.Response(
            200,
            json={
                "data": [
                    {"id": "gpt-4o", "name": "GPT-4o"},
                    {"id": "mini"},
                    {"name": "no id"},
                ]
            },
        )

    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    client = HttpxModelCatalogClient(
        http_client=async_client,
        default_headers={"X-Title": "Nutrition Facts Calculator"},
    )

    models = asyncio.run(client.list_models("https://api.test/v1", "sk-test"))

    assert models == [
        {"id": "gpt-4o", "name": "GPT-4o"},
        {"id": "mini", "name": "mini"},
    ]


def test_model_catalog_client_raises_on_http_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, content=json.dumps({"error": "nope"}))

    transport = httpx.MockTransport(handler)
    client = HttpxModelCatalogClient(http_client=httpx.AsyncClient(transport=transport))

    with pytest.raises(TransportError) as raised:
        asyncio.run(client.list_models("https://api.test/v1", "bad"))

    assert raised.value.status_code == 403


def test_model_catalog_client_raises_on_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    transport = httpx.MockTransport(handler)
    client = HttpxModelCatalogClient(http_client=httpx.AsyncClient(transport=transport))

    with pytest.raises(TransportError):
        asyncio.run(client.list_models("https://api.test/v1", "sk"))
