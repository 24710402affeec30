"""OpenAI-compatible chat completions client."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from nutrition_facts.domain.providers import ResolvedProvider
from nutrition_facts.services.analysis import ChatClient
from nutrition_facts.services.providers import TransportError

_logger = logging.getLogger(__name__)


@dataclass
class OpenAIChatClient(ChatClient):
    """Chat client that talks to any provider exposing the OpenAI API."""

    client_factory: Callable[[ResolvedProvider], AsyncOpenAI]
    temperature: float = 0.1
    _clients: dict[tuple[str, str], AsyncOpenAI] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        *,
        temperature: float,
        timeout_seconds: float,
        default_headers: dict[str, str],
    ) -> "OpenAIChatClient":
        """Create a client that opens one AsyncOpenAI session per provider."""

        def factory(provider: ResolvedProvider) -> AsyncOpenAI:
            return AsyncOpenAI(
                api_key=provider.token,
                base_url=provider.base_url,
                timeout=timeout_seconds,
                max_retries=0,
                default_headers=default_headers,
            )

        return cls(client_factory=factory, temperature=temperature)

    async def complete(
        self,
        provider: ResolvedProvider,
        messages: list[dict[str, object]],
        *,
        json_mode: bool,
        max_tokens: int,
    ) -> str:
        """Call chat completions and return the first choice's content."""
        request_payload: dict[str, object] = {
            "model": provider.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            request_payload["response_format"] = {"type": "json_object"}

        client = self._client_for(provider)
        try:
            response = await client.chat.completions.create(**request_payload)
        except APIStatusError as exc:
            raise TransportError(
                f"HTTP {exc.status_code}: {exc.message}", status_code=exc.status_code
            ) from exc
        except APIConnectionError as exc:
            raise TransportError(str(exc)) from exc

        if not response.choices:
            raise TransportError(f"{provider.provider_id} returned no choices")
        content = response.choices[0].message.content or ""
        _logger.debug("AI response from %s: %s", provider.provider_id, content)
        return content

    async def close(self) -> None:
        """Close every provider session opened so far."""
        for client in self._clients.values():
            await client.close()
        self._clients.clear()

    def _client_for(self, provider: ResolvedProvider) -> AsyncOpenAI:
        key = (provider.base_url, provider.token)
        if key not in self._clients:
            self._clients[key] = self.client_factory(provider)
        return self._clients[key]
