"""Provider model catalog client."""

from dataclasses import dataclass, field

import httpx

from nutrition_facts.services.providers import ModelCatalogClient, TransportError


@dataclass
class HttpxModelCatalogClient(ModelCatalogClient):
    """HTTPX-backed client for the ``/models`` endpoint."""

    http_client: httpx.AsyncClient
    default_headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(cls, default_headers: dict[str, str]) -> "HttpxModelCatalogClient":
        """Create a catalog client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(), default_headers=default_headers)

    async def list_models(self, base_url: str, token: str) -> list[dict[str, str]]:
        """Fetch the models offered by a provider."""
        headers = {
            **self.default_headers,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        try:
            response = await self.http_client.get(
                f"{base_url}/models", headers=headers, timeout=15
            )
        except httpx.RequestError as exc:
            raise TransportError(str(exc)) from exc
        if response.is_error:
            raise TransportError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )
        payload = response.json()
        entries = payload.get("data") if isinstance(payload, dict) else None
        return [
            {"id": str(entry["id"]), "name": str(entry.get("name") or entry["id"])}
            for entry in entries or []
            if isinstance(entry, dict) and entry.get("id")
        ]

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
