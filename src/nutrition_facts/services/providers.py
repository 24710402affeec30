"""Provider registry, credential resolution and API config persistence."""

import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from nutrition_facts.domain.providers import (
    ApiConfig,
    ApiProvider,
    ProviderModel,
    ProviderSettings,
    ResolvedProvider,
)
from nutrition_facts.services.storage import (
    API_CONFIG_KEY,
    SCHEMA_VERSION,
    KeyValueStore,
    discard_blob,
    read_blob,
    write_blob,
)

PROVIDERS: tuple[ApiProvider, ...] = (
    ApiProvider("openrouter", "OpenRouter", "https://openrouter.ai/api/v1"),
    ApiProvider("openai", "OpenAI", "https://api.openai.com/v1"),
    ApiProvider("anthropic", "Anthropic", "https://api.anthropic.com/v1"),
    ApiProvider(
        "google", "Google AI", "https://generativelanguage.googleapis.com/v1"
    ),
    ApiProvider("deepseek", "DeepSeek", "https://api.deepseek.com/v1"),
    ApiProvider("together", "Together AI", "https://api.together.xyz/v1"),
    ApiProvider("mistral", "Mistral AI", "https://api.mistral.ai/v1"),
    ApiProvider("polza", "Polza AI", "https://api.polza.ai/v1"),
    ApiProvider("lightai", "Light AI", "https://api.lightai.io/v1"),
)

DEFAULT_PROVIDER_ID = "openrouter"

_logger = logging.getLogger(__name__)


class ConfigurationMissingError(RuntimeError):
    """Raised when the active provider has no token or model."""

    def __init__(self, provider_id: str) -> None:
        super().__init__("Токен или модель не настроены")
        self.provider_id = provider_id


class TransportError(RuntimeError):
    """Raised when a provider call fails at the HTTP or network level."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ModelCatalogClient(Protocol):
    """Interface for listing models offered by a provider."""

    async def list_models(self, base_url: str, token: str) -> list[dict[str, str]]:
        """Return models as dicts with ``id`` and ``name``."""


def get_provider(provider_id: str) -> ApiProvider | None:
    """Return a registry entry by id."""
    return next((entry for entry in PROVIDERS if entry.id == provider_id), None)


def provider_base_url(provider_id: str) -> str:
    """Return the base URL for a provider, defaulting to the first entry."""
    entry = get_provider(provider_id)
    return entry.base_url if entry else PROVIDERS[0].base_url


def resolve(config: ApiConfig, provider_id: str | None = None) -> ResolvedProvider:
    """Collect credentials and endpoint for a provider.

    Uses the config's current provider when no id is given. A provider
    without stored settings resolves to empty credentials.
    """
    target = provider_id or config.current_provider_id
    settings = config.providers.get(target) or ProviderSettings()
    return ResolvedProvider(
        provider_id=target,
        token=settings.token,
        model=settings.model,
        base_url=provider_base_url(target),
        models=list(settings.models),
    )


def require_credentials(provider: ResolvedProvider) -> ResolvedProvider:
    """Ensure a resolved provider can be called."""
    if not provider.token or not provider.model:
        raise ConfigurationMissingError(provider.provider_id)
    return provider


def migrate_legacy(raw: object) -> ApiConfig:
    """Upgrade the single-provider config shape to the multi-provider one.

    The old shape carried top-level ``token`` and ``model`` fields; it is
    assigned to the default provider. Other shapes are validated as is.
    """
    if isinstance(raw, ApiConfig):
        return raw
    if isinstance(raw, dict) and raw.get("token") and raw.get("model"):
        return ApiConfig(
            current_provider_id=DEFAULT_PROVIDER_ID,
            providers={
                DEFAULT_PROVIDER_ID: ProviderSettings(
                    token=raw["token"],
                    model=raw["model"],
                    models=raw.get("models") or [],
                )
            },
        )
    return ApiConfig.model_validate(raw)


def dump_config(config: ApiConfig) -> dict[str, object]:
    """Return the JSON-ready form of a config."""
    return config.model_dump(mode="json", by_alias=True)


@dataclass
class ApiConfigService:
    """Loads, migrates and updates the persisted provider configuration."""

    store: KeyValueStore
    catalog: ModelCatalogClient

    def load(self) -> ApiConfig | None:
        """Return the stored config, upgrading legacy shapes on read."""
        blob = read_blob(self.store, API_CONFIG_KEY)
        if blob is None:
            return None
        try:
            config = migrate_legacy(blob.data)
        except ValidationError as exc:
            discard_blob(self.store, API_CONFIG_KEY, exc)
            return None
        if blob.version != SCHEMA_VERSION or dump_config(config) != blob.data:
            _logger.info("Migrated API config to schema %s", SCHEMA_VERSION)
            self._persist(config)
        return config

    def save_provider(
        self,
        provider_id: str,
        token: str,
        model: str,
        models: list[ProviderModel] | None = None,
    ) -> ApiConfig:
        """Store credentials for a provider and make it current.

        Without an explicit model list the provider keeps its stored one.
        """
        if not token.strip() or not model.strip():
            raise ConfigurationMissingError(provider_id)
        current = self.load()
        providers = dict(current.providers) if current else {}
        if models is None:
            previous = providers.get(provider_id)
            models = list(previous.models) if previous else []
        providers[provider_id] = ProviderSettings(
            token=token, model=model, models=models
        )
        config = ApiConfig(current_provider_id=provider_id, providers=providers)
        self._persist(config)
        return config

    def switch_provider(self, provider_id: str) -> ApiConfig:
        """Make another provider current without touching stored credentials."""
        current = self.load()
        providers = dict(current.providers) if current else {}
        config = ApiConfig(current_provider_id=provider_id, providers=providers)
        self._persist(config)
        return config

    def clear(self) -> None:
        """Forget all provider credentials."""
        self.store.delete(API_CONFIG_KEY)

    def active_provider(self) -> ResolvedProvider:
        """Resolve the current provider, failing when credentials are missing."""
        config = self.load()
        if config is None:
            raise ConfigurationMissingError(DEFAULT_PROVIDER_ID)
        return require_credentials(resolve(config))

    async def refresh_models(
        self, provider_id: str | None = None
    ) -> list[ProviderModel]:
        """Fetch the provider's model list and store it with its settings."""
        config = self.load()
        if config is None:
            raise ConfigurationMissingError(provider_id or DEFAULT_PROVIDER_ID)
        resolved = resolve(config, provider_id)
        if not resolved.token:
            raise ConfigurationMissingError(resolved.provider_id)
        raw_models = await self.catalog.list_models(resolved.base_url, resolved.token)
        models = [ProviderModel.model_validate(item) for item in raw_models]
        providers = dict(config.providers)
        providers[resolved.provider_id] = ProviderSettings(
            token=resolved.token, model=resolved.model, models=models
        )
        self._persist(
            ApiConfig(
                current_provider_id=config.current_provider_id, providers=providers
            )
        )
        return models

    def _persist(self, config: ApiConfig) -> None:
        write_blob(self.store, API_CONFIG_KEY, dump_config(config))
