"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from nutrition_facts.adapters.json_file_store import JsonFileKeyValueStore
from nutrition_facts.adapters.model_catalog_client import HttpxModelCatalogClient
from nutrition_facts.adapters.openai_chat_client import OpenAIChatClient
from nutrition_facts.adapters.supabase_kv_store import SupabaseKeyValueStore
from nutrition_facts.config import Settings, provider_headers, uses_supabase
from nutrition_facts.services.analysis import AnalysisService
from nutrition_facts.services.dishes import SavedDishService
from nutrition_facts.services.ledger import LedgerStore
from nutrition_facts.services.profile import UserProfileService
from nutrition_facts.services.providers import ApiConfigService
from nutrition_facts.services.storage import KeyValueStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: KeyValueStore
    ledger: LedgerStore
    dish_service: SavedDishService
    profile_service: UserProfileService
    api_config_service: ApiConfigService
    analysis_service: AnalysisService
    close_resources: Callable[[], Awaitable[None]]


def build_store(settings: Settings) -> KeyValueStore:
    """Pick the key-value backend from settings."""
    if uses_supabase(settings):
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseKeyValueStore(client, table=settings.supabase_table)
    return JsonFileKeyValueStore(Path(settings.storage_path))


def build_container(
    settings: Settings | None = None, store: KeyValueStore | None = None
) -> AppContainer:
    """Create the default dependency container and load persisted state."""
    resolved_settings = settings or Settings()
    resolved_store = store or build_store(resolved_settings)
    headers = provider_headers(resolved_settings)

    ledger = LedgerStore(resolved_store)
    profile_service = UserProfileService(resolved_store, ledger)
    profile = profile_service.load()
    ledger.load(profile.daily_goals if profile else None)

    catalog_client = HttpxModelCatalogClient.create(headers)
    api_config_service = ApiConfigService(resolved_store, catalog_client)
    api_config_service.load()

    chat_client = OpenAIChatClient.create(
        temperature=resolved_settings.ai_temperature,
        timeout_seconds=resolved_settings.ai_timeout_seconds,
        default_headers=headers,
    )
    analysis_service = AnalysisService(
        client=chat_client,
        providers=api_config_service,
        max_tokens=resolved_settings.ai_max_tokens,
    )

    async def close_resources() -> None:
        await chat_client.close()
        await catalog_client.close()

    return AppContainer(
        settings=resolved_settings,
        store=resolved_store,
        ledger=ledger,
        dish_service=SavedDishService(resolved_store),
        profile_service=profile_service,
        api_config_service=api_config_service,
        analysis_service=analysis_service,
        close_resources=close_resources,
    )
