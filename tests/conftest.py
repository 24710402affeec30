"""Shared test fixtures."""

import json
from dataclasses import dataclass, field

import pytest

from nutrition_facts.config import Settings
from nutrition_facts.containers import AppContainer
from nutrition_facts.domain.ledger import Ingredient
from nutrition_facts.domain.nutrition import NutrientProfile
from nutrition_facts.domain.profile import DailyGoals, UserProfile
from nutrition_facts.domain.providers import ResolvedProvider
from nutrition_facts.services.analysis import AnalysisService, ChatClient
from nutrition_facts.services.dishes import SavedDishService
from nutrition_facts.services.ledger import LedgerStore
from nutrition_facts.services.profile import UserProfileService
from nutrition_facts.services.providers import ApiConfigService, ModelCatalogClient
from nutrition_facts.services.storage import KeyValueStore


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store for tests."""

    values: dict[str, str] = field(default_factory=dict)
    writes: list[str] = field(default_factory=list)

    def read(self, key: str) -> str | None:
        return self.values.get(key)

    def write(self, key: str, value: str) -> None:
        self.values[key] = value
        self.writes.append(key)

    def delete(self, key: str) -> None:
        self.values.pop(key, None)

    def envelope(self, key: str) -> dict[str, object]:
        return json.loads(self.values[key])


@dataclass
class FakeChatClient(ChatClient):
    """Fake chat client returning queued completions."""

    replies: list[str] = field(default_factory=list)
    calls: list[dict[str, object]] = field(default_factory=list)

    async def complete(
        self,
        provider: ResolvedProvider,
        messages: list[dict[str, object]],
        *,
        json_mode: bool,
        max_tokens: int,
    ) -> str:
        self.calls.append(
            {
                "provider": provider,
                "messages": messages,
                "json_mode": json_mode,
                "max_tokens": max_tokens,
            }
        )
        return self.replies.pop(0) if self.replies else ""


@dataclass
class FakeCatalogClient(ModelCatalogClient):
    """Fake model catalog."""

    models: list[dict[str, str]] = field(default_factory=list)
    calls: list[tuple[str, str]] = field(default_factory=list)

    async def list_models(self, base_url: str, token: str) -> list[dict[str, str]]:
        self.calls.append((base_url, token))
        return list(self.models)


def make_ingredient(
    name: str = "курица",
    weight: float = 100,
    calories: float = 165,
    protein: float = 31,
    fat: float = 3.6,
    carbohydrate: float = 0,
    fiber: float = 0,
    ingredient_id: str | None = None,
) -> Ingredient:
    return Ingredient(
        id=ingredient_id or f"ing-{name}",
        name=name,
        weight=weight,
        base_cpfc=NutrientProfile(
            calories=calories,
            protein=protein,
            fat=fat,
            carbohydrate=carbohydrate,
            fiber=fiber,
        ),
    )


def make_goals() -> DailyGoals:
    return DailyGoals(
        bmr=1650,
        tdee=2280,
        target_calories=2000,
        protein=100,
        fat=50,
        carbohydrate=200,
        fiber=30,
    )


def make_profile(daily_goals: DailyGoals | None = None) -> UserProfile:
    return UserProfile(
        name="Аня",
        gender="female",
        age=30,
        weight=60,
        height=165,
        activity_level="moderate",
        goal="maintain",
        daily_goals=daily_goals,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(storage_path=str(tmp_path / "store.json"))


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def catalog_client() -> FakeCatalogClient:
    return FakeCatalogClient(
        models=[{"id": "gpt-4o", "name": "GPT-4o"}, {"id": "mini", "name": "mini"}]
    )


@pytest.fixture
def container(
    settings: Settings,
    store: InMemoryKeyValueStore,
    chat_client: FakeChatClient,
    catalog_client: FakeCatalogClient,
) -> AppContainer:
    ledger = LedgerStore(store)
    ledger.load()
    api_config_service = ApiConfigService(store, catalog_client)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        store=store,
        ledger=ledger,
        dish_service=SavedDishService(store),
        profile_service=UserProfileService(store, ledger),
        api_config_service=api_config_service,
        analysis_service=AnalysisService(
            client=chat_client, providers=api_config_service
        ),
        close_resources=close_resources,
    )
