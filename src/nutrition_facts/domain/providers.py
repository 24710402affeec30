"""Domain models for LLM provider configuration."""

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class ApiProvider:
    """Static registry entry for an OpenAI-compatible provider."""

    id: str
    name: str
    base_url: str
    requires_auth: bool = True


class ProviderModel(BaseModel):
    """A model offered by a provider."""

    id: str
    name: str


class ProviderSettings(BaseModel):
    """Credentials and model selection stored for one provider."""

    token: str = ""
    model: str = ""
    models: list[ProviderModel] = Field(default_factory=list)


class ApiConfig(BaseModel):
    """Multi-provider configuration."""

    model_config = ConfigDict(populate_by_name=True)

    current_provider_id: str = Field(alias="currentProviderId")
    providers: dict[str, ProviderSettings] = Field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedProvider:
    """Everything needed to call a provider."""

    provider_id: str
    token: str
    model: str
    base_url: str
    models: list[ProviderModel] = field(default_factory=list)
