"""
Chat model providers available to the healing service.

Each provider entry says which class to build, which settings feed which
constructor parameter, and which settings must be present.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_ollama import ChatOllama
from langchain_openai import AzureChatOpenAI, ChatOpenAI
from pydantic import SecretStr

from replayninja.config.settings import LLMProvider, ReplayNinjaSettings


@dataclass(frozen=True)
class ProviderConfig:
    """How to build the chat model of one provider.

    Attributes:
        name (str): Display name used in errors
        model_class (Type[BaseChatModel]): LangChain chat model class
        default_model (str): Model used when `llm.model` is not set
        params (Dict[str, str]): Constructor parameter -> settings attribute
        required (Dict[str, str]): Settings attribute -> environment variable that sets it
        timeout_param (Optional[str]): Constructor parameter for the request timeout in
            seconds, None when the client has none
    """

    name: str
    model_class: Type[BaseChatModel]
    default_model: str
    params: Dict[str, str] = field(default_factory=dict)
    required: Dict[str, str] = field(default_factory=dict)
    timeout_param: Optional[str] = "timeout"

    def missing_settings(self, settings: ReplayNinjaSettings) -> List[str]:
        """Environment variables that still have to be set for this provider."""
        return [
            env_var
            for attribute, env_var in self.required.items()
            if getattr(settings, attribute, None) is None
        ]

    def build_kwargs(self, settings: ReplayNinjaSettings) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": settings.llm_model or self.default_model,
            "temperature": settings.llm_temperature,
        }
        for param, attribute in self.params.items():
            value = getattr(settings, attribute, None)
            if value is None:
                continue
            kwargs[param] = value.get_secret_value() if isinstance(value, SecretStr) else value
        if self.timeout_param is not None:
            kwargs[self.timeout_param] = settings.healing_timeout_ms / 1000
        return kwargs


PROVIDERS: Dict[LLMProvider, ProviderConfig] = {
    LLMProvider.AZURE_OPENAI: ProviderConfig(
        name="Azure OpenAI",
        model_class=AzureChatOpenAI,
        default_model="gpt-4.1",
        params={
            "api_key": "azure_openai_key",
            "azure_endpoint": "azure_openai_endpoint",
            "api_version": "azure_openai_api_version",
        },
        required={
            "azure_openai_endpoint": "AZURE_OPENAI_ENDPOINT",
            "azure_openai_key": "AZURE_OPENAI_KEY",
        },
    ),
    LLMProvider.OPENAI: ProviderConfig(
        name="OpenAI",
        model_class=ChatOpenAI,
        default_model="gpt-4.1-mini",
        params={"api_key": "openai_api_key", "base_url": "openai_base_url"},
        required={"openai_api_key": "OPENAI_API_KEY"},
    ),
    LLMProvider.ANTHROPIC: ProviderConfig(
        name="Anthropic",
        model_class=ChatAnthropic,
        default_model="claude-sonnet-4-0",
        params={"api_key": "anthropic_api_key", "base_url": "anthropic_base_url"},
        required={"anthropic_api_key": "ANTHROPIC_API_KEY"},
    ),
    # local models: no key, no client timeout
    LLMProvider.OLLAMA: ProviderConfig(
        name="Ollama",
        model_class=ChatOllama,
        default_model="llama3.1",
        params={"base_url": "ollama_base_url"},
        timeout_param=None,
    ),
}


class ProviderRegistry:
    """Lookup over `PROVIDERS`."""

    @staticmethod
    def get_config(provider: LLMProvider) -> ProviderConfig:
        try:
            return PROVIDERS[provider]
        except KeyError:
            raise ValueError(f"Unsupported LLM provider: {provider}")

    @staticmethod
    def get_supported_providers() -> List[LLMProvider]:
        return list(PROVIDERS)
