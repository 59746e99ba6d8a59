"""
Chat model creation for the LLM healing service.
"""

from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel

from replayninja.config.factory import ConfigurationFactory
from replayninja.config.provider_registry import ProviderRegistry
from replayninja.config.settings import LLMProvider, ReplayNinjaSettings


def create_healing_llm(
    settings: Optional[ReplayNinjaSettings] = None,
    provider: Optional[LLMProvider] = None,
    cli_mode: bool = False,
) -> BaseChatModel:
    """Create the chat model used to heal locators.

    Args:
        settings (Optional[ReplayNinjaSettings]): Settings to use (factory default if None)
        provider (Optional[LLMProvider]): Provider override (settings.llm_provider if None)
        cli_mode (bool): Whether the factory should read the TOML project file

    Returns:
        BaseChatModel: Configured chat model

    Raises:
        ValueError: If the provider is unsupported or its settings are incomplete

    Example:
        ```python
        from replayninja.config import create_healing_llm
        from replayninja.healing import LLMLocatorHealer

        healer = LLMLocatorHealer(llm=create_healing_llm())
        ```
    """
    if settings is None:
        settings = ConfigurationFactory.get_settings(cli_mode=cli_mode)

    provider = provider or settings.llm_provider
    provider_config = ProviderRegistry.get_config(provider)

    missing = provider_config.missing_settings(settings)
    if missing:
        raise ValueError(f"{provider_config.name} healing requires {', '.join(missing)}")

    try:
        return provider_config.model_class(**provider_config.build_kwargs(settings))
    except Exception as e:
        raise ValueError(f"Failed to create {provider_config.name} model: {e}")
