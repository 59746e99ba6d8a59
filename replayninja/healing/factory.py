"""
Healing service creation from settings.
"""

from typing import Optional

from replayninja.config.llm_creator import create_healing_llm
from replayninja.config.settings import ReplayNinjaSettings
from replayninja.healing.base import LocatorHealingService
from replayninja.healing.dom_healer import DomComparisonHealer
from replayninja.healing.llm_healer import LLMLocatorHealer
from replayninja.utils.logging_config import logger


def create_healing_service(settings: ReplayNinjaSettings) -> Optional[LocatorHealingService]:
    """Build the healing service described by the settings.

    Returns None when healing is disabled. When the chat model cannot be created
    (missing API key, unknown provider) the DOM comparison healer is used alone
    if the DOM fallback is enabled.

    Args:
        settings (ReplayNinjaSettings): Loaded settings

    Returns:
        Optional[LocatorHealingService]: The configured service, if any
    """
    if not settings.healing_enabled:
        return None

    fallback = DomComparisonHealer() if settings.healing_use_dom_fallback else None

    try:
        llm = create_healing_llm(settings=settings)
    except ValueError as e:
        if fallback is None:
            raise
        logger.warning(f"⚠️ LLM healing unavailable ({e}); using DOM comparison only")
        return fallback

    logger.replay_log(f"🩹 LLM healing enabled with provider {settings.llm_provider.value}")
    return LLMLocatorHealer(
        llm=llm,
        dom_snippet_chars=settings.healing_dom_snippet_chars,
        fallback=fallback,
    )
