"""
Locator-Healing Services for ReplayNinja.

## Key Components

1. **LocatorHealingService** - Interface consumed by the healing interceptor
2. **LLMLocatorHealer** - Asks a langchain chat model for a replacement locator
3. **DomComparisonHealer** - Builds a unique XPath from recorded hints, offline
4. **create_healing_service** - Builds the configured service from settings
"""

from .base import HealingRequest, HealingResponse, LocatorHealingService
from .dom_healer import DomComparisonHealer
from .factory import create_healing_service
from .llm_healer import CANNOT_HEAL_SENTINEL, LLMLocatorHealer, clean_llm_locator, strategy_for_locator

__all__ = [
    "CANNOT_HEAL_SENTINEL",
    "DomComparisonHealer",
    "HealingRequest",
    "HealingResponse",
    "LLMLocatorHealer",
    "LocatorHealingService",
    "clean_llm_locator",
    "create_healing_service",
    "strategy_for_locator",
]
