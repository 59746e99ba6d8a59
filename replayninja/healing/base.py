"""
Locator-Healing Service interface.

A healing service receives the descriptor that failed every locator strategy,
the current DOM source and the current URL, and either suggests one replacement
descriptor or reports that it cannot help. The engine calls a service at most
once per step and bounds the call with its own budget.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from replayninja.schemas.session import ElementDescriptor, LocatorStrategy


class HealingRequest(BaseModel):
    """Everything a healing service gets to work with."""

    model_config = ConfigDict(frozen=True)

    descriptor: ElementDescriptor
    dom_snapshot: str = ""
    url: str = ""


class HealingResponse(BaseModel):
    """Replacement descriptor, or the reason no replacement could be suggested."""

    model_config = ConfigDict(frozen=True)

    descriptor: Optional[ElementDescriptor] = None
    reason: Optional[str] = None
    source: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.descriptor is not None

    @classmethod
    def unavailable(cls, reason: str, source: Optional[str] = None) -> "HealingResponse":
        return cls(descriptor=None, reason=reason, source=source)

    @classmethod
    def suggest(
        cls,
        original: ElementDescriptor,
        strategy: LocatorStrategy,
        value: str,
        source: Optional[str] = None,
    ) -> "HealingResponse":
        """Build a response whose descriptor carries only the suggested locator.

        The original's hints (tag, text, attributes) are kept so the healed
        descriptor still describes the same element.
        """
        fields: Dict[str, Any] = {
            "tag_name": original.tag_name,
            "text": original.text,
            "attributes": dict(original.attributes),
            "input_type": original.input_type,
            strategy.descriptor_field: value,
        }
        return cls(descriptor=ElementDescriptor(**fields), source=source)


class LocatorHealingService(ABC):
    """Suggests a replacement descriptor for an element that could not be found.

    Implementations report "cannot heal" through `HealingResponse.unavailable()`;
    raising is also tolerated, the engine treats it the same way.
    """

    @abstractmethod
    async def heal(self, request: HealingRequest) -> HealingResponse:
        raise NotImplementedError("heal() must be implemented by subclasses")
