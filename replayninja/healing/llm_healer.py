"""
LLM-backed locator healing.

`LLMLocatorHealer` sends the failed element's recorded description and a
truncated snapshot of the live page HTML to a langchain chat model and expects a
bare CSS selector or XPath back, or the `CANNOT_HEAL` sentinel. When the model
cannot help (sentinel, empty answer, error) an optional fallback service is
asked instead, typically a `DomComparisonHealer`.

## Usage Examples

```python
from replayninja.config import create_healing_llm
from replayninja.healing import DomComparisonHealer, LLMLocatorHealer

healer = LLMLocatorHealer(
    llm=create_healing_llm(),
    dom_snippet_chars=8000,
    fallback=DomComparisonHealer(),
)
```
"""

import re
from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from replayninja.healing.base import HealingRequest, HealingResponse, LocatorHealingService
from replayninja.prompts.prompt_factory import (
    get_healer_system_prompt,
    get_healer_user_prompt,
    truncate_dom,
)
from replayninja.schemas.session import LocatorStrategy
from replayninja.utils.logging_config import logger

CANNOT_HEAL_SENTINEL = "CANNOT_HEAL"

_CODE_FENCE = re.compile(r"^```[\w-]*\s*|\s*```$")


def strategy_for_locator(locator: str) -> LocatorStrategy:
    """XPath when the locator starts with `//` or `(//`, CSS otherwise."""
    if locator.startswith("//") or locator.startswith("(//"):
        return LocatorStrategy.XPATH
    return LocatorStrategy.CSS


def clean_llm_locator(content: str) -> str:
    """Strip whitespace, code fences and wrapping quotes from a model answer."""
    cleaned = _CODE_FENCE.sub("", content.strip()).strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in ("'", '"', "`"):
        cleaned = cleaned[1:-1].strip()
    return cleaned


class LLMLocatorHealer(LocatorHealingService):
    """Asks a chat model for a replacement locator.

    Attributes:
        llm (BaseChatModel): Chat model used for healing
        dom_snippet_chars (int): Maximum characters of page HTML put in the prompt
        fallback (Optional[LocatorHealingService]): Service asked when the model cannot heal
    """

    source_name = "llm"

    def __init__(
        self,
        llm: BaseChatModel,
        dom_snippet_chars: int = 8000,
        fallback: Optional[LocatorHealingService] = None,
    ):
        self.llm = llm
        self.dom_snippet_chars = dom_snippet_chars
        self.fallback = fallback
        self.system_prompt = get_healer_system_prompt()

    async def heal(self, request: HealingRequest) -> HealingResponse:
        user_prompt = get_healer_user_prompt(
            request.descriptor,
            url=request.url,
            dom_snippet=truncate_dom(request.dom_snapshot, self.dom_snippet_chars),
        )

        try:
            response = await self.llm.ainvoke(
                [SystemMessage(content=self.system_prompt), HumanMessage(content=user_prompt)]
            )
        except Exception as e:
            logger.warning(f"⚠️ LLM healing request failed: {e}")
            return await self._fall_back(request, f"LLM error: {e}")

        content = response.content
        if isinstance(content, list):
            content = "".join([str(item) for item in content if isinstance(item, str)])
        elif not isinstance(content, str):
            content = str(content)

        locator = clean_llm_locator(content)
        logger.replay_log(f"🩹 Healer response: {locator or '<empty>'}")

        if not locator or locator == CANNOT_HEAL_SENTINEL:
            return await self._fall_back(request, f"LLM returned {CANNOT_HEAL_SENTINEL}")

        return HealingResponse.suggest(
            request.descriptor, strategy_for_locator(locator), locator, self.source_name
        )

    async def _fall_back(self, request: HealingRequest, reason: str) -> HealingResponse:
        if self.fallback is None:
            return HealingResponse.unavailable(reason, self.source_name)

        logger.replay_log(f"🩹 {reason}; trying {type(self.fallback).__name__}")
        response = await self.fallback.heal(request)
        if response.available:
            return response
        return HealingResponse.unavailable(f"{reason}; {response.reason}", response.source)
