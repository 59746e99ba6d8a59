"""
Offline locator healing by DOM comparison.

`DomComparisonHealer` needs no network call: it parses the current DOM snapshot
with lxml, builds candidate XPaths from what was recorded about the element
(stable attributes, tag plus visible text, fragments of the old id) and suggests
the first candidate that matches exactly one element of the snapshot.
"""

from replayninja.healing.base import HealingRequest, HealingResponse, LocatorHealingService
from replayninja.schemas.session import LocatorStrategy
from replayninja.utils.logging_config import logger
from replayninja.utils.selector_factory import SelectorFactory


class DomComparisonHealer(LocatorHealingService):
    """Suggests a unique XPath built from the recorded element hints."""

    source_name = "dom_comparison"

    async def heal(self, request: HealingRequest) -> HealingResponse:
        descriptor = request.descriptor
        candidates = SelectorFactory.generate_xpaths_from_hints(
            tag_name=descriptor.tag_name,
            text=descriptor.text,
            attributes=descriptor.attributes,
            element_id=descriptor.id,
        )
        if not candidates:
            return HealingResponse.unavailable(
                "No recorded hints to build a DOM comparison locator from", self.source_name
            )

        factory = SelectorFactory(request.dom_snapshot)
        unique = factory.get_unique_xpaths(candidates)
        if not unique:
            logger.replay_log(
                f"🩹 DOM comparison: none of {len(candidates)} candidate(s) is unique on the page"
            )
            return HealingResponse.unavailable(
                f"No unique match among {len(candidates)} DOM comparison candidate(s)",
                self.source_name,
            )

        logger.replay_log(f"🩹 DOM comparison suggests {unique[0]}")
        return HealingResponse.suggest(descriptor, LocatorStrategy.XPATH, unique[0], self.source_name)
