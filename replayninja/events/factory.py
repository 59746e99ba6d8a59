"""
Builds the publishers named in the configuration.
"""

from typing import TYPE_CHECKING, Callable, Dict, Iterable, List

from replayninja.utils.logging_config import logger

from .base import EventPublisher
from .manager import EventPublisherManager
from .publishers import NullEventPublisher, RichTerminalPublisher
from .types import EventPublisherType

if TYPE_CHECKING:
    from replayninja.config.settings import ReplayNinjaSettings

PUBLISHER_BUILDERS: Dict[EventPublisherType, Callable[[], EventPublisher]] = {
    EventPublisherType.NULL: NullEventPublisher,
    EventPublisherType.RICH_TERMINAL: RichTerminalPublisher,
}


class EventPublisherFactory:
    """Turns `events.publishers` entries into publisher instances."""

    @staticmethod
    def create_publishers(publisher_types: Iterable[EventPublisherType]) -> List[EventPublisher]:
        """Create one publisher per distinct type, in configuration order.

        A type listed twice yields a single publisher, so a run is never
        printed twice to the same terminal.

        Args:
            publisher_types: Configured publisher types

        Returns:
            List[EventPublisher]: New publisher instances
        """
        seen = set()
        publishers: List[EventPublisher] = []
        for publisher_type in publisher_types:
            if publisher_type in seen:
                logger.debug(f"Publisher type '{publisher_type.value}' listed twice, using it once")
                continue
            seen.add(publisher_type)
            publishers.append(PUBLISHER_BUILDERS[publisher_type]())
        return publishers

    @classmethod
    def create_manager(cls, settings: "ReplayNinjaSettings") -> EventPublisherManager:
        """Manager over the publishers configured in `settings.event_publishers`.

        Example:
            ```python
            settings = ConfigurationFactory.get_settings(cli_mode=True)
            engine = PlayerEngine(
                session,
                browser,
                event_manager=EventPublisherFactory.create_manager(settings),
            )
            ```
        """
        return EventPublisherManager(cls.create_publishers(settings.event_publishers))
