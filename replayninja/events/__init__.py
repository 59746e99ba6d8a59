"""
Event system for ReplayNinja.

This module provides run tracking for replays with:
- Run state updates when a step starts
- Step result publishing
- Multiple publisher types (null, rich terminal)
- A manager that fans events out to every publisher

## Key Components

1. **EventPublisherManager** - Centralized event management
2. **EventPublisher** - Base class for event publishers
3. **RunState** - Current state of a replay run

## Usage Examples

```python
from replayninja.events import EventPublisherFactory, EventPublisherManager, EventPublisherType

event_manager = EventPublisherManager(
    EventPublisherFactory.create_publishers([EventPublisherType.RICH_TERMINAL])
)

# or from the configured `events.publishers`
event_manager = EventPublisherFactory.create_manager(settings)
```
"""

from .base import EventPublisher
from .exceptions import EventPublisherError, EventPublishingError, PublisherUnavailableError
from .factory import EventPublisherFactory
from .manager import EventPublisherManager
from .models import RunState
from .publishers import NullEventPublisher, RichTerminalPublisher
from .types import EventPublisherType, RunPhase

__all__ = [
    "EventPublisher",
    "EventPublisherError",
    "EventPublisherFactory",
    "EventPublisherManager",
    "EventPublisherType",
    "EventPublishingError",
    "NullEventPublisher",
    "PublisherUnavailableError",
    "RichTerminalPublisher",
    "RunPhase",
    "RunState",
]
