"""
Event publishers for ReplayNinja.

## Key Components

1. **NullEventPublisher** - No-op publisher
2. **RichTerminalPublisher** - Rich terminal-based publisher with colored output
"""

from .null_publisher import NullEventPublisher
from .rich_terminal_publisher import RichTerminalPublisher

__all__ = [
    "NullEventPublisher",
    "RichTerminalPublisher",
]
