"""
Event types and enumerations for the event publishing system.
"""

from enum import Enum


class EventPublisherType(str, Enum):
    """Supported event publisher types."""

    NULL = "null"  # No-op publisher for testing/development
    RICH_TERMINAL = "rich_terminal"  # Rich terminal output publisher


class RunPhase(str, Enum):
    """Progress phase of a replay run as seen by publishers."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"
