"""
Data models for recorded sessions and replay results.

## Key Components

1. **RecordedSession / RecordedEvent** - Immutable recording the engine replays
2. **ElementDescriptor / FrameDescriptor** - Element and frame locator data
3. **StepResult / RunResult** - What a replay produces
4. **load_recorded_session()** - Versioned JSON loading
5. **ObjectRepository** - Named test objects referenced by `objectName`
"""

from .session import (
    CURRENT_SCHEMA_VERSION,
    SUPPORTED_SCHEMA_VERSIONS,
    ActionKind,
    AlertDecision,
    CheckpointData,
    CheckpointType,
    Coordinates,
    ElementDescriptor,
    FrameDescriptor,
    InputPayload,
    LocatorStrategy,
    MatchMode,
    PageMetadata,
    RecordedEvent,
    RecordedSession,
    SelectedOption,
)
from .results import LocatorAttempt, RunResult, RunStatus, StepResult, StepStatus
from .recording_io import load_recorded_session, parse_recorded_session, save_recorded_session
from .object_repository import ObjectLocator, ObjectRepository, TestObject, load_object_repository

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "SUPPORTED_SCHEMA_VERSIONS",
    "ActionKind",
    "AlertDecision",
    "CheckpointData",
    "CheckpointType",
    "Coordinates",
    "ElementDescriptor",
    "FrameDescriptor",
    "InputPayload",
    "LocatorStrategy",
    "MatchMode",
    "ObjectLocator",
    "ObjectRepository",
    "PageMetadata",
    "RecordedEvent",
    "RecordedSession",
    "SelectedOption",
    "LocatorAttempt",
    "RunResult",
    "RunStatus",
    "StepResult",
    "StepStatus",
    "TestObject",
    "load_object_repository",
    "load_recorded_session",
    "parse_recorded_session",
    "save_recorded_session",
]
