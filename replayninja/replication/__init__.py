"""
Session replay for ReplayNinja.

This module provides the **replay engine** with:
- Ordered, single-threaded execution of recorded sessions
- Multi-strategy element resolution with one bounded healing retry
- Explicit waits only (implicit waits are rejected)
- Popup sentinel and frame context management around every step
- Best-effort failure evidence capture

## Key Components

1. **PlayerEngine** - Top-level orchestrator producing a `RunResult`
2. **LocatorResolver** / **HealingInterceptor** - Element resolution and healing
3. **WaitStrategy** - The only synchronisation primitive of the engine
4. **PopupSentinel** / **FrameNavigator** - Pre-step checks and frame context
5. **ActionDispatcher** - Handler table per action kind
6. **EvidenceCollector** - Screenshot, DOM and console capture on failure

## Usage Examples

```python
from replayninja.replication import PlayerEngine

engine = PlayerEngine(session, browser, config, healing_service=healer)
result = await engine.run()
```
"""

# errors must load first: every other module of the package depends on them
from .errors import (  # isort: skip
    ActionError,
    CheckpointFailed,
    ConfigurationError,
    ElementNotFound,
    FrameNotFound,
    InvalidDescriptorError,
    RecordingFormatError,
    ReplicatorError,
    UnexpectedPopup,
    UnsupportedAction,
    UnsupportedSchemaVersion,
    WaitTimeoutError,
)
from .action_dispatcher import ActionDispatcher
from .evidence import (
    EvidenceBundle,
    EvidenceCollector,
    EvidenceSink,
    FileSystemEvidenceSink,
    evidence_key_for,
    sanitize_run_id,
)
from .frame_navigator import FrameNavigator
from .handlers import (
    ActionContext,
    ActionHandler,
    build_handler_table,
    build_key_chord,
    resolve_key,
)
from .healing_interceptor import HealingInterceptor
from .locator_resolver import LocatorResolver, ResolvedElement
from .player_engine import PlayerEngine
from .popup_sentinel import MODAL_SELECTORS, PopupSentinel, PopupState
from .state_machine import EngineState, IllegalTransitionError, StepExecution, StepPhase
from .wait_strategy import WaitCondition, WaitStrategy

__all__ = [
    "ActionContext",
    "ActionDispatcher",
    "ActionError",
    "ActionHandler",
    "CheckpointFailed",
    "ConfigurationError",
    "ElementNotFound",
    "EngineState",
    "EvidenceBundle",
    "EvidenceCollector",
    "EvidenceSink",
    "FileSystemEvidenceSink",
    "FrameNavigator",
    "FrameNotFound",
    "HealingInterceptor",
    "IllegalTransitionError",
    "InvalidDescriptorError",
    "LocatorResolver",
    "MODAL_SELECTORS",
    "PlayerEngine",
    "PopupSentinel",
    "PopupState",
    "RecordingFormatError",
    "ReplicatorError",
    "ResolvedElement",
    "StepExecution",
    "StepPhase",
    "UnexpectedPopup",
    "UnsupportedAction",
    "UnsupportedSchemaVersion",
    "WaitCondition",
    "WaitStrategy",
    "WaitTimeoutError",
    "build_handler_table",
    "build_key_chord",
    "evidence_key_for",
    "resolve_key",
    "sanitize_run_id",
]
