"""
ReplayNinja - Deterministic Browser Session Replay with Bounded Self-Healing

ReplayNinja replays a recorded sequence of user interactions against a live
browser session and reports pass/fail per step, with evidence on failure. It is
built for recordings made once and replayed unattended, even when element ids,
DOM structure and timing drift slightly between runs.

## Key Features

1. **Ordered Replay** - One step at a time, in recorded order, never parallelised
2. **Multi-Strategy Locators** - id → name → css → xpath with per-attempt logging
3. **Bounded Self-Healing** - At most one healing retry per step, reported as `healed`
4. **Explicit Waits Only** - Every suspension point is a bounded wait
5. **Popup Sentinel** - Unexpected alerts, windows and modals fail the step
6. **Failure Evidence** - Screenshot, DOM source and console lines per failed step

## Core Components

- `PlayerEngine` - Replay orchestrator
- `PlayerConfig` / `ConfigurationFactory` - Run options and settings
- `PatchrightBrowserControl` - Browser Control Surface over a patchright page
- `LLMLocatorHealer` / `DomComparisonHealer` - Locator-Healing Services
- `EventPublisherManager` - Run progress publishing
"""

# utils first: every module logs through its logger
from replayninja.utils import configure_logging, logger  # isort: skip
from replayninja.replication import (
    PlayerEngine,
    ReplicatorError,
)
from replayninja.browser import BrowserControl, PatchrightBrowserControl
from replayninja.config import ConfigurationFactory, PlayerConfig, ReplayNinjaSettings
from replayninja.events import EventPublisherFactory, EventPublisherManager, EventPublisherType
from replayninja.healing import DomComparisonHealer, LLMLocatorHealer, create_healing_service
from replayninja.schemas import (
    RecordedSession,
    RunResult,
    StepResult,
    load_recorded_session,
    parse_recorded_session,
    save_recorded_session,
)

__version__ = "0.1.0"

__all__ = [
    "BrowserControl",
    "ConfigurationFactory",
    "DomComparisonHealer",
    "EventPublisherFactory",
    "EventPublisherManager",
    "EventPublisherType",
    "LLMLocatorHealer",
    "PatchrightBrowserControl",
    "PlayerConfig",
    "PlayerEngine",
    "RecordedSession",
    "ReplayNinjaSettings",
    "ReplicatorError",
    "RunResult",
    "StepResult",
    "configure_logging",
    "create_healing_service",
    "load_recorded_session",
    "logger",
    "parse_recorded_session",
    "save_recorded_session",
]
