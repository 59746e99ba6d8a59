"""
Replication error classes for the ReplayNinja replay engine.

This module contains all exception classes raised while replaying a recorded
session. Every error carries a stable `kind` (reported in step results) and the
name of the `component` that raised it, so a failed step can be diagnosed from
its result alone.

## Exception Hierarchy

```
ReplicatorError (base)
├── ElementNotFound          (step-fatal)
├── InvalidDescriptorError   (step-fatal)
├── FrameNotFound            (step-fatal)
├── UnexpectedPopup          (step-fatal)
├── WaitTimeoutError         (step-fatal, also a builtin TimeoutError)
├── UnsupportedAction        (step-fatal)
├── ActionError              (step-fatal)
├── CheckpointFailed         (step-fatal)
├── UnsupportedSchemaVersion (run-fatal)
├── RecordingFormatError     (run-fatal)
└── ConfigurationError       (run-fatal)
```

## Usage Examples

```python
from replayninja.replication.errors import ElementNotFound, ReplicatorError

try:
    resolved = await resolver.resolve(descriptor, timeout_ms=5000)
except ElementNotFound as e:
    print(f"{e.component}: {e}")
    for attempt in e.attempts:
        print(attempt.strategy, attempt.succeeded)
except ReplicatorError as e:
    print(f"General replication error: {e}")
```
"""

from typing import TYPE_CHECKING, Any, List, Optional, Sequence

if TYPE_CHECKING:
    from replayninja.schemas.results import LocatorAttempt
    from replayninja.schemas.session import ElementDescriptor, FrameDescriptor


class ReplicatorError(Exception):
    """Base exception for all replication-related errors.

    Attributes:
        kind (str): Stable error kind reported in step results
        component (str): Name of the component that raised the error
    """

    kind: str = "ReplicatorError"
    default_component: str = "PlayerEngine"

    def __init__(self, message: str, component: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.component = component or self.default_component

    def __str__(self) -> str:
        return self.message


class ElementNotFound(ReplicatorError):
    """Raised when every populated locator strategy failed to find the element.

    The exception keeps the full list of locator attempts and, when healing was
    tried, a note about its outcome.
    """

    kind = "ElementNotFound"
    default_component = "LocatorResolver"

    def __init__(
        self,
        descriptor: "ElementDescriptor",
        attempts: Sequence["LocatorAttempt"],
        timeout_ms: int,
        component: Optional[str] = None,
    ):
        self.descriptor = descriptor
        self.attempts: List["LocatorAttempt"] = list(attempts)
        self.timeout_ms = timeout_ms
        self.healing_note: Optional[str] = None
        tried = ", ".join(f"{a.strategy.value}={a.value!r}" for a in self.attempts) or "none"
        super().__init__(
            f"Element not found after {len(self.attempts)} attempt(s) within {timeout_ms}ms "
            f"[{descriptor.summary()}] (tried: {tried})",
            component,
        )

    def __str__(self) -> str:
        if self.healing_note:
            return f"{self.message}; {self.healing_note}"
        return self.message


class InvalidDescriptorError(ReplicatorError):
    """Raised when a step needs a target but its descriptor has no populated locator field."""

    kind = "InvalidDescriptor"
    default_component = "LocatorResolver"


class FrameNotFound(ReplicatorError):
    """Raised when a hop of a frame chain cannot be located."""

    kind = "FrameNotFound"
    default_component = "FrameNavigator"

    def __init__(
        self,
        hop_index: int,
        frame: "FrameDescriptor",
        chain: Sequence["FrameDescriptor"],
        component: Optional[str] = None,
    ):
        self.hop_index = hop_index
        self.frame = frame
        self.chain = list(chain)
        chain_str = " > ".join(f.summary() for f in self.chain)
        super().__init__(
            f"Frame not found at hop {hop_index} [{frame.summary()}] (chain: {chain_str})",
            component,
        )


class UnexpectedPopup(ReplicatorError):
    """Raised when an alert, new window or modal blocks a step that did not expect it."""

    kind = "UnexpectedPopup"
    default_component = "PopupSentinel"

    def __init__(self, popup_state: Any, message: str, component: Optional[str] = None):
        self.popup_state = popup_state
        super().__init__(message, component)


class WaitTimeoutError(ReplicatorError, TimeoutError):
    """Raised when a WaitStrategy condition is never satisfied within its timeout."""

    kind = "TimeoutError"
    default_component = "WaitStrategy"

    def __init__(
        self,
        condition: str,
        timeout_ms: int,
        last_error: Optional[BaseException] = None,
        component: Optional[str] = None,
    ):
        self.condition = condition
        self.timeout_ms = timeout_ms
        self.last_error = last_error
        message = f"Timed out after {timeout_ms}ms waiting for {condition}"
        if last_error is not None:
            message += f" (last error: {type(last_error).__name__}: {last_error})"
        super().__init__(message, component)


class UnsupportedAction(ReplicatorError):
    """Raised when a step's action kind has no registered handler."""

    kind = "UnsupportedAction"
    default_component = "ActionDispatcher"


class ActionError(ReplicatorError):
    """Raised when an action handler cannot perform its step.

    Typical causes are a missing input payload (no URL to navigate to, no option
    to select) or a browser-level error while acting on a resolved element.
    """

    kind = "ActionError"
    default_component = "ActionDispatcher"


class CheckpointFailed(ReplicatorError):
    """Raised when a checkpoint step observes a value that does not match its expectation.

    Attributes:
        label (str): Checkpoint name, or the checked property when unnamed
        expected (Optional[str]): Expected value, if the checkpoint compares values
        actual (Optional[str]): Value observed in the browser
    """

    kind = "CheckpointFailed"
    default_component = "CheckpointHandler"

    def __init__(
        self,
        label: str,
        message: str,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
        component: Optional[str] = None,
    ):
        self.label = label
        self.expected = expected
        self.actual = actual
        super().__init__(f"Checkpoint {label} failed: {message}", component)


class UnsupportedSchemaVersion(ReplicatorError):
    """Raised when a recorded session declares a schema version this engine cannot read."""

    kind = "UnsupportedSchemaVersion"
    default_component = "RecordingLoader"

    def __init__(self, found: Optional[str], supported: Sequence[str]):
        self.found = found
        self.supported = list(supported)
        super().__init__(
            f"Unsupported recording schema version {found!r}; supported: {', '.join(self.supported)}"
        )


class RecordingFormatError(ReplicatorError):
    """Raised when a recorded session document is malformed."""

    kind = "RecordingFormatError"
    default_component = "RecordingLoader"


class ConfigurationError(ReplicatorError):
    """Raised when the engine configuration is invalid.

    This includes any attempt to configure an implicit (session-wide) wait.
    """

    kind = "ConfigurationError"
    default_component = "Configuration"
