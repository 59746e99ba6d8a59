"""
Per-step and per-run state machines of the replay engine.

A step walks through a fixed set of phases. Which phase may follow which is
declared once in `STEP_TRANSITIONS`; `StepExecution.advance()` refuses anything
else. In particular the healing phase can be entered at most once per step, so
"retry exactly once" holds structurally rather than by convention.

```
pending → sentinel → frames → resolving ─┬─────────────────────────────┬→ dispatching → passed | healed
                                         └→ healing → resolving_healed ┘
(any non-terminal phase) → failed
```

## Key Components

1. **StepPhase** - Phases of one step
2. **StepExecution** - Mutable state of the step currently executing
3. **EngineState** - Lifecycle of a `PlayerEngine` instance
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from replayninja.replication.errors import ReplicatorError
from replayninja.schemas.results import StepStatus
from replayninja.schemas.session import ElementDescriptor, RecordedEvent


class StepPhase(str, Enum):
    PENDING = "pending"
    SENTINEL = "sentinel"
    FRAMES = "frames"
    RESOLVING = "resolving"
    HEALING = "healing"
    RESOLVING_HEALED = "resolving_healed"
    DISPATCHING = "dispatching"
    PASSED = "passed"
    HEALED = "healed"
    FAILED = "failed"


STEP_TRANSITIONS: Dict[StepPhase, FrozenSet[StepPhase]] = {
    StepPhase.PENDING: frozenset({StepPhase.SENTINEL, StepPhase.FAILED}),
    StepPhase.SENTINEL: frozenset({StepPhase.FRAMES, StepPhase.FAILED}),
    # steps without a target go straight to dispatch
    StepPhase.FRAMES: frozenset({StepPhase.RESOLVING, StepPhase.DISPATCHING, StepPhase.FAILED}),
    StepPhase.RESOLVING: frozenset({StepPhase.DISPATCHING, StepPhase.HEALING, StepPhase.FAILED}),
    StepPhase.HEALING: frozenset({StepPhase.RESOLVING_HEALED, StepPhase.FAILED}),
    StepPhase.RESOLVING_HEALED: frozenset({StepPhase.DISPATCHING, StepPhase.FAILED}),
    StepPhase.DISPATCHING: frozenset({StepPhase.PASSED, StepPhase.HEALED, StepPhase.FAILED}),
    StepPhase.PASSED: frozenset(),
    StepPhase.HEALED: frozenset(),
    StepPhase.FAILED: frozenset(),
}

TERMINAL_PHASES: FrozenSet[StepPhase] = frozenset(
    {StepPhase.PASSED, StepPhase.HEALED, StepPhase.FAILED}
)


class IllegalTransitionError(ReplicatorError):
    """Raised when a step or the engine is moved along an undeclared transition."""

    kind = "IllegalTransition"
    default_component = "PlayerEngine"


class StepExecution(BaseModel):
    """State of one step while it executes.

    Attributes:
        index (int): Position of the step in the session
        event (RecordedEvent): The recorded step
        phase (StepPhase): Current phase
        history (List[StepPhase]): Every phase entered, in order
        healed_descriptor (Optional[ElementDescriptor]): Replacement descriptor that
            resolved the target, when healing succeeded
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    index: int
    event: RecordedEvent
    phase: StepPhase = StepPhase.PENDING
    history: List[StepPhase] = Field(default_factory=lambda: [StepPhase.PENDING])
    healed_descriptor: Optional[ElementDescriptor] = None

    def can_advance(self, phase: StepPhase) -> bool:
        if phase == StepPhase.HEALING and self.healing_attempted:
            return False
        return phase in STEP_TRANSITIONS[self.phase]

    def advance(self, phase: StepPhase) -> None:
        """Move to `phase`.

        Raises:
            IllegalTransitionError: If the transition is not declared, or healing
                would be entered a second time
        """
        if not self.can_advance(phase):
            raise IllegalTransitionError(
                f"Step {self.index}: illegal transition {self.phase.value} -> {phase.value}"
            )
        self.phase = phase
        self.history.append(phase)

    def fail(self) -> None:
        """Move to `failed` unless the step already reached a terminal phase."""
        if not self.is_terminal:
            self.advance(StepPhase.FAILED)

    def finish(self) -> None:
        """Terminate a dispatched step as passed, or healed when a healed descriptor was used."""
        self.advance(StepPhase.HEALED if self.healed_descriptor is not None else StepPhase.PASSED)

    @property
    def healing_attempted(self) -> bool:
        return StepPhase.HEALING in self.history

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def step_status(self) -> StepStatus:
        if self.phase == StepPhase.HEALED:
            return StepStatus.HEALED
        if self.phase == StepPhase.PASSED:
            return StepStatus.PASSED
        return StepStatus.FAILED


class EngineState(str, Enum):
    """Lifecycle of a `PlayerEngine`; `completed` and `aborted` are terminal."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"
