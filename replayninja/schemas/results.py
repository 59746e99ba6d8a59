"""
Step and run result models for the ReplayNinja replay engine.

These models are what a replay produces: one `StepResult` per executed (or
skipped) step, aggregated into a `RunResult`. They are plain pydantic models
so reporting layers can serialise them with `model_dump_json()`.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from replayninja.schemas.session import ActionKind, ElementDescriptor, LocatorStrategy


class StepStatus(str, Enum):
    """Outcome of one step."""

    PASSED = "passed"
    HEALED = "healed"
    FAILED = "failed"
    SKIPPED = "skipped"


class RunStatus(str, Enum):
    """Overall outcome of a run.

    `COMPLETED` means every step passed or healed. `FAILED` is only produced by
    the continue-on-failure policy, when the run reached the end with failures.
    `ABORTED` means the run stopped early, on the first unrecovered failure or
    on an external stop request.
    """

    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"


class LocatorAttempt(BaseModel):
    """One locator strategy tried by the resolver."""

    attempt_number: int
    strategy: LocatorStrategy
    value: str
    succeeded: bool
    elapsed_ms: int = 0
    error: Optional[str] = None


class StepResult(BaseModel):
    """Outcome of one executed event."""

    index: int
    sequence_index: int
    action: ActionKind
    status: StepStatus
    elapsed_ms: int = 0
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    component: Optional[str] = None
    evidence_key: Optional[str] = None
    healed_descriptor: Optional[ElementDescriptor] = None
    locator_attempts: List[LocatorAttempt] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status in (StepStatus.PASSED, StepStatus.HEALED)


class RunResult(BaseModel):
    """Ordered step results plus the overall status of a run."""

    run_id: str
    session_id: str
    status: RunStatus
    steps: List[StepResult] = Field(default_factory=list)
    first_failure_index: Optional[int] = None
    stopped_by_request: bool = False
    started_at: datetime
    finished_at: datetime

    @property
    def passed_count(self) -> int:
        return sum(1 for step in self.steps if step.status == StepStatus.PASSED)

    @property
    def healed_count(self) -> int:
        return sum(1 for step in self.steps if step.status == StepStatus.HEALED)

    @property
    def failed_count(self) -> int:
        return sum(1 for step in self.steps if step.status == StepStatus.FAILED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for step in self.steps if step.status == StepStatus.SKIPPED)

    def status_sequence(self) -> List[StepStatus]:
        """Step statuses in execution order, without timing data."""
        return [step.status for step in self.steps]
