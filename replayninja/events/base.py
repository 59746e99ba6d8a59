"""
Interface shared by replay event publishers.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from replayninja.events.models import RunState
from replayninja.schemas.results import RunResult, StepResult


class EventPublisher(ABC):
    """Receives the progress of replay runs.

    The engine calls the hooks in a fixed order for every run:
    `initialize_run` once, then `update_run_state` and `publish_step_result`
    once per step (a skipped step only gets its result), then `complete_run`
    once. Publishers are driven through `EventPublisherManager`, which
    isolates their failures from the replay.

    Any hook may raise `PublisherUnavailableError` when `is_available()` is False.
    """

    @property
    def name(self) -> str:
        """Short name used in log lines."""
        return type(self).__name__

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the publisher can currently accept events."""

    @abstractmethod
    async def initialize_run(self, run_id: str, metadata: Dict[str, Any]) -> None:
        """A run is starting.

        Args:
            run_id: ID chosen by the engine
            metadata: `session_id`, `total_steps`, `failure_policy`, `healing_enabled`
                and the recording details (`browser_name`, `recorded_by`)
        """

    @abstractmethod
    async def update_run_state(self, run_id: str, state: RunState) -> None:
        """A step is about to be executed."""

    @abstractmethod
    async def publish_step_result(self, run_id: str, result: StepResult) -> None:
        """A step has an outcome (passed, healed, failed or skipped)."""

    @abstractmethod
    async def complete_run(self, run_id: str, result: RunResult) -> None:
        """The run finished; `result` is final."""
