"""
No-op event publisher.
"""

from typing import Any, Dict

from replayninja.events.base import EventPublisher
from replayninja.events.exceptions import PublisherUnavailableError
from replayninja.events.models import RunState
from replayninja.schemas.results import RunResult, StepResult


class NullEventPublisher(EventPublisher):
    """No-op event publisher for when no tracking is needed."""

    def __init__(self) -> None:
        self._available = True

    def is_available(self) -> bool:
        """Check if null publisher is available (always True)."""
        return self._available

    def _ensure_available(self) -> None:
        if not self.is_available():
            raise PublisherUnavailableError(self.name)

    async def initialize_run(self, run_id: str, metadata: Dict[str, Any]) -> None:
        self._ensure_available()

    async def update_run_state(self, run_id: str, state: RunState) -> None:
        self._ensure_available()

    async def publish_step_result(self, run_id: str, result: StepResult) -> None:
        self._ensure_available()

    async def complete_run(self, run_id: str, result: RunResult) -> None:
        self._ensure_available()
