"""
Fan-out of replay events to every configured publisher.
"""

import asyncio
from threading import Lock
from typing import Any, Awaitable, Callable, Dict, List

from replayninja.schemas.results import RunResult, StepResult
from replayninja.utils.logging_config import logger

from .base import EventPublisher
from .exceptions import EventPublishingError
from .models import RunState


class EventPublisherManager:
    """Sends each run event to all publishers of that run.

    Publisher failures never reach the engine. Every call is gathered with
    `return_exceptions=True`; a failure is wrapped in `EventPublishingError`,
    logged and kept in `errors`. A publisher that fails `initialize_run` is
    left out for the rest of that run.

    Attributes:
        publishers (List[EventPublisher]): Configured publishers
        errors (List[EventPublishingError]): Failures seen so far, oldest first
    """

    def __init__(self, publishers: List[EventPublisher]):
        self.publishers = publishers
        self.errors: List[EventPublishingError] = []
        self._lock = Lock()
        self._run_publishers: Dict[str, List[EventPublisher]] = {}

    def get_available_publishers(self) -> List[EventPublisher]:
        with self._lock:
            return [p for p in self.publishers if p.is_available()]

    def has_publishers(self) -> bool:
        return len(self.get_available_publishers()) > 0

    def _record_failure(
        self, publisher: EventPublisher, run_id: str, operation: str, cause: BaseException
    ) -> EventPublishingError:
        error = EventPublishingError(publisher.name, run_id, operation, cause)
        with self._lock:
            self.errors.append(error)
        logger.warning(f"⚠️ {error}")
        return error

    async def _call_all(
        self,
        run_id: str,
        operation: str,
        publishers: List[EventPublisher],
        call: Callable[[EventPublisher], Awaitable[None]],
    ) -> List[EventPublisher]:
        """Run `call` on every publisher and return the ones that succeeded."""
        results = await asyncio.gather(*(call(p) for p in publishers), return_exceptions=True)

        succeeded: List[EventPublisher] = []
        for publisher, outcome in zip(publishers, results):
            if isinstance(outcome, Exception):
                self._record_failure(publisher, run_id, operation, outcome)
            else:
                succeeded.append(publisher)
        return succeeded

    async def initialize_run(self, run_id: str, metadata: Dict[str, Any]) -> None:
        """Announce a run; only publishers that accept it receive its later events."""
        accepted = await self._call_all(
            run_id,
            "initialize_run",
            self.get_available_publishers(),
            lambda publisher: publisher.initialize_run(run_id, metadata),
        )
        with self._lock:
            self._run_publishers[run_id] = accepted

    async def _fan_out(
        self, run_id: str, operation: str, call: Callable[[EventPublisher], Awaitable[None]]
    ) -> None:
        with self._lock:
            publishers = [p for p in self._run_publishers.get(run_id, []) if p.is_available()]
        if publishers:
            await self._call_all(run_id, operation, publishers, call)

    async def update_run_state(self, run_id: str, state: RunState) -> None:
        await self._fan_out(
            run_id, "update_run_state", lambda publisher: publisher.update_run_state(run_id, state)
        )

    async def publish_step_result(self, run_id: str, result: StepResult) -> None:
        await self._fan_out(
            run_id,
            "publish_step_result",
            lambda publisher: publisher.publish_step_result(run_id, result),
        )

    async def complete_run(self, run_id: str, result: RunResult) -> None:
        """Deliver the final result and forget the run."""
        await self._fan_out(
            run_id, "complete_run", lambda publisher: publisher.complete_run(run_id, result)
        )
        with self._lock:
            self._run_publishers.pop(run_id, None)
