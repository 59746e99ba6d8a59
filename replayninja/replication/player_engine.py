"""
Replay orchestration.

`PlayerEngine` executes one immutable `RecordedSession` against one live browser
session, strictly in order and one step at a time, and produces a `RunResult`.

For every step the engine walks the step state machine:

1. reset the document context to the top document
2. popup sentinel check (never skipped, not even after a failure)
3. enter the recorded frame chain
4. resolve the target element, healing once if allowed
5. dispatch the action

Any error raised along the way fails the step: evidence is captured, a failed
`StepResult` is recorded, and the failure policy decides what happens next.
Errors never escape a step; only run-fatal problems (unsupported schema
version, invalid configuration) are raised, and those are raised at
construction time, before any step runs.

An engine is single use: construct a fresh one per run.

## Usage Examples

```python
from replayninja.browser import PatchrightBrowserControl
from replayninja.config import PlayerConfig
from replayninja.replication import PlayerEngine
from replayninja.schemas import load_recorded_session

session = load_recorded_session("./recordings/login.json")
engine = PlayerEngine(session, PatchrightBrowserControl(page), PlayerConfig())
result = await engine.run()
print(result.status, result.status_sequence())
```
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from cuid2 import Cuid as CUID

from replayninja.browser.control import BrowserControl, ElementHandle
from replayninja.config.player_config import PlayerConfig
from replayninja.config.settings import FailurePolicy
from replayninja.events.manager import EventPublisherManager
from replayninja.events.models import RunState
from replayninja.events.types import RunPhase
from replayninja.healing.base import LocatorHealingService
from replayninja.replication.action_dispatcher import ActionDispatcher
from replayninja.replication.errors import (
    ElementNotFound,
    InvalidDescriptorError,
    ReplicatorError,
    UnsupportedSchemaVersion,
)
from replayninja.replication.evidence import EvidenceCollector, EvidenceSink, FileSystemEvidenceSink
from replayninja.replication.frame_navigator import FrameNavigator
from replayninja.replication.handlers import ActionHandler, build_handler_table
from replayninja.replication.healing_interceptor import HealingInterceptor
from replayninja.replication.locator_resolver import LocatorResolver, ResolvedElement
from replayninja.replication.popup_sentinel import PopupSentinel
from replayninja.replication.state_machine import EngineState, StepExecution, StepPhase
from replayninja.replication.wait_strategy import WaitCondition, WaitStrategy
from replayninja.schemas.object_repository import ObjectRepository, load_object_repository
from replayninja.schemas.results import LocatorAttempt, RunResult, RunStatus, StepResult, StepStatus
from replayninja.schemas.session import (
    SUPPORTED_SCHEMA_VERSIONS,
    ActionKind,
    ElementDescriptor,
    RecordedEvent,
    RecordedSession,
)
from replayninja.utils.logging_config import bind_run, logger

UNEXPECTED_ERROR_KIND = "UnexpectedError"

#: steps that re-establish page state, where a continue-on-failure run resumes
RESUME_ACTIONS = frozenset({ActionKind.NAVIGATE, ActionKind.WINDOW_SWITCH})

#: page URLs that do not identify where a recording started
BLANK_PAGE_URLS = frozenset({"about:blank", "about:newtab"})


def recorded_start_url(session: RecordedSession) -> Optional[str]:
    """First real page URL recorded on any step of the session, if there is one."""
    for event in session.events:
        for url in (event.payload.url, event.page.url):
            if url and url.strip() and url.strip().lower() not in BLANK_PAGE_URLS:
                return url.strip()
    return None


class PlayerEngine:
    """Executes a recorded session and reports a result per step.

    Attributes:
        session (RecordedSession): The session being replayed (never mutated)
        run_id (str): Identifier of this run, used for events and evidence keys
        state (EngineState): Lifecycle state of the engine
        result (Optional[RunResult]): Result of the run, once finished

    Example:
        ```python
        stop = asyncio.Event()
        engine = PlayerEngine(session, browser, config, stop_event=stop)
        task = asyncio.create_task(engine.run())
        ...
        engine.request_stop()  # takes effect before the next step
        result = await task
        ```
    """

    def __init__(
        self,
        session: RecordedSession,
        browser: BrowserControl,
        config: Optional[PlayerConfig] = None,
        healing_service: Optional[LocatorHealingService] = None,
        evidence_sink: Optional[EvidenceSink] = None,
        handler_table: Optional[Mapping[ActionKind, ActionHandler]] = None,
        object_repository: Optional[ObjectRepository] = None,
        stop_event: Optional[asyncio.Event] = None,
        event_manager: Optional[EventPublisherManager] = None,
        run_id: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the engine for one run.

        Args:
            session (RecordedSession): Session to replay
            browser (BrowserControl): Live browser session, exclusively used by this run
            config (Optional[PlayerConfig]): Run options (defaults if None)
            healing_service (Optional[LocatorHealingService]): Service used when healing is enabled
            evidence_sink (Optional[EvidenceSink]): Where evidence goes (files below
                `config.evidence_dir` if None)
            handler_table (Optional[Mapping[ActionKind, ActionHandler]]): Action handlers
                (`build_handler_table()` if None)
            object_repository (Optional[ObjectRepository]): Named objects for steps recorded
                with an `objectName` (loaded from `config.object_repository_path` if None)
            stop_event (Optional[asyncio.Event]): External stop signal, checked between steps
            event_manager (Optional[EventPublisherManager]): Publishers for run events
            run_id (Optional[str]): Run identifier (generated if None)
            clock: Monotonic clock in seconds, for timing and waits
            sleep: Async sleep used between wait polls

        Raises:
            UnsupportedSchemaVersion: If the session's schema version is not supported
            ConfigurationError: If the configuration or handler table is invalid
            RecordingFormatError: If the configured object repository cannot be loaded
        """
        if session.schema_version not in SUPPORTED_SCHEMA_VERSIONS:
            raise UnsupportedSchemaVersion(session.schema_version, SUPPORTED_SCHEMA_VERSIONS)

        self.config = config or PlayerConfig()
        self.config.validate_for_run()

        self.session = session
        self.browser = browser
        if object_repository is None and self.config.object_repository_path is not None:
            object_repository = load_object_repository(self.config.object_repository_path)
        self.object_repository = object_repository
        self.run_id = run_id or CUID().generate()
        self.state = EngineState.IDLE
        self.result: Optional[RunResult] = None
        self._started_at = datetime.now(timezone.utc)
        self.stop_event = stop_event or asyncio.Event()
        self.event_manager = event_manager

        self.wait_strategy = WaitStrategy(browser, self.config.poll_interval_ms, clock, sleep)
        self.resolver = LocatorResolver(browser, self.wait_strategy, self.config.min_strategy_timeout_ms)
        self.healing = HealingInterceptor(
            self.resolver,
            browser,
            healing_service=healing_service,
            enabled=self.config.healing_enabled,
            budget_ms=self.config.healing_timeout_ms,
        )
        self.sentinel = PopupSentinel(browser)
        self.frames = FrameNavigator(browser, self.wait_strategy, hop_timeout_ms=self.config.explicit_wait_ms)
        self.dispatcher = ActionDispatcher(
            handler_table if handler_table is not None else build_handler_table(),
            browser,
            self.wait_strategy,
            self.sentinel,
            self.config,
        )
        self.evidence = EvidenceCollector(
            browser,
            evidence_sink or FileSystemEvidenceSink(self.config.evidence_dir),
            self.run_id,
            self.config,
        )

    def request_stop(self) -> None:
        """Ask the run to stop before its next step."""
        self.stop_event.set()

    @property
    def attempt_log(self) -> List[LocatorAttempt]:
        return self.resolver.attempt_log

    #! Run

    async def run(self) -> RunResult:
        """Replay the session.

        Returns:
            RunResult: Ordered step results and the overall status

        Raises:
            ReplicatorError: If the engine was already used
        """
        if self.state != EngineState.IDLE:
            raise ReplicatorError(
                f"PlayerEngine for run {self.run_id} is {self.state.value}; "
                "construct a new engine for every run"
            )
        self.state = EngineState.RUNNING
        with bind_run(self.run_id):
            return await self._replay()

    async def _replay(self) -> RunResult:
        started_at = datetime.now(timezone.utc)
        self._started_at = started_at
        total = len(self.session.events)

        logger.replay_log(f"🚀 Replaying session '{self.session.session_id}' ({total} step(s)), run {self.run_id}")
        await self._publish_start(total)

        if not self.stop_event.is_set():
            await self._auto_navigate()

        steps: List[StepResult] = []
        first_failure_index: Optional[int] = None
        aborted = False
        stopped = False
        skipping = False

        for index, event in enumerate(self.session.events):
            if self.stop_event.is_set():
                logger.replay_log(f"⏹️ Stop requested, aborting before step {index}")
                stopped = True
                break

            if skipping and event.action not in RESUME_ACTIONS:
                step_result = self._skipped_result(index, event)
            else:
                skipping = False
                await self._publish_progress(index, total, event, steps)
                step_result = await self._execute_step(index, event)

            steps.append(step_result)
            await self._publish_step(step_result)

            if step_result.status == StepStatus.FAILED:
                if first_failure_index is None:
                    first_failure_index = index
                if self.config.failure_policy == FailurePolicy.ABORT:
                    aborted = True
                    break
                skipping = True

        if aborted or stopped:
            status = RunStatus.ABORTED
            self.state = EngineState.ABORTED
        else:
            status = RunStatus.FAILED if first_failure_index is not None else RunStatus.COMPLETED
            self.state = EngineState.COMPLETED

        self.result = RunResult(
            run_id=self.run_id,
            session_id=self.session.session_id,
            status=status,
            steps=steps,
            first_failure_index=first_failure_index,
            stopped_by_request=stopped,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )

        logger.replay_log("🏁 === REPLAY FINISHED ===")
        logger.replay_log(
            f"📊 {status.value.upper()}: {self.result.passed_count} passed, "
            f"{self.result.healed_count} healed, {self.result.failed_count} failed, "
            f"{self.result.skipped_count} skipped"
        )
        if self.event_manager is not None:
            await self.event_manager.complete_run(self.run_id, self.result)

        return self.result

    async def _auto_navigate(self) -> None:
        if not self.config.auto_navigate or not self.session.events:
            return
        if self.session.events[0].action == ActionKind.NAVIGATE:
            return

        url = recorded_start_url(self.session)
        if url is None:
            logger.warning("⚠️ Session does not start with a navigation and records no page URL")
            return

        logger.replay_log(f"🧭 Session does not start with a navigation, opening {url}")
        try:
            await self.browser.navigate(url)
            await self.wait_strategy.wait_for(
                WaitCondition.PAGE_LOADED, timeout_ms=self.config.page_load_timeout_ms
            )
        except Exception as e:
            # the first step then fails on its own, with evidence
            logger.warning(f"⚠️ Opening the recorded start page {url} failed: {e}")

    #! Steps

    async def _execute_step(self, index: int, event: RecordedEvent) -> StepResult:
        step = StepExecution(index=index, event=event)
        started = self.wait_strategy.now()
        resolved: Optional[ResolvedElement] = None
        error: Optional[BaseException] = None

        logger.replay_log(f"🔄 Step {index} [{event.action.value}] {event.describe()}")
        self._discard_console_lines()

        try:
            await self.frames.reset_to_top()

            step.advance(StepPhase.SENTINEL)
            popup_state = await self.sentinel.check()
            self.sentinel.enforce(event, popup_state)

            step.advance(StepPhase.FRAMES)
            await self.frames.enter(event.frame_chain)

            descriptor = self._target_descriptor(event)
            target: Optional[ElementHandle] = None
            if event.action.requires_target or (event.action.accepts_target and descriptor is not None):
                if descriptor is None:
                    raise InvalidDescriptorError(
                        f"{event.action.value} step {event.sequence_index} has no target element"
                    )
                step.advance(StepPhase.RESOLVING)
                resolved = await self.healing.resolve(
                    descriptor,
                    self.config.explicit_wait_ms,
                    step,
                    allow_healing=event.action != ActionKind.CHECKPOINT,
                )
                target = resolved.handle

            step.advance(StepPhase.DISPATCHING)
            await self.dispatcher.dispatch(event, target)
            step.finish()
        except Exception as e:
            error = e
            step.fail()

        elapsed_ms = self.wait_strategy.elapsed_ms(started)
        attempts = list(resolved.attempts) if resolved is not None else []

        if error is None:
            status = step.step_status()
            icon = "🩹" if status == StepStatus.HEALED else "✅"
            logger.replay_log(f"{icon} Step {index} {status.value} ({elapsed_ms}ms)")
            return StepResult(
                index=index,
                sequence_index=event.sequence_index,
                action=event.action,
                status=status,
                elapsed_ms=elapsed_ms,
                healed_descriptor=step.healed_descriptor,
                locator_attempts=attempts,
            )

        return await self._failed_result(step, error, elapsed_ms)

    def _target_descriptor(self, event: RecordedEvent) -> Optional[ElementDescriptor]:
        """The recorded element, or the object repository entry the step names."""
        if event.target is not None or not event.object_name:
            return event.target
        if self.object_repository is None:
            logger.warning(f"⚠️ Step names object {event.object_name!r} but no object repository is attached")
            return None

        descriptor = self.object_repository.descriptor_for(event.object_name)
        if descriptor is None:
            logger.warning(f"⚠️ Object {event.object_name!r} has no usable locator in the object repository")
        else:
            logger.replay_log(f"📚 Object {event.object_name!r} -> [{descriptor.summary()}]")
        return descriptor

    async def _failed_result(self, step: StepExecution, error: BaseException, elapsed_ms: int) -> StepResult:
        event = step.event
        if isinstance(error, ReplicatorError):
            kind = error.kind
            component = error.component
        else:
            kind = UNEXPECTED_ERROR_KIND
            component = "PlayerEngine"
            logger.error(f"❌ Unexpected {type(error).__name__} in step {step.index}", exc_info=error)

        attempts: List[LocatorAttempt] = list(error.attempts) if isinstance(error, ElementNotFound) else []
        message = f"[{component}] {error}" if isinstance(error, ReplicatorError) else (
            f"[{component}] {type(error).__name__}: {error}"
        )

        logger.error(f"❌ Step {step.index} failed: {message}")
        evidence_key = await self.evidence.capture(step.index, event, error)
        if evidence_key is not None:
            message = f"{message} (evidence: {evidence_key})"

        return StepResult(
            index=step.index,
            sequence_index=event.sequence_index,
            action=event.action,
            status=StepStatus.FAILED,
            elapsed_ms=elapsed_ms,
            error_kind=kind,
            error_message=message,
            component=component,
            evidence_key=evidence_key,
            locator_attempts=attempts,
        )

    def _skipped_result(self, index: int, event: RecordedEvent) -> StepResult:
        logger.replay_log(f"⏭️ Step {index} skipped after an earlier failure")
        return StepResult(
            index=index,
            sequence_index=event.sequence_index,
            action=event.action,
            status=StepStatus.SKIPPED,
        )

    def _discard_console_lines(self) -> None:
        # evidence only wants the lines produced by the failing step
        try:
            self.browser.drain_console_lines()
        except Exception as e:
            logger.debug(f"Could not drain console lines: {e}")

    #! Events

    async def _publish_start(self, total: int) -> None:
        if self.event_manager is None:
            return
        metadata: Dict[str, Any] = {
            "session_id": self.session.session_id,
            "total_steps": total,
            "browser_name": self.session.browser_name,
            "recorded_by": self.session.recorded_by,
            "failure_policy": self.config.failure_policy.value,
            "healing_enabled": self.config.healing_enabled,
        }
        await self.event_manager.initialize_run(self.run_id, metadata)

    async def _publish_progress(
        self, index: int, total: int, event: RecordedEvent, finished: List[StepResult]
    ) -> None:
        if self.event_manager is None:
            return
        now = datetime.now(timezone.utc)
        state = RunState(
            run_id=self.run_id,
            session_id=self.session.session_id,
            status=RunPhase.RUNNING,
            current_step=index,
            total_steps=total,
            current_action=event.describe(),
            current_url=event.page.url,
            **RunState.count_outcomes(finished),
            start_time=self._started_at,
            last_update_time=now,
        )
        await self.event_manager.update_run_state(self.run_id, state)

    async def _publish_step(self, step_result: StepResult) -> None:
        if self.event_manager is not None:
            await self.event_manager.publish_step_result(self.run_id, step_result)
