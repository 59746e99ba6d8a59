"""
Dispatch of recorded steps to their action handlers.

`ActionDispatcher` owns an explicit handler table, built once and passed in,
never a process-wide registry. At construction it checks that every
replayable `ActionKind` has a handler, so a new kind cannot silently no-op. At
dispatch time a kind missing from the table, or a recorded kind the engine does
not know (`ActionKind.UNSUPPORTED`), fails the step with `UnsupportedAction`.
"""

from types import MappingProxyType
from typing import Mapping, Optional

from replayninja.browser.control import BrowserControl, ElementHandle
from replayninja.config.player_config import PlayerConfig
from replayninja.replication.errors import (
    ActionError,
    ConfigurationError,
    ReplicatorError,
    UnsupportedAction,
)
from replayninja.replication.handlers import ActionContext, ActionHandler
from replayninja.replication.popup_sentinel import PopupSentinel
from replayninja.replication.wait_strategy import WaitStrategy
from replayninja.schemas.session import ActionKind, RecordedEvent
from replayninja.utils.logging_config import logger


class ActionDispatcher:
    """Routes each step to the handler registered for its action kind.

    Attributes:
        table (Mapping[ActionKind, ActionHandler]): Read-only handler table
        context (ActionContext): Collaborators handed to every handler
    """

    def __init__(
        self,
        table: Mapping[ActionKind, ActionHandler],
        browser: BrowserControl,
        wait_strategy: WaitStrategy,
        sentinel: PopupSentinel,
        config: PlayerConfig,
        require_exhaustive: bool = True,
    ):
        """Initialize the dispatcher.

        Args:
            table (Mapping[ActionKind, ActionHandler]): Handler per action kind
            browser (BrowserControl): Session the handlers act on
            wait_strategy (WaitStrategy): Explicit waits used by the handlers
            sentinel (PopupSentinel): Sentinel updated by window switches
            config (PlayerConfig): Timeouts used by the handlers
            require_exhaustive (bool): Reject tables that miss an action kind

        Raises:
            ConfigurationError: If the table misses a kind (when exhaustive), or a
                handler is registered under a kind it does not handle
        """
        for kind, handler in table.items():
            if handler.kind != kind:
                raise ConfigurationError(
                    f"{type(handler).__name__} handles {handler.kind.value}, "
                    f"but is registered for {kind.value}",
                    component="ActionDispatcher",
                )

        if require_exhaustive:
            missing = [kind.value for kind in ActionKind if kind.replayable and kind not in table]
            if missing:
                raise ConfigurationError(
                    f"Handler table has no handler for: {', '.join(missing)}",
                    component="ActionDispatcher",
                )

        self.table: Mapping[ActionKind, ActionHandler] = MappingProxyType(dict(table))
        self.context = ActionContext(
            browser=browser, wait_strategy=wait_strategy, sentinel=sentinel, config=config
        )

    async def dispatch(self, event: RecordedEvent, target: Optional[ElementHandle]) -> None:
        """Perform one step.

        Args:
            event (RecordedEvent): The step to perform
            target (Optional[ElementHandle]): Resolved target element, if the step has one

        Raises:
            UnsupportedAction: If the recorded kind is unknown or has no registered handler
            ActionError: If the handler failed; browser-level errors are wrapped
            ReplicatorError: Any other replication error raised by the handler
        """
        if not event.action.replayable:
            raise UnsupportedAction(
                f"Recorded action {event.recorded_action or event.action.value!r} "
                f"(step {event.sequence_index}) cannot be replayed"
            )

        handler = self.table.get(event.action)
        if handler is None:
            raise UnsupportedAction(f"No handler registered for action kind {event.action.value!r}")

        if handler.requires_target and target is None:
            raise ActionError(
                f"{event.action.value} step {event.sequence_index} needs a target element",
                component=type(handler).__name__,
            )

        logger.replay_log(f"▶️ {type(handler).__name__}: {event.describe()}")
        try:
            await handler.handle(event, target, self.context)
        except ReplicatorError:
            raise
        except Exception as e:
            raise ActionError(
                f"{event.action.value} failed: {type(e).__name__}: {e}",
                component=type(handler).__name__,
            ) from e
