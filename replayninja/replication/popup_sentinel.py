"""
Pre-step detection of unexpected browser interruptions.

`PopupSentinel` looks at the session right before every step and reports one of
four states: nothing unusual, an open JavaScript dialog, more windows than
expected, or a visible DOM modal. It never dismisses anything itself; whether a
state is acceptable is decided per step by `enforce()`:

- an alert is only acceptable for an `alert_action` step
- a new window is only acceptable for a `window_switch` step
- a modal is acceptable for steps that act on a target element (the target may
  well be inside the modal) and for `navigate` steps

Anything else fails the step with `UnexpectedPopup`.
"""

from enum import Enum
from typing import List, Optional

from replayninja.browser.control import BrowserControl
from replayninja.replication.errors import UnexpectedPopup
from replayninja.schemas.session import ActionKind, RecordedEvent
from replayninja.utils.logging_config import logger


class PopupState(str, Enum):
    NONE = "none"
    ALERT = "alert"
    NEW_WINDOW = "new_window"
    MODAL = "modal"


MODAL_SELECTORS: List[str] = [
    "[role='dialog']:not([aria-hidden='true'])",
    "[role='alertdialog']",
    ".modal.show",
    ".modal.in",
    ".ui-dialog",
    ".mfp-content",
    "[data-modal='true']",
    ".dialog:not([hidden])",
]

#: returns the first selector with a visible match, or null
VISIBLE_MODAL_SCRIPT = """(selectors) => {
    const isVisible = (el) => {
        const style = window.getComputedStyle(el);
        if (style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0') {
            return false;
        }
        const rect = el.getBoundingClientRect();
        return rect.width > 0 && rect.height > 0;
    };
    for (const selector of selectors) {
        let matches = [];
        try {
            matches = Array.from(document.querySelectorAll(selector));
        } catch (e) {
            continue;
        }
        if (matches.some(isVisible)) {
            return selector;
        }
    }
    return null;
}"""


class PopupSentinel:
    """Checks for alerts, extra windows and DOM modals before each step.

    Attributes:
        expected_window_count (Optional[int]): Number of windows considered normal;
            set on the first check and moved by `acknowledge_window_switch()`
        last_detail (Optional[str]): Description of what the last check found
    """

    def __init__(self, browser: BrowserControl):
        self.browser = browser
        self.expected_window_count: Optional[int] = None
        self.last_detail: Optional[str] = None

    async def calibrate(self) -> None:
        """Take the current number of windows as the expected baseline."""
        self.expected_window_count = len(await self.browser.window_handles())

    async def acknowledge_window_switch(self) -> None:
        """Accept the windows open right now as expected (after a window switch step)."""
        await self.calibrate()
        logger.replay_log(f"🪟 Expected window count is now {self.expected_window_count}")

    async def check(self) -> PopupState:
        """Inspect the session for an interruption.

        An open dialog blocks scripts in the page, so when one is present the
        window and modal checks are skipped.

        Returns:
            PopupState: The most severe interruption found
        """
        self.last_detail = None

        if await self.browser.alert_present():
            text = await self.browser.alert_text()
            self.last_detail = f"alert with text {text!r}"
            logger.replay_log(f"🪟 Sentinel: {self.last_detail}")
            return PopupState.ALERT

        if self.expected_window_count is None:
            await self.calibrate()

        window_count = len(await self.browser.window_handles())
        expected = self.expected_window_count or 0
        if window_count > expected:
            self.last_detail = f"{window_count - expected} extra window(s) (expected {expected}, found {window_count})"
            logger.replay_log(f"🪟 Sentinel: {self.last_detail}")
            return PopupState.NEW_WINDOW
        if window_count < expected:
            # a popup window closed on its own
            self.expected_window_count = window_count

        selector = await self._visible_modal_selector()
        if selector is not None:
            self.last_detail = f"visible modal matching {selector!r}"
            logger.replay_log(f"🪟 Sentinel: {self.last_detail}")
            return PopupState.MODAL

        return PopupState.NONE

    async def _visible_modal_selector(self) -> Optional[str]:
        try:
            result = await self.browser.execute_script(VISIBLE_MODAL_SCRIPT, MODAL_SELECTORS)
        except Exception as e:
            logger.debug(f"Modal check failed: {e}")
            return None
        return result if isinstance(result, str) else None

    @staticmethod
    def tolerates(event: RecordedEvent, state: PopupState) -> bool:
        if state == PopupState.NONE:
            return True
        if state == PopupState.ALERT:
            return event.action == ActionKind.ALERT_ACTION
        if state == PopupState.NEW_WINDOW:
            return event.action == ActionKind.WINDOW_SWITCH
        if event.action == ActionKind.NAVIGATE:
            return True
        return event.action.accepts_target and event.target is not None

    def enforce(self, event: RecordedEvent, state: PopupState) -> None:
        """Fail the step if `state` is not acceptable for it.

        Raises:
            UnexpectedPopup: If the step does not expect this interruption
        """
        if self.tolerates(event, state):
            return

        detail = self.last_detail or state.value
        raise UnexpectedPopup(
            state,
            f"Unexpected {state.value.replace('_', ' ')} before step "
            f"{event.sequence_index} ({event.describe()}): {detail}",
        )
