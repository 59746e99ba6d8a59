"""
Action handlers, one per action kind.

Every replayable `ActionKind` has exactly one handler class here. Handlers are
stateless: everything a handler may touch arrives through its arguments (the
step, the resolved target and an `ActionContext`), so one handler table can
serve any number of engines. `build_handler_table()` constructs a fresh table
covering every replayable kind; `ActionDispatcher` refuses tables that miss one.
`ActionKind.UNSUPPORTED` never has a handler.

## Handlers

| Kind            | Behaviour                                                              |
|-----------------|------------------------------------------------------------------------|
| click           | wait clickable, click                                                  |
| double_click    | wait clickable, double click                                           |
| context_menu    | wait clickable, right click                                            |
| text_input      | wait visible, clear, type                                              |
| select_option   | native `<select>` by text → value → index; custom dropdown by click    |
| key_press       | key chord to the target, or to the focused element                     |
| scroll          | target into view, or window to (x, y)                                  |
| navigate        | go to the URL, wait for the page to load                               |
| alert_action    | wait for the dialog, then accept / dismiss / answer                    |
| window_switch   | recorded window if still open, else the newest other window            |
| hover           | wait visible, move the pointer over the element                        |
| wait            | wait for the page to load, and for the target to be visible if any     |
| checkpoint      | compare text, attribute, URL, title or screenshot with the expectation |
| frame_switch    | nothing; frames are entered from each step's frame chain               |
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from replayninja.browser.control import BrowserControl, ElementHandle
from replayninja.config.player_config import PlayerConfig
from replayninja.replication.checkpoints import assert_match, screenshot_difference_ratio
from replayninja.replication.errors import ActionError, CheckpointFailed, WaitTimeoutError
from replayninja.replication.popup_sentinel import PopupSentinel
from replayninja.replication.wait_strategy import WaitCondition, WaitStrategy
from replayninja.schemas.session import (
    ActionKind,
    AlertDecision,
    CheckpointType,
    LocatorStrategy,
    RecordedEvent,
    SelectedOption,
)
from replayninja.utils.logging_config import logger
from replayninja.utils.selector_factory import xpath_literal

REDACTED = "[REDACTED]"

#: recorder key names that differ from the browser's key names
KEY_ALIASES: Dict[str, str] = {
    "ENTER": "Enter",
    "RETURN": "Enter",
    "TAB": "Tab",
    "ESC": "Escape",
    "ESCAPE": "Escape",
    "DEL": "Delete",
    "DELETE": "Delete",
    "BACKSPACE": "Backspace",
    "BACK_SPACE": "Backspace",
    "SPACE": "Space",
    "INSERT": "Insert",
    "HOME": "Home",
    "END": "End",
    "PAGEUP": "PageUp",
    "PAGE_UP": "PageUp",
    "PAGEDOWN": "PageDown",
    "PAGE_DOWN": "PageDown",
    "LEFT": "ArrowLeft",
    "LEFTARROW": "ArrowLeft",
    "ARROW_LEFT": "ArrowLeft",
    "ARROWLEFT": "ArrowLeft",
    "RIGHT": "ArrowRight",
    "RIGHTARROW": "ArrowRight",
    "ARROW_RIGHT": "ArrowRight",
    "ARROWRIGHT": "ArrowRight",
    "UP": "ArrowUp",
    "UPARROW": "ArrowUp",
    "ARROW_UP": "ArrowUp",
    "ARROWUP": "ArrowUp",
    "DOWN": "ArrowDown",
    "DOWNARROW": "ArrowDown",
    "ARROW_DOWN": "ArrowDown",
    "ARROWDOWN": "ArrowDown",
}

MODIFIER_KEYS: Dict[str, str] = {
    "CTRL": "Control",
    "CONTROL": "Control",
    "SHIFT": "Shift",
    "ALT": "Alt",
    "OPTION": "Alt",
    "META": "Meta",
    "CMD": "Meta",
    "COMMAND": "Meta",
    "WIN": "Meta",
}

#: option lookups for custom (non-native) dropdowns, by visible text
OPTION_XPATH_TEMPLATES: List[str] = [
    "//li[normalize-space(.)={text}]",
    "//option[normalize-space(.)={text}]",
    "//*[contains(@class,'option') and normalize-space(.)={text}]",
    "//*[@role='option' and normalize-space(.)={text}]",
]


def resolve_key(key_code: str) -> str:
    """Translate a recorded key name into the browser's key name.

    Raises:
        ActionError: If the key is not recognised
    """
    stripped = key_code.strip()
    if not stripped:
        raise ActionError("Empty key code", component="KeyPressHandler")
    if len(stripped) == 1:
        return stripped

    upper = stripped.upper()
    if upper in KEY_ALIASES:
        return KEY_ALIASES[upper]
    if upper.startswith("F") and upper[1:].isdigit() and 1 <= int(upper[1:]) <= 24:
        return upper
    raise ActionError(
        f"Unrecognised key code {key_code!r}; use a key name such as ENTER, TAB, ESCAPE or F5",
        component="KeyPressHandler",
    )


def build_key_chord(key_code: str, modifiers: List[str]) -> str:
    """Build a `Mod+Key` chord such as `Control+Shift+A`.

    Raises:
        ActionError: If the key or a modifier is not recognised
    """
    parts: List[str] = []
    for modifier in modifiers:
        name = MODIFIER_KEYS.get(modifier.strip().upper())
        if name is None:
            raise ActionError(f"Unrecognised modifier {modifier!r}", component="KeyPressHandler")
        if name not in parts:
            parts.append(name)
    parts.append(resolve_key(key_code))
    return "+".join(parts)


@dataclass
class ActionContext:
    """Collaborators a handler may use while performing one step."""

    browser: BrowserControl
    wait_strategy: WaitStrategy
    sentinel: PopupSentinel
    config: PlayerConfig


class ActionHandler(ABC):
    """Performs one action kind.

    Attributes:
        kind (ActionKind): The action kind handled
    """

    kind: ActionKind

    @property
    def requires_target(self) -> bool:
        return self.kind.requires_target

    @abstractmethod
    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        """Perform the step.

        Raises:
            ActionError: If the step cannot be performed
            WaitTimeoutError: If a condition the action depends on never held
        """
        raise NotImplementedError("handle() must be implemented by subclasses")

    def _require_target(self, target: Optional[ElementHandle]) -> ElementHandle:
        if target is None:
            raise ActionError(
                f"{self.kind.value} step has no resolved target element",
                component=type(self).__name__,
            )
        return target

    @staticmethod
    async def _clickable(target: ElementHandle, context: ActionContext) -> ElementHandle:
        return await context.wait_strategy.wait_for(
            WaitCondition.ELEMENT_CLICKABLE,
            timeout_ms=context.config.explicit_wait_ms,
            element=target,
        )

    @staticmethod
    async def _visible(target: ElementHandle, context: ActionContext) -> ElementHandle:
        return await context.wait_strategy.wait_for(
            WaitCondition.ELEMENT_VISIBLE,
            timeout_ms=context.config.explicit_wait_ms,
            element=target,
        )


#! Pointer actions


class ClickHandler(ActionHandler):
    kind = ActionKind.CLICK

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        element = await self._clickable(self._require_target(target), context)
        await element.click()


class DoubleClickHandler(ActionHandler):
    kind = ActionKind.DOUBLE_CLICK

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        element = await self._clickable(self._require_target(target), context)
        await element.double_click()


class ContextMenuHandler(ActionHandler):
    kind = ActionKind.CONTEXT_MENU

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        element = await self._clickable(self._require_target(target), context)
        await element.context_click()


class HoverHandler(ActionHandler):
    kind = ActionKind.HOVER

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        element = await self._visible(self._require_target(target), context)
        await element.hover()


#! Keyboard and form actions


class TextInputHandler(ActionHandler):
    """Clears the field and types the recorded text; password values never reach the log."""

    kind = ActionKind.TEXT_INPUT

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        text = event.payload.text
        if text is None:
            raise ActionError(
                f"text_input step {event.sequence_index} has no text to type",
                component=type(self).__name__,
            )

        element = await self._visible(self._require_target(target), context)
        secret = await self._is_secret(event, element)
        logger.replay_log(f"⌨️ Typing {REDACTED if secret else repr(text)}")

        await element.clear()
        if text:
            await element.type_text(text)

    @staticmethod
    async def _is_secret(event: RecordedEvent, element: ElementHandle) -> bool:
        if event.target is not None and event.target.is_password_field():
            return True
        live_type = await element.get_attribute("type")
        return (live_type or "").lower() == "password"


class SelectOptionHandler(ActionHandler):
    """Selects a dropdown option.

    Native `<select>` elements try visible text, then value, then index. Any
    other element is treated as a custom dropdown: it is clicked open and the
    option with the recorded text is clicked.
    """

    kind = ActionKind.SELECT_OPTION

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        option = event.payload.selected_option
        if option is None or option.is_empty():
            raise ActionError(
                f"select_option step {event.sequence_index} has no option to select",
                component=type(self).__name__,
            )

        element = self._require_target(target)
        if (await element.get_tag_name()).lower() == "select":
            await self._select_native(element, option)
        else:
            await self._select_custom(element, option, context)

    async def _select_native(self, element: ElementHandle, option: SelectedOption) -> None:
        if option.text and await element.select_by_text(option.text):
            logger.replay_log(f"🔽 Selected option by text {option.text!r}")
            return
        if option.value and await element.select_by_value(option.value):
            logger.replay_log(f"🔽 Selected option by value {option.value!r}")
            return
        if option.index is not None and await element.select_by_index(option.index):
            logger.replay_log(f"🔽 Selected option by index {option.index}")
            return
        raise ActionError(
            f"Could not select option (text={option.text!r}, value={option.value!r}, "
            f"index={option.index}); text, value and index all failed",
            component=type(self).__name__,
        )

    async def _select_custom(
        self, element: ElementHandle, option: SelectedOption, context: ActionContext
    ) -> None:
        if not option.text:
            raise ActionError(
                "Custom dropdowns can only be selected by option text",
                component=type(self).__name__,
            )

        opener = await self._clickable(element, context)
        await opener.click()
        logger.replay_log(f"🔽 Opened custom dropdown, looking for {option.text!r}")

        candidates = [
            template.format(text=xpath_literal(option.text)) for template in OPTION_XPATH_TEMPLATES
        ]

        async def visible_option() -> Optional[ElementHandle]:
            for xpath in candidates:
                handle = await context.browser.find_element(LocatorStrategy.XPATH, xpath)
                if handle is not None and await handle.is_displayed():
                    return handle
            return None

        try:
            option_element = await context.wait_strategy.until(
                visible_option,
                context.config.explicit_wait_ms,
                f"dropdown option {option.text!r} to be visible",
            )
        except WaitTimeoutError as e:
            raise ActionError(
                f"Custom dropdown option {option.text!r} not found after opening: {e}",
                component=type(self).__name__,
            ) from e

        await option_element.click()


class KeyPressHandler(ActionHandler):
    kind = ActionKind.KEY_PRESS

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        key_code = event.payload.key
        if not key_code:
            raise ActionError(
                f"key_press step {event.sequence_index} has no key code",
                component=type(self).__name__,
            )

        chord = build_key_chord(key_code, event.payload.modifiers)
        if target is not None:
            element = await self._visible(target, context)
            logger.replay_log(f"⌨️ Pressing {chord} on target element")
            await element.press(chord)
        else:
            logger.replay_log(f"⌨️ Pressing {chord} on focused element")
            await context.browser.press_key(chord)


class ScrollHandler(ActionHandler):
    kind = ActionKind.SCROLL

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        if target is not None:
            await target.scroll_into_view()
            return

        x = event.payload.scroll_x
        y = event.payload.scroll_y
        if x is None and y is None and event.coordinates is not None:
            x, y = event.coordinates.x, event.coordinates.y
        await context.browser.scroll_to(x or 0, y or 0)


#! Session-level actions


class NavigateHandler(ActionHandler):
    kind = ActionKind.NAVIGATE

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        url = event.payload.url or event.page.url
        if not url:
            raise ActionError(
                f"navigate step {event.sequence_index} has no URL",
                component=type(self).__name__,
            )

        logger.replay_log(f"🧭 Navigating to {url}")
        await context.browser.navigate(url)
        await context.wait_strategy.wait_for(
            WaitCondition.PAGE_LOADED, timeout_ms=context.config.page_load_timeout_ms
        )


class AlertActionHandler(ActionHandler):
    kind = ActionKind.ALERT_ACTION

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        decision = event.payload.alert_action
        if decision is None:
            raise ActionError(
                f"alert_action step {event.sequence_index} has no alert decision",
                component=type(self).__name__,
            )
        if decision == AlertDecision.SEND_KEYS and event.payload.alert_text is None:
            raise ActionError(
                "Answering a prompt dialog needs alert text", component=type(self).__name__
            )

        await context.wait_strategy.wait_for(
            WaitCondition.ALERT_PRESENT, timeout_ms=context.config.explicit_wait_ms
        )
        alert_text = await context.browser.alert_text()
        logger.replay_log(f"🪟 Alert {alert_text!r} -> {decision.value}")

        if decision == AlertDecision.ACCEPT:
            await context.browser.accept_alert()
        elif decision == AlertDecision.DISMISS:
            await context.browser.dismiss_alert()
        else:
            await context.browser.accept_alert(prompt_text=event.payload.alert_text)


class WindowSwitchHandler(ActionHandler):
    """Switches to the recorded window, or to the newest other window."""

    kind = ActionKind.WINDOW_SWITCH

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        browser = context.browser
        current = await browser.current_window_handle()
        handles = await browser.window_handles()

        if event.window_handle and event.window_handle in handles:
            destination = event.window_handle
        else:
            others = [handle for handle in handles if handle != current]
            if not others:
                raise ActionError(
                    f"Cannot determine the window to switch to: only the current window is open "
                    f"and recorded handle {event.window_handle!r} is unavailable",
                    component=type(self).__name__,
                )
            destination = others[-1]

        logger.replay_log(f"🪟 Switching window {current} -> {destination}")
        await browser.switch_to_window(destination)
        await context.sentinel.acknowledge_window_switch()
        await context.wait_strategy.wait_for(
            WaitCondition.PAGE_LOADED, timeout_ms=context.config.page_load_timeout_ms
        )


class FrameSwitchHandler(ActionHandler):
    """Recorders log frame switches as steps; the frame chain of each step already covers them."""

    kind = ActionKind.FRAME_SWITCH

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        logger.replay_log(f"🖼️ Frame switch step {event.sequence_index}: entered through the frame chain")


#! Synchronisation and verification


class WaitHandler(ActionHandler):
    """A recorded pause: waits for the page to settle instead of sleeping for the recorded time."""

    kind = ActionKind.WAIT

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        await context.wait_strategy.wait_for(
            WaitCondition.PAGE_LOADED, timeout_ms=context.config.page_load_timeout_ms
        )
        if target is not None:
            await self._visible(target, context)


class CheckpointHandler(ActionHandler):
    """Verifies the recorded expectation of a checkpoint step.

    Text, attribute and element-exists checkpoints need the step's target element;
    element-exists passes as soon as the target resolved. URL, title and
    screenshot checkpoints read the page. A step without checkpoint data is
    logged and passes.
    """

    kind = ActionKind.CHECKPOINT

    async def handle(
        self, event: RecordedEvent, target: Optional[ElementHandle], context: ActionContext
    ) -> None:
        checkpoint = event.payload.checkpoint
        if checkpoint is None:
            logger.warning(f"⚠️ checkpoint step {event.sequence_index} has no checkpoint data, skipping")
            return

        label = checkpoint.label()
        checkpoint_type = checkpoint.checkpoint_type
        logger.replay_log(f"🔎 Running checkpoint {label!r} ({checkpoint_type.value})")

        if checkpoint_type == CheckpointType.ELEMENT_EXISTS:
            self._require_target(target)
            logger.replay_log(f"🔎 Checkpoint {label}: element present")
        elif checkpoint_type == CheckpointType.TEXT:
            element = await self._visible(self._require_target(target), context)
            assert_match(label, await element.get_text(), checkpoint)
        elif checkpoint_type == CheckpointType.ATTRIBUTE:
            attribute = (checkpoint.attribute_name or "").strip()
            if not attribute:
                raise ActionError(
                    f"Attribute checkpoint {label!r} has no attribute name",
                    component=type(self).__name__,
                )
            element = self._require_target(target)
            assert_match(f"{label}[{attribute}]", await element.get_attribute(attribute), checkpoint)
        elif checkpoint_type == CheckpointType.URL:
            assert_match(label, await context.browser.get_current_url(), checkpoint)
        elif checkpoint_type == CheckpointType.TITLE:
            assert_match(label, await context.browser.get_title(), checkpoint)
        else:
            await self._compare_screenshot(
                label, checkpoint.baseline_image_path, checkpoint.screenshot_threshold, context
            )

    async def _compare_screenshot(
        self, label: str, baseline: Optional[str], threshold: float, context: ActionContext
    ) -> None:
        if not baseline or not baseline.strip():
            raise ActionError(
                f"Screenshot checkpoint {label!r} has no baseline image", component=type(self).__name__
            )

        ratio = screenshot_difference_ratio(await context.browser.take_screenshot(), Path(baseline))
        if ratio > threshold:
            raise CheckpointFailed(
                label,
                f"{ratio:.2%} of pixels differ from {baseline} (threshold {threshold:.2%})",
                expected=f"<= {threshold:.2%}",
                actual=f"{ratio:.2%}",
            )
        logger.replay_log(f"🔎 Checkpoint {label}: {ratio:.2%} pixel difference (threshold {threshold:.2%})")


HANDLER_CLASSES = (
    ClickHandler,
    DoubleClickHandler,
    ContextMenuHandler,
    HoverHandler,
    KeyPressHandler,
    TextInputHandler,
    SelectOptionHandler,
    ScrollHandler,
    NavigateHandler,
    AlertActionHandler,
    WindowSwitchHandler,
    FrameSwitchHandler,
    WaitHandler,
    CheckpointHandler,
)


def build_handler_table() -> Dict[ActionKind, ActionHandler]:
    """Construct a fresh handler table with one handler per action kind."""
    return {handler_class.kind: handler_class() for handler_class in HANDLER_CLASSES}
