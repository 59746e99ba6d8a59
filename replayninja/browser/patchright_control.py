"""
patchright-backed implementation of the Browser Control Surface.

`PatchrightBrowserControl` adapts a live patchright `Page` (and the other pages of
its browser context) to `BrowserControl`. It keeps the engine's rule of never
waiting implicitly:

- element lookups use `query_selector`, which returns immediately;
- navigation only waits for the navigation to be committed, page readiness is
  decided by an explicit page-loaded wait;
- dialogs are buffered and left open until a step accepts or dismisses them;
- console messages and page errors are buffered for failure evidence;
- every page of the context is tracked as a window handle (cuid2 ids).

## Usage Examples

```python
from patchright.async_api import async_playwright

from replayninja.browser import PatchrightBrowserControl

async with async_playwright() as p:
    browser = await p.chromium.launch()
    page = await browser.new_page()
    control = PatchrightBrowserControl(page)
```
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from cuid2 import Cuid as CUID
from patchright.async_api import ConsoleMessage, Dialog, Frame, Page  # type: ignore
from patchright.async_api import ElementHandle as PatchrightElementHandle  # type: ignore

from replayninja.browser.control import BrowserControl, ElementHandle
from replayninja.replication.errors import ActionError
from replayninja.schemas.session import FrameDescriptor, LocatorStrategy
from replayninja.utils.logging_config import logger

OBSCURED_SCRIPT = """(el) => {
    const rect = el.getBoundingClientRect();
    if (rect.width === 0 || rect.height === 0) return true;
    const x = rect.left + rect.width / 2;
    const y = rect.top + rect.height / 2;
    if (x < 0 || y < 0 || x > window.innerWidth || y > window.innerHeight) return false;
    const top = document.elementFromPoint(x, y);
    return !(top === null || top === el || el.contains(top));
}"""

SELECT_OPTION_SCRIPT = """(el, [mode, wanted]) => {
    if (!el.options) return false;
    const options = Array.from(el.options);
    let index = -1;
    if (mode === 'text') index = options.findIndex(o => o.text.trim() === wanted.trim());
    else if (mode === 'value') index = options.findIndex(o => o.value === wanted);
    else if (mode === 'index') index = wanted < options.length ? wanted : -1;
    if (index < 0) return false;
    el.selectedIndex = index;
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
    return true;
}"""


def _selector_for(strategy: LocatorStrategy, value: str) -> str:
    if strategy == LocatorStrategy.ID:
        return f"css=[id={json.dumps(value)}]"
    if strategy == LocatorStrategy.NAME:
        return f"css=[name={json.dumps(value)}]"
    if strategy == LocatorStrategy.CSS:
        return f"css={value}"
    return f"xpath={value}"


def _frame_selector_for(frame: FrameDescriptor) -> str:
    if frame.id:
        return f"css=[id={json.dumps(frame.id)}]"
    if frame.name:
        quoted = json.dumps(frame.name)
        return (
            f"css=iframe[name={quoted}], frame[name={quoted}], "
            f"iframe[id={quoted}], frame[id={quoted}]"
        )
    if frame.css:
        return f"css={frame.css}"
    return f"xpath={frame.xpath}"


class PatchrightElement(ElementHandle):
    """`ElementHandle` over a patchright element handle.

    Actions carry a short action timeout; they run after the engine has already
    waited for the element to be clickable, so the timeout only bounds the
    browser round trip.
    """

    def __init__(self, handle: PatchrightElementHandle, action_timeout_ms: int):
        self._handle = handle
        self._timeout = action_timeout_ms

    async def click(self) -> None:
        await self._handle.click(timeout=self._timeout)

    async def double_click(self) -> None:
        await self._handle.dblclick(timeout=self._timeout)

    async def context_click(self) -> None:
        await self._handle.click(button="right", timeout=self._timeout)

    async def clear(self) -> None:
        await self._handle.fill("", timeout=self._timeout)

    async def type_text(self, text: str) -> None:
        await self._handle.type(text, timeout=self._timeout)

    async def press(self, key: str) -> None:
        await self._handle.press(key, timeout=self._timeout)

    async def select_by_text(self, text: str) -> bool:
        return bool(await self._handle.evaluate(SELECT_OPTION_SCRIPT, ["text", text]))

    async def select_by_value(self, value: str) -> bool:
        return bool(await self._handle.evaluate(SELECT_OPTION_SCRIPT, ["value", value]))

    async def select_by_index(self, index: int) -> bool:
        return bool(await self._handle.evaluate(SELECT_OPTION_SCRIPT, ["index", index]))

    async def hover(self) -> None:
        await self._handle.hover(timeout=self._timeout)

    async def scroll_into_view(self) -> None:
        await self._handle.evaluate("(el) => el.scrollIntoView({block: 'center', inline: 'center'})")

    async def get_text(self) -> str:
        return await self._handle.inner_text()

    async def get_attribute(self, name: str) -> Optional[str]:
        return await self._handle.get_attribute(name)

    async def get_tag_name(self) -> str:
        return await self._handle.evaluate("(el) => el.tagName.toLowerCase()")

    async def is_displayed(self) -> bool:
        return await self._handle.is_visible()

    async def is_enabled(self) -> bool:
        return await self._handle.is_enabled()

    async def is_obscured(self) -> bool:
        return bool(await self._handle.evaluate(OBSCURED_SCRIPT))


class PatchrightBrowserControl(BrowserControl):
    """`BrowserControl` over a patchright page and its browser context.

    Attributes:
        action_timeout_ms (int): Bound for single element actions
        navigation_timeout_ms (int): Bound for a navigation to be committed
    """

    def __init__(
        self,
        page: Page,
        action_timeout_ms: int = 5_000,
        navigation_timeout_ms: int = 30_000,
    ):
        self.action_timeout_ms = action_timeout_ms
        self.navigation_timeout_ms = navigation_timeout_ms

        self._pages: Dict[str, Page] = {}
        self._pending_dialogs: Dict[str, Dialog] = {}
        self._console_lines: List[str] = []

        self._current_handle: str = self._register_page(page)
        self._page: Page = page
        self._frame: Frame = page.main_frame

        page.context.on("page", self._register_page)

    @property
    def page(self) -> Page:
        return self._page

    def _register_page(self, page: Page) -> str:
        for handle, known_page in self._pages.items():
            if known_page is page:
                return handle

        handle = CUID().generate()
        self._pages[handle] = page
        page.on("dialog", lambda dialog: self._on_dialog(handle, dialog))
        page.on("console", self._on_console)
        page.on("pageerror", self._on_page_error)
        logger.replay_log(f"🪟 Tracking window {handle} ({page.url or 'about:blank'})")
        return handle

    def _on_dialog(self, handle: str, dialog: Dialog) -> None:
        #! the dialog stays open until a step accepts or dismisses it
        self._pending_dialogs[handle] = dialog
        logger.replay_log(f"💬 {dialog.type} dialog opened: {dialog.message!r}")

    def _on_console(self, message: ConsoleMessage) -> None:
        timestamp = datetime.now().isoformat(timespec="milliseconds")
        self._console_lines.append(f"[{timestamp}] [{message.type.upper()}] {message.text}")

    def _on_page_error(self, error: Any) -> None:
        timestamp = datetime.now().isoformat(timespec="milliseconds")
        self._console_lines.append(f"[{timestamp}] [PAGEERROR] {error}")

    #! Element lookup

    async def find_element(self, strategy: LocatorStrategy, value: str) -> Optional[ElementHandle]:
        handle = await self._frame.query_selector(_selector_for(strategy, value))
        if handle is None:
            return None
        return PatchrightElement(handle, self.action_timeout_ms)

    #! Frames

    async def switch_to_frame(self, frame: FrameDescriptor) -> bool:
        if frame.index is not None:
            children = self._frame.child_frames
            if frame.index >= len(children):
                return False
            self._frame = children[frame.index]
            return True

        element = await self._frame.query_selector(_frame_selector_for(frame))
        if element is None:
            return False
        content = await element.content_frame()
        if content is None:
            return False
        self._frame = content
        return True

    async def switch_to_default_content(self) -> None:
        self._frame = self._page.main_frame

    #! Dialogs

    async def alert_present(self) -> bool:
        return self._current_handle in self._pending_dialogs

    async def alert_text(self) -> Optional[str]:
        dialog = self._pending_dialogs.get(self._current_handle)
        return dialog.message if dialog is not None else None

    def _take_dialog(self) -> Dialog:
        dialog = self._pending_dialogs.pop(self._current_handle, None)
        if dialog is None:
            raise ActionError("No open dialog in the current window", component="BrowserControl")
        return dialog

    async def accept_alert(self, prompt_text: Optional[str] = None) -> None:
        dialog = self._take_dialog()
        if prompt_text is not None:
            await dialog.accept(prompt_text)
        else:
            await dialog.accept()

    async def dismiss_alert(self) -> None:
        await self._take_dialog().dismiss()

    #! Windows

    async def window_handles(self) -> List[str]:
        return [handle for handle, page in self._pages.items() if not page.is_closed()]

    async def current_window_handle(self) -> str:
        return self._current_handle

    async def switch_to_window(self, handle: str) -> None:
        page = self._pages.get(handle)
        if page is None or page.is_closed():
            raise ActionError(f"Window {handle} is not open", component="BrowserControl")
        self._page = page
        self._current_handle = handle
        self._frame = page.main_frame
        await page.bring_to_front()

    #! Page

    async def execute_script(self, script: str, arg: Any = None) -> Any:
        return await self._frame.evaluate(script, arg)

    async def navigate(self, url: str) -> None:
        self._frame = self._page.main_frame
        await self._page.goto(url, wait_until="commit", timeout=self.navigation_timeout_ms)

    async def press_key(self, key: str) -> None:
        await self._page.keyboard.press(key)

    async def scroll_to(self, x: int, y: int) -> None:
        await self._page.main_frame.evaluate("([x, y]) => window.scrollTo(x, y)", [x, y])

    async def get_title(self) -> str:
        return await self._page.title()

    async def get_current_url(self) -> str:
        return self._page.url

    async def get_page_source(self) -> str:
        return await self._frame.content()

    async def get_top_page_source(self) -> str:
        return await self._page.content()

    async def take_screenshot(self) -> bytes:
        return await self._page.screenshot(full_page=True, timeout=self.action_timeout_ms)

    def drain_console_lines(self) -> List[str]:
        lines = self._console_lines
        self._console_lines = []
        return lines
