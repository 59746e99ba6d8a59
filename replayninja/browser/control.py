"""
Browser Control Surface used by the replay engine.

The engine never drives a browser library directly; it talks to a live, single
browser session through the `BrowserControl` interface defined here. The
interface is deliberately small and never waits on its own: element lookups
return immediately (a handle or `None`), and all synchronisation is done by
`WaitStrategy` polling these primitives.

## Key Components

1. **ElementHandle** - Capabilities of one live element
2. **BrowserControl** - Capabilities of the browser session (lookup, frames, dialogs,
   windows, scripts, navigation, page source, screenshots, console buffer)

## Usage Examples

```python
from replayninja.browser import BrowserControl, LocatorStrategy

async def submit(browser: BrowserControl) -> None:
    button = await browser.find_element(LocatorStrategy.CSS, "#submit-btn")
    if button is not None and await button.is_enabled():
        await button.click()
```
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from replayninja.replication.errors import ConfigurationError
from replayninja.schemas.session import FrameDescriptor, LocatorStrategy


class ElementHandle(ABC):
    """A live element inside the current document context."""

    @abstractmethod
    async def click(self) -> None:
        raise NotImplementedError("click() must be implemented by subclasses")

    @abstractmethod
    async def double_click(self) -> None:
        raise NotImplementedError("double_click() must be implemented by subclasses")

    @abstractmethod
    async def context_click(self) -> None:
        raise NotImplementedError("context_click() must be implemented by subclasses")

    @abstractmethod
    async def clear(self) -> None:
        raise NotImplementedError("clear() must be implemented by subclasses")

    @abstractmethod
    async def type_text(self, text: str) -> None:
        raise NotImplementedError("type_text() must be implemented by subclasses")

    @abstractmethod
    async def press(self, key: str) -> None:
        """Press a key chord (`"Enter"`, `"Control+A"`) with this element focused."""
        raise NotImplementedError("press() must be implemented by subclasses")

    @abstractmethod
    async def select_by_text(self, text: str) -> bool:
        """Select a native `<select>` option by visible text; False if no option matches."""
        raise NotImplementedError("select_by_text() must be implemented by subclasses")

    @abstractmethod
    async def select_by_value(self, value: str) -> bool:
        raise NotImplementedError("select_by_value() must be implemented by subclasses")

    @abstractmethod
    async def select_by_index(self, index: int) -> bool:
        raise NotImplementedError("select_by_index() must be implemented by subclasses")

    @abstractmethod
    async def hover(self) -> None:
        raise NotImplementedError("hover() must be implemented by subclasses")

    @abstractmethod
    async def scroll_into_view(self) -> None:
        raise NotImplementedError("scroll_into_view() must be implemented by subclasses")

    @abstractmethod
    async def get_text(self) -> str:
        raise NotImplementedError("get_text() must be implemented by subclasses")

    @abstractmethod
    async def get_attribute(self, name: str) -> Optional[str]:
        raise NotImplementedError("get_attribute() must be implemented by subclasses")

    @abstractmethod
    async def get_tag_name(self) -> str:
        raise NotImplementedError("get_tag_name() must be implemented by subclasses")

    @abstractmethod
    async def is_displayed(self) -> bool:
        raise NotImplementedError("is_displayed() must be implemented by subclasses")

    @abstractmethod
    async def is_enabled(self) -> bool:
        raise NotImplementedError("is_enabled() must be implemented by subclasses")

    @abstractmethod
    async def is_obscured(self) -> bool:
        """True when another element covers this element's centre point."""
        raise NotImplementedError("is_obscured() must be implemented by subclasses")


class BrowserControl(ABC):
    """Capabilities of one live browser session.

    Implementations own no lifecycle: the caller starts and closes the browser,
    the engine only borrows the session for the duration of a run.
    """

    #! Element lookup

    @abstractmethod
    async def find_element(self, strategy: LocatorStrategy, value: str) -> Optional[ElementHandle]:
        """Look up one element in the current document context without waiting.

        Returns:
            Optional[ElementHandle]: The first match, or None when nothing matches
        """
        raise NotImplementedError("find_element() must be implemented by subclasses")

    #! Frames

    @abstractmethod
    async def switch_to_frame(self, frame: FrameDescriptor) -> bool:
        """Enter a child frame of the current context; False when it cannot be located."""
        raise NotImplementedError("switch_to_frame() must be implemented by subclasses")

    @abstractmethod
    async def switch_to_default_content(self) -> None:
        raise NotImplementedError("switch_to_default_content() must be implemented by subclasses")

    #! Dialogs

    @abstractmethod
    async def alert_present(self) -> bool:
        raise NotImplementedError("alert_present() must be implemented by subclasses")

    @abstractmethod
    async def alert_text(self) -> Optional[str]:
        raise NotImplementedError("alert_text() must be implemented by subclasses")

    @abstractmethod
    async def accept_alert(self, prompt_text: Optional[str] = None) -> None:
        raise NotImplementedError("accept_alert() must be implemented by subclasses")

    @abstractmethod
    async def dismiss_alert(self) -> None:
        raise NotImplementedError("dismiss_alert() must be implemented by subclasses")

    #! Windows

    @abstractmethod
    async def window_handles(self) -> List[str]:
        raise NotImplementedError("window_handles() must be implemented by subclasses")

    @abstractmethod
    async def current_window_handle(self) -> str:
        raise NotImplementedError("current_window_handle() must be implemented by subclasses")

    @abstractmethod
    async def switch_to_window(self, handle: str) -> None:
        raise NotImplementedError("switch_to_window() must be implemented by subclasses")

    #! Page

    @abstractmethod
    async def execute_script(self, script: str, arg: Any = None) -> Any:
        """Evaluate a JavaScript function expression in the current context."""
        raise NotImplementedError("execute_script() must be implemented by subclasses")

    @abstractmethod
    async def navigate(self, url: str) -> None:
        """Start navigating to `url`; readiness is left to the caller's page-loaded wait."""
        raise NotImplementedError("navigate() must be implemented by subclasses")

    @abstractmethod
    async def press_key(self, key: str) -> None:
        """Press a key chord on whatever element currently has focus."""
        raise NotImplementedError("press_key() must be implemented by subclasses")

    @abstractmethod
    async def scroll_to(self, x: int, y: int) -> None:
        raise NotImplementedError("scroll_to() must be implemented by subclasses")

    @abstractmethod
    async def get_title(self) -> str:
        raise NotImplementedError("get_title() must be implemented by subclasses")

    @abstractmethod
    async def get_current_url(self) -> str:
        raise NotImplementedError("get_current_url() must be implemented by subclasses")

    @abstractmethod
    async def get_page_source(self) -> str:
        """Return the markup of the current document context (the entered frame, if any)."""
        raise NotImplementedError("get_page_source() must be implemented by subclasses")

    @abstractmethod
    async def get_top_page_source(self) -> str:
        """Return the markup of the top-level document, whatever frame is entered."""
        raise NotImplementedError("get_top_page_source() must be implemented by subclasses")

    @abstractmethod
    async def take_screenshot(self) -> bytes:
        raise NotImplementedError("take_screenshot() must be implemented by subclasses")

    @abstractmethod
    def drain_console_lines(self) -> List[str]:
        """Return and clear the console/log lines buffered since the last drain."""
        raise NotImplementedError("drain_console_lines() must be implemented by subclasses")

    def set_implicit_wait(self, timeout_ms: int) -> None:
        """Implicit waits are not supported; every wait goes through WaitStrategy.

        Raises:
            ConfigurationError: Always
        """
        raise ConfigurationError(
            f"Implicit waits are not supported (requested {timeout_ms}ms); "
            "use explicit WaitStrategy conditions instead",
            component="BrowserControl",
        )
