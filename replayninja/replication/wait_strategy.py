"""
Explicit wait engine for the ReplayNinja replay engine.

`WaitStrategy` is the only place in the engine that suspends while waiting for
the page: it polls a condition, sleeping one poll interval between evaluations,
until the condition holds or the timeout elapses. There are no implicit waits;
asking for one is a configuration error.

## Key Components

1. **WaitCondition** - Named conditions (element present / visible / clickable,
   page loaded, alert present)
2. **WaitStrategy** - Cooperative poller with an injectable clock and sleep

## Usage Examples

```python
from replayninja.replication import WaitCondition, WaitStrategy
from replayninja.schemas import LocatorStrategy

waits = WaitStrategy(browser, poll_interval_ms=250)
button = await waits.wait_for(
    WaitCondition.ELEMENT_CLICKABLE,
    timeout_ms=5000,
    locator=(LocatorStrategy.CSS, "#submit-btn"),
)
await waits.wait_for(WaitCondition.PAGE_LOADED, timeout_ms=30000)
```
"""

import asyncio
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple, TypeVar

from replayninja.browser.control import BrowserControl, ElementHandle
from replayninja.replication.errors import ConfigurationError, WaitTimeoutError
from replayninja.schemas.session import LocatorStrategy

T = TypeVar("T")

PAGE_READY_SCRIPT = "() => document.readyState"


class WaitCondition(str, Enum):
    """Conditions understood by `WaitStrategy.wait_for`."""

    ELEMENT_PRESENT = "element_present"
    ELEMENT_VISIBLE = "element_visible"
    ELEMENT_CLICKABLE = "element_clickable"
    PAGE_LOADED = "page_loaded"
    ALERT_PRESENT = "alert_present"


class WaitStrategy:
    """Polls named conditions against a browser session until satisfied or timed out.

    A condition evaluation that raises counts as "not satisfied yet"; the last
    such error is quoted in the timeout message. The timeout is never reported
    before it has fully elapsed, and the final sleep is shortened so a timeout
    is reported at most one evaluation after it elapsed.

    Attributes:
        browser (BrowserControl): Session the conditions are evaluated against
        poll_interval_ms (int): Default polling interval
    """

    def __init__(
        self,
        browser: BrowserControl,
        poll_interval_ms: int = 250,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if poll_interval_ms <= 0:
            raise ConfigurationError(
                f"Poll interval must be positive, got {poll_interval_ms}ms",
                component="WaitStrategy",
            )
        self.browser = browser
        self.poll_interval_ms = poll_interval_ms
        self._clock = clock
        self._sleep = sleep

    def configure_implicit_wait(self, timeout_ms: int) -> None:
        """Implicit waits are rejected outright.

        Raises:
            ConfigurationError: Always
        """
        raise ConfigurationError(
            f"Implicit waits are not supported (requested {timeout_ms}ms); "
            "every wait must be an explicit WaitStrategy condition",
            component="WaitStrategy",
        )

    def now(self) -> float:
        return self._clock()

    def elapsed_ms(self, started: float) -> int:
        return round((self._clock() - started) * 1000)

    async def until(
        self,
        predicate: Callable[[], Awaitable[Optional[T]]],
        timeout_ms: int,
        description: str,
        poll_interval_ms: Optional[int] = None,
    ) -> T:
        """Poll `predicate` until it returns a truthy value.

        Args:
            predicate: Async callable returning the awaited value, or a falsy value
                while the condition does not hold yet
            timeout_ms (int): Total time budget; 0 evaluates exactly once
            description (str): Condition description used in the timeout message
            poll_interval_ms (Optional[int]): Override of the default interval

        Returns:
            T: The first truthy value returned by the predicate

        Raises:
            WaitTimeoutError: If the condition never held within the timeout
            ConfigurationError: If the poll interval is not positive
        """
        interval_ms = poll_interval_ms if poll_interval_ms is not None else self.poll_interval_ms
        if interval_ms <= 0:
            raise ConfigurationError(
                f"Poll interval must be positive, got {interval_ms}ms", component="WaitStrategy"
            )

        timeout_s = max(timeout_ms, 0) / 1000
        started = self._clock()
        last_error: Optional[BaseException] = None

        while True:
            try:
                result = await predicate()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # condition could not be evaluated yet (navigation in flight, stale element)
                result = None
                last_error = e

            if result:
                return result

            remaining_s = timeout_s - (self._clock() - started)
            if remaining_s <= 0:
                raise WaitTimeoutError(description, timeout_ms, last_error)

            await self._sleep(min(interval_ms / 1000, remaining_s))

    async def wait_for(
        self,
        condition: WaitCondition,
        timeout_ms: int,
        poll_interval_ms: Optional[int] = None,
        locator: Optional[Tuple[LocatorStrategy, str]] = None,
        element: Optional[ElementHandle] = None,
    ) -> Any:
        """Wait for a named condition.

        Element conditions need either a `locator` (looked up on every poll) or an
        already resolved `element`.

        Args:
            condition (WaitCondition): Condition to wait for
            timeout_ms (int): Total time budget
            poll_interval_ms (Optional[int]): Override of the default interval
            locator (Optional[Tuple[LocatorStrategy, str]]): Strategy and value to look up
            element (Optional[ElementHandle]): Already resolved element

        Returns:
            Any: The element handle for element conditions, True otherwise

        Raises:
            WaitTimeoutError: If the condition never held within the timeout
            ValueError: If an element condition gets neither locator nor element
        """
        if condition == WaitCondition.PAGE_LOADED:
            return await self.until(
                self._page_loaded, timeout_ms, "page to finish loading", poll_interval_ms
            )

        if condition == WaitCondition.ALERT_PRESENT:
            return await self.until(
                self.browser.alert_present, timeout_ms, "alert to be present", poll_interval_ms
            )

        if locator is None and element is None:
            raise ValueError(f"{condition.value} needs a locator or an element")

        target = f"{locator[0].value}={locator[1]!r}" if locator is not None else "resolved element"

        async def lookup() -> Optional[ElementHandle]:
            if element is not None:
                return element
            if locator is None:
                return None
            return await self.browser.find_element(locator[0], locator[1])

        if condition == WaitCondition.ELEMENT_PRESENT:
            return await self.until(
                lookup, timeout_ms, f"element {target} to be present", poll_interval_ms
            )

        if condition == WaitCondition.ELEMENT_VISIBLE:

            async def visible() -> Optional[ElementHandle]:
                handle = await lookup()
                if handle is not None and await handle.is_displayed():
                    return handle
                return None

            return await self.until(
                visible, timeout_ms, f"element {target} to be visible", poll_interval_ms
            )

        async def clickable() -> Optional[ElementHandle]:
            handle = await lookup()
            if handle is None or not await handle.is_displayed():
                return None
            if not await handle.is_enabled() or await handle.is_obscured():
                return None
            return handle

        return await self.until(
            clickable, timeout_ms, f"element {target} to be clickable", poll_interval_ms
        )

    async def _page_loaded(self) -> bool:
        return await self.browser.execute_script(PAGE_READY_SCRIPT) == "complete"
