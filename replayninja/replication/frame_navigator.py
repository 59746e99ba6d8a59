"""
Frame context management.

`FrameNavigator` is the only component that changes the document context of the
session. A step starts from the top document (`reset_to_top()`) and then enters
its recorded frame chain hop by hop. If a hop cannot be located the step fails
with `FrameNotFound`; the navigator returns to the top document first, so no
step ever runs in a partially entered chain.
"""

from typing import List, Optional, Sequence, Tuple

from replayninja.browser.control import BrowserControl
from replayninja.replication.errors import FrameNotFound, WaitTimeoutError
from replayninja.replication.wait_strategy import WaitStrategy
from replayninja.schemas.session import FrameDescriptor
from replayninja.utils.logging_config import logger


class FrameNavigator:
    """Enters and leaves frame chains.

    Attributes:
        current_chain (Tuple[FrameDescriptor, ...]): Frames entered since the last reset
    """

    def __init__(
        self,
        browser: BrowserControl,
        wait_strategy: Optional[WaitStrategy] = None,
        hop_timeout_ms: int = 0,
    ):
        self.browser = browser
        self.wait_strategy = wait_strategy
        self.hop_timeout_ms = hop_timeout_ms
        self._entered: List[FrameDescriptor] = []

    @property
    def current_chain(self) -> Tuple[FrameDescriptor, ...]:
        return tuple(self._entered)

    async def reset_to_top(self) -> None:
        await self.browser.switch_to_default_content()
        self._entered = []

    async def enter(self, chain: Sequence[FrameDescriptor]) -> None:
        """Enter every frame of `chain`, starting from the top document.

        Args:
            chain (Sequence[FrameDescriptor]): Frames from outermost to innermost;
                empty means the top document

        Raises:
            FrameNotFound: If a hop cannot be located (context is back at the top)
        """
        await self.reset_to_top()
        if not chain:
            return

        logger.replay_log(f"🧭 Entering frame chain of depth {len(chain)}")
        for hop_index, frame in enumerate(chain):
            if not await self._enter_hop(frame):
                await self.reset_to_top()
                raise FrameNotFound(hop_index, frame, chain)
            self._entered.append(frame)
            logger.debug(f"Entered frame {hop_index} [{frame.summary()}]")

    async def _enter_hop(self, frame: FrameDescriptor) -> bool:
        if self.wait_strategy is None or self.hop_timeout_ms <= 0:
            return await self.browser.switch_to_frame(frame)

        async def switched() -> bool:
            return await self.browser.switch_to_frame(frame)

        try:
            await self.wait_strategy.until(
                switched, self.hop_timeout_ms, f"frame [{frame.summary()}] to be available"
            )
        except WaitTimeoutError:
            return False
        return True
