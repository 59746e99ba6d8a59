"""
Multi-strategy element resolution.

`LocatorResolver` turns an `ElementDescriptor` into a live element handle by
trying its populated locator fields in the fixed order id → name → css → xpath.
Each attempt is an explicit element-present wait whose budget is the remaining
time split evenly across the remaining strategies (never less than a per-strategy
minimum, never more than what is left), so a resolution never outlasts the
requested timeout. Every attempt is logged with a running counter and recorded
in the resolver's attempt log.
"""

from dataclasses import dataclass, field
from typing import List

from replayninja.browser.control import BrowserControl, ElementHandle
from replayninja.replication.errors import ElementNotFound, InvalidDescriptorError, WaitTimeoutError
from replayninja.replication.wait_strategy import WaitCondition, WaitStrategy
from replayninja.schemas.results import LocatorAttempt
from replayninja.schemas.session import ElementDescriptor, LocatorStrategy
from replayninja.utils.logging_config import logger


@dataclass
class ResolvedElement:
    """A live element plus how it was found."""

    handle: ElementHandle
    strategy: LocatorStrategy
    value: str
    descriptor: ElementDescriptor
    attempts: List[LocatorAttempt] = field(default_factory=list)
    healed: bool = False


class LocatorResolver:
    """Resolves element descriptors through the ordered fallback chain.

    Attributes:
        attempt_log (List[LocatorAttempt]): Every attempt made by this resolver, in order
    """

    def __init__(
        self,
        browser: BrowserControl,
        wait_strategy: WaitStrategy,
        min_strategy_timeout_ms: int = 500,
    ):
        self.browser = browser
        self.wait_strategy = wait_strategy
        self.min_strategy_timeout_ms = min_strategy_timeout_ms
        self.attempt_log: List[LocatorAttempt] = []
        self._attempt_counter = 0

    def _strategy_budget_ms(self, remaining_ms: int, strategies_left: int) -> int:
        even_share = remaining_ms // strategies_left
        return max(0, min(max(even_share, self.min_strategy_timeout_ms), remaining_ms))

    async def resolve(self, descriptor: ElementDescriptor, timeout_ms: int) -> ResolvedElement:
        """Resolve a descriptor into a live element.

        Args:
            descriptor (ElementDescriptor): Candidate locator fields
            timeout_ms (int): Total time budget across all strategies

        Returns:
            ResolvedElement: The element and the strategy that found it

        Raises:
            InvalidDescriptorError: If no locator field is populated
            ElementNotFound: If every populated strategy failed
        """
        candidates = descriptor.populated_strategies()
        if not candidates:
            raise InvalidDescriptorError(
                f"Descriptor has no populated locator field [{descriptor.summary()}]"
            )

        started = self.wait_strategy.now()
        attempts: List[LocatorAttempt] = []

        for position, (strategy, value) in enumerate(candidates):
            remaining_ms = max(0, timeout_ms - self.wait_strategy.elapsed_ms(started))
            budget_ms = self._strategy_budget_ms(remaining_ms, len(candidates) - position)

            self._attempt_counter += 1
            attempt_started = self.wait_strategy.now()
            try:
                handle = await self.wait_strategy.wait_for(
                    WaitCondition.ELEMENT_PRESENT,
                    timeout_ms=budget_ms,
                    locator=(strategy, value),
                )
            except WaitTimeoutError as e:
                attempt = LocatorAttempt(
                    attempt_number=self._attempt_counter,
                    strategy=strategy,
                    value=value,
                    succeeded=False,
                    elapsed_ms=self.wait_strategy.elapsed_ms(attempt_started),
                    error=str(e),
                )
                attempts.append(attempt)
                self.attempt_log.append(attempt)
                logger.replay_log(
                    f"🔎 Attempt #{attempt.attempt_number} [{strategy.name}] {value} -> ❌ ({budget_ms}ms)"
                )
                continue

            attempt = LocatorAttempt(
                attempt_number=self._attempt_counter,
                strategy=strategy,
                value=value,
                succeeded=True,
                elapsed_ms=self.wait_strategy.elapsed_ms(attempt_started),
            )
            attempts.append(attempt)
            self.attempt_log.append(attempt)
            logger.replay_log(f"🔎 Attempt #{attempt.attempt_number} [{strategy.name}] {value} -> ✅")
            return ResolvedElement(
                handle=handle,
                strategy=strategy,
                value=value,
                descriptor=descriptor,
                attempts=attempts,
            )

        raise ElementNotFound(descriptor, attempts, timeout_ms)
