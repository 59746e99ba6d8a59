"""
Bounded self-healing around the locator resolver.

When every strategy of a descriptor failed, `HealingInterceptor` asks the
configured Locator-Healing Service exactly once for a replacement descriptor and
retries resolution once with it. The step's `StepExecution` records the
`healing` and `resolving_healed` phases, and the transition table makes a
second healing attempt impossible.

If healing is disabled, unconfigured, unavailable, over budget, or the retry
fails, the original `ElementNotFound` is raised again with a note about what
happened to the healing attempt.

The retry gets the full resolution timeout again, so a step that heals spends
at most `2 * timeout_ms + budget_ms` resolving its target.
"""

import asyncio
from typing import Optional

from replayninja.browser.control import BrowserControl
from replayninja.healing.base import HealingRequest, HealingResponse, LocatorHealingService
from replayninja.replication.errors import ElementNotFound, ReplicatorError
from replayninja.replication.locator_resolver import LocatorResolver, ResolvedElement
from replayninja.replication.state_machine import StepExecution, StepPhase
from replayninja.schemas.session import ElementDescriptor
from replayninja.utils.logging_config import logger


class HealingInterceptor:
    """Wraps `LocatorResolver` with one optional healing retry.

    Attributes:
        resolver (LocatorResolver): Resolver used for both the original and the healed descriptor
        healing_service (Optional[LocatorHealingService]): External healing service
        enabled (bool): Whether healing may be attempted at all
        budget_ms (int): Time the healing service gets before it counts as unavailable
        invocations (int): Number of times the healing service was called
    """

    def __init__(
        self,
        resolver: LocatorResolver,
        browser: BrowserControl,
        healing_service: Optional[LocatorHealingService] = None,
        enabled: bool = True,
        budget_ms: int = 30_000,
    ):
        self.resolver = resolver
        self.browser = browser
        self.healing_service = healing_service
        self.enabled = enabled
        self.budget_ms = budget_ms
        self.invocations = 0

    @property
    def healing_available(self) -> bool:
        return self.enabled and self.healing_service is not None

    async def resolve(
        self,
        descriptor: ElementDescriptor,
        timeout_ms: int,
        step: StepExecution,
        allow_healing: bool = True,
    ) -> ResolvedElement:
        """Resolve a step's target, healing once if needed.

        The step must be in the `resolving` phase; it is left in `resolving` or
        `resolving_healed` on success.

        Args:
            descriptor (ElementDescriptor): Recorded target descriptor
            timeout_ms (int): Budget for each resolution; the original and the healed
                descriptor each get the full amount
            step (StepExecution): State of the executing step
            allow_healing (bool): Whether this step may be healed at all; checkpoint
                steps verify the recorded element and are never healed

        Returns:
            ResolvedElement: The resolved element, with `healed=True` if the
            healed descriptor was used

        Raises:
            ElementNotFound: The original failure, when healing did not produce a
                resolvable descriptor
            InvalidDescriptorError: If the descriptor has no populated locator field
        """
        try:
            return await self.resolver.resolve(descriptor, timeout_ms)
        except ElementNotFound as original:
            if not allow_healing:
                original.healing_note = "healing not used for this step"
                raise
            if not self.healing_available:
                original.healing_note = "healing disabled"
                raise

            step.advance(StepPhase.HEALING)
            response = await self._request_healing(descriptor)

            if not response.available or response.descriptor is None:
                original.healing_note = f"healing unavailable: {response.reason}"
                logger.replay_log(f"🩹 Healing unavailable: {response.reason}")
                raise original

            healed_descriptor = response.descriptor
            step.advance(StepPhase.RESOLVING_HEALED)
            logger.replay_log(f"🩹 Retrying with healed descriptor [{healed_descriptor.summary()}]")

            try:
                resolved = await self.resolver.resolve(healed_descriptor, timeout_ms)
            except ReplicatorError as retry_error:
                original.healing_note = (
                    f"healed descriptor [{healed_descriptor.summary()}] also failed: {retry_error}"
                )
                logger.replay_log("🩹 ❌ Healed descriptor did not resolve")
                raise original

            original_attempts = list(original.attempts)
            resolved.attempts = original_attempts + resolved.attempts
            resolved.healed = True
            step.healed_descriptor = healed_descriptor
            logger.replay_log(f"🩹 ✅ Healed [{descriptor.summary()}] -> [{healed_descriptor.summary()}]")
            return resolved

    async def _request_healing(self, descriptor: ElementDescriptor) -> HealingResponse:
        """Call the healing service once, within the budget."""
        if self.healing_service is None:
            return HealingResponse.unavailable("no healing service configured")

        service = self.healing_service

        async def ask() -> HealingResponse:
            request = HealingRequest(
                descriptor=descriptor,
                dom_snapshot=await self.browser.get_page_source(),
                url=await self.browser.get_current_url(),
            )
            self.invocations += 1
            return await service.heal(request)

        logger.replay_log(f"🩹 Asking {type(service).__name__} to heal [{descriptor.summary()}]")
        try:
            return await asyncio.wait_for(ask(), timeout=self.budget_ms / 1000)
        except asyncio.TimeoutError:
            return HealingResponse.unavailable(f"no response within {self.budget_ms}ms")
        except Exception as e:
            logger.warning(f"⚠️ Healing service failed: {e}")
            return HealingResponse.unavailable(f"service error: {e}")
