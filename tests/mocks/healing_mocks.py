import asyncio
from typing import List, Optional

from replayninja.healing.base import HealingRequest, HealingResponse, LocatorHealingService
from replayninja.schemas.session import ElementDescriptor


class StaticHealingService(LocatorHealingService):
    """Healing service returning a fixed replacement descriptor (or none)"""

    def __init__(self, descriptor: Optional[ElementDescriptor] = None, reason: str = "no idea"):
        self.descriptor = descriptor
        self.reason = reason
        self.requests: List[HealingRequest] = []

    async def heal(self, request: HealingRequest) -> HealingResponse:
        self.requests.append(request)
        if self.descriptor is None:
            return HealingResponse.unavailable(self.reason, "static")
        return HealingResponse(descriptor=self.descriptor, source="static")


class FailingHealingService(LocatorHealingService):
    """Healing service that raises on every call"""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error or RuntimeError("healing backend unreachable")
        self.calls = 0

    async def heal(self, request: HealingRequest) -> HealingResponse:
        self.calls += 1
        raise self.error


class SlowHealingService(LocatorHealingService):
    """Healing service that answers only after a real delay"""

    def __init__(self, delay_s: float, descriptor: ElementDescriptor):
        self.delay_s = delay_s
        self.descriptor = descriptor
        self.calls = 0

    async def heal(self, request: HealingRequest) -> HealingResponse:
        self.calls += 1
        await asyncio.sleep(self.delay_s)
        return HealingResponse(descriptor=self.descriptor, source="slow")
