"""
Browser Control Surface for the replay engine.

## Key Components

1. **BrowserControl / ElementHandle** - Interface the engine drives
2. **LocatorStrategy** - Fixed-order element location strategies
3. **PatchrightBrowserControl** - Implementation over a patchright page
"""

from replayninja.schemas.session import LocatorStrategy

from .control import BrowserControl, ElementHandle
from .patchright_control import PatchrightBrowserControl, PatchrightElement

__all__ = [
    "BrowserControl",
    "ElementHandle",
    "LocatorStrategy",
    "PatchrightBrowserControl",
    "PatchrightElement",
]
