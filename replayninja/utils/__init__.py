"""
Utility functions and classes for ReplayNinja.

## Key Components

1. **logger / configure_logging / bind_run** - Engine logging with the REPLAYNINJA level and run IDs
2. **SelectorFactory** - XPath candidate generation and validation over DOM snapshots
"""

from .logging_config import ReplayNinjaLogger, bind_run, configure_logging, logger
from .selector_factory import SelectorFactory, SelectorSpecificity, xpath_literal

__all__ = [
    "ReplayNinjaLogger",
    "SelectorFactory",
    "SelectorSpecificity",
    "bind_run",
    "configure_logging",
    "logger",
    "xpath_literal",
]
