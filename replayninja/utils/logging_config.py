"""
Logging setup for ReplayNinja.

Replay progress is logged at a dedicated level, REPLAYNINJA_LOGGING_LEVEL (35),
which sits above WARNING so it stays visible while the browser driver and LLM
clients are kept quiet. Every record carries the ID of the run it belongs to:

```
2026-01-01 10:00:00 - [run_k3x9] ✅ Step 2 passed
```

## Usage Examples

```python
from replayninja.utils import bind_run, configure_logging, logger

configure_logging(enabled=True)

with bind_run("run_k3x9"):
    logger.replay_log("▶️ Step 1/3: navigate")
```

Set `REPLAYNINJA_LOGGING_ENABLED=false` to silence the engine entirely.
"""

import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional, TextIO

# read by the driver and LLM clients when they are imported
os.environ["PLAYWRIGHT_LOGGING_LEVEL"] = "critical"
os.environ["LANGCHAIN_LOGGING_LEVEL"] = "critical"
os.environ["ANONYMIZED_TELEMETRY"] = "false"

REPLAYNINJA_LOGGING_LEVEL: int = 35
DISABLED_LEVEL: int = logging.CRITICAL + 100

FORMAT: str = "%(asctime)s - [%(run_id)s] %(message)s"
DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

#: third-party loggers that only get to speak about real errors
QUIET_LOGGERS = ("patchright", "playwright", "langchain", "httpx", "openai", "anthropic")

logging.addLevelName(REPLAYNINJA_LOGGING_LEVEL, "REPLAYNINJA")

_current_run: ContextVar[str] = ContextVar("replayninja_run_id", default="-")


def logging_enabled_from_env() -> bool:
    return os.getenv("REPLAYNINJA_LOGGING_ENABLED", "true").strip().lower() == "true"


@contextmanager
def bind_run(run_id: str) -> Iterator[None]:
    """Tag every record logged inside the block (and its awaits) with `run_id`."""
    token = _current_run.set(run_id)
    try:
        yield
    finally:
        _current_run.reset(token)


class RunContextFilter(logging.Filter):
    """Adds `record.run_id` from the run bound with `bind_run`."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "run_id"):
            record.run_id = _current_run.get()
        return True


class ReplayNinjaLogger(logging.Logger):
    """Logger with a `replay_log` method for replay progress.

    Example:
        ```python
        logger.replay_log("🩹 Step 4 healed with css=#submit")
        ```
    """

    def replay_log(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(REPLAYNINJA_LOGGING_LEVEL):
            self._log(REPLAYNINJA_LOGGING_LEVEL, msg, args, **kwargs)


logging.setLoggerClass(ReplayNinjaLogger)


def configure_logging(
    enabled: Optional[bool] = None,
    level: int = REPLAYNINJA_LOGGING_LEVEL,
    stream: Optional[TextIO] = None,
) -> None:
    """(Re)configure the `replayninja` logger tree.

    All engine modules log through children of the `replayninja` logger, which
    owns the only handler and does not propagate to the root logger, so an
    application's own logging setup is left alone.

    Args:
        enabled (Optional[bool]): Emit records at all (REPLAYNINJA_LOGGING_ENABLED if None)
        level (int): Lowest level emitted when enabled
        stream (Optional[TextIO]): Destination (stderr if None)
    """
    if enabled is None:
        enabled = logging_enabled_from_env()

    package_logger = logging.getLogger("replayninja")
    package_logger.setLevel(level if enabled else DISABLED_LEVEL)
    package_logger.propagate = False
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    if enabled:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(FORMAT, datefmt=DATE_FORMAT))
        handler.addFilter(RunContextFilter())
        package_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR if enabled else DISABLED_LEVEL)


configure_logging()

logger: ReplayNinjaLogger = logging.getLogger(__name__)  # type: ignore
