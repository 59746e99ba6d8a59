"""
Failure evidence capture.

When a step fails, `EvidenceCollector` gathers what is needed to diagnose it
without re-running: a screenshot, the top-level DOM source, the console lines
buffered since the step started, and a short context file. Capture is best
effort: each artifact is bounded by a timeout, and any failure is logged and
swallowed so it never replaces the step's own error.

Artifacts are written to an `EvidenceSink` under a key derived from the run id
and the step index, `"<run id>/step_<NNN>"`.

## Key Components

1. **EvidenceBundle** - Artifacts captured for one failed step
2. **EvidenceSink** - Where bundles are written
3. **FileSystemEvidenceSink** - Writes bundles below a base directory
4. **EvidenceCollector** - Captures bundles from the live session

## Usage Examples

```python
from pathlib import Path
from replayninja.replication import EvidenceCollector, FileSystemEvidenceSink

collector = EvidenceCollector(
    browser, FileSystemEvidenceSink(Path("./evidence")), run_id="run_1", config=config
)
evidence_key = await collector.capture(step_index=2, event=event, error=error)
# ./evidence/run_1/step_002/{screenshot.png,page-source.html,console.log,context.txt}
```
"""

import asyncio
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, List, Optional, TypeVar

from replayninja.browser.control import BrowserControl
from replayninja.config.player_config import PlayerConfig
from replayninja.schemas.session import RecordedEvent
from replayninja.utils.logging_config import logger

T = TypeVar("T")

SCREENSHOT_FILE = "screenshot.png"
PAGE_SOURCE_FILE = "page-source.html"
CONSOLE_LOG_FILE = "console.log"
CONTEXT_FILE = "context.txt"

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9_\-]")


def sanitize_run_id(run_id: str) -> str:
    """Make a run id safe to use as a directory name."""
    return _UNSAFE_KEY_CHARS.sub("_", run_id) or "_"


def evidence_key_for(run_id: str, step_index: int) -> str:
    return f"{sanitize_run_id(run_id)}/step_{step_index:03d}"


@dataclass
class EvidenceBundle:
    """Artifacts captured for one failed step; any of them may be missing."""

    screenshot: Optional[bytes] = None
    dom_source: Optional[str] = None
    log_lines: List[str] = field(default_factory=list)
    context: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return self.screenshot is None and self.dom_source is None and not self.log_lines


class EvidenceSink(ABC):
    """Destination of evidence bundles."""

    @abstractmethod
    def write(self, key: str, bundle: EvidenceBundle) -> None:
        """Persist a bundle under `key`.

        Raises:
            OSError: If the bundle cannot be written
        """
        raise NotImplementedError("write() must be implemented by subclasses")


class FileSystemEvidenceSink(EvidenceSink):
    """Writes each bundle to `<base_dir>/<key>/`.

    Attributes:
        base_dir (Path): Root directory of all evidence
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def path_for(self, key: str) -> Path:
        return self.base_dir / key

    def write(self, key: str, bundle: EvidenceBundle) -> None:
        target_dir = self.path_for(key)
        target_dir.mkdir(parents=True, exist_ok=True)

        if bundle.screenshot is not None:
            (target_dir / SCREENSHOT_FILE).write_bytes(bundle.screenshot)
        if bundle.dom_source is not None:
            (target_dir / PAGE_SOURCE_FILE).write_text(bundle.dom_source, encoding="utf-8")
        if bundle.log_lines:
            (target_dir / CONSOLE_LOG_FILE).write_text(
                "\n".join(bundle.log_lines) + "\n", encoding="utf-8"
            )
        if bundle.context:
            (target_dir / CONTEXT_FILE).write_text("\n".join(bundle.context) + "\n", encoding="utf-8")

        logger.replay_log(f"📸 Evidence saved to {target_dir}")


class EvidenceCollector:
    """Captures evidence for failed steps of one run.

    Attributes:
        run_id (str): Run the evidence belongs to
        capture_timeout_ms (int): Time budget of each artifact
    """

    def __init__(
        self,
        browser: BrowserControl,
        sink: EvidenceSink,
        run_id: str,
        config: PlayerConfig,
    ):
        self.browser = browser
        self.sink = sink
        self.run_id = run_id
        self.config = config
        self.capture_timeout_ms = config.evidence_capture_timeout_ms

    async def _bounded(self, label: str, awaitable: Awaitable[T]) -> Optional[T]:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.capture_timeout_ms / 1000)
        except asyncio.TimeoutError:
            logger.warning(f"⚠️ Evidence: {label} not captured within {self.capture_timeout_ms}ms")
        except Exception as e:
            logger.warning(f"⚠️ Evidence: failed to capture {label}: {e}")
        return None

    async def capture(
        self, step_index: int, event: RecordedEvent, error: Optional[BaseException] = None
    ) -> Optional[str]:
        """Capture and store evidence for a failed step.

        Never raises: every failure is logged and the artifact is left out.

        Args:
            step_index (int): Position of the failed step in the session
            event (RecordedEvent): The failed step
            error (Optional[BaseException]): The step's error, written to the context file

        Returns:
            Optional[str]: The evidence key, or None if nothing could be stored
        """
        key = evidence_key_for(self.run_id, step_index)
        bundle = EvidenceBundle()

        if self.config.capture_screenshot:
            bundle.screenshot = await self._bounded("screenshot", self.browser.take_screenshot())
        if self.config.capture_page_source:
            bundle.dom_source = await self._bounded("page source", self.browser.get_top_page_source())
        if self.config.capture_console_logs:
            try:
                bundle.log_lines = self.browser.drain_console_lines()
            except Exception as e:
                logger.warning(f"⚠️ Evidence: failed to read console lines: {e}")

        current_url = await self._bounded("current url", self.browser.get_current_url())
        bundle.context = self._context_lines(step_index, event, error, current_url)

        try:
            self.sink.write(key, bundle)
        except Exception as e:
            logger.warning(f"⚠️ Evidence: could not write bundle {key}: {e}")
            return None

        return key

    def _context_lines(
        self,
        step_index: int,
        event: RecordedEvent,
        error: Optional[BaseException],
        current_url: Optional[Any],
    ) -> List[str]:
        target = event.target.summary() if event.target is not None else "(no element)"
        frames = " > ".join(frame.summary() for frame in event.frame_chain) or "(top document)"
        lines = [
            "=== ReplayNinja Failure Evidence Context ===",
            f"Captured at   : {datetime.now(timezone.utc).isoformat()}",
            f"Run id        : {self.run_id}",
            f"Step index    : {step_index}",
            f"Sequence index: {event.sequence_index}",
            f"Action        : {event.action.value}",
            f"Recorded URL  : {event.page.url or '(none)'}",
            f"Current URL   : {current_url or '(unknown)'}",
            f"Element       : {target}",
            f"Frames        : {frames}",
        ]
        if error is not None:
            component = getattr(error, "component", None)
            lines.append(f"Error kind    : {getattr(error, 'kind', type(error).__name__)}")
            if component:
                lines.append(f"Component     : {component}")
            lines.append(f"Error         : {error}")
        return lines
