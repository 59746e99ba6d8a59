"""
Rich terminal event publisher for ReplayNinja.

This module provides a terminal publisher that prints replay progress, step
outcomes and the final run summary with colored output using the Rich library.
"""

from typing import Any, Dict, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from replayninja.events.base import EventPublisher
from replayninja.events.exceptions import PublisherUnavailableError
from replayninja.events.models import RunState
from replayninja.schemas.results import RunResult, RunStatus, StepResult, StepStatus

STEP_STYLES: Dict[StepStatus, str] = {
    StepStatus.PASSED: "green",
    StepStatus.HEALED: "yellow",
    StepStatus.FAILED: "bold red",
    StepStatus.SKIPPED: "dim",
}

STEP_ICONS: Dict[StepStatus, str] = {
    StepStatus.PASSED: "✅",
    StepStatus.HEALED: "🩹",
    StepStatus.FAILED: "❌",
    StepStatus.SKIPPED: "⏭️",
}


class RichTerminalPublisher(EventPublisher):
    """Rich terminal-based event publisher with colored output.

    Attributes:
        console (Console): Rich console instance for output
        style (str): Color style for progress messages

    Example:
        ```python
        from replayninja.events.publishers import RichTerminalPublisher

        publisher = RichTerminalPublisher()
        await publisher.initialize_run("run_1", {"session_id": "login", "total_steps": 3})
        ```
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self._available = True
        self.style = "bright_blue"

    def is_available(self) -> bool:
        """Check if rich terminal publisher is available (always True)."""
        return self._available

    def _ensure_available(self) -> None:
        if not self.is_available():
            raise PublisherUnavailableError(self.name)

    async def initialize_run(self, run_id: str, metadata: Dict[str, Any]) -> None:
        self._ensure_available()

        session_id = metadata.get("session_id", "unknown")
        total_steps = metadata.get("total_steps", "?")
        self.console.print(
            Text(f"🚀 Replaying '{session_id}' ({total_steps} steps), run {run_id}", style=self.style)
        )

    async def update_run_state(self, run_id: str, state: RunState) -> None:
        self._ensure_available()

        if state.current_action:
            line = f"▶️  Step {state.current_step + 1}/{state.total_steps}: {state.current_action}"
            if state.failed_steps:
                line += f" ({state.failed_steps} failed so far)"
            self.console.print(Text(line, style=self.style))

    async def publish_step_result(self, run_id: str, result: StepResult) -> None:
        self._ensure_available()

        message = f"{STEP_ICONS[result.status]} Step {result.index + 1} {result.status.value}"
        if result.status != StepStatus.SKIPPED:
            message += f" in {result.elapsed_ms}ms"
        if result.error_message:
            message += f" [{result.error_kind}] {result.error_message}"
        if result.evidence_key:
            message += f" (evidence: {result.evidence_key})"
        self.console.print(Text(message, style=STEP_STYLES[result.status]))

    async def complete_run(self, run_id: str, result: RunResult) -> None:
        self._ensure_available()

        table = Table(title=f"Run {run_id}")
        table.add_column("Status")
        table.add_column("Passed", justify="right")
        table.add_column("Healed", justify="right")
        table.add_column("Failed", justify="right")
        table.add_column("Skipped", justify="right")
        table.add_row(
            result.status.value,
            str(result.passed_count),
            str(result.healed_count),
            str(result.failed_count),
            str(result.skipped_count),
        )
        self.console.print(table)

        if result.status == RunStatus.COMPLETED:
            self.console.print(Text("🎉 Replay completed successfully!", style="green"))
        else:
            self.console.print(
                Text(
                    f"❌ Replay {result.status.value} (first failure: step "
                    f"{result.first_failure_index if result.first_failure_index is not None else '-'})",
                    style="bold red",
                )
            )
