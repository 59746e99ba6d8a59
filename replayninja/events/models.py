"""
Run snapshot handed to event publishers.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from replayninja.schemas.results import StepResult, StepStatus

from .types import RunPhase


class RunState(BaseModel):
    """State of a replay run when one of its steps is about to start.

    `current_step` is the 0-based index of that step. The counters cover the
    steps finished before it.
    """

    model_config = ConfigDict(use_enum_values=True, frozen=True)

    run_id: str
    session_id: str
    status: RunPhase

    current_step: int = Field(default=0, ge=0)
    total_steps: int = Field(default=0, ge=0)
    current_action: Optional[str] = None
    current_url: Optional[str] = None

    passed_steps: int = 0
    healed_steps: int = 0
    failed_steps: int = 0
    skipped_steps: int = 0

    start_time: datetime
    last_update_time: datetime

    @property
    def progress_percentage(self) -> float:
        if not self.total_steps:
            return 100.0
        return self.current_step / self.total_steps * 100

    @staticmethod
    def count_outcomes(steps: List[StepResult]) -> Dict[str, int]:
        """Counter fields for the finished `steps`, ready to pass to the constructor."""
        return {
            "passed_steps": sum(1 for s in steps if s.status == StepStatus.PASSED),
            "healed_steps": sum(1 for s in steps if s.status == StepStatus.HEALED),
            "failed_steps": sum(1 for s in steps if s.status == StepStatus.FAILED),
            "skipped_steps": sum(1 for s in steps if s.status == StepStatus.SKIPPED),
        }
