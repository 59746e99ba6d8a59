"""
Per-run player configuration.

`PlayerConfig` is the immutable view of the settings a `PlayerEngine` needs for
one run. It can be built from `ReplayNinjaSettings` or directly in code.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from replayninja.config.settings import FailurePolicy, ReplayNinjaSettings
from replayninja.replication.errors import ConfigurationError


class PlayerConfig(BaseModel):
    """Timing, failure policy, evidence and healing options for one run.

    With `auto_navigate`, a session whose first step is not a navigation starts by
    opening the first page URL recorded on any of its steps. `object_repository_path`
    points at the repository used to resolve steps recorded with an `objectName`.
    """

    model_config = ConfigDict(frozen=True)

    explicit_wait_ms: int = Field(default=15_000, ge=0)
    page_load_timeout_ms: int = Field(default=30_000, ge=0)
    poll_interval_ms: int = Field(default=250, gt=0)
    min_strategy_timeout_ms: int = Field(default=500, ge=0)
    implicit_wait_ms: Optional[int] = None
    failure_policy: FailurePolicy = FailurePolicy.ABORT
    auto_navigate: bool = True
    object_repository_path: Optional[Path] = None

    evidence_dir: Path = Path("./evidence")
    capture_screenshot: bool = True
    capture_page_source: bool = True
    capture_console_logs: bool = True
    evidence_capture_timeout_ms: int = Field(default=10_000, gt=0)

    healing_enabled: bool = False
    healing_timeout_ms: int = Field(default=30_000, gt=0)

    @classmethod
    def from_settings(cls, settings: ReplayNinjaSettings) -> "PlayerConfig":
        return cls(
            explicit_wait_ms=settings.explicit_wait_ms,
            page_load_timeout_ms=settings.page_load_timeout_ms,
            poll_interval_ms=settings.poll_interval_ms,
            min_strategy_timeout_ms=settings.min_strategy_timeout_ms,
            implicit_wait_ms=settings.implicit_wait_ms,
            failure_policy=settings.failure_policy,
            auto_navigate=settings.auto_navigate,
            object_repository_path=settings.object_repository_path,
            evidence_dir=settings.evidence_dir,
            capture_screenshot=settings.capture_screenshot,
            capture_page_source=settings.capture_page_source,
            capture_console_logs=settings.capture_console_logs,
            evidence_capture_timeout_ms=settings.evidence_capture_timeout_ms,
            healing_enabled=settings.healing_enabled,
            healing_timeout_ms=settings.healing_timeout_ms,
        )

    def validate_for_run(self) -> None:
        """Reject options the engine cannot honour.

        Raises:
            ConfigurationError: If an implicit wait is configured
        """
        if self.implicit_wait_ms is not None:
            raise ConfigurationError(
                f"Implicit waits are not supported (implicit_wait_ms={self.implicit_wait_ms}); "
                "remove the option and rely on explicit waits",
                component="PlayerConfig",
            )
