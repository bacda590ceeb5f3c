"""Type definitions and enums for pipeline execution."""

from __future__ import annotations

from enum import Enum


class StepStatus(str, Enum):
    """Lifecycle status of a single pipeline step."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        """Whether the step has finished, successfully or not."""
        return self in _TERMINAL_STEP_STATUSES

    @property
    def label(self) -> str:
        return self.value.capitalize()


_TERMINAL_STEP_STATUSES = frozenset(
    {StepStatus.COMPLETE, StepStatus.FAILED, StepStatus.SKIPPED}
)


class TerminalState(str, Enum):
    """Overall state of one pipeline run.

    RUNNING is the only non-terminal value. A run leaves RUNNING exactly
    once and never moves between the three terminal values.
    """

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PipelineKind(str, Enum):
    """Which flavor of pipeline a run executes."""

    INSTALL = "install"
    UNINSTALL = "uninstall"
