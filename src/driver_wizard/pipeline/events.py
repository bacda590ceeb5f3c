"""Lifecycle events emitted by the installation engine.

The engine reports progress as a stream of these events. The set is closed:
PipelineEvent lists every kind the run state understands, and the
dispatcher in run_state asserts exhaustiveness so a new kind cannot be added
without a handler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from typing_extensions import TypeGuard


@dataclass(frozen=True)
class PipelineResult:
    """Final outcome reported by the engine.

    Attributes:
        success: Whether the engine considers the whole run successful.
        error: Failure detail when success is False, if the engine has any.
        removed_packages: Packages removed by an uninstall run.
        cleaned_configs: Configuration files removed by an uninstall run.
        nouveau_restored: Whether the open-source driver was re-enabled.
        needs_reboot: Whether a reboot is required to finish.
        metadata: Any further engine-specific details.
    """

    success: bool = True
    error: BaseException | None = None
    removed_packages: tuple[str, ...] = ()
    cleaned_configs: tuple[str, ...] = ()
    nouveau_restored: bool = False
    needs_reboot: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StepStarted:
    """A step began executing."""

    index: int


@dataclass(frozen=True)
class StepCompleted:
    """A step finished; error is set when it failed."""

    index: int
    error: BaseException | None = None


@dataclass(frozen=True)
class StepFailed:
    """A step failed, possibly without any error detail."""

    index: int
    error: BaseException | None = None


@dataclass(frozen=True)
class LogAppended:
    """A line of engine output."""

    line: str


@dataclass(frozen=True)
class PipelineCompleted:
    """The engine finished the run."""

    result: PipelineResult = field(default_factory=PipelineResult)


@dataclass(frozen=True)
class Cancelled:
    """Cancellation of the run was requested."""


@dataclass(frozen=True)
class Tick:
    """Periodic timer event. Cosmetic only."""


PipelineEvent = Union[
    StepStarted,
    StepCompleted,
    StepFailed,
    LogAppended,
    PipelineCompleted,
    Cancelled,
    Tick,
]

PIPELINE_EVENT_TYPES: tuple[type, ...] = (
    StepStarted,
    StepCompleted,
    StepFailed,
    LogAppended,
    PipelineCompleted,
    Cancelled,
    Tick,
)


def is_pipeline_event(event: object) -> TypeGuard[PipelineEvent]:
    """Check whether an object belongs to the engine event set."""
    return isinstance(event, PIPELINE_EVENT_TYPES)
