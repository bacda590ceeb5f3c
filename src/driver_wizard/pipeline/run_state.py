"""Run state: everything the progress screen knows about one pipeline run.

A RunState is created when a progressing screen is entered and dropped
when it is left. It is never mutated in place; apply_event() returns the
next state for each engine event, in arrival order.

State machine:
    RUNNING -> COMPLETED | FAILED | CANCELLED

All three are terminal. Once terminal, step lifecycle events are ignored
and cancellation requests are rejected. Log lines are still accepted, and
the engine's final result is always recorded because the engine is the
authority on overall success.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from typing_extensions import assert_never

from driver_wizard.constants import DEFAULT_LOG_LINES
from driver_wizard.errors import build_troubleshooting_tips, describe_error
from driver_wizard.pipeline.events import (
    Cancelled,
    LogAppended,
    PipelineCompleted,
    PipelineEvent,
    PipelineResult,
    StepCompleted,
    StepFailed,
    StepStarted,
    Tick,
)
from driver_wizard.pipeline.ledger import Step, StepLedger
from driver_wizard.pipeline.progress import LogBuffer, compute_progress
from driver_wizard.pipeline.types import PipelineKind, TerminalState


@dataclass(frozen=True)
class FailureDetail:
    """What the error screen needs to explain a failed run.

    Attributes:
        error: Captured error, None when the failure carried no detail.
        failed_step: Description of the step that failed, may be empty.
    """

    error: BaseException | None = None
    failed_step: str = ""

    @property
    def message(self) -> str:
        """Error text, falling back to the unknown-error sentinel."""
        return describe_error(self.error)

    @property
    def tips(self) -> list[str]:
        return build_troubleshooting_tips(self.failed_step)


@dataclass(frozen=True)
class RunState:
    """State of one pipeline run.

    Attributes:
        kind: Install or uninstall.
        ledger: Steps of this run.
        log: Recent output lines.
        terminal: RUNNING until the run ends, then its terminal state.
        current_step_index: Index named by the most recent lifecycle event.
        failure_error: First failure encountered.
        result: Final result delivered by the engine, if any.
    """

    kind: PipelineKind
    ledger: StepLedger
    log: LogBuffer = field(default_factory=LogBuffer)
    terminal: TerminalState = TerminalState.RUNNING
    current_step_index: int = 0
    failure_error: BaseException | None = None
    result: PipelineResult | None = None

    @classmethod
    def create(
        cls,
        kind: PipelineKind,
        steps: list[Step] | tuple[Step, ...],
        max_log_lines: int = DEFAULT_LOG_LINES,
    ) -> RunState:
        """Create a fresh run for the given steps."""
        return cls(
            kind=kind,
            ledger=StepLedger.from_steps(steps),
            log=LogBuffer(max_lines=max_log_lines),
        )

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def steps(self) -> tuple[Step, ...]:
        return self.ledger.steps

    @property
    def completed(self) -> bool:
        """True once the engine delivered its final result."""
        return self.result is not None

    @property
    def failed(self) -> bool:
        return self.terminal is TerminalState.FAILED

    @property
    def cancelled(self) -> bool:
        return self.terminal is TerminalState.CANCELLED

    @property
    def is_terminal(self) -> bool:
        return self.terminal is not TerminalState.RUNNING

    @property
    def progress(self) -> float:
        return compute_progress(self.ledger, self.completed)

    @property
    def current_step(self) -> Step | None:
        if self.ledger.in_range(self.current_step_index):
            return self.ledger[self.current_step_index]
        return None

    def failure_detail(self) -> FailureDetail:
        """Describe the failure for the error screen."""
        return FailureDetail(
            error=self.failure_error,
            failed_step=self.ledger.description_at(self.current_step_index),
        )

    def can_cancel(self) -> bool:
        return self.terminal is TerminalState.RUNNING


def apply_event(
    state: RunState, event: PipelineEvent, now: datetime | None = None
) -> RunState:
    """Apply one engine event and return the resulting state.

    Events that are not valid in the current state are ignored; the input
    state is returned unchanged. Nothing here raises for bad event data.

    Args:
        state: Current run state.
        event: Engine event to apply.
        now: Timestamp for step timing, defaults to the current time.

    Returns:
        The next run state.
    """
    if isinstance(event, StepStarted):
        if state.is_terminal:
            return state
        return replace(
            state,
            ledger=state.ledger.start(event.index, now),
            current_step_index=event.index,
        )

    if isinstance(event, StepCompleted):
        if state.is_terminal:
            return state
        ledger = state.ledger.complete(event.index, event.error, now)
        if event.error is None:
            return replace(state, ledger=ledger, current_step_index=event.index)
        return _fail(state, ledger, event.index, event.error)

    if isinstance(event, StepFailed):
        if state.is_terminal:
            return state
        ledger = state.ledger.fail(event.index, event.error, now)
        return _fail(state, ledger, event.index, event.error)

    if isinstance(event, LogAppended):
        return replace(state, log=state.log.append(event.line))

    if isinstance(event, PipelineCompleted):
        return _finish(state, event.result)

    if isinstance(event, Cancelled):
        if not state.can_cancel():
            return state
        return replace(state, terminal=TerminalState.CANCELLED)

    if isinstance(event, Tick):
        return state

    assert_never(event)


def apply_events(
    state: RunState, events: list[PipelineEvent], now: datetime | None = None
) -> RunState:
    """Apply a sequence of events in order."""
    for event in events:
        state = apply_event(state, event, now)
    return state


def _fail(
    state: RunState,
    ledger: StepLedger,
    index: int,
    error: BaseException | None,
) -> RunState:
    failure_error = state.failure_error
    if failure_error is None:
        failure_error = ledger.first_error if ledger.first_error is not None else error
    return replace(
        state,
        ledger=ledger,
        current_step_index=index,
        terminal=TerminalState.FAILED,
        failure_error=failure_error,
    )


def _finish(state: RunState, result: PipelineResult) -> RunState:
    if state.is_terminal:
        return replace(state, result=result)

    if result.success:
        return replace(state, result=result, terminal=TerminalState.COMPLETED)

    return replace(
        state,
        result=result,
        terminal=TerminalState.FAILED,
        failure_error=(
            state.failure_error if state.failure_error is not None else result.error
        ),
    )
