"""Step ledger: the ordered steps of one pipeline run.

The ledger is an immutable value. Every lifecycle operation returns a new
ledger and leaves the receiver untouched, so a run can be replayed or
compared before and after an event without copying.

Lifecycle rules:
- A step moves PENDING -> RUNNING -> {COMPLETE, FAILED, SKIPPED}.
- A terminal step never goes back to PENDING or RUNNING.
- Completing an already-terminal step overwrites its end time and error
  (last write wins), matching at-least-once delivery from the engine.
- Indices outside the ledger are tolerated as no-ops, except that a
  reported error is still recorded ledger-wide.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Iterable, Iterator

from driver_wizard.pipeline.types import StepStatus


@dataclass(frozen=True)
class Step:
    """One named unit of work within a pipeline.

    Attributes:
        name: Stable machine identifier, unique within the pipeline.
        description: Human-readable label shown to the operator.
        status: Current lifecycle status.
        started_at: When the step started running, if it has.
        ended_at: When the step reached a terminal status, if it has.
        error: Failure detail, only set while status is FAILED.
    """

    name: str
    description: str
    status: StepStatus = StepStatus.PENDING
    started_at: datetime | None = None
    ended_at: datetime | None = None
    error: BaseException | None = None

    @property
    def duration(self) -> timedelta:
        """Elapsed time between start and end, zero unless both are known."""
        if self.started_at is None or self.ended_at is None:
            return timedelta(0)
        return self.ended_at - self.started_at

    @property
    def is_running(self) -> bool:
        return self.status is StepStatus.RUNNING

    @property
    def is_done(self) -> bool:
        return self.status.is_terminal


@dataclass(frozen=True)
class StepLedger:
    """Fixed-length, ordered sequence of steps plus the first failure seen.

    Attributes:
        steps: Steps in execution order. Length never changes.
        first_error: First error reported through complete(), including
            reports for indices the ledger does not know about.
        has_failure: True once any failure was reported. Tracked separately
            from first_error because a failure may arrive without detail.
    """

    steps: tuple[Step, ...] = ()
    first_error: BaseException | None = None
    has_failure: bool = False

    @classmethod
    def from_steps(cls, steps: Iterable[Step]) -> StepLedger:
        """Build a ledger from step definitions.

        Raises:
            ValueError: If two steps share a name.
        """
        ordered = tuple(steps)
        seen: set[str] = set()
        for step in ordered:
            if step.name in seen:
                raise ValueError(f"Duplicate step name: {step.name}")
            seen.add(step.name)
        return cls(steps=ordered)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def __getitem__(self, index: int) -> Step:
        return self.steps[index]

    def in_range(self, index: int) -> bool:
        """Check whether index addresses a step of this ledger."""
        return 0 <= index < len(self.steps)

    def index_of(self, name: str) -> int | None:
        """Return the position of the step with the given name, if any."""
        for i, step in enumerate(self.steps):
            if step.name == name:
                return i
        return None

    def description_at(self, index: int) -> str:
        """Description of the step at index, or empty string if out of range."""
        if self.in_range(index):
            return self.steps[index].description
        return ""

    @property
    def done_count(self) -> int:
        """Number of steps in a terminal status."""
        return sum(1 for step in self.steps if step.is_done)

    @property
    def all_done(self) -> bool:
        return self.done_count == len(self.steps)

    # ------------------------------------------------------------------
    # Lifecycle transitions
    # ------------------------------------------------------------------

    def start(self, index: int, now: datetime | None = None) -> StepLedger:
        """Mark a step as running.

        Out-of-range indices and steps that already finished are ignored.
        """
        if not self.in_range(index):
            return self
        step = self.steps[index]
        if step.is_done:
            return self
        started = replace(
            step,
            status=StepStatus.RUNNING,
            started_at=now or datetime.now(),
        )
        return self._with_step(index, started)

    def complete(
        self,
        index: int,
        error: BaseException | None = None,
        now: datetime | None = None,
    ) -> StepLedger:
        """Record the outcome of a step.

        Args:
            index: Position of the step.
            error: Failure detail; None means the step succeeded.
            now: Timestamp to record as the end time.

        Returns:
            New ledger. When error is given the failure is recorded even if
            index is out of range.
        """
        ledger = self
        if error is not None:
            ledger = ledger._record_failure(error)

        if not ledger.in_range(index):
            return ledger

        ended_at = now or datetime.now()
        step = ledger.steps[index]
        if error is None:
            updated = replace(
                step, status=StepStatus.COMPLETE, ended_at=ended_at, error=None
            )
        else:
            updated = replace(
                step, status=StepStatus.FAILED, ended_at=ended_at, error=error
            )
        return ledger._with_step(index, updated)

    def fail(
        self,
        index: int,
        error: BaseException | None = None,
        now: datetime | None = None,
    ) -> StepLedger:
        """Mark a step as failed, with or without error detail."""
        if error is not None:
            return self.complete(index, error, now)

        ledger = replace(self, has_failure=True)
        if not ledger.in_range(index):
            return ledger
        failed = replace(
            ledger.steps[index],
            status=StepStatus.FAILED,
            ended_at=now or datetime.now(),
            error=None,
        )
        return ledger._with_step(index, failed)

    def mark_skipped(self, index: int) -> StepLedger:
        """Mark a step as bypassed. Finished steps keep their status."""
        if not self.in_range(index):
            return self
        step = self.steps[index]
        if step.is_done:
            return self
        return self._with_step(index, replace(step, status=StepStatus.SKIPPED))

    def _record_failure(self, error: BaseException) -> StepLedger:
        if self.first_error is not None:
            return replace(self, has_failure=True)
        return replace(self, first_error=error, has_failure=True)

    def _with_step(self, index: int, step: Step) -> StepLedger:
        steps = self.steps[:index] + (step,) + self.steps[index + 1 :]
        return replace(self, steps=steps)


__all__ = ["Step", "StepLedger"]
