"""Simulated installation engine.

The real package-manager backend lives outside this project. The wizard
only ever sees its lifecycle events, so a scripted engine that replays a
plausible event stream is enough to drive both front ends and the tests.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Callable, Iterable, Sequence

from driver_wizard.constants import RESTORE_NOUVEAU_STEP
from driver_wizard.errors import StepFailedError
from driver_wizard.pipeline.events import (
    LogAppended,
    PipelineCompleted,
    PipelineEvent,
    PipelineResult,
    StepCompleted,
    StepStarted,
)
from driver_wizard.pipeline.ledger import Step
from driver_wizard.pipeline.types import PipelineKind

# Extra output lines per step name, mimicking package manager chatter
STEP_OUTPUT: dict[str, tuple[str, ...]] = {
    "prepare": ("Checking free disk space", "Checking kernel headers"),
    "blacklist": ("Writing /etc/modprobe.d/blacklist-nouveau.conf",),
    "update": ("Fetching repository metadata", "Reading package lists... Done"),
    "configure": ("Writing xorg configuration", "Rebuilding module dependencies"),
    "verify": ("Loading nvidia kernel module", "nvidia-smi reported 1 GPU"),
    "unload_modules": ("Unloading nvidia_drm", "Unloading nvidia"),
    "remove_packages": ("Removing driver packages",),
    "remove_configs": ("Removing /etc/modprobe.d/blacklist-nouveau.conf",),
    "restore_nouveau": ("Re-enabling nouveau",),
    "regenerate_initramfs": ("Generating initramfs image",),
}


def script_run(
    steps: Sequence[Step],
    kind: PipelineKind = PipelineKind.INSTALL,
    fail_at: str | None = None,
    error_message: str | None = None,
    packages: Sequence[str] = (),
    configs: Sequence[str] = (),
) -> list[PipelineEvent]:
    """Produce the event stream of one simulated run.

    Args:
        steps: Steps of the pipeline, in order.
        kind: Pipeline flavor, decides the result metadata.
        fail_at: Name of a step that should fail. The run stops there.
        error_message: Message of the injected failure.
        packages: Packages reported as removed by an uninstall.
        configs: Configuration files reported as cleaned by an uninstall.

    Returns:
        Ordered engine events ending with PipelineCompleted.

    Raises:
        ValueError: If fail_at names no step of the pipeline.
    """
    if fail_at is not None and fail_at not in {step.name for step in steps}:
        available = ", ".join(step.name for step in steps)
        raise ValueError(f"Unknown step '{fail_at}'. Available: {available}")

    events: list[PipelineEvent] = []

    for index, step in enumerate(steps):
        events.append(StepStarted(index))
        events.append(LogAppended(f"==> {step.description}"))
        for line in STEP_OUTPUT.get(step.name, ()):
            events.append(LogAppended(line))

        if step.name == fail_at:
            error = StepFailedError(
                error_message or f"{step.description} failed", step_name=step.name
            )
            events.append(StepCompleted(index, error))
            events.append(PipelineCompleted(PipelineResult(success=False, error=error)))
            return events

        events.append(StepCompleted(index))

    if kind is PipelineKind.UNINSTALL:
        names = {step.name for step in steps}
        result = PipelineResult(
            success=True,
            removed_packages=tuple(packages),
            cleaned_configs=tuple(configs),
            nouveau_restored=RESTORE_NOUVEAU_STEP in names,
            needs_reboot=True,
        )
    else:
        result = PipelineResult(success=True, needs_reboot=True)

    events.append(LogAppended("All steps finished"))
    events.append(PipelineCompleted(result))
    return events


class ScriptedEngine:
    """Replays a scripted event stream one event at a time.

    Example:
        engine = ScriptedEngine(script_run(steps))
        engine.run(lambda event: print(event))
    """

    def __init__(self, events: Iterable[PipelineEvent]) -> None:
        self._pending: deque[PipelineEvent] = deque(events)
        self._cancelled = False

    @property
    def finished(self) -> bool:
        return not self._pending

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def next_event(self) -> PipelineEvent | None:
        """Pop the next event, or None when the stream is exhausted."""
        if not self._pending:
            return None
        return self._pending.popleft()

    def cancel(self) -> None:
        """Stop the run; only a final acknowledgment line remains."""
        self._cancelled = True
        self._pending.clear()
        self._pending.append(LogAppended("Cancelled by user"))

    def run(
        self,
        emit: Callable[[PipelineEvent], None],
        delay: float = 0.0,
    ) -> None:
        """Deliver every remaining event to emit, sleeping between them."""
        while not self.finished:
            event = self._pending.popleft()
            emit(event)
            if delay > 0:
                time.sleep(delay)
