"""Wizard session: the single entry point for every event.

Engine lifecycle events, timer ticks and navigation requests from the
operator all arrive through WizardSession.dispatch(), one at a time. Engine
events go to the active run state, navigation events go to the screen
navigator. Front ends render from the session and never touch the run
state or the navigator directly.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Callable, Union

from driver_wizard.config import WizardSettings
from driver_wizard.constants import SPINNER_FRAMES, TRACE_LIMIT
from driver_wizard.errors import DetectionError
from driver_wizard.pipeline.engine import script_run
from driver_wizard.pipeline.events import PipelineEvent, Tick, is_pipeline_event
from driver_wizard.pipeline.run_state import RunState, apply_event
from driver_wizard.pipeline.types import PipelineKind
from driver_wizard.wizard.detection import HardwareDetector, sample_probe
from driver_wizard.wizard.navigation import (
    Continue,
    DetectionFailed,
    ExitRequested,
    NavigateTo,
    NavigationEvent,
    ScreenNavigator,
)
from driver_wizard.wizard.types import Screen

WizardEvent = Union[PipelineEvent, NavigationEvent]


class WizardSession:
    """Routes events between the engine, the run state and the navigator.

    Args:
        settings: Wizard settings, defaults when omitted.
        detector: Hardware detector used when the detecting screen is shown.
        on_event: Called with a one-line description of every routed event.

    Example:
        session = WizardSession()
        session.dispatch(Continue())
        session.detect()
        assert session.screen is Screen.SELECTING
    """

    def __init__(
        self,
        settings: WizardSettings | None = None,
        detector: HardwareDetector | None = None,
        on_event: Callable[[str], None] | None = None,
    ) -> None:
        self.settings = settings or WizardSettings()
        self.detector = detector or HardwareDetector(sample_probe)
        self.navigator = ScreenNavigator(
            max_log_lines=self.settings.log_lines,
            uninstall_steps=self.settings.uninstall_step_mappings,
        )
        self.spinner_index = 0
        self.trace: deque[str] = deque(maxlen=TRACE_LIMIT)
        self._on_event = on_event

    # ------------------------------------------------------------------
    # Read-only views for renderers
    # ------------------------------------------------------------------

    @property
    def screen(self) -> Screen:
        return self.navigator.screen

    @property
    def payload(self) -> Any:
        return self.navigator.payload

    @property
    def run(self) -> RunState | None:
        return self.navigator.run

    @property
    def quitting(self) -> bool:
        return self.navigator.quitting

    @property
    def spinner(self) -> str:
        return SPINNER_FRAMES[self.spinner_index % len(SPINNER_FRAMES)]

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def dispatch(self, event: WizardEvent) -> NavigateTo | None:
        """Route one event and return the navigation it caused, if any.

        Engine events that arrive while no run is active are dropped; this
        happens when a cancelled engine still flushes its last lines.
        """
        self._record(event)

        if is_pipeline_event(event):
            return self._dispatch_pipeline(event)
        return self.navigator.handle(event)  # type: ignore[arg-type]

    def _dispatch_pipeline(self, event: PipelineEvent) -> NavigateTo | None:
        if isinstance(event, Tick):
            self.spinner_index = (self.spinner_index + 1) % len(SPINNER_FRAMES)
            return None

        run = self.navigator.run
        if run is None or not self.screen.is_progressing:
            return None

        updated = apply_event(run, event)
        if updated is run:
            return None
        self.navigator.update_run(updated)

        if self.settings.auto_advance and updated.is_terminal:
            return self.dispatch(ExitRequested())
        return None

    def _record(self, event: WizardEvent) -> None:
        if isinstance(event, Tick):
            return
        line = f"{self.screen.value}: {event!r}"
        self.trace.append(line)
        if self._on_event is not None:
            self._on_event(line)

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def detect(self) -> NavigateTo | None:
        """Run hardware detection and feed the outcome to the navigator."""
        if self.screen is not Screen.DETECTING:
            return None
        try:
            summary = self.detector.detect()
        except DetectionError as e:
            return self.dispatch(DetectionFailed(e))
        return self.dispatch(Continue(summary))

    def redetect(self) -> None:
        """Drop cached hardware state so the next detect() probes again."""
        self.detector.invalidate()

    def script_for_run(self) -> list[PipelineEvent]:
        """Build the simulated engine event stream for the active run.

        Returns:
            Events to replay, empty when no run is active.
        """
        run = self.run
        if run is None:
            return []

        state = self.navigator.state
        packages: tuple[str, ...] = ()
        configs: tuple[str, ...] = ()
        if run.kind is PipelineKind.UNINSTALL and state.plan is not None:
            packages = state.plan.packages
            configs = state.plan.configs

        return script_run(
            run.steps,
            kind=run.kind,
            fail_at=self.settings.simulate_failure,
            packages=packages,
            configs=configs,
        )
