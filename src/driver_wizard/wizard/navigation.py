"""Screen navigation state machine.

Screens never switch to each other directly. A screen emits a typed
navigation event, and navigate() decides the next screen and the payload
the next screen needs. Every (screen, event) pair is defined; pairs that
make no sense leave the state untouched and produce no NavigateTo.

Install flow:
    WELCOME <-> DETECTING <-> SELECTING <-> CONFIRMING -> PROGRESSING
    PROGRESSING -> COMPLETE | ERROR | CANCELLED

Uninstall flow:
    WELCOME -> UNINSTALL_CONFIRMING -> UNINSTALL_PROGRESSING
    UNINSTALL_PROGRESSING -> UNINSTALL_COMPLETE | UNINSTALL_ERROR
                             | UNINSTALL_CANCELLED

Result screens are only reachable from their own progressing screen.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Sequence, Union

from typing_extensions import assert_never

from driver_wizard.constants import DEFAULT_LOG_LINES
from driver_wizard.pipeline.builders import new_install_run, new_uninstall_run
from driver_wizard.pipeline.events import Cancelled, PipelineResult
from driver_wizard.pipeline.ledger import Step
from driver_wizard.pipeline.run_state import FailureDetail, RunState, apply_event
from driver_wizard.pipeline.types import PipelineKind
from driver_wizard.wizard.detection import HardwareSummary
from driver_wizard.wizard.options import Selection, UninstallPlan
from driver_wizard.wizard.types import FLOW_SCREENS, Screen

# ============================================================================
# Navigation events
# ============================================================================


@dataclass(frozen=True)
class Continue:
    """Move forward. Detecting and selecting hand over what they produced."""

    payload: Union[HardwareSummary, Selection, None] = None


@dataclass(frozen=True)
class Back:
    """Move one screen back in the pre-execution chain."""


@dataclass(frozen=True)
class BeginUninstall:
    """Switch from the welcome screen into the uninstall flow."""

    plan: UninstallPlan


@dataclass(frozen=True)
class ExitRequested:
    """The operator asked to leave the progress screen and see the result."""


@dataclass(frozen=True)
class CancelRequested:
    """The operator asked to cancel the running pipeline."""


@dataclass(frozen=True)
class Retry:
    """Start over after a failure."""


@dataclass(frozen=True)
class DetectionFailed:
    """The detection collaborator could not produce a hardware summary."""

    error: Optional[BaseException] = None


@dataclass(frozen=True)
class Quit:
    """Leave the wizard."""


NavigationEvent = Union[
    Continue,
    Back,
    BeginUninstall,
    ExitRequested,
    CancelRequested,
    Retry,
    DetectionFailed,
    Quit,
]

NAVIGATION_EVENT_TYPES: tuple[type, ...] = (
    Continue,
    Back,
    BeginUninstall,
    ExitRequested,
    CancelRequested,
    Retry,
    DetectionFailed,
    Quit,
)

# ============================================================================
# Payloads
# ============================================================================


@dataclass(frozen=True)
class CompletionSummary:
    """Carried into a complete screen."""

    kind: PipelineKind
    result: PipelineResult
    steps: tuple[Step, ...] = ()
    selection: Selection | None = None
    plan: UninstallPlan | None = None

    @property
    def needs_reboot(self) -> bool:
        return self.result.needs_reboot


@dataclass(frozen=True)
class CancellationNotice:
    """Carried into a cancelled screen."""

    kind: PipelineKind
    steps_done: int
    total_steps: int
    last_step: str = ""


@dataclass(frozen=True)
class NavigateTo:
    """Outbound instruction for the rendering layer."""

    screen: Screen
    payload: Any = None


DETECTION_STEP = "Detecting hardware"

# ============================================================================
# State
# ============================================================================


@dataclass(frozen=True)
class NavigatorState:
    """Where the wizard is and what it carries between screens.

    Attributes:
        screen: Screen currently shown.
        payload: Data the current screen was entered with.
        hardware: Hardware summary from the detecting screen.
        selection: Choice made on the selecting screen.
        plan: Uninstall plan chosen on the welcome screen.
        run: Run state while a progressing screen is shown.
        quitting: Set once the operator left the wizard.
        max_log_lines: Log capacity for new runs.
        uninstall_steps: Optional override of the uninstall pipeline.
    """

    screen: Screen = Screen.WELCOME
    payload: Any = None
    hardware: HardwareSummary | None = None
    selection: Selection | None = None
    plan: UninstallPlan | None = None
    run: RunState | None = None
    quitting: bool = False
    max_log_lines: int = DEFAULT_LOG_LINES
    uninstall_steps: tuple[Mapping[str, str], ...] = ()


@dataclass(frozen=True)
class Transition:
    """Result of handling one navigation event."""

    state: NavigatorState
    navigate_to: NavigateTo | None = None

    @property
    def changed(self) -> bool:
        return self.navigate_to is not None


def _go(
    state: NavigatorState, screen: Screen, payload: Any = None, **changes: Any
) -> Transition:
    new_state = replace(state, screen=screen, payload=payload, **changes)
    return Transition(new_state, NavigateTo(screen, payload))


def _stay(state: NavigatorState) -> Transition:
    return Transition(state)


# ============================================================================
# Transition function
# ============================================================================


def navigate(state: NavigatorState, event: NavigationEvent) -> Transition:
    """Compute the next navigator state for one navigation event.

    Args:
        state: Current navigator state.
        event: Navigation event emitted by a screen.

    Returns:
        Transition holding the next state and, if the screen changed or was
        re-entered, the NavigateTo instruction for the renderer.
    """
    if state.quitting:
        return _stay(state)

    if isinstance(event, Continue):
        return _on_continue(state, event)
    if isinstance(event, Back):
        return _on_back(state)
    if isinstance(event, BeginUninstall):
        if state.screen is Screen.WELCOME:
            return _go(
                state, Screen.UNINSTALL_CONFIRMING, event.plan, plan=event.plan
            )
        return _stay(state)
    if isinstance(event, ExitRequested):
        return _on_exit(state)
    if isinstance(event, CancelRequested):
        return _on_cancel(state)
    if isinstance(event, Retry):
        return _on_retry(state)
    if isinstance(event, DetectionFailed):
        if state.screen is Screen.DETECTING:
            detail = FailureDetail(error=event.error, failed_step=DETECTION_STEP)
            return _go(state, Screen.DETECTING, detail, hardware=None)
        return _stay(state)
    if isinstance(event, Quit):
        if state.run is not None and not state.run.is_terminal:
            return _stay(state)
        return Transition(replace(state, quitting=True, run=None))

    assert_never(event)


def _on_continue(state: NavigatorState, event: Continue) -> Transition:
    screen = state.screen

    if screen is Screen.WELCOME:
        return _go(state, Screen.DETECTING)

    if screen is Screen.DETECTING:
        if not isinstance(event.payload, HardwareSummary):
            return _stay(state)
        return _go(state, Screen.SELECTING, event.payload, hardware=event.payload)

    if screen is Screen.SELECTING:
        selection = event.payload
        if not isinstance(selection, Selection) or not selection.validate()[0]:
            return _stay(state)
        return _go(state, Screen.CONFIRMING, selection, selection=selection)

    if screen is Screen.CONFIRMING:
        if state.selection is None:
            return _stay(state)
        run = new_install_run(state.selection.components, state.max_log_lines)
        return _go(state, Screen.PROGRESSING, run, run=run)

    if screen is Screen.UNINSTALL_CONFIRMING:
        restore = state.plan is None or state.plan.restore_nouveau
        run = new_uninstall_run(
            list(state.uninstall_steps), state.max_log_lines, restore_nouveau=restore
        )
        return _go(state, Screen.UNINSTALL_PROGRESSING, run, run=run)

    if screen in (Screen.CANCELLED, Screen.UNINSTALL_CANCELLED):
        return _go_home(state)

    return _stay(state)


def _on_back(state: NavigatorState) -> Transition:
    screen = state.screen

    if screen is Screen.DETECTING:
        return _go(state, Screen.WELCOME)
    if screen is Screen.SELECTING:
        return _go(state, Screen.DETECTING)
    if screen is Screen.CONFIRMING:
        return _go(state, Screen.SELECTING, state.hardware)
    if screen is Screen.UNINSTALL_CONFIRMING:
        return _go(state, Screen.WELCOME, plan=None)
    return _stay(state)


def exit_navigation(
    run: RunState,
    selection: Selection | None = None,
    plan: UninstallPlan | None = None,
) -> NavigateTo | None:
    """Build the "view the result" request for a run.

    Args:
        run: Run state of the progressing screen being left.
        selection: Install choice, carried into the completion summary.
        plan: Uninstall plan, carried into the completion summary.

    Returns:
        NavigateTo for the error, complete or cancelled screen of the run's
        flow, or None while the run is still going.
    """
    _, complete, error, cancelled = FLOW_SCREENS[run.kind]

    if run.failed:
        return NavigateTo(error, run.failure_detail())
    if run.cancelled:
        return NavigateTo(cancelled, _cancellation_notice(run))
    if run.completed and run.result is not None:
        summary = CompletionSummary(
            kind=run.kind,
            result=run.result,
            steps=run.steps,
            selection=selection,
            plan=plan,
        )
        return NavigateTo(complete, summary)
    return None


def _on_exit(state: NavigatorState) -> Transition:
    run = state.run
    if run is None or not state.screen.is_progressing:
        return _stay(state)

    target = exit_navigation(run, state.selection, state.plan)
    if target is None:
        return _stay(state)
    return _go(state, target.screen, target.payload, run=None)


def _on_cancel(state: NavigatorState) -> Transition:
    run = state.run
    if run is None or not state.screen.is_progressing or not run.can_cancel():
        return _stay(state)

    run = apply_event(run, Cancelled())
    _, _, _, cancelled = FLOW_SCREENS[run.kind]
    return _go(state, cancelled, _cancellation_notice(run), run=None)


def _on_retry(state: NavigatorState) -> Transition:
    if state.screen is Screen.DETECTING:
        return _go(state, Screen.DETECTING)
    if state.screen in (Screen.ERROR, Screen.UNINSTALL_ERROR):
        return _go_home(state)
    return _stay(state)


def _go_home(state: NavigatorState) -> Transition:
    return _go(
        state, Screen.WELCOME, hardware=None, selection=None, plan=None, run=None
    )


def _cancellation_notice(run: RunState) -> CancellationNotice:
    return CancellationNotice(
        kind=run.kind,
        steps_done=run.ledger.done_count,
        total_steps=len(run.ledger),
        last_step=run.ledger.description_at(run.current_step_index),
    )


# ============================================================================
# Stateful wrapper
# ============================================================================


class ScreenNavigator:
    """Holds the navigator state of one wizard session.

    Example:
        navigator = ScreenNavigator()
        navigator.handle(Continue())
        assert navigator.screen is Screen.DETECTING
    """

    def __init__(
        self,
        max_log_lines: int = DEFAULT_LOG_LINES,
        uninstall_steps: Sequence[Mapping[str, str]] = (),
    ) -> None:
        self.state = NavigatorState(
            max_log_lines=max_log_lines,
            uninstall_steps=tuple(uninstall_steps),
        )

    @property
    def screen(self) -> Screen:
        return self.state.screen

    @property
    def payload(self) -> Any:
        return self.state.payload

    @property
    def run(self) -> RunState | None:
        return self.state.run

    @property
    def quitting(self) -> bool:
        return self.state.quitting

    def handle(self, event: NavigationEvent) -> NavigateTo | None:
        """Apply a navigation event and return the resulting NavigateTo."""
        transition = navigate(self.state, event)
        self.state = transition.state
        return transition.navigate_to

    def update_run(self, run: RunState) -> None:
        """Replace the active run state after an engine event."""
        if self.state.run is None:
            return
        self.state = replace(self.state, run=run)
