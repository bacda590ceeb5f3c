"""Unit tests for screen navigation."""

from dataclasses import replace

import pytest

from driver_wizard.errors import UNKNOWN_ERROR, DetectionError
from driver_wizard.pipeline.events import (
    Cancelled,
    LogAppended,
    PipelineCompleted,
    PipelineEvent,
    PipelineResult,
    StepCompleted,
    StepStarted,
)
from driver_wizard.pipeline.run_state import FailureDetail, apply_events
from driver_wizard.pipeline.types import PipelineKind
from driver_wizard.wizard.detection import HardwareSummary
from driver_wizard.wizard.navigation import (
    DETECTION_STEP,
    NAVIGATION_EVENT_TYPES,
    Back,
    BeginUninstall,
    CancellationNotice,
    CancelRequested,
    CompletionSummary,
    Continue,
    DetectionFailed,
    ExitRequested,
    NavigateTo,
    NavigationEvent,
    NavigatorState,
    Quit,
    Retry,
    ScreenNavigator,
    exit_navigation,
    navigate,
)
from driver_wizard.wizard.options import (
    ComponentOption,
    DriverOption,
    Selection,
    build_component_options,
    build_driver_options,
    default_uninstall_plan,
)
from driver_wizard.wizard.types import RESULT_SCREENS, Screen

HARDWARE = HardwareSummary(gpus=("NVIDIA GeForce RTX 3070",), architecture="Ampere")


def _selection() -> Selection:
    return Selection(
        driver=build_driver_options()[0],
        components=tuple(build_component_options(["cuda"])),
        hardware=HARDWARE,
    )


def _at_progressing() -> ScreenNavigator:
    navigator = ScreenNavigator(max_log_lines=4)
    navigator.handle(Continue())
    navigator.handle(Continue(HARDWARE))
    navigator.handle(Continue(_selection()))
    navigator.handle(Continue())
    return navigator


def _at_uninstall_progressing() -> ScreenNavigator:
    navigator = ScreenNavigator()
    navigator.handle(BeginUninstall(default_uninstall_plan(HARDWARE)))
    navigator.handle(Continue())
    return navigator


def _finish_run(navigator: ScreenNavigator, *events: PipelineEvent) -> None:
    run = navigator.run
    assert run is not None
    navigator.update_run(apply_events(run, list(events)))


ALL_EVENTS: list[NavigationEvent] = [
    Continue(),
    Continue(HARDWARE),
    Back(),
    BeginUninstall(default_uninstall_plan()),
    ExitRequested(),
    CancelRequested(),
    Retry(),
    DetectionFailed(),
    Quit(),
]


@pytest.mark.unit
@pytest.mark.wizard
class TestInstallFlow:
    """Tests for the forward and backward install chain."""

    def test_starts_at_welcome(self) -> None:
        navigator = ScreenNavigator()

        assert navigator.screen is Screen.WELCOME
        assert navigator.payload is None
        assert navigator.run is None
        assert not navigator.quitting

    def test_welcome_to_detecting(self) -> None:
        navigator = ScreenNavigator()

        assert navigator.handle(Continue()) == NavigateTo(Screen.DETECTING)

    def test_detecting_requires_hardware(self) -> None:
        navigator = ScreenNavigator()
        navigator.handle(Continue())

        assert navigator.handle(Continue()) is None
        assert navigator.screen is Screen.DETECTING

    def test_detecting_to_selecting_carries_hardware(self) -> None:
        navigator = ScreenNavigator()
        navigator.handle(Continue())

        target = navigator.handle(Continue(HARDWARE))

        assert target == NavigateTo(Screen.SELECTING, HARDWARE)
        assert navigator.state.hardware is HARDWARE

    def test_selecting_to_confirming(self) -> None:
        navigator = ScreenNavigator()
        navigator.handle(Continue())
        navigator.handle(Continue(HARDWARE))
        selection = _selection()

        target = navigator.handle(Continue(selection))

        assert target == NavigateTo(Screen.CONFIRMING, selection)
        assert navigator.state.selection is selection

    def test_selecting_rejects_invalid_selection(self) -> None:
        """A selection missing a required component does not advance."""
        navigator = ScreenNavigator()
        navigator.handle(Continue())
        navigator.handle(Continue(HARDWARE))
        invalid = Selection(
            driver=DriverOption("550", "Latest"),
            components=(ComponentOption("driver", "Driver", required=True),),
        )

        assert navigator.handle(Continue(invalid)) is None
        assert navigator.handle(Continue(HARDWARE)) is None
        assert navigator.screen is Screen.SELECTING

    def test_confirming_starts_install_run(self) -> None:
        navigator = _at_progressing()
        run = navigator.run

        assert navigator.screen is Screen.PROGRESSING
        assert run is not None
        assert navigator.payload is run
        assert run.kind is PipelineKind.INSTALL
        assert run.log.max_lines == 4
        assert [s.name for s in run.steps][3:5] == ["install_driver", "install_cuda"]

    def test_back_chain(self) -> None:
        navigator = ScreenNavigator()
        navigator.handle(Continue())
        navigator.handle(Continue(HARDWARE))
        navigator.handle(Continue(_selection()))

        assert navigator.handle(Back()) == NavigateTo(Screen.SELECTING, HARDWARE)
        assert navigator.handle(Back()) == NavigateTo(Screen.DETECTING)
        assert navigator.handle(Back()) == NavigateTo(Screen.WELCOME)
        assert navigator.handle(Back()) is None

    def test_back_ignored_while_progressing(self) -> None:
        navigator = _at_progressing()

        assert navigator.handle(Back()) is None
        assert navigator.screen is Screen.PROGRESSING

    def test_continue_ignored_while_progressing(self) -> None:
        navigator = _at_progressing()
        run = navigator.run

        assert navigator.handle(Continue()) is None
        assert navigator.run is run


@pytest.mark.unit
@pytest.mark.wizard
class TestDetection:
    """Tests for detection failure and retry."""

    def test_detection_failure_stays_on_detecting(self) -> None:
        navigator = ScreenNavigator()
        navigator.handle(Continue())
        error = DetectionError("no PCI bus")

        target = navigator.handle(DetectionFailed(error))

        assert target is not None
        assert target.screen is Screen.DETECTING
        assert target.payload == FailureDetail(error, DETECTION_STEP)
        assert navigator.state.hardware is None

    def test_detection_failure_elsewhere_ignored(self) -> None:
        assert ScreenNavigator().handle(DetectionFailed()) is None

    def test_retry_at_detecting_clears_failure(self) -> None:
        navigator = ScreenNavigator()
        navigator.handle(Continue())
        navigator.handle(DetectionFailed())

        assert navigator.handle(Retry()) == NavigateTo(Screen.DETECTING)

    def test_retry_elsewhere_ignored(self) -> None:
        assert ScreenNavigator().handle(Retry()) is None


@pytest.mark.unit
@pytest.mark.wizard
class TestExitAndCancel:
    """Tests for leaving the progress screen."""

    def test_exit_ignored_while_running(self) -> None:
        navigator = _at_progressing()

        assert navigator.handle(ExitRequested()) is None
        assert navigator.screen is Screen.PROGRESSING

    def test_exit_after_success(self) -> None:
        navigator = _at_progressing()
        result = PipelineResult(needs_reboot=True)
        _finish_run(navigator, PipelineCompleted(result))

        target = navigator.handle(ExitRequested())

        assert target is not None
        assert target.screen is Screen.COMPLETE
        summary = target.payload
        assert isinstance(summary, CompletionSummary)
        assert summary.result is result
        assert summary.needs_reboot
        assert summary.selection == navigator.state.selection
        assert navigator.run is None

    def test_exit_after_step_failure(self) -> None:
        navigator = _at_progressing()
        err = RuntimeError("errX")
        _finish_run(
            navigator,
            StepStarted(0),
            StepCompleted(0),
            StepStarted(1),
            StepCompleted(1, err),
        )

        target = navigator.handle(ExitRequested())

        assert target == NavigateTo(
            Screen.ERROR, FailureDetail(err, "Blacklisting Nouveau driver")
        )

    def test_exit_after_unsuccessful_result_without_error(self) -> None:
        """The engine's verdict alone is enough to reach the error screen."""
        navigator = _at_progressing()
        _finish_run(
            navigator,
            StepStarted(0),
            StepCompleted(0),
            PipelineCompleted(PipelineResult(success=False)),
        )

        target = navigator.handle(ExitRequested())

        assert target is not None
        assert target.screen is Screen.ERROR
        assert isinstance(target.payload, FailureDetail)
        assert target.payload.message == UNKNOWN_ERROR

    def test_cancel_while_running(self) -> None:
        navigator = _at_progressing()
        _finish_run(navigator, StepStarted(0), StepCompleted(0), StepStarted(1))

        target = navigator.handle(CancelRequested())

        assert target is not None
        assert target.screen is Screen.CANCELLED
        assert target.payload == CancellationNotice(
            kind=PipelineKind.INSTALL,
            steps_done=1,
            total_steps=7,
            last_step="Blacklisting Nouveau driver",
        )
        assert navigator.run is None

    def test_cancel_after_failure_rejected(self) -> None:
        navigator = _at_progressing()
        _finish_run(navigator, StepStarted(0), StepCompleted(0, RuntimeError("x")))
        run = navigator.run

        assert navigator.handle(CancelRequested()) is None
        assert navigator.run is run
        assert run is not None and run.failed

    def test_cancel_outside_progressing_ignored(self) -> None:
        assert ScreenNavigator().handle(CancelRequested()) is None

    def test_cancelled_returns_home(self) -> None:
        navigator = _at_progressing()
        navigator.handle(CancelRequested())

        assert navigator.handle(Continue()) == NavigateTo(Screen.WELCOME)
        assert navigator.state.selection is None
        assert navigator.state.hardware is None

    def test_error_retry_returns_home(self) -> None:
        navigator = _at_progressing()
        _finish_run(navigator, PipelineCompleted(PipelineResult(success=False)))
        navigator.handle(ExitRequested())

        assert navigator.handle(Retry()) == NavigateTo(Screen.WELCOME)

    def test_continue_at_complete_is_noop(self) -> None:
        navigator = _at_progressing()
        _finish_run(navigator, PipelineCompleted())
        navigator.handle(ExitRequested())

        assert navigator.handle(Continue()) is None
        assert navigator.screen is Screen.COMPLETE

    def test_update_run_without_active_run_ignored(self) -> None:
        navigator = ScreenNavigator()
        run = _at_progressing().run
        assert run is not None

        navigator.update_run(run)

        assert navigator.run is None


@pytest.mark.unit
@pytest.mark.wizard
class TestExitNavigation:
    """Tests for exit_navigation."""

    def test_none_while_running(self) -> None:
        run = _at_progressing().run
        assert run is not None

        assert exit_navigation(run) is None

    def test_cancelled_wins_over_late_result(self) -> None:
        """A result arriving after cancellation still shows the cancel screen."""
        navigator = _at_progressing()
        run = navigator.run
        assert run is not None
        run = apply_events(run, [Cancelled(), PipelineCompleted()])

        target = exit_navigation(run)

        assert target is not None
        assert target.screen is Screen.CANCELLED

    def test_uninstall_screens(self) -> None:
        run = _at_uninstall_progressing().run
        assert run is not None

        done = apply_events(run, [PipelineCompleted()])
        failed = apply_events(run, [PipelineCompleted(PipelineResult(success=False))])

        assert exit_navigation(done) == NavigateTo(
            Screen.UNINSTALL_COMPLETE,
            CompletionSummary(PipelineKind.UNINSTALL, PipelineResult(), run.steps),
        )
        failed_target = exit_navigation(failed)
        assert failed_target is not None
        assert failed_target.screen is Screen.UNINSTALL_ERROR


@pytest.mark.unit
@pytest.mark.wizard
class TestUninstallFlow:
    """Tests for the uninstall chain."""

    def test_begin_uninstall_only_from_welcome(self) -> None:
        plan = default_uninstall_plan(HARDWARE)
        navigator = ScreenNavigator()

        assert navigator.handle(BeginUninstall(plan)) == NavigateTo(
            Screen.UNINSTALL_CONFIRMING, plan
        )
        assert navigator.state.plan is plan
        assert navigator.handle(BeginUninstall(plan)) is None

    def test_back_to_welcome_drops_plan(self) -> None:
        navigator = ScreenNavigator()
        navigator.handle(BeginUninstall(default_uninstall_plan()))

        assert navigator.handle(Back()) == NavigateTo(Screen.WELCOME)
        assert navigator.state.plan is None

    def test_uninstall_run_uses_overrides(self) -> None:
        navigator = ScreenNavigator(
            uninstall_steps=[{"name": "purge", "description": "Purge"}]
        )
        navigator.handle(BeginUninstall(default_uninstall_plan()))
        navigator.handle(Continue())

        run = navigator.run
        assert navigator.screen is Screen.UNINSTALL_PROGRESSING
        assert run is not None
        assert run.kind is PipelineKind.UNINSTALL
        assert [s.name for s in run.steps] == ["purge"]

    def test_plan_without_nouveau_restore(self) -> None:
        """Test that the plan's restore flag shapes the uninstall run."""
        plan = replace(default_uninstall_plan(HARDWARE), restore_nouveau=False)
        navigator = ScreenNavigator()
        navigator.handle(BeginUninstall(plan))
        navigator.handle(Continue())

        run = navigator.run
        assert run is not None
        assert "restore_nouveau" not in [s.name for s in run.steps]

    def test_uninstall_cancel(self) -> None:
        navigator = _at_uninstall_progressing()

        target = navigator.handle(CancelRequested())

        assert target is not None
        assert target.screen is Screen.UNINSTALL_CANCELLED
        assert navigator.handle(Continue()) == NavigateTo(Screen.WELCOME)

    def test_uninstall_error_retry(self) -> None:
        navigator = _at_uninstall_progressing()
        _finish_run(navigator, StepStarted(0), StepCompleted(0, RuntimeError("x")))

        assert navigator.handle(ExitRequested()) is not None
        assert navigator.screen is Screen.UNINSTALL_ERROR
        assert navigator.handle(Retry()) == NavigateTo(Screen.WELCOME)


@pytest.mark.unit
@pytest.mark.wizard
class TestQuit:
    """Tests for leaving the wizard."""

    def test_quit_from_welcome(self) -> None:
        navigator = ScreenNavigator()

        assert navigator.handle(Quit()) is None
        assert navigator.quitting

    def test_quit_rejected_while_running(self) -> None:
        navigator = _at_progressing()
        navigator.handle(Quit())

        assert not navigator.quitting
        assert navigator.run is not None

    def test_quit_after_run_finished(self) -> None:
        navigator = _at_progressing()
        _finish_run(navigator, PipelineCompleted())
        navigator.handle(Quit())

        assert navigator.quitting
        assert navigator.run is None

    def test_everything_ignored_after_quit(self) -> None:
        navigator = ScreenNavigator()
        navigator.handle(Quit())
        state = navigator.state

        for event in ALL_EVENTS:
            assert navigator.handle(event) is None
        assert navigator.state is state


@pytest.mark.unit
@pytest.mark.wizard
class TestTransitionTable:
    """Properties that hold for every screen and event."""

    def test_every_event_type_covered(self) -> None:
        assert {type(e) for e in ALL_EVENTS} == set(NAVIGATION_EVENT_TYPES)

    @pytest.mark.parametrize("screen", list(Screen))
    @pytest.mark.parametrize("event", ALL_EVENTS, ids=lambda e: type(e).__name__)
    def test_total_and_result_screens_guarded(
        self, screen: Screen, event: NavigationEvent
    ) -> None:
        """No pair raises, and result screens are only entered from a run."""
        state = NavigatorState(screen=screen)

        transition = navigate(state, event)

        target = transition.navigate_to
        if target is not None and target.screen in RESULT_SCREENS:
            assert screen.is_progressing
        if not transition.changed:
            assert transition.state.screen is screen

    def test_log_lines_accepted_after_terminal(self) -> None:
        navigator = _at_progressing()
        _finish_run(navigator, PipelineCompleted(), LogAppended("late line"))

        run = navigator.run
        assert run is not None
        assert list(run.log) == ["late line"]

    def test_transition_is_pure(self) -> None:
        state = NavigatorState()
        before = replace(state)

        navigate(state, Continue())

        assert state == before
