"""TUI wizard for installing and removing NVIDIA drivers."""

from __future__ import annotations

from typing import Any

from rich.console import RenderableType
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.timer import Timer
from textual.widget import Widget
from textual.widgets import Footer, Header, Static

from driver_wizard.cli.formatting import (
    render_cancellation,
    render_completion,
    render_failure,
    render_hardware,
    render_selection,
    render_uninstall_plan,
)
from driver_wizard.config import WizardSettings
from driver_wizard.constants import TICK_INTERVAL
from driver_wizard.errors import DetectionError
from driver_wizard.pipeline.engine import ScriptedEngine
from driver_wizard.pipeline.events import Tick
from driver_wizard.pipeline.run_state import FailureDetail
from driver_wizard.wizard.detection import HardwareSummary
from driver_wizard.wizard.navigation import (
    Back,
    BeginUninstall,
    CancellationNotice,
    CancelRequested,
    CompletionSummary,
    Continue,
    ExitRequested,
    NavigationEvent,
    Quit,
    Retry,
)
from driver_wizard.wizard.options import (
    Selection,
    UninstallPlan,
    build_component_options,
    build_driver_options,
    default_uninstall_plan,
)
from driver_wizard.wizard.session import WizardSession
from driver_wizard.wizard.tui_widgets import ProgressPanel, SectionPanel, SelectionForm
from driver_wizard.wizard.types import Screen

# Key hints shown under each screen
SCREEN_HINTS: dict[Screen, str] = {
    Screen.WELCOME: "Enter: install  u: uninstall  q: quit",
    Screen.DETECTING: "Esc: back  r: detect again  q: quit",
    Screen.SELECTING: "Space: toggle  Enter: continue  Esc: back",
    Screen.CONFIRMING: "Enter: install  Esc: back",
    Screen.PROGRESSING: "c/Esc: cancel  Enter: view result when finished",
    Screen.COMPLETE: "Enter/q: quit",
    Screen.ERROR: "r/Enter: start over  q: quit",
    Screen.CANCELLED: "Enter: back to start  q: quit",
    Screen.UNINSTALL_CONFIRMING: "Enter: uninstall  Esc: back",
    Screen.UNINSTALL_PROGRESSING: "c/Esc: cancel  Enter: view result when finished",
    Screen.UNINSTALL_COMPLETE: "Enter/q: quit",
    Screen.UNINSTALL_ERROR: "r/Enter: start over  q: quit",
    Screen.UNINSTALL_CANCELLED: "Enter: back to start  q: quit",
}

WELCOME_TEXT = """[bold]NVIDIA Driver Wizard[/bold]

This wizard detects your GPU, lets you pick a driver branch and the
components to install, and shows every step while it runs.

Press [bold]Enter[/bold] to start an installation or [bold]u[/bold] to remove
the installed driver.
"""


class DriverWizardTUI(App):  # type: ignore[type-arg]
    """Textual TUI for the driver wizard.

    Renders whatever screen the session is on. Key presses become
    navigation events; the simulated engine and the spinner are fed to the
    session from timers.
    """

    CSS = """
    Screen {
        background: $surface;
    }

    #screen-title {
        text-style: bold;
        color: $accent;
        padding: 0 2;
        height: auto;
    }

    #screen-body {
        padding: 1 2;
        height: 1fr;
        overflow-y: auto;
    }

    #screen-hint {
        color: $text-muted;
        padding: 0 2;
        height: auto;
    }
    """

    BINDINGS = [
        Binding("enter", "advance", "Continue", priority=True),
        Binding("escape", "back", "Back", priority=True),
        Binding("c", "cancel_run", "Cancel"),
        Binding("u", "uninstall", "Uninstall"),
        Binding("r", "retry", "Retry"),
        Binding("q", "quit", "Quit"),
    ]

    MIN_WIDTH = 80
    MIN_HEIGHT = 24

    def __init__(
        self,
        session: WizardSession | None = None,
        step_delay: float | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize TUI wizard.

        Args:
            session: Session to render, a default one when omitted
            step_delay: Seconds between engine events, defaults to settings
            **kwargs: Additional App arguments
        """
        super().__init__(**kwargs)
        self.session = session or WizardSession()
        if step_delay is None:
            step_delay = self.session.settings.step_delay
        self.step_delay = max(step_delay, 0.01)
        self.engine: ScriptedEngine | None = None
        self._engine_timer: Timer | None = None

    def compose(self) -> ComposeResult:
        """Compose TUI layout."""
        yield Header(show_clock=False)
        with Vertical():
            yield Static("", id="screen-title")
            yield Container(id="screen-body")
            yield Static("", id="screen-hint")
        yield Footer()

    async def on_mount(self) -> None:
        """Set up app on mount."""
        size = self.size
        if size.width < self.MIN_WIDTH or size.height < self.MIN_HEIGHT:
            self.notify(
                f"Terminal too small! Minimum: {self.MIN_WIDTH}x{self.MIN_HEIGHT}, "
                f"Current: {size.width}x{size.height}",
                severity="warning",
                timeout=10,
            )

        self.set_interval(TICK_INTERVAL, self._tick)
        await self.show_screen()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    async def show_screen(self) -> None:
        """Rebuild the body for the session's current screen."""
        screen = self.session.screen
        if not screen.is_progressing:
            self._stop_engine()

        self.query_one("#screen-title", expect_type=Static).update(screen.title)
        self.query_one("#screen-hint", expect_type=Static).update(
            SCREEN_HINTS[screen]
        )

        body = self.query_one("#screen-body", expect_type=Container)
        await body.remove_children()
        await body.mount(*self._build_body(screen))

        if screen is Screen.DETECTING and self.session.payload is None:
            self.call_later(self._run_detection)
        elif screen.is_progressing and self.engine is None:
            if self._start_engine():
                self._refresh_progress()
            else:
                await self.route(CancelRequested())

    def _build_body(self, screen: Screen) -> list[Widget]:
        payload = self.session.payload

        if screen is Screen.WELCOME:
            return [Static(WELCOME_TEXT, id="welcome")]

        if screen is Screen.DETECTING:
            if isinstance(payload, FailureDetail):
                return [_panel(render_failure(payload), "detection-error")]
            return [Static("Detecting hardware...", id="detecting")]

        if screen is Screen.SELECTING:
            hardware = payload if isinstance(payload, HardwareSummary) else None
            widgets: list[Widget] = []
            if hardware is not None:
                widgets.append(_panel(render_hardware(hardware), "hardware"))
            widgets.append(
                SelectionForm(
                    build_driver_options(hardware),
                    build_component_options(self.session.settings.components),
                    id="selection-form",
                )
            )
            return widgets

        if screen is Screen.CONFIRMING and isinstance(payload, Selection):
            return [_panel(render_selection(payload), "confirmation")]

        if screen is Screen.UNINSTALL_CONFIRMING and isinstance(
            payload, UninstallPlan
        ):
            return [_panel(render_uninstall_plan(payload), "uninstall-plan")]

        if screen.is_progressing:
            return [ProgressPanel(id="progress-panel")]

        if isinstance(payload, CompletionSummary):
            return [_panel(render_completion(payload), "result")]
        if isinstance(payload, FailureDetail):
            return [
                SectionPanel(
                    "The run stopped",
                    description="Fix the problem below and start over.",
                ),
                _panel(render_failure(payload), "result"),
            ]
        if isinstance(payload, CancellationNotice):
            return [_panel(render_cancellation(payload), "result")]

        return [Static("")]

    def _refresh_progress(self) -> None:
        run = self.session.run
        if run is None:
            return
        panels = self.query("#progress-panel")
        if panels:
            panels.first(ProgressPanel).show_run(run, self.session.spinner)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _tick(self) -> None:
        self.session.dispatch(Tick())
        self._refresh_progress()

    def _start_engine(self) -> bool:
        """Start replaying the active run.

        Returns:
            False if the run could not be scripted, e.g. an unknown
            simulate_failure step.
        """
        try:
            events = self.session.script_for_run()
        except ValueError as e:
            self.notify(str(e), severity="error")
            return False
        self.engine = ScriptedEngine(events)
        self._engine_timer = self.set_interval(self.step_delay, self._pump_engine)
        return True

    def _stop_engine(self) -> None:
        if self._engine_timer is not None:
            self._engine_timer.stop()
        self._engine_timer = None
        self.engine = None

    async def _pump_engine(self) -> None:
        if self.engine is None:
            return
        event = self.engine.next_event()
        if event is None:
            if self._engine_timer is not None:
                self._engine_timer.stop()
            return

        navigate_to = self.session.dispatch(event)
        if navigate_to is not None:
            await self.show_screen()
        else:
            self._refresh_progress()

    async def _run_detection(self) -> None:
        if self.session.detect() is not None:
            await self.show_screen()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def route(self, event: NavigationEvent) -> bool:
        """Send a navigation event and redraw if the screen changed.

        Returns:
            True if the event caused a navigation.
        """
        navigate_to = self.session.dispatch(event)
        if self.session.quitting:
            self.exit(self.session.screen)
            return True
        if navigate_to is None:
            return False
        await self.show_screen()
        return True

    async def action_advance(self) -> None:
        """Move forward from the current screen."""
        screen = self.session.screen

        if screen is Screen.SELECTING:
            form = self.query_one("#selection-form", expect_type=SelectionForm)
            selection = form.get_selection(self.session.navigator.state.hardware)
            is_valid, error_msg = selection.validate()
            if not is_valid:
                self.notify(error_msg, severity="error")
                return
            await self.route(Continue(selection))
        elif screen.is_progressing:
            if not await self.route(ExitRequested()):
                self.notify("The run is still in progress", severity="warning")
        elif screen in (Screen.COMPLETE, Screen.UNINSTALL_COMPLETE):
            await self.route(Quit())
        elif screen in (Screen.ERROR, Screen.UNINSTALL_ERROR):
            await self.route(Retry())
        elif screen is not Screen.DETECTING:
            await self.route(Continue())

    async def action_back(self) -> None:
        """Go back, or cancel while a run is shown."""
        if self.session.screen.is_progressing:
            await self.action_cancel_run()
        else:
            await self.route(Back())

    async def action_cancel_run(self) -> None:
        """Request cancellation of the running pipeline."""
        if not self.session.screen.is_progressing:
            return
        engine = self.engine
        if await self.route(CancelRequested()):
            if engine is not None:
                engine.cancel()
        else:
            self.notify("The run has already finished", severity="warning")

    async def action_uninstall(self) -> None:
        """Switch to the uninstall flow from the welcome screen."""
        if self.session.screen is not Screen.WELCOME:
            return
        try:
            hardware = self.session.detector.detect()
        except DetectionError as e:
            self.notify(str(e), severity="error")
            return
        await self.route(BeginUninstall(default_uninstall_plan(hardware)))

    async def action_retry(self) -> None:
        if self.session.screen is Screen.DETECTING:
            self.session.redetect()
        await self.route(Retry())

    async def action_quit(self) -> None:
        """Leave the wizard unless a run is still going."""
        if not await self.route(Quit()):
            self.notify("Cancel the run before quitting", severity="warning")


def _panel(renderable: RenderableType, widget_id: str) -> Static:
    return Static(renderable, id=widget_id)


def launch_tui_wizard(settings: WizardSettings | None = None) -> Screen:
    """Launch the TUI wizard.

    Args:
        settings: Wizard settings, defaults when omitted

    Returns:
        The screen the operator left the wizard from
    """
    app = DriverWizardTUI(session=WizardSession(settings))
    app.run()
    return app.session.screen
